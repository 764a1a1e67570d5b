"""
Provider abstraction and request types for chat-completion backends.

A backend only has to identify its model, expose its default
generation parameters and perform a single request/response exchange.
Prompting, validation and retries are layered on top by
:class:`commit_sage.llm.commit_message_generator.CommitMessageGenerator`,
so they work unchanged for any :class:`ModelProvider`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Message:
    """A role-tagged chat message (``system``, ``user`` or ``assistant``)."""

    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters copied into every request.

    Attributes
    ----------
    temperature : float
        Sampling temperature between 0.0 and 1.0.
    max_tokens : int
        Maximum number of tokens in the completion.
    stop_sequences : Tuple[str, ...]
        Sequences at which the model stops generating.
    """

    temperature: float = 0.3
    max_tokens: int = 100
    stop_sequences: Tuple[str, ...] = ("\n",)

    def with_temperature(self, temperature: float) -> "GenerationConfig":
        return replace(self, temperature=temperature)


@dataclass(frozen=True)
class CompletionRequest:
    """Body of a single chat-completion call."""

    model: str
    messages: Tuple[Message, ...]
    temperature: float
    max_tokens: int
    stop: Tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [message.to_dict() for message in self.messages]
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stop": list(self.stop),
        }


class ModelProvider(ABC):
    """Interface every completion backend implements."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier of the model requests are sent to."""

    @abstractmethod
    def default_config(self) -> GenerationConfig:
        """Generation parameters to use when the caller supplies none."""

    @abstractmethod
    def send(self, request: CompletionRequest) -> str:
        """Perform one exchange and return the trimmed completion text.

        Raises
        ------
        LLMError
            One of its subclasses when the exchange fails.
        """
