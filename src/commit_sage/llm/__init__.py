"""
Language model integration for commit_sage.

This package contains the :class:`ModelProvider` interface, the
:class:`TogetherAIClient` backend, prompt construction, and the
:class:`CommitMessageGenerator` that retries and validates model output.
"""

from .errors import (  # noqa: F401
    ApiError,
    GenerationExhausted,
    LLMError,
    MalformedResponse,
    TransportError,
)
from .provider import CompletionRequest, GenerationConfig, Message, ModelProvider  # noqa: F401
from .prompt_builder import PromptTemplate  # noqa: F401
from .together_client import TogetherAIClient  # noqa: F401
from .commit_message_generator import CommitMessageGenerator, RetryPolicy  # noqa: F401
