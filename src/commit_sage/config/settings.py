"""
Configuration model for commit_sage.

The dataclasses mirror the sections of the JSON configuration file
(``ai``, ``api``, ``git`` and ``commit``). Every field has a default so
that the tool runs without any configuration file at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from commit_sage.llm.commit_message_generator import RetryPolicy
from commit_sage.llm.prompt_builder import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE, PromptTemplate
from commit_sage.llm.provider import GenerationConfig
from commit_sage.llm.together_client import DEFAULT_API_URL, DEFAULT_MODEL


AVAILABLE_MODELS: List[Tuple[str, str]] = [
    ("mistralai/Mixtral-8x7B-Instruct-v0.1", "Best overall performance, recommended default"),
    ("meta-llama/Llama-2-70b-chat-hf", "Excellent for detailed analysis"),
    ("mistralai/Mistral-7B-Instruct-v0.2", "Fast and efficient"),
    ("NousResearch/Nous-Hermes-2-Mixtral-8x7B-DPO", "Optimized for coding tasks"),
    ("openchat/openchat-3.5-0106", "Good balance of performance and speed"),
]


@dataclass
class AIConfig:
    """Model selection and sampling parameters."""

    model: str = DEFAULT_MODEL
    temperature: float = 0.3
    max_tokens: int = 100
    stop_sequences: List[str] = field(default_factory=lambda: ["\n"])
    request_timeout: float = 60.0
    system_prompt: str = SYSTEM_PROMPT
    # May contain {context} and {diff} placeholders.
    user_prompt_template: str = USER_PROMPT_TEMPLATE

    def prompt_template(self) -> PromptTemplate:
        return PromptTemplate(system=self.system_prompt, user=self.user_prompt_template)

    def generation_config(self) -> GenerationConfig:
        return GenerationConfig(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stop_sequences=tuple(self.stop_sequences),
        )


@dataclass
class APIConfig:
    """Endpoint location and retry bounds."""

    url: str = DEFAULT_API_URL
    max_retries: int = 3
    initial_retry_delay_ms: int = 1000

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            initial_delay_ms=self.initial_retry_delay_ms,
        )


@dataclass
class GitConfig:
    repo_path: str = "."
    include_untracked: bool = True
    show_diff: bool = False


@dataclass
class CommitConfig:
    # max_length is advisory: the CLI warns, it never rejects.
    max_length: int = 72
    auto_commit: bool = False
    verify_format: bool = True
    require_confirmation: bool = True


@dataclass
class Config:
    ai: AIConfig = field(default_factory=AIConfig)
    api: APIConfig = field(default_factory=APIConfig)
    git: GitConfig = field(default_factory=GitConfig)
    commit: CommitConfig = field(default_factory=CommitConfig)
