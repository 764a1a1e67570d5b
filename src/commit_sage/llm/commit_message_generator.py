"""
Commit message generation using an LLM.

This module provides the :class:`CommitMessageGenerator` class, which
drives a :class:`~commit_sage.llm.provider.ModelProvider` to produce a
single Conventional Commits header for a diff. The diff is classified
once; each attempt then builds a prompt, sends it, and validates the
answer:

- rate-limited (429) and unavailable (503) responses are retried with
  exponential backoff, every other error is raised immediately;
- answers that break the header grammar are discarded and retried;
- grammar-valid answers whose type differs from the classifier's
  suggestion get one immediate second chance at a lower temperature,
  after which the best structurally valid answer is returned.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional

from commit_sage.analysis.diff_classifier import DiffClassification, classify_diff
from commit_sage.conventional.grammar import is_conventional, leading_type
from commit_sage.llm.errors import (
    SERVICE_UNAVAILABLE,
    TOO_MANY_REQUESTS,
    ApiError,
    GenerationExhausted,
    LLMError,
)
from commit_sage.llm.prompt_builder import PromptTemplate, build_prompt
from commit_sage.llm.provider import GenerationConfig, ModelProvider


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds of the generation loop.

    Attributes
    ----------
    max_retries : int
        Number of outer attempts.
    initial_delay_ms : int
        Backoff before the second attempt; doubled for each later one.
    refinement_factor : float
        Multiplier applied to the temperature for the type-mismatch
        second chance.
    retryable_statuses : FrozenSet[int]
        HTTP statuses that are retried instead of raised.
    """

    max_retries: int = 3
    initial_delay_ms: int = 1000
    refinement_factor: float = 0.8
    retryable_statuses: FrozenSet[int] = frozenset({SERVICE_UNAVAILABLE, TOO_MANY_REQUESTS})

    def delay_seconds(self, attempt: int) -> float:
        """Backoff before ``attempt`` (0-based); zero for the first attempt."""
        if attempt <= 0:
            return 0.0
        return self.initial_delay_ms * (2 ** (attempt - 1)) / 1000.0


class CommitMessageGenerator:
    """Generate a Conventional Commits message for a diff."""

    def __init__(
        self,
        provider: ModelProvider,
        config: Optional[GenerationConfig] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        template: Optional[PromptTemplate] = None,
    ) -> None:
        self.provider = provider
        self.config = config if config is not None else provider.default_config()
        self.policy = policy if policy is not None else RetryPolicy()
        self.template = template if template is not None else PromptTemplate()
        self._sleep = sleep

    def _is_retryable(self, exc: LLMError) -> bool:
        return isinstance(exc, ApiError) and exc.status_code in self.policy.retryable_statuses

    def _refine(self, classification: DiffClassification, diff_text: str) -> Optional[str]:
        """Ask once more at a lower temperature; return a grammar-valid answer or None."""
        temperature = self.config.temperature * self.policy.refinement_factor
        logger.info("Type mismatch; retrying once at temperature %.2f", temperature)
        request = build_prompt(
            classification, diff_text, self.provider.model_id, self.config.with_temperature(temperature),
            template=self.template,
        )
        try:
            message = self.provider.send(request)
        except LLMError as exc:
            logger.warning("Refinement request failed, keeping first answer: %s", exc)
            return None
        if not is_conventional(message):
            logger.warning("Refinement answer is not a conventional commit: %r", message)
            return None
        return message

    def generate(self, diff_text: str) -> str:
        """Produce a commit message for ``diff_text``.

        Parameters
        ----------
        diff_text : str
            Unified diff of the changes to describe.

        Returns
        -------
        str
            A message accepted by :func:`commit_sage.conventional.is_conventional`.

        Raises
        ------
        LLMError
            A non-retryable error from the provider, raised on first sight.
        ApiError
            The last retryable error when all attempts were spent on them.
        GenerationExhausted
            When attempts ran out without any retryable error to report.
        """
        classification = classify_diff(diff_text)
        logger.debug(
            "Classified diff as %s (suggested type: %s)",
            classification.category.value,
            classification.suggested_type,
        )
        expected_type = classification.suggested_type
        last_error: Optional[LLMError] = None

        for attempt in range(self.policy.max_retries):
            if attempt > 0:
                delay = self.policy.delay_seconds(attempt)
                logger.debug("Waiting %.1fs before attempt %d", delay, attempt + 1)
                self._sleep(delay)

            logger.info("Generating commit message (attempt %d/%d)", attempt + 1, self.policy.max_retries)
            request = build_prompt(
                classification, diff_text, self.provider.model_id, self.config, template=self.template
            )
            try:
                message = self.provider.send(request)
            except LLMError as exc:
                if not self._is_retryable(exc):
                    raise
                logger.warning("Retryable API error on attempt %d: %s", attempt + 1, exc)
                last_error = exc
                continue

            if not is_conventional(message):
                logger.debug("Discarding non-conventional answer: %r", message)
                continue

            if leading_type(message) == expected_type:
                return message

            is_final_attempt = attempt == self.policy.max_retries - 1
            if not is_final_attempt:
                refined = self._refine(classification, diff_text)
                if refined is not None:
                    return refined
            # A grammar-valid answer is returned even when its type disagrees
            # with the classification.
            return message

        if last_error is not None:
            raise last_error
        raise GenerationExhausted("Maximum retries exceeded")
