"""
Exceptions raised while talking to a completion endpoint.

Every error derives from :class:`LLMError` so the CLI can report any
generation failure with a single ``except`` clause.
"""

from __future__ import annotations

from typing import Optional


SERVICE_UNAVAILABLE = 503
TOO_MANY_REQUESTS = 429
UNAUTHORIZED = 401


class LLMError(Exception):
    """Raised when a commit message cannot be obtained from the LLM."""

    pass


class TransportError(LLMError):
    """Connection, DNS or timeout failure before a response arrived."""

    pass


class ApiError(LLMError):
    """The endpoint answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: Optional[str] = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error ({status_code}): {describe_status(status_code)}")


class MalformedResponse(LLMError):
    """The response body could not be decoded or carried no completion."""

    pass


class GenerationExhausted(LLMError):
    """All attempts were spent without producing a valid message."""

    pass


def describe_status(status_code: int) -> str:
    """Return a human-readable explanation for an HTTP status."""
    if status_code == SERVICE_UNAVAILABLE:
        return "The completion service is temporarily unavailable. Please try again in a few moments."
    if status_code == UNAUTHORIZED:
        return "Invalid API key. Please check your Together.ai API key."
    if status_code == TOO_MANY_REQUESTS:
        return "Rate limit exceeded. Please wait a moment before trying again."
    return "Unexpected API error occurred."
