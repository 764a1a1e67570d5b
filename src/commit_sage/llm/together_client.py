"""
Client for an OpenAI-compatible chat-completion endpoint.

The default endpoint is Together.ai's ``/v1/chat/completions``. Each call
to :meth:`TogetherAIClient.send` performs exactly one HTTP exchange;
retry policy lives in the generator because it depends on the status
code. Failures are mapped onto the :mod:`commit_sage.llm.errors`
hierarchy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

import requests

from commit_sage.llm.errors import ApiError, MalformedResponse, TransportError
from commit_sage.llm.provider import CompletionRequest, GenerationConfig, ModelProvider


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_API_URL = "https://api.together.xyz/v1/chat/completions"
DEFAULT_MODEL = "mistralai/Mixtral-8x7B-Instruct-v0.1"


@dataclass
class TogetherAIClient(ModelProvider):
    """Chat-completion client for Together.ai and compatible services.

    Parameters
    ----------
    api_key : str
        Bearer token sent in the ``Authorization`` header.
    model : str, optional
        Model identifier, e.g. ``"mistralai/Mixtral-8x7B-Instruct-v0.1"``.
    api_url : str, optional
        Full URL of the chat-completion endpoint.
    request_timeout : float, optional
        Timeout in seconds for HTTP requests. Defaults to 60 seconds.
    session : requests.Session, optional
        HTTP transport. Shared sessions must be safe for the caller's
        concurrency; this client adds no locking of its own.
    """

    api_key: str
    model: str = DEFAULT_MODEL
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 60.0
    session: requests.Session = field(default_factory=requests.Session, repr=False)

    @property
    def model_id(self) -> str:
        return self.model

    def default_config(self) -> GenerationConfig:
        return GenerationConfig(temperature=0.3, max_tokens=100, stop_sequences=("\n",))

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def send(self, request: CompletionRequest) -> str:
        """Send one chat-completion request.

        Parameters
        ----------
        request : CompletionRequest
            Model, messages and sampling parameters.

        Returns
        -------
        str
            The trimmed content of the first choice.

        Raises
        ------
        TransportError
            If no response was received (connection, DNS, timeout).
        ApiError
            If the endpoint returned a non-success status.
        MalformedResponse
            If the body is not JSON or carries no completion choice.
        """
        logger.debug(
            "Sending completion request to %s (model=%s, temperature=%.2f)",
            self.api_url,
            request.model,
            request.temperature,
        )
        try:
            response = self.session.post(
                self.api_url,
                headers=self._headers(),
                json=request.to_payload(),
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Failed to reach completion endpoint: %s", exc)
            raise TransportError(f"Network connection error: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.error(
                "Completion endpoint returned status %s: %s",
                response.status_code,
                response.text,
            )
            raise ApiError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to parse completion response: %s", exc)
            raise MalformedResponse("Failed to parse completion response") from exc

        return _first_choice_content(data)


def _first_choice_content(data: Any) -> str:
    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices or not isinstance(choices, list):
        logger.error("Completion response has no choices: %s", data)
        raise MalformedResponse("No response from API")
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        logger.error("First completion choice has no text content: %s", choices[0])
        raise MalformedResponse("No response from API")
    return content.strip()
