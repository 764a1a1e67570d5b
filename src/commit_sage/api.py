"""
Public entry point for generating commit messages.

External code should call :func:`generate`; it wires a
:class:`TogetherAIClient` and a :class:`CommitMessageGenerator` from a
:class:`Config` and returns a single validated message or raises an
:class:`LLMError`.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import requests

from commit_sage.config.settings import Config
from commit_sage.llm.commit_message_generator import CommitMessageGenerator
from commit_sage.llm.together_client import TogetherAIClient


def build_generator(
    config: Config,
    api_key: str,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CommitMessageGenerator:
    """Create a generator for the model, endpoint and retry bounds in ``config``."""
    client = TogetherAIClient(
        api_key=api_key,
        model=config.ai.model,
        api_url=config.api.url,
        request_timeout=config.ai.request_timeout,
        session=session if session is not None else requests.Session(),
    )
    return CommitMessageGenerator(
        client,
        config=config.ai.generation_config(),
        policy=config.api.retry_policy(),
        sleep=sleep,
        template=config.ai.prompt_template(),
    )


def generate(
    diff_text: str,
    config: Optional[Config],
    api_key: str,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Generate a Conventional Commits message for ``diff_text``.

    Parameters
    ----------
    diff_text : str
        Unified diff of the changes.
    config : Config, optional
        Model, sampling, endpoint and retry settings; defaults when None.
    api_key : str
        Credential for the completion endpoint.
    session : requests.Session, optional
        HTTP transport to reuse across calls. When omitted a session is
        created for this call and closed before returning.
    sleep : callable, optional
        Backoff sleep function, replaceable in tests.

    Returns
    -------
    str
        The generated commit message.

    Raises
    ------
    LLMError
        When no message could be generated.
    """
    owns_session = session is None
    if owns_session:
        session = requests.Session()
    try:
        generator = build_generator(config if config is not None else Config(), api_key, session, sleep)
        return generator.generate(diff_text)
    finally:
        if owns_session:
            session.close()
