"""
Prompt construction for commit message generation.

The default system message carries the header grammar, the type
vocabulary and worked examples. The user message embeds the one-line
classification summary followed by the verbatim diff. Both can be
replaced through :class:`PromptTemplate`. A fresh
:class:`CompletionRequest` is built for every attempt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from textwrap import dedent
from typing import Optional

from commit_sage.analysis.diff_classifier import DiffClassification
from commit_sage.conventional.grammar import COMMIT_TYPES
from commit_sage.llm.provider import CompletionRequest, GenerationConfig, Message


SYSTEM_PROMPT = dedent(
    f"""
    You are a highly skilled developer who writes perfect conventional commit messages.
    Your task is to analyze git diffs and generate commit messages that strictly follow the Conventional Commits specification.

    COMMIT FORMAT RULES:
    1. Messages MUST follow this exact structure: type(scope): description
    2. Valid types are: {', '.join(COMMIT_TYPES)}
    3. Scope should be the main component being changed (e.g., auth, api, core)
    4. Description must:
       - Start with a lowercase letter
       - Use imperative mood (e.g., 'add' not 'adds')
       - No period at the end
       - Stay under 72 characters total

    EXAMPLES BY CHANGE TYPE:
    1. Initial Project Setup:
       GOOD: feat(core): implement commit generator with retrying API client
       GOOD: feat(arch): establish modular design with CLI and configuration system
       BAD: feat(project): initialize repository with basic files
       BAD: chore: initial commit

    2. Architecture and Core Features:
       GOOD: feat(arch): add provider-based design for completion backends
       GOOD: feat(core): integrate AI with retry logic and error handling
       BAD: feat: add new features

    3. Documentation, Tests and Refactoring:
       GOOD: docs(readme): describe configuration file options
       GOOD: test(parser): cover empty diff classification
       GOOD: refactor(client): extract request building from send loop
       BAD: update stuff
       BAD: Fixed the bug.

    Only return the commit message header, nothing else.
    """
).strip()

USER_PROMPT_TEMPLATE = dedent(
    """
    Generate a conventional commit message for the following git diff.
    The message MUST strictly follow the conventional commit format rules specified above.
    This is a {context}, so ensure the message reflects the scope of changes.
    For initial commits, focus on key architectural decisions and stay under 72 characters.
    Validate your message against the examples and rules before returning it.
    Only return the commit message, nothing else.

    Diff:
    {diff}
    """
).strip()

_PLACEHOLDER = re.compile(r"\{(context|diff)\}")


@dataclass(frozen=True)
class PromptTemplate:
    """System prompt and user prompt template sent with every request.

    The user template may contain ``{context}``, replaced by the
    classification summary, and ``{diff}``, replaced by the diff. When
    ``{diff}`` is absent the diff is appended after the template. No
    other braces are interpreted.
    """

    system: str = SYSTEM_PROMPT
    user: str = USER_PROMPT_TEMPLATE


def build_user_prompt(
    classification: DiffClassification,
    diff_text: str,
    template: str = USER_PROMPT_TEMPLATE,
) -> str:
    values = {"context": classification.summary(), "diff": diff_text}
    prompt = _PLACEHOLDER.sub(lambda match: values[match.group(1)], template)
    if "{diff}" not in template:
        prompt += diff_text
    return prompt


def build_prompt(
    classification: DiffClassification,
    diff_text: str,
    model: str,
    config: GenerationConfig,
    temperature: Optional[float] = None,
    template: Optional[PromptTemplate] = None,
) -> CompletionRequest:
    """Compose the chat request for one generation attempt.

    Parameters
    ----------
    classification : DiffClassification
        Result of :func:`commit_sage.analysis.classify_diff` for ``diff_text``.
    diff_text : str
        The raw diff, embedded verbatim in the user message.
    model : str
        Model identifier to address.
    config : GenerationConfig
        Caller's generation parameters.
    temperature : float, optional
        Per-attempt override of ``config.temperature``.
    template : PromptTemplate, optional
        Prompts to use instead of the built-in ones.

    Returns
    -------
    CompletionRequest
        System and user messages plus sampling parameters.
    """
    template = template if template is not None else PromptTemplate()
    return CompletionRequest(
        model=model,
        messages=(
            Message(role="system", content=template.system),
            Message(role="user", content=build_user_prompt(classification, diff_text, template.user)),
        ),
        temperature=config.temperature if temperature is None else temperature,
        max_tokens=config.max_tokens,
        stop=tuple(config.stop_sequences),
    )
