"""Prompt length and deny-list policy."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

ENV_MAX_CHARS = "AGENTFORGE_PROMPT_MAX_CHARS"
ENV_DENY_LIST = "AGENTFORGE_PROMPT_DENYLIST"

DEFAULT_MAX_CHARS = 16000


class PromptPolicyError(ValueError):
    """Base class for prompt policy violations."""


class PromptTooLongError(PromptPolicyError):
    def __init__(self) -> None:
        super().__init__("prompt exceeds max length")


class PromptDeniedError(PromptPolicyError):
    def __init__(self) -> None:
        super().__init__("prompt contains denied term")


@dataclass
class Policy:
    max_chars: int = DEFAULT_MAX_CHARS
    deny_list: list[str] = field(default_factory=list)


def load_from_env() -> Policy:
    """Build a policy from the environment; bad max-length values fall back to the default."""
    max_chars = DEFAULT_MAX_CHARS
    raw_max = os.environ.get(ENV_MAX_CHARS, "").strip()
    if raw_max:
        try:
            parsed = int(raw_max)
        except ValueError:
            parsed = 0
        if parsed > 0:
            max_chars = parsed

    deny_list: list[str] = []
    raw_deny = os.environ.get(ENV_DENY_LIST, "")
    if raw_deny:
        for token in raw_deny.split(","):
            normalized = token.strip().lower()
            if normalized and normalized not in deny_list:
                deny_list.append(normalized)

    return Policy(max_chars=max_chars, deny_list=deny_list)


def validate(prompt: str, policy: Policy) -> None:
    """Raise a PromptPolicyError if the prompt breaks the policy."""
    if policy.max_chars > 0 and len(prompt) > policy.max_chars:
        raise PromptTooLongError()
    if not policy.deny_list:
        return
    lowered = prompt.lower()
    if any(term in lowered for term in policy.deny_list):
        raise PromptDeniedError()