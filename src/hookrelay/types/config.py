"""Configuration types for hookrelay."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_HOOK_TIMEOUT = 60.0


@dataclass(frozen=True, slots=True)
class ExecutorSettings:
    """Tunables for HookExecutor."""

    default_timeout: float = DEFAULT_HOOK_TIMEOUT  # seconds
    pass_stdin: bool = True  # Also write the hook input JSON to stdin
    redact_input: bool = True  # Mask secrets in tool_input/tool_output


@dataclass(frozen=True, slots=True)
class PromptHookConfig:
    """Connection settings for prompt hooks (OpenAI-compatible endpoint)."""

    api_key: str
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout: float = 30.0
