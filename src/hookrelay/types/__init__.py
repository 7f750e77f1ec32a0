"""Public type definitions for hookrelay."""

from hookrelay.types.config import DEFAULT_HOOK_TIMEOUT, ExecutorSettings, PromptHookConfig
from hookrelay.types.hooks import (
    AggregatedResult,
    Decision,
    HookDefinition,
    HookEvent,
    HookExecutionContext,
    HookMatcherEntry,
    HookOutcome,
    HookResult,
    HooksConfiguration,
    HookType,
)

__all__ = [
    "DEFAULT_HOOK_TIMEOUT",
    "AggregatedResult",
    "Decision",
    "ExecutorSettings",
    "HookDefinition",
    "HookEvent",
    "HookExecutionContext",
    "HookMatcherEntry",
    "HookOutcome",
    "HookResult",
    "HookType",
    "HooksConfiguration",
    "PromptHookConfig",
]
