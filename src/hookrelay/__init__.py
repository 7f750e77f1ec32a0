"""hookrelay — lifecycle hook execution and decision aggregation for coding agents.

Usage:
    from hookrelay import HookExecutor, HookExecutionContext, load_hooks_file

    executor = HookExecutor(load_hooks_file("hooks.json"), context)
    result = await executor.execute_pre_tool_use("Bash", {"command": "rm -rf /"})
    if result.is_blocking:
        ...
"""

from hookrelay.core.config import (
    load_env_settings,
    load_hooks_file,
    load_prompt_config,
    parse_hooks_configuration,
)
from hookrelay.core.errors import HookConfigError
from hookrelay.hooks.decision import DecisionAggregator
from hookrelay.hooks.executor import HookExecutor
from hookrelay.hooks.matcher import PatternMatcher, PatternValidation
from hookrelay.hooks.prompt import PromptHookExecutor
from hookrelay.types.config import ExecutorSettings, PromptHookConfig
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
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "DecisionAggregator",
    "HookExecutor",
    "PatternMatcher",
    "PatternValidation",
    "PromptHookExecutor",
    # Configuration
    "ExecutorSettings",
    "HookConfigError",
    "PromptHookConfig",
    "load_env_settings",
    "load_hooks_file",
    "load_prompt_config",
    "parse_hooks_configuration",
    # Types
    "AggregatedResult",
    "Decision",
    "HookDefinition",
    "HookEvent",
    "HookExecutionContext",
    "HookMatcherEntry",
    "HookOutcome",
    "HookResult",
    "HooksConfiguration",
]
