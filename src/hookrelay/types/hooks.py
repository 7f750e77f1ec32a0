"""Hook types for the hookrelay engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Literal

HookType = Literal["command", "prompt"]


class Decision(Enum):
    """Verdict a hook renders for the action it intercepts."""

    ALLOW = "allow"
    APPROVE = "approve"
    DENY = "deny"
    BLOCK = "block"

    @property
    def priority(self) -> int:
        return _PRIORITIES[self]

    @property
    def is_blocking(self) -> bool:
        return self in (Decision.BLOCK, Decision.DENY)

    @classmethod
    def coerce(cls, value: Any) -> Decision:
        """Return the member for *value*, or ALLOW when it is not a valid decision."""
        if isinstance(value, Decision):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.ALLOW


_PRIORITIES: dict[Decision, int] = {
    Decision.BLOCK: 4,
    Decision.DENY: 3,
    Decision.APPROVE: 2,
    Decision.ALLOW: 1,
}


class HookEvent(Enum):
    """Lifecycle events that can trigger hooks."""

    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"
    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    STOP = "Stop"
    SUBAGENT_STOP = "SubagentStop"
    SESSION_START = "SessionStart"
    SESSION_END = "SessionEnd"


@dataclass(frozen=True, slots=True)
class HookDefinition:
    """A single hook action: a shell command or an LLM prompt."""

    type: HookType | str = "command"
    command: str | None = None
    prompt: str | None = None
    timeout: float | None = None  # seconds

    @property
    def label(self) -> str:
        if self.command:
            return self.command
        if self.prompt:
            return f"prompt: {self.prompt[:40]}"
        return f"<{self.type} hook>"


@dataclass(frozen=True, slots=True)
class HookMatcherEntry:
    """A matcher pattern and the hooks to run when it applies."""

    hooks: tuple[HookDefinition, ...] = ()
    matcher: str | None = None  # None means "*"


@dataclass(frozen=True, slots=True)
class HooksConfiguration:
    """Event name -> ordered matcher entries."""

    events: dict[str, tuple[HookMatcherEntry, ...]] = field(default_factory=dict)

    def entries_for(self, event_name: str) -> tuple[HookMatcherEntry, ...]:
        return self.events.get(event_name, ())


@dataclass(frozen=True, slots=True)
class HookExecutionContext:
    """Per-session data handed to every hook."""

    session_id: str
    working_dir: str
    transcript_path: str = ""
    permission_mode: str = "default"
    agent_name: str | None = None
    profile_name: str | None = None


@dataclass(frozen=True, slots=True)
class HookResult:
    """Normalized verdict from one hook."""

    decision: Decision = Decision.ALLOW
    reason: str | None = None
    additional_context: str | None = None
    updated_input: dict[str, Any] | None = None
    suppress_output: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"decision": self.decision.value}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.additional_context is not None:
            data["additionalContext"] = self.additional_context
        if self.updated_input is not None:
            data["updatedInput"] = self.updated_input
        if self.suppress_output is not None:
            data["suppressOutput"] = self.suppress_output
        return data


@dataclass(frozen=True, slots=True)
class HookOutcome:
    """Settled state of one hook run: fulfilled with a result, or rejected with an error."""

    result: HookResult | None = None
    error: str | None = None
    hook: str = ""

    @property
    def fulfilled(self) -> bool:
        return self.result is not None

    @classmethod
    def ok(cls, result: HookResult, hook: str = "") -> HookOutcome:
        return cls(result=result, hook=hook)

    @classmethod
    def failed(cls, error: BaseException | str, hook: str = "") -> HookOutcome:
        message = error if isinstance(error, str) else (str(error) or type(error).__name__)
        return cls(error=message, hook=hook)


@dataclass(slots=True)
class AggregatedResult:
    """Merged verdict of every hook that ran for one event."""

    decision: Decision = Decision.ALLOW
    reason: str | None = None
    additional_context: str | None = None
    updated_input: dict[str, Any] | None = None
    suppress_output: bool | None = None
    hooks_executed: int = 0
    hooks_succeeded: int = 0
    hooks_failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def is_blocking(self) -> bool:
        return self.decision.is_blocking

    def copy(self) -> AggregatedResult:
        """Copy that shares no mutable containers with this result."""
        return replace(
            self,
            updated_input=dict(self.updated_input) if self.updated_input is not None else None,
            errors=list(self.errors),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"decision": self.decision.value}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.additional_context is not None:
            data["additionalContext"] = self.additional_context
        if self.updated_input is not None:
            data["updatedInput"] = self.updated_input
        if self.suppress_output is not None:
            data["suppressOutput"] = self.suppress_output
        data["hooksExecuted"] = self.hooks_executed
        data["hooksSucceeded"] = self.hooks_succeeded
        data["hooksFailed"] = self.hooks_failed
        if self.errors:
            data["errors"] = list(self.errors)
        return data
