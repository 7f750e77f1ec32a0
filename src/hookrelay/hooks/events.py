"""Hook input payloads and process environments for lifecycle events."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from hookrelay.hooks.redact import redact_value
from hookrelay.types.hooks import HookEvent, HookExecutionContext

logger = logging.getLogger(__name__)

# Optional payload fields each event defines; anything else is dropped.
EVENT_FIELDS: dict[str, tuple[str, ...]] = {
    HookEvent.PRE_TOOL_USE.value: ("tool_name", "tool_input", "tool_use_id"),
    HookEvent.POST_TOOL_USE.value: ("tool_name", "tool_input", "tool_output", "tool_metadata"),
    HookEvent.USER_PROMPT_SUBMIT.value: ("prompt",),
    HookEvent.SESSION_START.value: ("source",),
    HookEvent.SESSION_END.value: ("reason",),
    HookEvent.STOP.value: ("stop_hook_active", "execution_stats"),
    HookEvent.SUBAGENT_STOP.value: ("agent_id", "agent_transcript_path", "stop_hook_active"),
}

TOOL_EVENTS = frozenset({HookEvent.PRE_TOOL_USE.value, HookEvent.POST_TOOL_USE.value})

_REDACTED_FIELDS = ("tool_input", "tool_output")


def build_hook_input(
    event_name: str,
    context: HookExecutionContext,
    fields: Mapping[str, Any] | None = None,
    *,
    redact: bool = True,
) -> dict[str, Any]:
    """Build the JSON-serializable payload passed to hooks for *event_name*."""
    payload: dict[str, Any] = {
        "session_id": context.session_id,
        "transcript_path": context.transcript_path,
        "permission_mode": context.permission_mode,
        "hook_event_name": event_name,
        "cwd": context.working_dir,
    }
    if context.agent_name:
        payload["agent_name"] = context.agent_name
    if context.profile_name:
        payload["profile_name"] = context.profile_name

    allowed = EVENT_FIELDS.get(event_name, ())
    for key, value in (fields or {}).items():
        if key not in allowed:
            logger.debug("Dropping field %r not defined for %s", key, event_name)
            continue
        if value is None:
            continue
        if redact and key in _REDACTED_FIELDS:
            value = redact_value(value)
        payload[key] = value
    return payload


def build_environment(
    context: HookExecutionContext,
    hook_input: Mapping[str, Any],
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment for a hook process: *base_env* plus the ``CODEMIE_*`` contract."""
    env = dict(os.environ if base_env is None else base_env)
    env.update({
        "CODEMIE_SESSION_ID": context.session_id,
        "CODEMIE_HOOK_EVENT": str(hook_input.get("hook_event_name", "")),
        "CODEMIE_AGENT_NAME": context.agent_name or "",
        "CODEMIE_PROFILE_NAME": context.profile_name or "",
        "CODEMIE_HOOK_INPUT": encode_hook_input(hook_input),
        "CODEMIE_PROJECT_DIR": context.working_dir,
        "CODEMIE_TOOL_NAME": str(hook_input.get("tool_name") or ""),
        "CODEMIE_TRANSCRIPT_PATH": context.transcript_path,
        "CODEMIE_PERMISSION_MODE": context.permission_mode,
    })
    return env


def encode_hook_input(hook_input: Mapping[str, Any]) -> str:
    return json.dumps(hook_input, indent=2, default=str)


def context_from_env(
    env: Mapping[str, str],
    *,
    cwd: str | Path | None = None,
) -> HookExecutionContext:
    """Build a HookExecutionContext from an explicitly supplied environment.

    Reads ``CODEMIE_SESSION_ID``, ``CODEMIE_TRANSCRIPT_PATH``,
    ``CODEMIE_PERMISSION_MODE``, ``CODEMIE_AGENT_NAME`` (or ``CODEMIE_AGENT``)
    and ``CODEMIE_PROFILE_NAME``. The caller decides which mapping to pass,
    so nothing here reads process-global state.
    """
    working_dir = str(cwd) if cwd is not None else env.get("CODEMIE_PROJECT_DIR", "")
    return HookExecutionContext(
        session_id=env.get("CODEMIE_SESSION_ID", ""),
        working_dir=working_dir,
        transcript_path=env.get("CODEMIE_TRANSCRIPT_PATH", ""),
        permission_mode=env.get("CODEMIE_PERMISSION_MODE", "default"),
        agent_name=env.get("CODEMIE_AGENT_NAME") or env.get("CODEMIE_AGENT") or None,
        profile_name=env.get("CODEMIE_PROFILE_NAME") or None,
    )
