"""Test fixtures for hook execution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from hookrelay.types.hooks import (
    HookDefinition,
    HookExecutionContext,
    HookMatcherEntry,
    HooksConfiguration,
)


def command_hook(command: str, timeout: float | None = None) -> HookDefinition:
    return HookDefinition(type="command", command=command, timeout=timeout)


def make_config(events: dict[str, list[tuple[str | None, list[HookDefinition]]]]) -> HooksConfiguration:
    """Build a HooksConfiguration from {event: [(matcher, [hooks...]), ...]}."""
    return HooksConfiguration(events={
        name: tuple(HookMatcherEntry(hooks=tuple(hooks), matcher=matcher) for matcher, hooks in entries)
        for name, entries in events.items()
    })


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text())


def count_lines(path: Path) -> int:
    if not path.exists():
        return 0
    return len(path.read_text().splitlines())


@pytest.fixture
def hook_context(tmp_path: Path) -> HookExecutionContext:
    """Execution context rooted at a temporary working directory."""
    return HookExecutionContext(
        session_id="test-session-123",
        working_dir=str(tmp_path),
        transcript_path=str(tmp_path / "transcript.jsonl"),
        permission_mode="auto",
        agent_name="test-agent",
        profile_name="default",
    )


@pytest.fixture
def hooks_file(tmp_path: Path):
    """Write a hooks configuration document and return its path."""

    def _write(data: dict[str, Any], name: str = "hooks.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path

    return _write
