"""Hook execution engine."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
from collections.abc import Mapping
from typing import Any

import anyio

from hookrelay.hooks.decision import DecisionAggregator
from hookrelay.hooks.events import (
    TOOL_EVENTS,
    build_environment,
    build_hook_input,
    encode_hook_input,
)
from hookrelay.hooks.matcher import WILDCARD, PatternMatcher
from hookrelay.hooks.prompt import PromptHookExecutor
from hookrelay.types.config import ExecutorSettings
from hookrelay.types.hooks import (
    AggregatedResult,
    Decision,
    HookDefinition,
    HookEvent,
    HookExecutionContext,
    HookOutcome,
    HookResult,
    HooksConfiguration,
)

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str | None]


class HookExecutor:
    """Runs the hooks configured for lifecycle events and merges their verdicts.

    Hooks selected for one event run concurrently, each under its own
    timeout. Any failure of a hook (spawn error, timeout, crash) is
    recorded and degrades to ``allow``; nothing raised by a hook reaches
    the caller.

    Results are cached per ``(event_name, subject)`` for the lifetime of
    the executor, until :meth:`clear_cache` is called. Each caller gets its
    own copy of the cached result.
    """

    def __init__(
        self,
        config: HooksConfiguration,
        context: HookExecutionContext,
        *,
        settings: ExecutorSettings | None = None,
        prompt_executor: PromptHookExecutor | None = None,
    ) -> None:
        self._config = config
        self._context = context
        self._settings = settings or ExecutorSettings()
        self._prompt_executor = prompt_executor
        self._cache: dict[CacheKey, AggregatedResult] = {}
        self._locks: dict[CacheKey, anyio.Lock] = {}

    @property
    def context(self) -> HookExecutionContext:
        return self._context

    @property
    def cached_keys(self) -> list[CacheKey]:
        return list(self._cache)

    def clear_cache(self) -> None:
        """Forget all cached results so the next call re-runs hooks."""
        self._cache.clear()
        # Locks still held belong to in-flight calls; they are pruned on a later clear.
        self._locks = {key: lock for key, lock in self._locks.items() if lock.locked()}

    # -- Selection ----------------------------------------------------------

    def find_matching_hooks(self, event_name: str, subject: str | None = None) -> list[HookDefinition]:
        """Hooks whose matcher applies to *subject*; every entry applies when subject is None."""
        hooks: list[HookDefinition] = []
        for entry in self._config.entries_for(event_name):
            pattern = entry.matcher or WILDCARD
            if subject is None or PatternMatcher.matches(pattern, subject):
                logger.debug("Pattern %r matched %s (%s)", pattern, event_name, subject)
                hooks.extend(entry.hooks)
        return hooks

    def _resolve_timeout(self, hook: HookDefinition) -> float:
        if hook.timeout is not None and hook.timeout > 0:
            return float(hook.timeout)
        return self._settings.default_timeout

    def _identity(self, hook: HookDefinition) -> tuple[Any, ...]:
        return (hook.type, hook.command, hook.prompt, self._resolve_timeout(hook))

    def deduplicate(self, hooks: list[HookDefinition]) -> list[HookDefinition]:
        """Drop structurally identical hooks, keeping first occurrences in order."""
        seen: set[tuple[Any, ...]] = set()
        unique: list[HookDefinition] = []
        for hook in hooks:
            identity = self._identity(hook)
            if identity in seen:
                logger.debug("Skipping duplicate hook: %s", hook.label)
                continue
            seen.add(identity)
            unique.append(hook)
        return unique

    # -- Execution ----------------------------------------------------------

    async def execute_event(
        self,
        event_name: str,
        subject: str | None = None,
        **fields: Any,
    ) -> AggregatedResult:
        """Run every hook configured for *event_name* that applies to *subject*.

        *fields* are event-specific payload values (``tool_input``,
        ``source``, ``reason``...). Fields the event does not define are
        dropped.
        """
        hooks = self.deduplicate(self.find_matching_hooks(event_name, subject))

        key: CacheKey = (event_name, subject)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Using cached result for %s (%s)", event_name, subject)
            return cached.copy()

        lock = self._locks.setdefault(key, anyio.Lock())
        async with lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached.copy()

            if not hooks:
                logger.debug("No %s hooks matched (%s)", event_name, subject)
                result = DecisionAggregator.empty_result()
            else:
                if event_name in TOOL_EVENTS and subject is not None:
                    fields.setdefault("tool_name", subject)
                hook_input = build_hook_input(
                    event_name, self._context, fields, redact=self._settings.redact_input,
                )
                logger.debug("Executing %d unique %s hooks", len(hooks), event_name)
                outcomes = await self._run_all(hooks, hook_input)
                result = DecisionAggregator.merge(outcomes)

            self._cache[key] = result
            return result.copy()

    async def _run_all(
        self, hooks: list[HookDefinition], hook_input: dict[str, Any],
    ) -> list[HookOutcome]:
        outcomes: list[HookOutcome | None] = [None] * len(hooks)

        async def _run(index: int, hook: HookDefinition) -> None:
            outcomes[index] = await self._execute_single(hook, hook_input)

        async with anyio.create_task_group() as tg:
            for index, hook in enumerate(hooks):
                tg.start_soon(_run, index, hook)

        return [o for o in outcomes if o is not None]

    async def _execute_single(
        self, hook: HookDefinition, hook_input: dict[str, Any],
    ) -> HookOutcome:
        """Run one hook; always settles into an outcome."""
        timeout = self._resolve_timeout(hook)
        try:
            with anyio.fail_after(timeout):
                result = await self._dispatch(hook, hook_input)
        except TimeoutError:
            logger.error("Hook timed out after %ss: %s", timeout, hook.label)
            return HookOutcome.failed(f"Hook timed out after {timeout}s", hook.label)
        except Exception as exc:
            logger.error("Hook failed: %s: %s", hook.label, exc)
            return HookOutcome.failed(f"Hook failed: {type(exc).__name__}: {exc}", hook.label)
        return HookOutcome.ok(result, hook.label)

    async def _dispatch(self, hook: HookDefinition, hook_input: dict[str, Any]) -> HookResult:
        if hook.type == "command":
            return await self._execute_command_hook(hook, hook_input)
        if hook.type == "prompt":
            return await self._execute_prompt_hook(hook, hook_input)
        logger.warning("Unknown hook type: %s", hook.type)
        return HookResult(decision=Decision.ALLOW, reason=f"Unknown hook type: {hook.type}")

    async def _execute_command_hook(
        self, hook: HookDefinition, hook_input: dict[str, Any],
    ) -> HookResult:
        if not hook.command:
            raise ValueError("Command hook missing required field: command")

        logger.debug("Executing command hook: %s", hook.command)
        env = build_environment(self._context, hook_input)
        stdin = encode_hook_input(hook_input).encode() if self._settings.pass_stdin else None
        stdout, stderr, exit_code = await self._run_command(hook.command, env, stdin)

        if stdout:
            logger.debug("Hook stdout: %s", stdout)
        if stderr:
            logger.debug("Hook stderr: %s", stderr)
        return DecisionAggregator.parse(stdout, stderr, exit_code)

    async def _execute_prompt_hook(
        self, hook: HookDefinition, hook_input: dict[str, Any],
    ) -> HookResult:
        if not hook.prompt:
            raise ValueError("Prompt hook missing required field: prompt")
        if self._prompt_executor is None:
            logger.warning("Prompt hook requested but no LLM configuration provided, allowing")
            return HookResult(reason="Prompt hooks require LLM configuration")
        return await self._prompt_executor.execute(hook.prompt, hook_input)

    async def _run_command(
        self, command: str, env: Mapping[str, str], stdin: bytes | None,
    ) -> tuple[str, str, int]:
        """Run *command* through the shell; kills the process group if cancelled.

        The group is killed even when the shell itself already exited, since
        background children may still hold the output pipes open.
        """
        proc = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self._context.working_dir or None,
            env=dict(env),
            start_new_session=sys.platform != "win32",
        )
        finished = False
        try:
            stdout_bytes, stderr_bytes = await proc.communicate(stdin)
            finished = True
        finally:
            if not finished:
                _kill(proc)
                with anyio.CancelScope(shield=True):
                    await proc.wait()

        stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""
        exit_code = proc.returncode if proc.returncode is not None else 0
        return stdout, stderr, exit_code

    # -- Event helpers --------------------------------------------------------

    async def execute_pre_tool_use(
        self,
        tool_name: str,
        tool_input: dict[str, Any],
        tool_use_id: str | None = None,
    ) -> AggregatedResult:
        """Before a tool runs; hooks may block it or rewrite its input."""
        return await self.execute_event(
            HookEvent.PRE_TOOL_USE.value, tool_name,
            tool_input=tool_input, tool_use_id=tool_use_id,
        )

    async def execute_post_tool_use(
        self,
        tool_name: str,
        tool_input: dict[str, Any],
        tool_output: str,
        tool_metadata: dict[str, Any] | None = None,
    ) -> AggregatedResult:
        return await self.execute_event(
            HookEvent.POST_TOOL_USE.value, tool_name,
            tool_input=tool_input, tool_output=tool_output, tool_metadata=tool_metadata,
        )

    async def execute_user_prompt_submit(self, prompt: str) -> AggregatedResult:
        return await self.execute_event(HookEvent.USER_PROMPT_SUBMIT.value, prompt=prompt)

    async def execute_stop(
        self,
        stop_hook_active: bool = False,
        execution_stats: dict[str, int] | None = None,
    ) -> AggregatedResult:
        return await self.execute_event(
            HookEvent.STOP.value,
            stop_hook_active=stop_hook_active, execution_stats=execution_stats,
        )

    async def execute_session_start(self, source: str = "startup") -> AggregatedResult:
        return await self.execute_event(HookEvent.SESSION_START.value, source=source)

    async def execute_session_end(self, reason: str) -> AggregatedResult:
        return await self.execute_event(HookEvent.SESSION_END.value, reason=reason)

    async def execute_subagent_stop(
        self,
        agent_id: str,
        agent_transcript_path: str,
        stop_hook_active: bool = False,
    ) -> AggregatedResult:
        return await self.execute_event(
            HookEvent.SUBAGENT_STOP.value,
            agent_id=agent_id,
            agent_transcript_path=agent_transcript_path,
            stop_hook_active=stop_hook_active,
        )


def _kill(proc: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        if sys.platform != "win32":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
