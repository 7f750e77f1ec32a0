"""Configuration loading (hooks files, env vars)."""

from __future__ import annotations

import json
import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from hookrelay.core.errors import HookConfigError
from hookrelay.types.config import ExecutorSettings, PromptHookConfig
from hookrelay.types.hooks import HookDefinition, HookMatcherEntry, HooksConfiguration

logger = logging.getLogger(__name__)

# Load .env from current directory (and parents), won't override existing env vars
load_dotenv()

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# Timeouts at or above this are reported as probable milliseconds.
_SUSPICIOUS_TIMEOUT = 1000.0


def _env_float(env: Mapping[str, str], name: str) -> float | None:
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number)", name, raw)
        return None
    if value <= 0:
        logger.warning("Ignoring %s=%r (must be positive)", name, raw)
        return None
    return value


def _env_bool(env: Mapping[str, str], name: str) -> bool | None:
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    logger.warning("Ignoring %s=%r (not a boolean)", name, raw)
    return None


def load_env_settings(env: Mapping[str, str] | None = None) -> ExecutorSettings:
    """Build ExecutorSettings from ``HOOKRELAY_*`` environment variables."""
    env = os.environ if env is None else env
    overrides: dict[str, Any] = {}

    if (timeout := _env_float(env, "HOOKRELAY_DEFAULT_TIMEOUT")) is not None:
        overrides["default_timeout"] = timeout
    if (pass_stdin := _env_bool(env, "HOOKRELAY_PASS_STDIN")) is not None:
        overrides["pass_stdin"] = pass_stdin
    if (redact := _env_bool(env, "HOOKRELAY_REDACT_INPUT")) is not None:
        overrides["redact_input"] = redact

    return ExecutorSettings(**overrides)


def load_prompt_config(env: Mapping[str, str] | None = None) -> PromptHookConfig | None:
    """Resolve prompt-hook LLM settings, or None when no API key is set."""
    env = os.environ if env is None else env
    api_key = env.get("HOOKRELAY_LLM_API_KEY")
    if not api_key:
        return None

    kwargs: dict[str, Any] = {"api_key": api_key}
    if base_url := env.get("HOOKRELAY_LLM_BASE_URL"):
        kwargs["base_url"] = base_url
    if model := env.get("HOOKRELAY_LLM_MODEL"):
        kwargs["model"] = model
    if (timeout := _env_float(env, "HOOKRELAY_LLM_TIMEOUT")) is not None:
        kwargs["timeout"] = timeout
    return PromptHookConfig(**kwargs)


def _parse_hook(raw: Any, where: str, path: Path | None) -> HookDefinition:
    if not isinstance(raw, dict):
        raise HookConfigError(f"{where}: hook must be an object", path=path)

    hook_type = raw.get("type", "command")
    if not isinstance(hook_type, str):
        raise HookConfigError(f"{where}: 'type' must be a string", path=path)

    command = raw.get("command")
    if command is not None and not isinstance(command, str):
        raise HookConfigError(f"{where}: 'command' must be a string", path=path)
    prompt = raw.get("prompt")
    if prompt is not None and not isinstance(prompt, str):
        raise HookConfigError(f"{where}: 'prompt' must be a string", path=path)

    timeout = raw.get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise HookConfigError(f"{where}: 'timeout' must be a positive number", path=path)
        timeout = float(timeout)
        if timeout >= _SUSPICIOUS_TIMEOUT:
            logger.warning(
                "%s: timeout %ss looks like milliseconds; hook timeouts are in seconds", where, timeout,
            )

    return HookDefinition(type=hook_type, command=command, prompt=prompt, timeout=timeout)


def parse_hooks_configuration(
    raw: Mapping[str, Any], *, path: Path | None = None,
) -> HooksConfiguration:
    """Build a HooksConfiguration from decoded JSON/TOML data.

    Accepts either ``{"hooks": {event: [...]}}`` or the bare event mapping.
    """
    events_raw = raw.get("hooks", raw) if isinstance(raw, Mapping) else raw
    if not isinstance(events_raw, Mapping):
        raise HookConfigError("'hooks' must map event names to matcher lists", path=path)

    events: dict[str, tuple[HookMatcherEntry, ...]] = {}
    for event_name, entries_raw in events_raw.items():
        if not isinstance(entries_raw, list):
            raise HookConfigError(f"{event_name}: expected a list of matchers", path=path)

        entries: list[HookMatcherEntry] = []
        for i, entry_raw in enumerate(entries_raw):
            where = f"{event_name}[{i}]"
            if not isinstance(entry_raw, dict):
                raise HookConfigError(f"{where}: matcher entry must be an object", path=path)
            matcher = entry_raw.get("matcher")
            if matcher is not None and not isinstance(matcher, str):
                raise HookConfigError(f"{where}: 'matcher' must be a string", path=path)
            hooks_raw = entry_raw.get("hooks", [])
            if not isinstance(hooks_raw, list):
                raise HookConfigError(f"{where}: 'hooks' must be a list", path=path)
            hooks = tuple(
                _parse_hook(h, f"{where}.hooks[{j}]", path) for j, h in enumerate(hooks_raw)
            )
            entries.append(HookMatcherEntry(hooks=hooks, matcher=matcher))
        events[str(event_name)] = tuple(entries)

    return HooksConfiguration(events=events)


def load_hooks_file(path: str | Path) -> HooksConfiguration:
    """Load a hooks configuration from a ``.json`` or ``.toml`` file.

    Hook ``timeout`` values are in seconds.
    """
    path = Path(path).expanduser()
    try:
        text = path.read_text()
    except OSError as exc:
        raise HookConfigError(f"Cannot read hooks file: {exc}", path=path) from exc

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            data = tomllib.loads(text)
        elif suffix == ".json":
            data = json.loads(text)
        else:
            raise HookConfigError(f"Unsupported hooks file extension: {suffix or '(none)'}", path=path)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise HookConfigError(f"Failed to parse hooks file: {exc}", path=path) from exc

    if not isinstance(data, dict):
        raise HookConfigError("Hooks file must contain an object", path=path)

    config = parse_hooks_configuration(data, path=path)
    logger.debug("Loaded hooks for %d events from %s", len(config.events), path)
    return config
