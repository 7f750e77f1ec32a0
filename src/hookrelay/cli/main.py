"""CLI entry point for hookrelay."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from hookrelay.cli.output import print_aggregated, print_validation
from hookrelay.core.config import load_env_settings, load_hooks_file, load_prompt_config
from hookrelay.core.errors import HookConfigError
from hookrelay.hooks.executor import HookExecutor
from hookrelay.hooks.matcher import PatternMatcher
from hookrelay.hooks.prompt import PromptHookExecutor
from hookrelay.types.hooks import HookExecutionContext


def _configure_logging(verbose: bool) -> None:
    level_name = os.environ.get("HOOKRELAY_LOG_LEVEL", "DEBUG" if verbose else "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose (debug) logging")
def cli(verbose: bool) -> None:
    """hookrelay -- run lifecycle hooks and merge their verdicts.

    \b
    Usage:
      hookrelay run PreToolUse --subject Bash --config hooks.json
      hookrelay match 'Bash|Write' Bash Read
      hookrelay validate hooks.json
    """
    _configure_logging(verbose)


@cli.command("run")
@click.argument("event")
@click.option("--config", "-c", "config_path", required=True, type=click.Path(dir_okay=False),
              help="Hooks configuration file (.json or .toml)")
@click.option("--subject", "-s", default=None, help="Matcher subject (e.g. tool name)")
@click.option("--session-id", default=None, help="Session ID (default: $CODEMIE_SESSION_ID)")
@click.option("--cwd", default=None, help="Working directory for hook commands")
@click.option("--transcript-path", default="", help="Session transcript path")
@click.option("--permission-mode", default="default", help="Permission mode")
@click.option("--agent", default=None, help="Agent name")
@click.option("--profile", default=None, help="Profile name")
@click.option("--tool-input", default=None, help="Tool input as a JSON object")
@click.option("--prompt", default=None, help="User prompt (UserPromptSubmit)")
@click.option("--source", default=None, help="Session source (SessionStart)")
@click.option("--reason", default=None, help="End reason (SessionEnd)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def run_cmd(
    event: str,
    config_path: str,
    subject: str | None,
    session_id: str | None,
    cwd: str | None,
    transcript_path: str,
    permission_mode: str,
    agent: str | None,
    profile: str | None,
    tool_input: str | None,
    prompt: str | None,
    source: str | None,
    reason: str | None,
    as_json: bool,
) -> None:
    """Run the hooks configured for EVENT and print the merged decision.

    Exits with code 2 when the decision is block or deny.
    """
    try:
        config = load_hooks_file(config_path)
    except HookConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    fields: dict[str, Any] = {"prompt": prompt, "source": source, "reason": reason}
    if tool_input is not None:
        try:
            parsed = json.loads(tool_input)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--tool-input") from exc
        if not isinstance(parsed, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--tool-input")
        fields["tool_input"] = parsed

    context = HookExecutionContext(
        session_id=session_id or os.environ.get("CODEMIE_SESSION_ID", ""),
        working_dir=str(Path(cwd or Path.cwd()).resolve()),
        transcript_path=transcript_path,
        permission_mode=permission_mode,
        agent_name=agent,
        profile_name=profile,
    )
    prompt_config = load_prompt_config()
    executor = HookExecutor(
        config,
        context,
        settings=load_env_settings(),
        prompt_executor=PromptHookExecutor(prompt_config) if prompt_config else None,
    )

    result = asyncio.run(executor.execute_event(event, subject, **fields))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_aggregated(result, event=event, subject=subject)

    if result.is_blocking:
        sys.exit(2)


@cli.command("match")
@click.argument("pattern")
@click.argument("subjects", nargs=-1, required=True)
def match_cmd(pattern: str, subjects: tuple[str, ...]) -> None:
    """Show which SUBJECTS the matcher PATTERN applies to."""
    for subject in subjects:
        mark = "match" if PatternMatcher.matches(pattern, subject) else "-"
        click.echo(f"{mark:<6} {subject}")


@cli.command("validate")
@click.argument("config_path", type=click.Path(dir_okay=False))
def validate_cmd(config_path: str) -> None:
    """Check every matcher pattern in a hooks configuration file."""
    try:
        config = load_hooks_file(config_path)
    except HookConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    rows: list[tuple[str, str, bool, list[str]]] = []
    for event_name, entries in config.events.items():
        for entry in entries:
            if entry.matcher is None:
                rows.append((event_name, "*", True, []))
                continue
            validation = PatternMatcher.validate(entry.matcher)
            rows.append((event_name, entry.matcher, validation.valid, validation.warnings))

    print_validation(rows)
    if not all(valid for _, _, valid, _ in rows):
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
