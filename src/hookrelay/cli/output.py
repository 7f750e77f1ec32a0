"""Rich-powered output for CLI results."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from hookrelay.types.hooks import AggregatedResult, Decision

DECISION_STYLES: dict[Decision, str] = {
    Decision.ALLOW: "bold #34d399",    # green
    Decision.APPROVE: "bold #60a5fa",  # blue
    Decision.DENY: "bold #fbbf24",     # amber
    Decision.BLOCK: "bold #f87171",    # red
}
STYLE_LABEL = "bold #94a3b8"
STYLE_DIM = "dim #7c7c8a"


def print_aggregated(
    result: AggregatedResult,
    *,
    event: str,
    subject: str | None = None,
    console: Console | None = None,
) -> None:
    """Print a merged hook result as a key/value table."""
    console = console or Console()
    title = event if subject is None else f"{event} ({subject})"
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column(style=STYLE_LABEL)
    table.add_column()

    table.add_row("decision", Text(result.decision.value, style=DECISION_STYLES[result.decision]))
    if result.reason:
        table.add_row("reason", result.reason)
    if result.additional_context:
        table.add_row("context", result.additional_context)
    if result.updated_input is not None:
        table.add_row("updated input", str(result.updated_input))
    if result.suppress_output is not None:
        table.add_row("suppress output", str(result.suppress_output).lower())
    table.add_row(
        "hooks",
        Text(
            f"{result.hooks_executed} run, {result.hooks_succeeded} ok, {result.hooks_failed} failed",
            style=STYLE_DIM,
        ),
    )
    for error in result.errors:
        table.add_row("error", Text(error, style=DECISION_STYLES[Decision.BLOCK]))
    console.print(table)


def print_validation(
    rows: list[tuple[str, str, bool, list[str]]],
    console: Console | None = None,
) -> None:
    """Print matcher validation rows: (event, pattern, valid, warnings)."""
    console = console or Console()
    if not rows:
        console.print("No matchers configured.")
        return

    table = Table(title="Matchers", title_justify="left")
    table.add_column("Event", style=STYLE_LABEL)
    table.add_column("Pattern")
    table.add_column("Status")
    table.add_column("Warnings", style=STYLE_DIM)
    for event, pattern, valid, warnings in rows:
        status = Text("ok", style=DECISION_STYLES[Decision.ALLOW]) if valid else Text(
            "invalid", style=DECISION_STYLES[Decision.BLOCK]
        )
        table.add_row(event, repr(pattern), status, "\n".join(warnings))
    console.print(table)
