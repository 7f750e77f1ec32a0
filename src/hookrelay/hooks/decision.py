"""Hook output parsing and verdict aggregation."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from hookrelay.types.hooks import AggregatedResult, Decision, HookOutcome, HookResult

logger = logging.getLogger(__name__)

BLOCKING_EXIT_CODE = 2
DEFAULT_BLOCK_REASON = "Hook returned blocking error (exit code 2)"


def _join_feedback(*parts: str) -> str | None:
    text = "\n\n".join(p for p in parts if p)
    return text or None


class DecisionAggregator:
    """Turns raw hook output into HookResults and merges them.

    Priority when merging: ``block`` > ``deny`` > ``approve`` > ``allow``.
    """

    @staticmethod
    def parse(stdout: str, stderr: str, exit_code: int) -> HookResult:
        """Parse one hook process's output according to the exit-code contract."""
        out = stdout.strip()
        err = stderr.strip()

        if exit_code == BLOCKING_EXIT_CODE:
            return HookResult(
                decision=Decision.BLOCK,
                reason=err or DEFAULT_BLOCK_REASON,
                additional_context=_join_feedback(err, out),
            )

        if exit_code != 0:
            logger.warning("Hook failed with exit code %d: %s", exit_code, err)
            reason = f"Hook failed but execution continues (exit code {exit_code})"
            if err:
                reason += f": {err}"
            return HookResult(
                decision=Decision.ALLOW,
                reason=reason,
                additional_context=out or None,
            )

        if not out:
            return HookResult()

        try:
            data = json.loads(out)
        except json.JSONDecodeError:
            logger.debug("Hook returned non-JSON output, treating as informational")
            return HookResult(additional_context=out)

        if not isinstance(data, dict):
            return HookResult(additional_context=out)
        return DecisionAggregator.validate_result(data)

    @staticmethod
    def validate_result(candidate: Mapping[str, Any]) -> HookResult:
        """Build a HookResult from a decoded JSON object, dropping invalid fields."""
        raw_decision = candidate.get("decision")
        decision = Decision.coerce(raw_decision)
        if raw_decision is not None and decision.value != raw_decision:
            logger.warning("Invalid decision value %r, defaulting to allow", raw_decision)

        reason = candidate.get("reason")
        if reason is not None and not isinstance(reason, str):
            logger.warning("Invalid reason field (not a string), removing")
            reason = None

        context = candidate.get("additionalContext")
        if context is not None and not isinstance(context, str):
            logger.warning("Invalid additionalContext field (not a string), removing")
            context = None

        suppress = candidate.get("suppressOutput")
        if suppress is not None and not isinstance(suppress, bool):
            logger.warning("Invalid suppressOutput field (not a boolean), removing")
            suppress = None

        updated = candidate.get("updatedInput")
        if updated is not None and not isinstance(updated, dict):
            logger.warning("Invalid updatedInput field (not an object), removing")
            updated = None

        return HookResult(
            decision=decision,
            reason=reason,
            additional_context=context,
            updated_input=updated,
            suppress_output=suppress,
        )

    @staticmethod
    def merge(outcomes: Iterable[HookOutcome]) -> AggregatedResult:
        """Merge settled hook outcomes into one result.

        The winning decision's reason comes from the first result at that
        priority. Context strings are concatenated and ``updatedInput``
        objects shallow-merged, both in encounter order. If every hook was
        rejected the result is ``allow``.
        """
        aggregated = AggregatedResult()
        fulfilled: list[HookResult] = []

        for outcome in outcomes:
            aggregated.hooks_executed += 1
            if outcome.result is not None:
                aggregated.hooks_succeeded += 1
                fulfilled.append(outcome.result)
            else:
                aggregated.hooks_failed += 1
                error = outcome.error or "unknown error"
                aggregated.errors.append(f"{outcome.hook}: {error}" if outcome.hook else error)
                logger.error("Hook execution failed (%s): %s", outcome.hook or "unknown", error)

        if not fulfilled:
            return aggregated

        winner = fulfilled[0]
        for result in fulfilled[1:]:
            if result.decision.priority > winner.decision.priority:
                winner = result

        aggregated.decision = winner.decision
        aggregated.reason = winner.reason
        aggregated.suppress_output = winner.suppress_output

        if aggregated.reason is None and winner.decision.is_blocking:
            reasons = [r.reason for r in fulfilled if r.decision.is_blocking and r.reason]
            if reasons:
                aggregated.reason = "; ".join(reasons)

        contexts = [r.additional_context for r in fulfilled if r.additional_context]
        if contexts:
            aggregated.additional_context = "\n\n".join(contexts)

        updates = [r.updated_input for r in fulfilled if r.updated_input is not None]
        if updates:
            merged: dict[str, Any] = {}
            for update in updates:
                merged.update(update)
            aggregated.updated_input = merged

        return aggregated

    @staticmethod
    def is_blocking(result: HookResult) -> bool:
        return result.decision.is_blocking

    @staticmethod
    def is_aggregated_blocking(result: AggregatedResult) -> bool:
        return result.decision.is_blocking

    @staticmethod
    def empty_result() -> AggregatedResult:
        """Result for an event with no applicable hooks."""
        return AggregatedResult()
