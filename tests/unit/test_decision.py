"""Tests for hookrelay.hooks.decision — output parsing and verdict merging."""

from __future__ import annotations

import itertools

import pytest

from hookrelay.hooks.decision import DEFAULT_BLOCK_REASON, DecisionAggregator
from hookrelay.types.hooks import AggregatedResult, Decision, HookOutcome, HookResult


def ok(**kwargs) -> HookOutcome:
    return HookOutcome.ok(HookResult(**kwargs), hook="hook.sh")


class TestParse:
    def test_empty_output_allows(self):
        assert DecisionAggregator.parse("", "", 0) == HookResult(decision=Decision.ALLOW)

    def test_exit_2_blocks_with_stderr(self):
        result = DecisionAggregator.parse("", "err", 2)
        assert result.decision is Decision.BLOCK
        assert result.reason == "err"

    def test_exit_2_stderr_is_trimmed(self):
        result = DecisionAggregator.parse("", "  Missing dependencies\n", 2)
        assert result.reason == "Missing dependencies"

    def test_exit_2_default_reason(self):
        result = DecisionAggregator.parse("", "", 2)
        assert result.decision is Decision.BLOCK
        assert result.reason == DEFAULT_BLOCK_REASON
        assert result.additional_context is None

    def test_exit_2_feedback_includes_stdout(self):
        result = DecisionAggregator.parse("try again", "bad input", 2)
        assert result.additional_context == "bad input\n\ntry again"

    def test_other_nonzero_exit_allows(self):
        result = DecisionAggregator.parse("", "boom", 1)
        assert result.decision is Decision.ALLOW
        assert "execution continues" in result.reason
        assert "exit code 1" in result.reason
        assert "boom" in result.reason

    def test_nonzero_exit_ignores_json_decision(self):
        result = DecisionAggregator.parse('{"decision": "block"}', "", 3)
        assert result.decision is Decision.ALLOW

    def test_json_decision(self):
        stdout = '{"decision": "deny", "reason": "no writes", "suppressOutput": true}'
        result = DecisionAggregator.parse(stdout, "", 0)
        assert result.decision is Decision.DENY
        assert result.reason == "no writes"
        assert result.suppress_output is True

    def test_non_json_is_informational(self):
        result = DecisionAggregator.parse("not json", "", 0)
        assert result.decision is Decision.ALLOW
        assert result.additional_context == "not json"

    def test_json_non_object_is_informational(self):
        result = DecisionAggregator.parse("[1, 2]", "", 0)
        assert result.decision is Decision.ALLOW
        assert result.additional_context == "[1, 2]"


class TestValidateResult:
    def test_missing_decision_defaults_to_allow(self):
        assert DecisionAggregator.validate_result({}).decision is Decision.ALLOW

    @pytest.mark.parametrize("value", ["maybe", "BLOCK", 1, None, ["deny"]])
    def test_invalid_decision_defaults_to_allow(self, value):
        assert DecisionAggregator.validate_result({"decision": value}).decision is Decision.ALLOW

    @pytest.mark.parametrize("value", ["allow", "deny", "block", "approve"])
    def test_valid_decisions(self, value):
        assert DecisionAggregator.validate_result({"decision": value}).decision.value == value

    def test_invalid_fields_dropped(self):
        result = DecisionAggregator.validate_result({
            "decision": "approve",
            "reason": 42,
            "suppressOutput": "yes",
            "updatedInput": ["not", "a", "dict"],
            "additionalContext": {"x": 1},
        })
        assert result == HookResult(decision=Decision.APPROVE)

    def test_valid_fields_kept(self):
        result = DecisionAggregator.validate_result({
            "decision": "allow",
            "reason": "fine",
            "suppressOutput": False,
            "updatedInput": {"command": "ls"},
            "additionalContext": "note",
        })
        assert result.reason == "fine"
        assert result.suppress_output is False
        assert result.updated_input == {"command": "ls"}
        assert result.additional_context == "note"


class TestMerge:
    @pytest.mark.parametrize("order", list(itertools.permutations(["allow", "block", "deny"])))
    def test_priority_is_order_independent(self, order):
        outcomes = [ok(decision=Decision(d)) for d in order]
        assert DecisionAggregator.merge(outcomes).decision is Decision.BLOCK

    def test_approve_beats_allow(self):
        merged = DecisionAggregator.merge([ok(), ok(decision=Decision.APPROVE, reason="lgtm")])
        assert merged.decision is Decision.APPROVE
        assert merged.reason == "lgtm"

    def test_reason_from_first_at_winning_level(self):
        merged = DecisionAggregator.merge([
            ok(decision=Decision.DENY, reason="first deny"),
            ok(decision=Decision.ALLOW, reason="allowed"),
            ok(decision=Decision.DENY, reason="second deny"),
        ])
        assert merged.decision is Decision.DENY
        assert merged.reason == "first deny"

    def test_blocking_reasons_joined_when_winner_has_none(self):
        merged = DecisionAggregator.merge([
            ok(decision=Decision.BLOCK),
            ok(decision=Decision.DENY, reason="denied"),
            ok(decision=Decision.BLOCK, reason="blocked"),
        ])
        assert merged.decision is Decision.BLOCK
        assert merged.reason == "denied; blocked"

    def test_additional_context_joined(self):
        merged = DecisionAggregator.merge([
            ok(additional_context="A"),
            ok(additional_context=""),
            ok(decision=Decision.DENY),
            ok(decision=Decision.DENY, additional_context="B"),
        ])
        assert merged.additional_context == "A\n\nB"

    def test_updated_input_later_wins(self):
        merged = DecisionAggregator.merge([
            ok(updated_input={"a": 1}),
            ok(updated_input={"b": 2, "a": 3}),
        ])
        assert merged.updated_input == {"a": 3, "b": 2}

    def test_suppress_output_from_winner(self):
        merged = DecisionAggregator.merge([
            ok(suppress_output=False),
            ok(decision=Decision.BLOCK, suppress_output=True),
        ])
        assert merged.suppress_output is True

    def test_counts(self):
        merged = DecisionAggregator.merge([
            ok(),
            HookOutcome.failed("Hook timed out after 1.0s", hook="slow.sh"),
            ok(decision=Decision.DENY),
        ])
        assert merged.hooks_executed == 3
        assert merged.hooks_succeeded == 2
        assert merged.hooks_failed == 1
        assert merged.errors == ["slow.sh: Hook timed out after 1.0s"]
        assert merged.decision is Decision.DENY

    def test_all_rejected_fails_open(self):
        merged = DecisionAggregator.merge([
            HookOutcome.failed("spawn failed"),
            HookOutcome.failed(RuntimeError("boom")),
        ])
        assert merged.decision is Decision.ALLOW
        assert merged.hooks_executed == 2
        assert merged.hooks_succeeded == 0
        assert merged.hooks_failed == 2
        assert len(merged.errors) == 2

    def test_empty(self):
        merged = DecisionAggregator.merge([])
        assert merged == DecisionAggregator.empty_result()
        assert merged.hooks_executed == 0


class TestBlocking:
    @pytest.mark.parametrize("decision,expected", [
        (Decision.BLOCK, True),
        (Decision.DENY, True),
        (Decision.APPROVE, False),
        (Decision.ALLOW, False),
    ])
    def test_is_blocking(self, decision, expected):
        assert DecisionAggregator.is_blocking(HookResult(decision=decision)) is expected
        assert DecisionAggregator.is_aggregated_blocking(AggregatedResult(decision=decision)) is expected

    def test_wire_format(self):
        merged = DecisionAggregator.merge([ok(decision=Decision.DENY, updated_input={"x": 1})])
        assert merged.to_dict() == {
            "decision": "deny",
            "updatedInput": {"x": 1},
            "hooksExecuted": 1,
            "hooksSucceeded": 1,
            "hooksFailed": 0,
        }
