"""Tests for hookrelay.hooks.prompt — LLM prompt hooks (mocked httpx)."""

from __future__ import annotations

import json

import httpx
import pytest

from hookrelay.hooks.prompt import PromptHookExecutor
from hookrelay.types.config import PromptHookConfig
from hookrelay.types.hooks import Decision

HOOK_INPUT = {
    "session_id": "s1",
    "cwd": "/work",
    "hook_event_name": "PreToolUse",
    "tool_name": "Bash",
    "tool_input": {"command": "rm -rf build"},
}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestResolvePrompt:
    def test_placeholders(self):
        template = "[$SESSION_ID] $TOOL_NAME in $CWD: $TOOL_INPUT"
        resolved = PromptHookExecutor.resolve_prompt(template, HOOK_INPUT)
        assert resolved.startswith("[s1] Bash in /work: ")
        assert '"command": "rm -rf build"' in resolved

    def test_arguments_is_full_input(self):
        resolved = PromptHookExecutor.resolve_prompt("$ARGUMENTS", HOOK_INPUT)
        assert json.loads(resolved) == HOOK_INPUT

    def test_missing_values_are_empty(self):
        assert PromptHookExecutor.resolve_prompt("<$PROMPT>", HOOK_INPUT) == "<>"


class TestParseResponse:
    def test_json_verdict(self):
        result = PromptHookExecutor.parse_response('{"decision": "block", "reason": "destructive"}')
        assert result.decision is Decision.BLOCK
        assert result.reason == "destructive"

    def test_invalid_json_decision(self):
        assert PromptHookExecutor.parse_response('{"decision": "nope"}').decision is Decision.ALLOW

    def test_plain_text_with_blocking_word(self):
        result = PromptHookExecutor.parse_response("I would reject this command.")
        assert result.decision is Decision.DENY
        assert result.reason == "I would reject this command."

    def test_plain_text_allows(self):
        assert PromptHookExecutor.parse_response("Looks safe.").decision is Decision.ALLOW


class TestExecute:
    @pytest.mark.asyncio
    async def test_posts_chat_completion(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "choices": [{"message": {"content": '{"decision": "deny", "reason": "no"}'}}],
            })

        config = PromptHookConfig(api_key="sk-test", base_url="https://llm.test/v1/", model="m1")
        async with _client(handler) as client:
            executor = PromptHookExecutor(config, client=client)
            result = await executor.execute("Check $TOOL_NAME", HOOK_INPUT)

        assert result.decision is Decision.DENY
        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "m1"
        assert seen["body"]["temperature"] == 0
        assert seen["body"]["messages"] == [{"role": "user", "content": "Check Bash"}]

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "down"})

        async with _client(handler) as client:
            executor = PromptHookExecutor(PromptHookConfig(api_key="k"), client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await executor.execute("x", HOOK_INPUT)
