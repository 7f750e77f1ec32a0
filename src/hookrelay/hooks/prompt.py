"""PromptHookExecutor — LLM-evaluated hooks over an OpenAI-compatible API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from hookrelay.hooks.decision import DecisionAggregator
from hookrelay.types.config import PromptHookConfig
from hookrelay.types.hooks import Decision, HookResult

logger = logging.getLogger(__name__)

_BLOCKING_WORDS = ("block", "deny", "reject", "prevent")


class PromptHookExecutor:
    """Asks a chat-completions endpoint for a hook verdict.

    Prompt templates may reference ``$ARGUMENTS`` (the full hook input as
    JSON), ``$TOOL_NAME``, ``$TOOL_INPUT``, ``$PROMPT``, ``$SESSION_ID`` and
    ``$CWD``.

    Transport and HTTP errors propagate; the HookExecutor records them as
    failed hooks.
    """

    def __init__(self, config: PromptHookConfig, *, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client

    @property
    def config(self) -> PromptHookConfig:
        return self._config

    async def execute(self, template: str, hook_input: Mapping[str, Any]) -> HookResult:
        prompt = self.resolve_prompt(template, hook_input)
        logger.debug("Executing prompt hook with template: %s", template[:100])
        content = await self._complete(prompt)
        return self.parse_response(content)

    async def _complete(self, prompt: str) -> str:
        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self._config.api_key}"}
        body = {
            "model": self._config.model,
            "temperature": 0,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self._client is not None:
            resp = await self._client.post(url, headers=headers, json=body, timeout=self._config.timeout)
        else:
            async with httpx.AsyncClient(timeout=self._config.timeout) as c:
                resp = await c.post(url, headers=headers, json=body)
        resp.raise_for_status()
        data = resp.json()
        return str(data["choices"][0]["message"]["content"] or "")

    @staticmethod
    def resolve_prompt(template: str, hook_input: Mapping[str, Any]) -> str:
        replacements = {
            "$ARGUMENTS": json.dumps(hook_input, indent=2, default=str),
            "$TOOL_NAME": str(hook_input.get("tool_name") or ""),
            "$TOOL_INPUT": json.dumps(hook_input.get("tool_input") or {}, indent=2, default=str),
            "$PROMPT": str(hook_input.get("prompt") or ""),
            "$SESSION_ID": str(hook_input.get("session_id") or ""),
            "$CWD": str(hook_input.get("cwd") or ""),
        }
        resolved = template
        for key, value in replacements.items():
            resolved = resolved.replace(key, value)
        return resolved

    @staticmethod
    def parse_response(content: str) -> HookResult:
        """Turn model output into a HookResult; plain text is read for blocking words."""
        text = content.strip()
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None

        if isinstance(data, dict):
            return DecisionAggregator.validate_result(data)

        logger.debug("Prompt hook returned plain text, treating as reason")
        lowered = text.lower()
        blocking = any(word in lowered for word in _BLOCKING_WORDS)
        return HookResult(
            decision=Decision.DENY if blocking else Decision.ALLOW,
            reason=text or None,
        )
