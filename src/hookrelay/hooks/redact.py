"""Secret masking for values handed to hook commands."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEY = re.compile(
    r"(?i)(password|passwd|secret|token(?!s)|api[_\-]?key|authorization|cookie|credential|private[_\-]?key)"
)

# Pre-compiled patterns for common secrets embedded in free text
_SECRET_PATTERNS: dict[str, re.Pattern[str]] = {
    "aws_access_key": re.compile(r"\bAKIA[0-9A-Z]{16}\b"),
    "aws_secret_key": re.compile(
        r"(?i)aws[_\-]?secret[_\-]?access[_\-]?key\s*[:=]\s*[A-Za-z0-9/+=]{40}"
    ),
    "github_token": re.compile(r"\b(?:ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9_]{36,}\b"),
    "jwt": re.compile(r"\beyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\b"),
    "slack_token": re.compile(r"\bxox[bpras]-[A-Za-z0-9-]{10,}\b"),
    "private_key_header": re.compile(r"-----BEGIN (?:RSA |EC |DSA )?PRIVATE KEY-----"),
    "generic_api_key": re.compile(
        r"(?i)(?:api[_\-]?key|apikey|secret[_\-]?key)\s*[:=]\s*['\"]?[A-Za-z0-9_\-]{20,}['\"]?"
    ),
}


def redact_text(text: str) -> str:
    """Replace every secret-looking substring of *text*."""
    for pattern in _SECRET_PATTERNS.values():
        text = pattern.sub(REDACTED, text)
    return text


def redact_value(value: Any) -> Any:
    """Return a copy of *value* with secrets masked.

    Dict entries under sensitive keys are replaced wholesale; strings
    anywhere in the structure are scanned for embedded secrets.
    """
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and _SENSITIVE_KEY.search(k) else redact_value(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_value(v) for v in value]
    if isinstance(value, str):
        return redact_text(value)
    return value
