"""Matcher patterns: wildcard, literal, or regex against a subject such as a tool name."""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

WILDCARD = "*"

# Characters that switch a pattern from literal to regex matching.
_REGEX_CHARS = re.compile(r"[|\[\]{}()]")
_UNESCAPED_DOT = re.compile(r"(?<!\\)\.")


@dataclass(frozen=True, slots=True)
class PatternValidation:
    """Outcome of PatternMatcher.validate()."""

    valid: bool
    warnings: list[str] = field(default_factory=list)


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(f"(?:{pattern})")


def is_regex(pattern: str) -> bool:
    """True if *pattern* contains characters that make it a regex."""
    return bool(_REGEX_CHARS.search(pattern))


class PatternMatcher:
    """Decides whether a configured matcher pattern applies to a subject.

    - ``"*"`` matches everything.
    - Patterns containing ``| [ ] { } ( )`` are full-match regexes
      (``"Bash|Write"``, ``"mcp__(github|gitlab)__.+"``).
    - Anything else is an exact, case-sensitive literal.

    An invalid regex never raises; it falls back to a literal comparison.
    """

    @staticmethod
    def matches(pattern: str, subject: str) -> bool:
        if pattern == WILDCARD:
            return True

        if not is_regex(pattern):
            return pattern == subject

        try:
            regex = _compile(pattern)
        except re.error as exc:
            logger.warning("Invalid regex pattern %r, treating as literal: %s", pattern, exc)
            return pattern == subject
        return regex.fullmatch(subject) is not None

    @classmethod
    def find_matches(cls, patterns: list[str], subject: str) -> list[str]:
        """Return every pattern that matches *subject*, in input order."""
        return [p for p in patterns if cls.matches(p, subject)]

    @staticmethod
    def validate(pattern: str) -> PatternValidation:
        """Check a pattern for common mistakes."""
        if not pattern or not pattern.strip():
            return PatternValidation(valid=False, warnings=["Pattern cannot be empty"])

        warnings: list[str] = []
        valid = True

        if is_regex(pattern):
            try:
                _compile(pattern)
            except re.error as exc:
                warnings.append(f"Pattern appears to be regex but is invalid: {exc}")
                valid = False
            else:
                if _UNESCAPED_DOT.search(pattern):
                    warnings.append(
                        "Pattern contains unescaped dots (.) which match any character in regex"
                    )

        if pattern != pattern.strip():
            warnings.append("Pattern contains leading/trailing spaces")

        return PatternValidation(valid=valid, warnings=warnings)
