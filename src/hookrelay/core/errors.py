from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class HookConfigError(ValueError):
    """Raised when a hooks configuration document is malformed.

    Attributes:
        path: The file that could not be loaded, if applicable.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
