"""Exceptions raised by the parsing layer."""

from __future__ import annotations

from pathlib import Path

from translate_kit.core.errors import TranslateKitError


class ParseFailure(TranslateKitError):
    """Raised when a source file cannot be parsed without syntax errors."""

    def __init__(
        self,
        path: Path | str,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.path = Path(path)
        self.line = line
        self.column = column
        location = self.path.as_posix()
        if line is not None:
            location = f"{location}:{line}:{column or 0}"
        super().__init__(f"{location}: {message}")


__all__ = ["ParseFailure"]
