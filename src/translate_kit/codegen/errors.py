"""Exceptions raised by the codegen pipeline."""

from __future__ import annotations

from pathlib import Path

from translate_kit.core.errors import TranslateKitError


class CodegenError(TranslateKitError):
    """Base error for codegen failures."""


class InvalidOutputAfterTransform(CodegenError):
    """Raised when rewritten code no longer parses.

    The file it names must be left untouched on disk.
    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"Transform produced invalid syntax for {self.path.as_posix()}: "
            f"{reason}"
        )


__all__ = ["CodegenError", "InvalidOutputAfterTransform"]
