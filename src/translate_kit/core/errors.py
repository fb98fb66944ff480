"""Base exception shared by :mod:`translate_kit` modules."""

from __future__ import annotations


class TranslateKitError(RuntimeError):
    """Base error for translate-kit failures."""


__all__ = ["TranslateKitError"]
