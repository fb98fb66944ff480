"""Exceptions raised while building the text-to-key map."""

from __future__ import annotations

from translate_kit.core.errors import TranslateKitError


class KeyGenerationError(TranslateKitError):
    """Raised when the key generator keeps failing for a batch."""


__all__ = ["KeyGenerationError"]
