"""Translation keys: namespace resolution and text-to-key map building."""

from __future__ import annotations

from .errors import KeyGenerationError
from .keymap import (
    KeyGenerator,
    SlugKeyGenerator,
    generate_text_to_key,
    resolve_collisions,
    resolve_path_conflicts,
)
from .namespace import (
    FALLBACK_NAMESPACE,
    detect_namespace,
    infer_namespace,
    strip_namespace,
)

__all__ = [
    "FALLBACK_NAMESPACE",
    "KeyGenerationError",
    "KeyGenerator",
    "SlugKeyGenerator",
    "detect_namespace",
    "generate_text_to_key",
    "infer_namespace",
    "resolve_collisions",
    "resolve_path_conflicts",
    "strip_namespace",
]
