"""Core utilities shared across :mod:`translate_kit` modules.

The core namespace provides the logging setup, run settings and project file
discovery so the analysis packages stay free of ambient state.

Example:
    >>> from translate_kit.core import get_logger
    >>> logger = get_logger(__name__)
    >>> isinstance(logger, object)
    True
"""

from __future__ import annotations

from .config import CodegenMode, CodegenSettings, ScanSettings
from .errors import TranslateKitError
from .files import discover_sources, resolve_files
from .logging import configure_logging, get_logger

__all__ = [
    "CodegenMode",
    "CodegenSettings",
    "ScanSettings",
    "TranslateKitError",
    "configure_logging",
    "discover_sources",
    "get_logger",
    "resolve_files",
]
