"""Namespace detection and inference for dotted translation keys."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterable

__all__ = [
    "FALLBACK_NAMESPACE",
    "detect_namespace",
    "infer_namespace",
    "strip_namespace",
]

FALLBACK_NAMESPACE = "common"

_CONVENTIONAL_FILE_NAMES = frozenset({"index", "page", "layout"})


def _lower_first(value: str) -> str:
    return value[:1].lower() + value[1:]


def detect_namespace(keys: Iterable[str]) -> str | None:
    """Return the first segment shared by every key, if there is one.

    Example:
        >>> detect_namespace(["hero.welcome", "hero.title"])
        'hero'
        >>> detect_namespace(["hero.welcome", "common.signUp"]) is None
        True
        >>> detect_namespace([]) is None
        True
        >>> detect_namespace(["greeting"]) is None
        True
    """

    namespace: str | None = None
    for key in keys:
        head, dot, _ = key.partition(".")
        if not dot or not head:
            return None
        if namespace is None:
            namespace = head
        elif namespace != head:
            return None
    return namespace


def strip_namespace(key: str, namespace: str | None) -> str:
    """Drop ``namespace`` from ``key`` when the key starts with it."""

    if namespace and key.startswith(namespace + "."):
        return key[len(namespace) + 1 :]
    return key


def infer_namespace(
    *,
    component_name: str | None = None,
    route_path: str | None = None,
    file: Path | str | None = None,
) -> str:
    """Infer a namespace for a key generated without one.

    Preference order is the owning component name, the last non-dynamic
    route segment, then the file name, falling back to the parent directory
    for conventional names such as ``page`` and to :data:`FALLBACK_NAMESPACE`.

    Example:
        >>> infer_namespace(component_name="HeroBanner")
        'heroBanner'
        >>> infer_namespace(route_path="dashboard.settings")
        'settings'
        >>> infer_namespace(file="src/app/pricing/page.tsx")
        'pricing'
    """

    if component_name and component_name != "__default__":
        return _lower_first(component_name)

    if route_path:
        segments = [
            segment
            for segment in route_path.replace("/", ".").split(".")
            if segment and not segment.startswith("[")
        ]
        if segments:
            return segments[-1].lower()

    if file:
        path = PurePosixPath(Path(file).as_posix())
        stem = path.name.split(".")[0]
        if stem and stem not in _CONVENTIONAL_FILE_NAMES:
            return _lower_first(stem)
        parent = path.parent.name
        if parent and parent[0] not in "[(":
            return _lower_first(parent)

    return FALLBACK_NAMESPACE
