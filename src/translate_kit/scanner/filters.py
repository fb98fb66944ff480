"""Eligibility predicates for candidate strings, tags and properties."""

from __future__ import annotations

import re
from typing import Iterable

__all__ = [
    "CONTENT_PROPERTY_NAMES",
    "DEFAULT_TRANSLATABLE_PROPS",
    "IGNORE_TAGS",
    "NEVER_TRANSLATE_PROPS",
    "RESERVED_EXPORTS",
    "WRAPPER_TAG",
    "is_content_property",
    "is_ignored_tag",
    "is_reserved_export",
    "is_translatable_prop",
    "should_ignore",
]

DEFAULT_TRANSLATABLE_PROPS: frozenset[str] = frozenset(
    {
        "placeholder",
        "title",
        "alt",
        "aria-label",
        "aria-description",
        "aria-placeholder",
        "label",
    }
)

NEVER_TRANSLATE_PROPS: frozenset[str] = frozenset(
    {
        "className",
        "class",
        "id",
        "key",
        "ref",
        "href",
        "src",
        "type",
        "name",
        "value",
        "htmlFor",
        "for",
        "role",
        "style",
        "data-testid",
        "data-cy",
        "onClick",
        "onChange",
        "onSubmit",
        "onFocus",
        "onBlur",
    }
)

IGNORE_TAGS: frozenset[str] = frozenset(
    {
        "script",
        "style",
        "code",
        "pre",
        "svg",
        "path",
        "circle",
        "rect",
        "line",
        "polyline",
        "polygon",
    }
)

CONTENT_PROPERTY_NAMES: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "label",
        "text",
        "content",
        "heading",
        "subtitle",
        "caption",
        "summary",
        "message",
        "placeholder",
        "alt",
    }
)

# Next.js route segment exports; their values are read by the framework.
RESERVED_EXPORTS: frozenset[str] = frozenset(
    {
        "metadata",
        "generateMetadata",
        "viewport",
        "generateViewport",
        "generateStaticParams",
        "dynamic",
        "dynamicParams",
        "revalidate",
        "fetchCache",
        "runtime",
        "preferredRegion",
        "maxDuration",
        "config",
    }
)

# Reserved markup element used by inline mode.
WRAPPER_TAG = "T"

_IGNORE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^https?://"),
    re.compile(r"^[a-z]+(-[a-z]+)+$"),
    re.compile(r"^[A-Z_]+$"),
    re.compile(r"^[\d.,%$€£¥]+$"),
)


def should_ignore(text: str) -> bool:
    """Return ``True`` when ``text`` is not human-readable copy.

    Example:
        >>> should_ignore("https://example.com"), should_ignore("Sign up")
        (True, False)
        >>> should_ignore("こんにちは")
        False
    """

    trimmed = text.strip()
    if not trimmed:
        return True
    if not any(char.isalpha() for char in trimmed):
        return True
    return any(pattern.search(trimmed) for pattern in _IGNORE_PATTERNS)


def is_translatable_prop(
    name: str,
    custom_props: Iterable[str] | None = None,
) -> bool:
    """Return ``True`` when attribute ``name`` carries translatable copy.

    Configured props extend the defaults; the never-translate list wins over
    both.
    """

    if name in NEVER_TRANSLATE_PROPS:
        return False
    if name in DEFAULT_TRANSLATABLE_PROPS:
        return True
    return custom_props is not None and name in set(custom_props)


def is_ignored_tag(tag: str) -> bool:
    return tag.lower() in IGNORE_TAGS


def is_content_property(name: str) -> bool:
    return name in CONTENT_PROPERTY_NAMES


def is_reserved_export(name: str | None) -> bool:
    return name is not None and name in RESERVED_EXPORTS
