"""Cross-string context attached to a file's extracted strings."""

from __future__ import annotations

import dataclasses
from pathlib import Path, PurePosixPath
import re
from typing import Any, Sequence

from translate_kit.parsing.nodes import named_children, tag_name
from translate_kit.parsing.parser import SourceTree

from .models import ExtractedString, StringKind

__all__ = [
    "MAX_SIBLING_TEXTS",
    "composite_template",
    "derive_route_path",
    "enrich_strings",
]

MAX_SIBLING_TEXTS = 5

_HEADING_TAG = re.compile(r"^h[1-6]$")
_WHITESPACE = re.compile(r"\s+")
_ROUTE_FILE_SUFFIXES = frozenset({".js", ".jsx", ".ts", ".tsx"})
_INDEX_NAMES = frozenset({"index"})
_TEXT_TYPES = frozenset({"jsx_text", "html_character_reference"})
_ELEMENT_TYPES = frozenset(
    {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
)


def _is_route_segment(segment: str) -> bool:
    """Return ``False`` for dynamic, group and parallel-slot segments."""

    return bool(segment) and segment[0] not in "[(@"


def _last_index(parts: Sequence[str], name: str) -> int | None:
    for index in range(len(parts) - 1, -1, -1):
        if parts[index] == name:
            return index
    return None


def derive_route_path(path: Path | str) -> str | None:
    """Derive a dotted route path from conventional project layouts.

    Example:
        >>> derive_route_path("src/app/dashboard/[id]/settings/page.tsx")
        'dashboard.settings'
        >>> derive_route_path("pages/blog/index.tsx")
        'blog'
        >>> derive_route_path("src/components/pricing/Card.tsx")
        'pricing'
        >>> derive_route_path("lib/format.ts") is None
        True
    """

    posix = PurePosixPath(Path(path).as_posix())
    parts = posix.parts
    if posix.suffix not in _ROUTE_FILE_SUFFIXES:
        return None

    app_index = _last_index(parts, "app")
    if app_index is not None and posix.stem == "page":
        segments = [
            part for part in parts[app_index + 1 : -1] if _is_route_segment(part)
        ]
        return ".".join(segments) or None

    pages_index = _last_index(parts, "pages")
    if pages_index is not None and pages_index < len(parts) - 1:
        segments = list(parts[pages_index + 1 : -1]) + [posix.stem]
        if segments and segments[-1] in _INDEX_NAMES:
            segments.pop()
        segments = [part for part in segments if _is_route_segment(part)]
        return ".".join(segments) or None

    components_index = _last_index(parts, "components")
    if components_index is not None and len(parts) > components_index + 2:
        section = parts[components_index + 1]
        if _is_route_segment(section):
            return section
    return None


def _is_heading(item: ExtractedString) -> bool:
    return (
        item.kind in (StringKind.JSX_TEXT, StringKind.JSX_EXPRESSION)
        and item.parent_tag is not None
        and _HEADING_TAG.match(item.parent_tag) is not None
    )


def enrich_strings(
    strings: Sequence[ExtractedString],
    path: Path | str,
) -> list[ExtractedString]:
    """Attach route path, sibling texts and section headings.

    Strings are grouped by owning component. Each string receives up to
    :data:`MAX_SIBLING_TEXTS` other texts of its component and the text of
    the latest heading that precedes it in the same component.
    """

    route_path = derive_route_path(path)

    groups: dict[str | None, list[int]] = {}
    for index, item in enumerate(strings):
        groups.setdefault(item.component_name, []).append(index)

    headings: dict[int, str] = {}
    for members in groups.values():
        current: str | None = None
        for index in members:
            item = strings[index]
            if _is_heading(item):
                current = item.text
                continue
            if current is not None:
                headings[index] = current

    enriched: list[ExtractedString] = []
    for index, item in enumerate(strings):
        siblings = tuple(
            strings[other].text
            for other in groups[item.component_name]
            if other != index
        )[:MAX_SIBLING_TEXTS]
        enriched.append(
            dataclasses.replace(
                item,
                route_path=route_path,
                sibling_texts=siblings,
                section_heading=headings.get(index),
            )
        )
    return enriched


def composite_template(tree: SourceTree, element: Any) -> str | None:
    """Describe a markup element mixing text with element/expression children.

    Element children become numbered placeholders in document order
    (``<strong>{1}</strong>``) and expression children become ``{name}`` for
    identifiers or ``{expr}`` otherwise. Returns ``None`` unless the element
    has both non-blank text and at least one element or expression child.
    """

    content = [
        child
        for child in element.children
        if child.type in _TEXT_TYPES
        or child.type in _ELEMENT_TYPES
        or (child.type == "jsx_expression" and named_children(child))
    ]
    has_text = any(
        child.type in _TEXT_TYPES and tree.text(child).strip() for child in content
    )
    has_other = any(child.type not in _TEXT_TYPES for child in content)
    if not (has_text and has_other):
        return None

    pieces: list[str] = []
    counter = 0
    previous: Any = None
    for child in content:
        if previous is not None and previous.end_byte != child.start_byte:
            pieces.append(" ")
        previous = child
        if child.type in _TEXT_TYPES:
            pieces.append(tree.text(child))
        elif child.type in _ELEMENT_TYPES:
            counter += 1
            tag = tag_name(tree, child) or ""
            pieces.append(f"<{tag}>{{{counter}}}</{tag}>")
        else:
            inner = named_children(child)[0]
            name = tree.text(inner) if inner.type == "identifier" else "expr"
            pieces.append("{" + name + "}")
    return _WHITESPACE.sub(" ", "".join(pieces)).strip()
