"""Extraction of candidate strings from a parsed source tree."""

from __future__ import annotations

from dataclasses import dataclass
import html
import re
from typing import Any, Iterable, Iterator

from translate_kit.parsing.nodes import (
    ComponentOwner,
    NodeKind,
    call_arguments,
    callee_name,
    component_owner,
    contains_jsx,
    named_children,
    nearest_function,
    parent_tag,
    string_value,
    tag_name,
    top_level_export_const,
    unwrap_parens,
    walk,
)
from translate_kit.parsing.parser import SourceTree

from .context_enricher import composite_template
from .filters import (
    WRAPPER_TAG,
    is_content_property,
    is_ignored_tag,
    is_reserved_export,
    is_translatable_prop,
    should_ignore,
)
from .models import ExtractedString, StringKind
from .template_literal import TemplateText, reduce_template

__all__ = [
    "Occurrence",
    "collapse_whitespace",
    "extract_strings",
    "iter_occurrences",
    "markup_text",
    "text_runs",
]

TRANSLATOR_NAME = "t"

_WHITESPACE = re.compile(r"\s+")
_TEXT_TYPES = frozenset({"jsx_text", "html_character_reference"})


@dataclass(frozen=True, slots=True)
class Occurrence:
    """A candidate string located in the tree.

    ``start``/``end`` delimit the bytes a rewrite replaces: the literal node
    for attribute, expression and property values, the trimmed text run for
    markup text, and the whole node for already-wrapped occurrences.
    """

    kind: StringKind
    text: str
    node: Any
    start: int
    end: int
    owner: ComponentOwner | None = None
    parent_tag: str | None = None
    prop_name: str | None = None
    const_name: str | None = None
    id: str | None = None
    template: TemplateText | None = None
    bare_attribute: bool = False
    composite: str | None = None


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def markup_text(raw: str) -> str:
    """Return markup text as rendered: whitespace collapsed, entities decoded.

    Example:
        >>> markup_text("Terms   &amp; conditions")
        'Terms & conditions'
    """

    return html.unescape(collapse_whitespace(raw))


def text_runs(element: Any) -> Iterator[list[Any]]:
    """Yield groups of adjacent text children of a markup element."""

    run: list[Any] = []
    for child in element.children:
        if child.type in _TEXT_TYPES:
            run.append(child)
            continue
        if run:
            yield run
            run = []
    if run:
        yield run


def _trimmed_span(tree: SourceTree, run: list[Any]) -> tuple[int, int]:
    start, end = run[0].start_byte, run[-1].end_byte
    segment = tree.source[start:end]
    start += len(segment) - len(segment.lstrip())
    end -= len(segment) - len(segment.rstrip())
    return start, max(start, end)


def _literal_values(
    tree: SourceTree,
    node: Any,
) -> Iterator[tuple[Any, str, TemplateText | None]]:
    """Yield ``(node, text, template)`` for each literal branch of ``node``."""

    node = unwrap_parens(node)
    if node is None:
        return
    kind = NodeKind.of(node)
    if kind is NodeKind.STRING:
        text = string_value(tree, node).strip()
        if text and not should_ignore(text):
            yield node, text, None
    elif kind is NodeKind.TEMPLATE:
        template = reduce_template(tree, node)
        if template is None:
            return
        text = template.text.strip()
        if text and not should_ignore(text):
            yield node, text, template
    elif kind is NodeKind.TERNARY:
        for field in ("consequence", "alternative"):
            branch = node.child_by_field_name(field)
            if branch is not None:
                yield from _literal_values(tree, branch)


class _Collector:
    def __init__(
        self,
        tree: SourceTree,
        translatable_props: Iterable[str] | None,
    ) -> None:
        self._tree = tree
        self._props = (
            frozenset(translatable_props) if translatable_props else None
        )
        self._jsx_cache: dict[tuple[int, int], bool] = {}
        self.occurrences: list[Occurrence] = []

    def visit(self, node: Any) -> None:
        match NodeKind.of(node):
            case NodeKind.JSX_ELEMENT | NodeKind.JSX_FRAGMENT:
                self._visit_element(node)
            case NodeKind.JSX_ATTRIBUTE:
                self._visit_attribute(node)
            case NodeKind.JSX_EXPRESSION:
                self._visit_expression(node)
            case NodeKind.PAIR:
                self._visit_pair(node)
            case NodeKind.CALL:
                self._visit_call(node)
            case _:
                return

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------
    def _visit_element(self, node: Any) -> None:
        tree = self._tree
        name = tag_name(tree, node)
        if name == WRAPPER_TAG:
            self._emit_wrapper(node)
            return

        composite: str | None = None
        composite_done = False
        for run in text_runs(node):
            start, end = _trimmed_span(tree, run)
            text = markup_text(tree.slice(start, end))
            if not text or should_ignore(text):
                continue
            tag = name if name is not None else parent_tag(tree, run[0])
            if tag is not None and (is_ignored_tag(tag) or tag == WRAPPER_TAG):
                continue
            if not composite_done:
                composite = composite_template(tree, node)
                composite_done = True
            self.occurrences.append(
                Occurrence(
                    kind=StringKind.JSX_TEXT,
                    text=text,
                    node=run[0],
                    start=start,
                    end=end,
                    owner=component_owner(tree, node),
                    parent_tag=tag,
                    composite=composite,
                )
            )

    def _emit_wrapper(self, node: Any) -> None:
        tree = self._tree
        opening = node.child_by_field_name("open_tag")
        wrapper_id: str | None = None
        if opening is not None:
            for attribute in named_children(opening):
                if attribute.type != "jsx_attribute":
                    continue
                parts = named_children(attribute)
                if (
                    len(parts) == 2
                    and tree.text(parts[0]) == "id"
                    and parts[1].type == "string"
                ):
                    wrapper_id = string_value(tree, parts[1])
        pieces = [
            tree.slice(run[0].start_byte, run[-1].end_byte)
            for run in text_runs(node)
        ]
        text = markup_text(" ".join(pieces))
        if not text:
            return
        self.occurrences.append(
            Occurrence(
                kind=StringKind.T_COMPONENT,
                text=text,
                node=node,
                start=node.start_byte,
                end=node.end_byte,
                owner=component_owner(tree, node),
                parent_tag=parent_tag(tree, node),
                id=wrapper_id,
            )
        )

    def _visit_attribute(self, node: Any) -> None:
        tree = self._tree
        parts = named_children(node)
        if len(parts) != 2:
            return
        name, value = parts
        prop = tree.text(name)
        if not is_translatable_prop(prop, self._props):
            return
        tag = parent_tag(tree, node)
        if tag is not None and is_ignored_tag(tag):
            return

        bare = value.type == "string"
        if bare:
            candidates = _literal_values(tree, value)
        elif value.type == "jsx_expression":
            inner = named_children(value)
            if len(inner) != 1:
                return
            candidates = _literal_values(tree, inner[0])
        else:
            return

        owner = component_owner(tree, node)
        for literal, text, template in candidates:
            self.occurrences.append(
                Occurrence(
                    kind=StringKind.JSX_ATTRIBUTE,
                    text=text,
                    node=literal,
                    start=literal.start_byte,
                    end=literal.end_byte,
                    owner=owner,
                    parent_tag=tag,
                    prop_name=prop,
                    template=template,
                    bare_attribute=bare,
                )
            )

    def _visit_expression(self, node: Any) -> None:
        tree = self._tree
        if node.parent is not None and node.parent.type == "jsx_attribute":
            return
        inner = named_children(node)
        if len(inner) != 1:
            return
        tag = parent_tag(tree, node)
        if tag is not None and (is_ignored_tag(tag) or tag == WRAPPER_TAG):
            return
        owner = component_owner(tree, node)
        for literal, text, template in _literal_values(tree, inner[0]):
            self.occurrences.append(
                Occurrence(
                    kind=StringKind.JSX_EXPRESSION,
                    text=text,
                    node=literal,
                    start=literal.start_byte,
                    end=literal.end_byte,
                    owner=owner,
                    parent_tag=tag,
                    template=template,
                )
            )

    # ------------------------------------------------------------------
    # Object literals
    # ------------------------------------------------------------------
    def _function_has_jsx(self, function: Any) -> bool:
        key = (function.start_byte, function.end_byte)
        cached = self._jsx_cache.get(key)
        if cached is None:
            cached = contains_jsx(function)
            self._jsx_cache[key] = cached
        return cached

    def _visit_pair(self, node: Any) -> None:
        tree = self._tree
        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        if key is None or value is None:
            return
        if key.type == "property_identifier":
            prop = tree.text(key)
        elif key.type == "string":
            prop = string_value(tree, key)
        else:
            return
        if not is_content_property(prop):
            return

        owner: ComponentOwner | None = None
        const_name: str | None = None
        if nearest_function(node) is None:
            exported = top_level_export_const(tree, node)
            if exported is None or is_reserved_export(exported[0]):
                return
            const_name = exported[0]
            kind = StringKind.MODULE_OBJECT_PROPERTY
        else:
            function = nearest_function(node, include_methods=False)
            if function is None or not self._function_has_jsx(function):
                return
            owner = component_owner(tree, function)
            if owner is None or is_reserved_export(owner.name):
                return
            kind = StringKind.OBJECT_PROPERTY

        for literal, text, template in _literal_values(tree, value):
            self.occurrences.append(
                Occurrence(
                    kind=kind,
                    text=text,
                    node=literal,
                    start=literal.start_byte,
                    end=literal.end_byte,
                    owner=owner,
                    prop_name=prop,
                    const_name=const_name,
                    template=template,
                )
            )

    # ------------------------------------------------------------------
    # Existing translator calls
    # ------------------------------------------------------------------
    def _visit_call(self, node: Any) -> None:
        tree = self._tree
        if callee_name(tree, node) != TRANSLATOR_NAME:
            return
        arguments = call_arguments(node)
        if not arguments or arguments[0].type != "string":
            return
        text = string_value(tree, arguments[0]).strip()
        if not text or should_ignore(text):
            return
        explicit_id: str | None = None
        if len(arguments) >= 2 and arguments[1].type == "string":
            explicit_id = string_value(tree, arguments[1])
        self.occurrences.append(
            Occurrence(
                kind=StringKind.T_CALL,
                text=text,
                node=node,
                start=node.start_byte,
                end=node.end_byte,
                owner=component_owner(tree, node),
                parent_tag=parent_tag(tree, node),
                id=explicit_id,
            )
        )


def iter_occurrences(
    tree: SourceTree,
    translatable_props: Iterable[str] | None = None,
) -> list[Occurrence]:
    """Return every candidate occurrence in ``tree`` in document order."""

    collector = _Collector(tree, translatable_props)
    for node in walk(tree.root):
        collector.visit(node)
    return sorted(collector.occurrences, key=lambda item: item.start)


def extract_strings(
    tree: SourceTree,
    translatable_props: Iterable[str] | None = None,
) -> list[ExtractedString]:
    """Return the candidate strings of ``tree`` without cross-string context."""

    results: list[ExtractedString] = []
    for occurrence in iter_occurrences(tree, translatable_props):
        line, column = tree.position(occurrence.start)
        results.append(
            ExtractedString(
                text=occurrence.text,
                kind=occurrence.kind,
                file=tree.path,
                line=line,
                column=column,
                component_name=(
                    occurrence.owner.name if occurrence.owner else None
                ),
                parent_tag=occurrence.parent_tag,
                prop_name=occurrence.prop_name,
                parent_const_name=occurrence.const_name,
                composite_context=occurrence.composite,
                id=occurrence.id,
            )
        )
    return results
