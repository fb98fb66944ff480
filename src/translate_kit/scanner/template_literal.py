"""Reduction of template literals to text-with-placeholders form.

A template such as ``Hello ${user.name}`` reduces to ``Hello {userName}``.
The reduction keeps the ordered placeholder names paired with the ordered
source text of each interpolated expression so the values object can be
re-serialized exactly when the literal is rewritten.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from translate_kit.parsing.nodes import decode_escapes, named_children
from translate_kit.parsing.parser import SourceTree

__all__ = ["TemplateText", "placeholder_name", "reduce_template"]


@dataclass(frozen=True, slots=True)
class TemplateText:
    """A reduced template literal."""

    text: str
    placeholders: tuple[str, ...] = ()
    expressions: tuple[str, ...] = ()

    def values_object(self) -> str | None:
        """Render the ``{ placeholder: expr }`` argument, or ``None``.

        Example:
            >>> TemplateText(
            ...     "Hi {name} {userName}",
            ...     ("name", "userName"),
            ...     ("name", "user.name"),
            ... ).values_object()
            '{ name, userName: user.name }'
        """

        if not self.placeholders:
            return None
        parts = [
            name if name == expression else f"{name}: {expression}"
            for name, expression in zip(self.placeholders, self.expressions)
        ]
        return "{ " + ", ".join(parts) + " }"


def placeholder_name(tree: SourceTree, node: Any) -> str | None:
    """Return the placeholder name for an interpolated expression.

    Identifiers keep their name and non-computed member chains are
    camel-cased (``user.name`` becomes ``userName``). Any other shape yields
    ``None``.
    """

    if node.type == "identifier":
        return tree.text(node)
    if node.type != "member_expression":
        return None
    if any(child.type == "optional_chain" for child in node.children):
        return None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None or prop.type != "property_identifier":
        return None
    head = placeholder_name(tree, obj)
    if head is None:
        return None
    name = tree.text(prop)
    return head + name[:1].upper() + name[1:]


def reduce_template(tree: SourceTree, node: Any) -> TemplateText | None:
    """Reduce a ``template_string`` node, or return ``None`` if ineligible."""

    if node.type != "template_string":
        return None

    pieces: list[str] = []
    placeholders: list[str] = []
    expressions: list[str] = []
    used: set[str] = set()
    cursor = node.start_byte + 1

    for child in node.children:
        if child.type != "template_substitution":
            continue
        pieces.append(decode_escapes(tree.slice(cursor, child.start_byte)))
        inner = named_children(child)
        if len(inner) != 1:
            return None
        name = placeholder_name(tree, inner[0])
        if name is None:
            return None
        final = name
        suffix = 2
        while final in used:
            final = f"{name}{suffix}"
            suffix += 1
        used.add(final)
        placeholders.append(final)
        expressions.append(tree.text(inner[0]))
        pieces.append("{" + final + "}")
        cursor = child.end_byte

    pieces.append(decode_escapes(tree.slice(cursor, node.end_byte - 1)))
    return TemplateText(
        text="".join(pieces),
        placeholders=tuple(placeholders),
        expressions=tuple(expressions),
    )
