"""Planned edits to a module's top-level import declarations.

Touched declarations are re-rendered from a small model; untouched ones keep
their original text. New declarations go after the last import, or after the
directive prologue when the module has no imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

from translate_kit.parsing.edits import TextEdit, insert
from translate_kit.parsing.nodes import directive_nodes, string_value
from translate_kit.parsing.parser import SourceTree

__all__ = ["ImportEditor", "quote"]


@dataclass(slots=True)
class _Specifier:
    raw: str
    imported: str
    local: str
    is_type: bool = False


@dataclass(slots=True)
class _Declaration:
    node: Any
    source: str
    quote: str
    default: str | None = None
    namespace: str | None = None
    specifiers: list[_Specifier] = field(default_factory=list)
    has_named: bool = False
    multiline: bool = False
    semicolon: bool = True
    type_only: bool = False
    dirty: bool = False

    def find(self, name: str) -> _Specifier | None:
        for specifier in self.specifiers:
            if not specifier.is_type and specifier.imported == name:
                return specifier
        return None

    @property
    def is_empty(self) -> bool:
        return (
            self.default is None
            and self.namespace is None
            and not self.specifiers
        )

    def render(self) -> str:
        clause: list[str] = []
        if self.default is not None:
            clause.append(self.default)
        if self.namespace is not None:
            clause.append(self.namespace)
        if self.specifiers:
            raws = [specifier.raw for specifier in self.specifiers]
            if self.multiline:
                body = "".join(f"  {raw},\n" for raw in raws)
                clause.append("{\n" + body + "}")
            else:
                clause.append("{ " + ", ".join(raws) + " }")
        source = self.quote + self.source + self.quote
        terminator = ";" if self.semicolon else ""
        return f"import {', '.join(clause)} from {source}{terminator}"


def _specifier_raw(imported: str, local: str) -> str:
    return imported if imported == local else f"{imported} as {local}"


def _parse_declaration(tree: SourceTree, node: Any) -> _Declaration | None:
    source_node = node.child_by_field_name("source")
    if source_node is None:
        return None
    raw_source = tree.text(source_node)
    declaration = _Declaration(
        node=node,
        source=string_value(tree, source_node),
        quote=raw_source[:1] if raw_source[:1] in "'\"" else '"',
        semicolon=tree.text(node).rstrip().endswith(";"),
        type_only=any(child.type == "type" for child in node.children),
    )
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                declaration.default = tree.text(part)
            elif part.type == "namespace_import":
                declaration.namespace = tree.text(part)
            elif part.type == "named_imports":
                declaration.has_named = True
                declaration.multiline = "\n" in tree.text(part)
                for specifier in part.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    name = specifier.child_by_field_name("name")
                    alias = specifier.child_by_field_name("alias")
                    if name is None:
                        continue
                    imported = (
                        string_value(tree, name)
                        if name.type == "string"
                        else tree.text(name)
                    )
                    declaration.specifiers.append(
                        _Specifier(
                            raw=tree.text(specifier),
                            imported=imported,
                            local=tree.text(alias) if alias else imported,
                            is_type=any(
                                child.type in {"type", "typeof"}
                                for child in specifier.children
                            ),
                        )
                    )
    return declaration


class ImportEditor:
    """Collects import changes for one module and renders them as edits."""

    def __init__(self, tree: SourceTree) -> None:
        self._tree = tree
        self._declarations: list[_Declaration] = []
        self._added: list[_Declaration] = []
        for statement in tree.root.named_children:
            if statement.type != "import_statement":
                continue
            declaration = _parse_declaration(tree, statement)
            if declaration is not None:
                self._declarations.append(declaration)

    def _value_declarations(self, source: str) -> list[_Declaration]:
        return [
            declaration
            for declaration in (*self._declarations, *self._added)
            if declaration.source == source and not declaration.type_only
        ]

    def local_for(self, source: str, name: str) -> str | None:
        """Return the local binding of ``name`` imported from ``source``."""

        for declaration in self._value_declarations(source):
            specifier = declaration.find(name)
            if specifier is not None:
                return specifier.local
        return None

    def imports_from(self, source: str) -> bool:
        return bool(self._value_declarations(source))

    def require(self, source: str, name: str) -> str:
        """Ensure ``name`` is imported from ``source`` and return its local."""

        existing = self.local_for(source, name)
        if existing is not None:
            return existing
        specifier = _Specifier(raw=name, imported=name, local=name)
        for declaration in self._value_declarations(source):
            if declaration.has_named or declaration.namespace is None:
                declaration.specifiers.append(specifier)
                declaration.has_named = True
                declaration.dirty = True
                return name
        self._added.append(
            _Declaration(
                node=None,
                source=source,
                quote='"',
                specifiers=[specifier],
                has_named=True,
            )
        )
        return name

    def rename_source(self, old: str, new: str) -> None:
        for declaration in self._value_declarations(old):
            declaration.source = new
            declaration.dirty = True

    def rename_specifier(self, source: str, old: str, new: str) -> str | None:
        """Swap the imported name ``old`` for ``new``, keeping an alias."""

        for declaration in self._value_declarations(source):
            specifier = declaration.find(old)
            if specifier is None:
                continue
            local = new if specifier.local == old else specifier.local
            specifier.imported = new
            specifier.local = local
            specifier.raw = _specifier_raw(new, local)
            declaration.dirty = True
            return local
        return None

    def remove(self, source: str, name: str) -> None:
        for declaration in self._value_declarations(source):
            specifier = declaration.find(name)
            if specifier is None:
                continue
            declaration.specifiers.remove(specifier)
            declaration.dirty = True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _insertion_point(self) -> tuple[int, str, str]:
        imports = [
            node
            for node in self._tree.root.named_children
            if node.type == "import_statement"
        ]
        if imports:
            return imports[-1].end_byte, "\n", ""
        directives = directive_nodes(self._tree)
        if directives:
            return directives[-1].end_byte, "\n\n", ""
        first = self._tree.root.named_children[:1]
        if first and first[0].type == "hash_bang_line":
            return first[0].end_byte, "\n", ""
        return 0, "", "\n\n"

    def edits(self) -> list[TextEdit]:
        source = self._tree.source
        edits: list[TextEdit] = []
        removed: list[tuple[int, int]] = []
        for declaration in self._declarations:
            if not declaration.dirty:
                continue
            node = declaration.node
            if declaration.is_empty:
                start, end = node.start_byte, node.end_byte
                if start > 0 and source[start - 1 : start] == b"\n":
                    start -= 1
                elif source[end : end + 1] == b"\n":
                    end += 1
                edits.append(TextEdit(start, end, ""))
                removed.append((start, end))
            else:
                edits.append(
                    TextEdit(node.start_byte, node.end_byte, declaration.render())
                )

        added = [
            declaration.render()
            for declaration in self._added
            if not declaration.is_empty
        ]
        if added:
            offset, before, after = self._insertion_point()
            # An anchor inside a removed declaration moves to its start.
            for start, end in removed:
                if start < offset <= end:
                    offset = start
                    if offset == 0:
                        before, after = "", "\n"
            text = before + "\n".join(added) + after
            edits.append(insert(offset, text, order=-1))
        return edits


def quote(value: str) -> str:
    """Render ``value`` as a double-quoted string literal.

    Example:
        >>> quote('Say "hi"')
        '"Say \\\\"hi\\\\""'
    """

    return json.dumps(value, ensure_ascii=False)
