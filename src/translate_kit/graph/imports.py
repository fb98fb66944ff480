"""Runtime import collection, module resolution and the import graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import os
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

from translate_kit.parsing.nodes import (
    call_arguments,
    callee_name,
    string_value,
    walk,
)
from translate_kit.parsing.parser import SourceTree

from .aliases import AliasConfig

__all__ = [
    "BindingKind",
    "FileRecord",
    "ImportBinding",
    "ImportGraph",
    "ModuleImports",
    "ModuleResolver",
    "RESOLVE_EXTENSIONS",
    "collect_imports",
    "normalize_path",
]

RESOLVE_EXTENSIONS: tuple[str, ...] = (
    ".tsx",
    ".ts",
    ".jsx",
    ".js",
    ".mjs",
    ".cjs",
    ".mts",
    ".cts",
)
_JS_SUFFIXES = frozenset({".js", ".jsx", ".mjs", ".cjs"})
_CONVENTIONAL_PREFIXES = ("@/", "~/")


class BindingKind(StrEnum):
    """How a module is reached from an importing file."""

    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"
    REEXPORT = "reexport"
    REEXPORT_ALL = "reexport-all"
    SIDE_EFFECT = "side-effect"
    DYNAMIC = "dynamic"
    REQUIRE = "require"

    @property
    def is_opaque(self) -> bool:
        """Whether individual references are hidden from static analysis."""

        return self in (
            BindingKind.NAMESPACE,
            BindingKind.REEXPORT_ALL,
            BindingKind.DYNAMIC,
            BindingKind.REQUIRE,
        )


@dataclass(frozen=True, slots=True)
class ImportBinding:
    """A single name (or opaque handle) imported from ``source``."""

    source: str
    kind: BindingKind
    imported: str | None = None
    local: str | None = None


@dataclass(frozen=True, slots=True)
class ModuleImports:
    """Runtime import sources and bindings of one module."""

    sources: tuple[str, ...] = ()
    bindings: tuple[ImportBinding, ...] = ()


def _has_type_keyword(node: Any) -> bool:
    return any(child.type in {"type", "typeof"} for child in node.children)


def _literal_source(tree: SourceTree, node: Any) -> str | None:
    if node.type == "string":
        return string_value(tree, node)
    if node.type == "template_string" and not any(
        child.type == "template_substitution" for child in node.children
    ):
        return tree.slice(node.start_byte + 1, node.end_byte - 1)
    return None


def _import_statement(
    tree: SourceTree, node: Any
) -> tuple[str | None, list[ImportBinding]]:
    source_node = node.child_by_field_name("source")
    if source_node is None or _has_type_keyword(node):
        return None, []
    source = string_value(tree, source_node)
    clause = next(
        (child for child in node.named_children if child.type == "import_clause"),
        None,
    )
    if clause is None:
        return source, [ImportBinding(source, BindingKind.SIDE_EFFECT)]

    bindings: list[ImportBinding] = []
    type_only_specifiers = 0
    for part in clause.named_children:
        if part.type == "identifier":
            bindings.append(
                ImportBinding(
                    source, BindingKind.DEFAULT, "default", tree.text(part)
                )
            )
        elif part.type == "namespace_import":
            local = next(
                (tree.text(c) for c in part.named_children if c.type == "identifier"),
                None,
            )
            bindings.append(
                ImportBinding(source, BindingKind.NAMESPACE, None, local)
            )
        elif part.type == "named_imports":
            for specifier in part.named_children:
                if specifier.type != "import_specifier":
                    continue
                if _has_type_keyword(specifier):
                    type_only_specifiers += 1
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
                local = tree.text(alias) if alias is not None else imported
                bindings.append(
                    ImportBinding(source, BindingKind.NAMED, imported, local)
                )
    if not bindings and type_only_specifiers:
        return None, []
    return source, bindings


def _export_statement(
    tree: SourceTree, node: Any
) -> tuple[str | None, list[ImportBinding]]:
    source_node = node.child_by_field_name("source")
    if source_node is None or _has_type_keyword(node):
        return None, []
    source = string_value(tree, source_node)
    bindings: list[ImportBinding] = []
    clause = next(
        (child for child in node.named_children if child.type == "export_clause"),
        None,
    )
    if clause is None:
        namespace = next(
            (child for child in node.named_children if child.type == "namespace_export"),
            None,
        )
        kind = BindingKind.NAMESPACE if namespace is not None else BindingKind.REEXPORT_ALL
        return source, [ImportBinding(source, kind)]
    for specifier in clause.named_children:
        if specifier.type != "export_specifier" or _has_type_keyword(specifier):
            continue
        name = specifier.child_by_field_name("name")
        alias = specifier.child_by_field_name("alias")
        if name is None:
            continue
        imported = tree.text(name)
        exported = tree.text(alias) if alias is not None else imported
        bindings.append(
            ImportBinding(source, BindingKind.REEXPORT, imported, exported)
        )
    if not bindings:
        return None, []
    return source, bindings


def _dynamic_imports(tree: SourceTree) -> Iterator[ImportBinding]:
    for node in walk(tree.root):
        if node.type != "call_expression":
            continue
        function = node.child_by_field_name("function")
        if function is None:
            continue
        arguments = call_arguments(node)
        if len(arguments) < 1:
            continue
        source = _literal_source(tree, arguments[0])
        if source is None:
            continue
        if function.type == "import":
            yield ImportBinding(source, BindingKind.DYNAMIC)
        elif callee_name(tree, node) == "require" and len(arguments) == 1:
            yield ImportBinding(source, BindingKind.REQUIRE)


def collect_imports(tree: SourceTree) -> ModuleImports:
    """Collect the runtime import sources and bindings of a module.

    Type-only imports, type-only specifiers and type-only re-exports are
    ignored. Dynamic ``import()`` calls and ``require()`` calls with a literal
    argument are included.
    """

    sources: dict[str, None] = {}
    bindings: list[ImportBinding] = []
    for statement in tree.root.named_children:
        if statement.type == "import_statement":
            source, found = _import_statement(tree, statement)
        elif statement.type == "export_statement":
            source, found = _export_statement(tree, statement)
        else:
            continue
        if source is not None:
            sources.setdefault(source, None)
            bindings.extend(found)
    for binding in _dynamic_imports(tree):
        sources.setdefault(binding.source, None)
        bindings.append(binding)
    return ModuleImports(sources=tuple(sources), bindings=tuple(bindings))


def normalize_path(path: Path) -> Path:
    """Return ``path`` made absolute with ``.`` and ``..`` segments folded."""

    return Path(os.path.normpath(path.absolute()))


class ModuleResolver:
    """Resolve import sources to files of a known, fixed file set.

    Resolution tries, in order: paths relative to the importer, configured
    aliases, the ``@/`` and ``~/`` prefixes (``src/`` first, then the project
    root), a single leading ``/`` meaning the project root, and finally
    ``baseUrl``. Each candidate is tried as-is, with every known extension,
    and as ``index.<ext>``.
    """

    def __init__(
        self,
        *,
        root: Path,
        known_files: Iterable[Path],
        aliases: AliasConfig | None = None,
    ) -> None:
        self._root = normalize_path(root)
        self._known = frozenset(normalize_path(path) for path in known_files)
        self._aliases = aliases or AliasConfig()

    @property
    def known_files(self) -> frozenset[Path]:
        return self._known

    def _match(self, base: Path) -> Path | None:
        base = Path(os.path.normpath(base))
        if base in self._known:
            return base
        for extension in RESOLVE_EXTENSIONS:
            candidate = base.with_name(base.name + extension)
            if candidate in self._known:
                return candidate
        if base.suffix in _JS_SUFFIXES:
            stem = base.with_suffix("")
            for extension in (".ts", ".tsx", ".mts", ".cts"):
                candidate = stem.with_name(stem.name + extension)
                if candidate in self._known:
                    return candidate
        for extension in RESOLVE_EXTENSIONS:
            candidate = base / f"index{extension}"
            if candidate in self._known:
                return candidate
        return None

    def _bases(self, importer: Path, source: str) -> Iterator[Path]:
        if source.startswith((".", "..")) and (
            source in (".", "..") or source.startswith(("./", "../"))
        ):
            yield importer.parent / source
            return
        yield from self._aliases.candidates(source)
        for prefix in _CONVENTIONAL_PREFIXES:
            if source.startswith(prefix):
                rest = source[len(prefix) :]
                yield self._root / "src" / rest
                yield self._root / rest
        if source.startswith("/") and not source.startswith("//"):
            yield self._root / source.lstrip("/")
        if self._aliases.base_url is not None:
            yield self._aliases.base_url / source

    def resolve(self, importer: Path, source: str) -> Path | None:
        """Return the known file ``source`` refers to, or ``None``."""

        if not source:
            return None
        importer = normalize_path(importer)
        for base in self._bases(importer, source):
            match = self._match(base)
            if match is not None:
                return match
        return None


@dataclass(slots=True)
class FileRecord:
    """Arena entry for one parsed file."""

    id: int
    path: Path
    sources: tuple[str, ...] = ()
    is_client_root: bool = False
    edges: list[int] = field(default_factory=list)


class ImportGraph:
    """Import graph stored as an arena of records indexed by integer id."""

    def __init__(self) -> None:
        self._records: list[FileRecord] = []
        self._ids: dict[Path, int] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._records)

    @property
    def records(self) -> Sequence[FileRecord]:
        return self._records

    def add_file(
        self,
        path: Path,
        sources: Sequence[str] = (),
        *,
        is_client_root: bool = False,
    ) -> FileRecord:
        key = normalize_path(path)
        existing = self._ids.get(key)
        if existing is not None:
            return self._records[existing]
        record = FileRecord(
            id=len(self._records),
            path=key,
            sources=tuple(sources),
            is_client_root=is_client_root,
        )
        self._records.append(record)
        self._ids[key] = record.id
        return record

    def id_of(self, path: Path) -> int | None:
        return self._ids.get(normalize_path(path))

    def record(self, path: Path) -> FileRecord | None:
        index = self.id_of(path)
        return None if index is None else self._records[index]

    def link(self, resolver: ModuleResolver) -> None:
        """Resolve every record's sources into edges between records."""

        for record in self._records:
            edges: dict[int, None] = {}
            for source in record.sources:
                target = resolver.resolve(record.path, source)
                if target is None:
                    continue
                target_id = self._ids.get(target)
                if target_id is not None and target_id != record.id:
                    edges.setdefault(target_id, None)
            record.edges = list(edges)

    def targets(self, path: Path) -> tuple[Path, ...]:
        record = self.record(path)
        if record is None:
            return ()
        return tuple(self._records[index].path for index in record.edges)
