"""Module-factory safety analysis.

An exported module-level constant holding translatable content, such as::

    export const FEATURES = [{ title: "Fast builds" }];

can only be localized by turning it into a factory that receives the
translation accessor::

    export const FEATURES = (t) => ([{ title: t("features.fastBuilds") }]);

with every reference rewritten to ``FEATURES(t)``. The rewrite changes the
export's shape, so it is applied only when every reference in the project is
visible and sits where an accessor is available. Any doubt rejects the whole
binding; its strings are then left alone.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Any, Iterable, Mapping

from translate_kit.core.logging import Logger, get_logger
from translate_kit.graph.imports import (
    BindingKind,
    ImportBinding,
    ModuleImports,
    ModuleResolver,
)
from translate_kit.parsing.nodes import (
    ComponentOwner,
    ancestors,
    binding_names,
    component_owner,
    import_bindings,
    is_pascal_case,
    named_children,
    top_level_export_const,
    unwrap_expression,
    walk,
)
from translate_kit.parsing.parser import SourceTree
from translate_kit.scanner.extractor import Occurrence, iter_occurrences
from translate_kit.scanner.filters import is_reserved_export
from translate_kit.scanner.models import StringKind

from .accessors import (
    accessor_usage,
    binds_foreign_accessor,
    can_receive_accessor,
    declared_namespace,
    factory_locals,
    find_accessor,
)
from .models import ParsedModule

__all__ = [
    "BindingId",
    "FactoryDefinition",
    "FactoryPlan",
    "FactoryReference",
    "FileFactoryPlan",
    "MUTATING_METHODS",
    "analyze_factories",
    "find_candidates",
]

BindingId = tuple[Path, str]

MUTATING_METHODS = frozenset(
    {
        "push",
        "pop",
        "shift",
        "unshift",
        "splice",
        "sort",
        "reverse",
        "fill",
        "copyWithin",
    }
)
_MUTATING_STATICS = frozenset(
    {
        ("Object", "assign"),
        ("Object", "defineProperty"),
        ("Object", "defineProperties"),
        ("Object", "setPrototypeOf"),
        ("Reflect", "set"),
        ("Reflect", "defineProperty"),
        ("Reflect", "deleteProperty"),
    }
)
_CHAIN_TYPES = frozenset({"member_expression", "subscript_expression"})
_TRANSPARENT_TYPES = frozenset(
    {
        "parenthesized_expression",
        "non_null_expression",
        "as_expression",
        "satisfies_expression",
    }
)
_JSX_TAG_TYPES = frozenset(
    {"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"}
)
_LITERAL_TYPES = frozenset({"object", "array"})


@dataclass(frozen=True, slots=True)
class FactoryDefinition:
    """A binding whose initializer becomes ``(t) => (<initializer>)``."""

    binding: BindingId
    declarator: Any
    value: Any
    occurrences: tuple[Occurrence, ...]

    @property
    def name(self) -> str:
        return self.binding[1]


@dataclass(frozen=True, slots=True)
class FactoryReference:
    """A reference rewritten to ``<local>(t)`` inside ``owner``."""

    binding: BindingId
    node: Any
    local: str
    owner: ComponentOwner


@dataclass(frozen=True, slots=True)
class FileFactoryPlan:
    """Factory work assigned to a single file."""

    definitions: tuple[FactoryDefinition, ...] = ()
    references: tuple[FactoryReference, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.definitions and not self.references

    @property
    def bindings(self) -> frozenset[BindingId]:
        return frozenset(
            item.binding for item in (*self.definitions, *self.references)
        )


_EMPTY_FILE_PLAN = FileFactoryPlan()


@dataclass(frozen=True, slots=True)
class FactoryPlan:
    """Safe bindings grouped by the files that must change together."""

    files: Mapping[Path, FileFactoryPlan] = field(default_factory=dict)
    rejected: Mapping[BindingId, str] = field(default_factory=dict)

    def for_file(self, path: Path) -> FileFactoryPlan:
        return self.files.get(path, _EMPTY_FILE_PLAN)

    @property
    def safe(self) -> frozenset[BindingId]:
        return frozenset(
            definition.binding
            for plan in self.files.values()
            for definition in plan.definitions
        )

    def files_for(self, bindings: Iterable[BindingId]) -> set[Path]:
        """Return every file touched by any of ``bindings``."""

        wanted = set(bindings)
        return {
            path
            for path, plan in self.files.items()
            if plan.bindings & wanted
        }

    def without(self, bindings: Iterable[BindingId], reason: str) -> "FactoryPlan":
        """Return a plan with ``bindings`` moved to the rejected set."""

        dropped = set(bindings)
        files: dict[Path, FileFactoryPlan] = {}
        for path, plan in self.files.items():
            kept = FileFactoryPlan(
                definitions=tuple(
                    item for item in plan.definitions if item.binding not in dropped
                ),
                references=tuple(
                    item for item in plan.references if item.binding not in dropped
                ),
            )
            if not kept.is_empty:
                files[path] = kept
        rejected = dict(self.rejected)
        rejected.update({binding: reason for binding in dropped})
        return FactoryPlan(files=files, rejected=rejected)


@dataclass(slots=True)
class _Candidate:
    binding: BindingId
    declarator: Any
    value: Any
    occurrences: list[Occurrence] = field(default_factory=list)


class _Rejected(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# ----------------------------------------------------------------------
# Candidates
# ----------------------------------------------------------------------
def find_candidates(
    tree: SourceTree,
    text_to_key: Mapping[str, str],
    translatable_props: Iterable[str] | None = None,
) -> tuple[list[_Candidate], dict[str, str]]:
    """Return convertible candidates of ``tree`` and rejected names.

    A candidate is a top-level ``export const`` whose initializer is an
    object or array literal holding at least one mapped content string.
    """

    candidates: dict[str, _Candidate] = {}
    rejected: dict[str, str] = {}
    for occurrence in iter_occurrences(tree, translatable_props):
        if occurrence.kind is not StringKind.MODULE_OBJECT_PROPERTY:
            continue
        if occurrence.text not in text_to_key or occurrence.const_name is None:
            continue
        name = occurrence.const_name
        if name in rejected:
            continue
        candidate = candidates.get(name)
        if candidate is None:
            exported = top_level_export_const(tree, occurrence.node)
            if exported is None:
                continue
            _, declarator = exported
            value = declarator.child_by_field_name("value")
            if is_reserved_export(name):
                rejected[name] = "reserved-export"
                continue
            if declarator.child_by_field_name("type") is not None:
                rejected[name] = "type-annotated"
                continue
            inner = unwrap_expression(value)
            if inner is None or inner.type not in _LITERAL_TYPES:
                rejected[name] = "not-a-literal"
                continue
            candidate = _Candidate(
                binding=(tree.path, name),
                declarator=declarator,
                value=value,
            )
            candidates[name] = candidate
        candidate.occurrences.append(occurrence)
    return list(candidates.values()), rejected


# ----------------------------------------------------------------------
# Reference checks
# ----------------------------------------------------------------------
def _is_object_of(parent: Any, node: Any) -> bool:
    target = parent.child_by_field_name("object")
    return (
        target is not None
        and target.start_byte == node.start_byte
        and target.end_byte == node.end_byte
    )


def _same(a: Any, b: Any) -> bool:
    return (
        a is not None
        and b is not None
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
    )


def _chain_top(tree: SourceTree, node: Any) -> tuple[Any, str | None]:
    """Climb member/index accesses rooted at ``node``.

    Returns the outermost access and the name of its last property.
    """

    current = node
    last_property: str | None = None
    while current.parent is not None:
        parent = current.parent
        if parent.type in _TRANSPARENT_TYPES:
            current = parent
            continue
        if parent.type in _CHAIN_TYPES and _is_object_of(parent, current):
            prop = parent.child_by_field_name("property")
            last_property = (
                tree.text(prop)
                if prop is not None and prop.type == "property_identifier"
                else None
            )
            current = parent
            continue
        break
    return current, last_property


def _static_callee(tree: SourceTree, call: Any) -> tuple[str, str] | None:
    function = call.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return None
    target = function.child_by_field_name("object")
    prop = function.child_by_field_name("property")
    if target is None or prop is None or target.type != "identifier":
        return None
    return tree.text(target), tree.text(prop)


def _check_mutation(tree: SourceTree, reference: Any) -> None:
    top, last_property = _chain_top(tree, reference)
    parent = top.parent
    if parent is None:
        return
    kind = parent.type
    if kind in {"assignment_expression", "augmented_assignment_expression"}:
        if _same(parent.child_by_field_name("left"), top):
            raise _Rejected("assigned")
    if kind == "update_expression":
        raise _Rejected("updated")
    if kind == "unary_expression" and any(
        child.type == "delete" for child in parent.children
    ):
        raise _Rejected("deleted")
    if kind in {"for_in_statement"} and _same(parent.child_by_field_name("left"), top):
        raise _Rejected("assigned")
    if (
        kind == "call_expression"
        and top is not reference
        and _same(parent.child_by_field_name("function"), top)
        and last_property in MUTATING_METHODS
    ):
        raise _Rejected(f"mutating-call:{last_property}")
    if kind == "arguments" and parent.parent is not None:
        callee = _static_callee(tree, parent.parent)
        if callee in _MUTATING_STATICS:
            raise _Rejected(f"mutating-call:{'.'.join(callee)}")


def _check_reference(tree: SourceTree, reference: Any) -> ComponentOwner:
    parent = reference.parent
    if parent is not None:
        if parent.type in {"export_specifier", "export_statement"}:
            raise _Rejected("re-exported")
        if parent.type in _JSX_TAG_TYPES or (
            parent.type in {"member_expression", "nested_identifier"}
            and parent.parent is not None
            and parent.parent.type in _JSX_TAG_TYPES
        ):
            raise _Rejected("markup-reference")
    if any(ancestor.type == "type_query" for ancestor in ancestors(reference)):
        raise _Rejected("type-query")
    _check_mutation(tree, reference)

    owner = component_owner(tree, reference)
    if owner is None:
        raise _Rejected("module-scope-reference")
    if owner.is_class or not is_pascal_case(owner.name):
        raise _Rejected(f"non-component-reference:{owner.name}")
    if not can_receive_accessor(owner.node):
        raise _Rejected(f"no-accessor-slot:{owner.name}")
    declaration = find_accessor(tree, owner.node, factory_locals(tree))
    if binds_foreign_accessor(tree, owner.node, declaration):
        raise _Rejected(f"accessor-name-taken:{owner.name}")
    known, namespace = declared_namespace(tree, declaration)
    if not known:
        raise _Rejected(f"accessor-namespace-unknown:{owner.name}")
    if namespace is not None:
        usage = accessor_usage(tree, owner.node, declaration)
        if usage.dynamic or usage.passes_value:
            raise _Rejected(f"scoped-accessor-pinned:{owner.name}")
    return owner


def _collect_references(
    tree: SourceTree,
    local: str,
    binding_sites: set[int],
) -> list[tuple[Any, ComponentOwner]]:
    """Validate every reference to ``local`` and return them with owners."""

    for name, identifier in binding_names(tree, tree.root):
        if name == local and identifier.start_byte not in binding_sites:
            raise _Rejected("shadowed")

    found: list[tuple[Any, ComponentOwner]] = []
    for node in walk(tree.root):
        if node.type == "shorthand_property_identifier" and tree.text(node) == local:
            raise _Rejected("object-shorthand")
        if node.type != "identifier" or node.start_byte in binding_sites:
            continue
        if tree.text(node) != local:
            continue
        found.append((node, _check_reference(tree, node)))
    return found


def _local_export_names(tree: SourceTree) -> set[str]:
    """Names re-exported through ``export { ... }`` without a source."""

    names: set[str] = set()
    for statement in tree.root.named_children:
        if statement.type != "export_statement":
            continue
        if statement.child_by_field_name("source") is not None:
            continue
        for clause in named_children(statement):
            if clause.type != "export_clause":
                continue
            for specifier in named_children(clause):
                name = specifier.child_by_field_name("name")
                if name is not None:
                    names.add(tree.text(name))
    return names


def _import_sites(tree: SourceTree, local: str) -> set[int]:
    return {
        identifier.start_byte
        for statement in tree.root.named_children
        if statement.type == "import_statement"
        for identifier in import_bindings(statement)
        if tree.text(identifier) == local
    }


# ----------------------------------------------------------------------
# Analysis
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class _Importer:
    path: Path
    binding: ImportBinding
    outside: bool


def _index_importers(
    modules: Mapping[Path, ParsedModule],
    outside: Mapping[Path, ModuleImports],
    resolver: ModuleResolver,
) -> dict[Path, list[_Importer]]:
    index: dict[Path, list[_Importer]] = defaultdict(list)
    sources: list[tuple[Path, ModuleImports, bool]] = [
        (path, module.imports, False) for path, module in modules.items()
    ]
    sources.extend((path, imports, True) for path, imports in outside.items())
    for path, imports, is_outside in sources:
        for binding in imports.bindings:
            target = resolver.resolve(path, binding.source)
            if target is not None and target != path:
                index[target].append(_Importer(path, binding, is_outside))
    return index


def _analyze_candidate(
    candidate: _Candidate,
    modules: Mapping[Path, ParsedModule],
    importers: list[_Importer],
    unparsed: Mapping[Path, str],
) -> tuple[list[FactoryReference], list[tuple[Path, FactoryReference]]]:
    path, name = candidate.binding
    tree = modules[path].tree

    if name in _local_export_names(tree):
        raise _Rejected("re-exported")
    mention = re.compile(rf"(?<![\w$]){re.escape(name)}(?![\w$])")
    for other, text in unparsed.items():
        if mention.search(text):
            raise _Rejected(f"unparsed-mention:{other.as_posix()}")

    name_node = candidate.declarator.child_by_field_name("name")
    local_refs = [
        FactoryReference(candidate.binding, node, name, owner)
        for node, owner in _collect_references(
            tree, name, {name_node.start_byte}
        )
    ]

    remote_refs: list[tuple[Path, FactoryReference]] = []
    visited: set[tuple[Path, str]] = set()
    for importer in importers:
        binding = importer.binding
        where = importer.path.as_posix()
        if binding.kind.is_opaque:
            raise _Rejected(f"opaque-import:{binding.kind}:{where}")
        if binding.imported != name:
            continue
        if binding.kind is BindingKind.REEXPORT:
            raise _Rejected(f"re-exported:{where}")
        if importer.outside:
            raise _Rejected(f"outside-importer:{where}")
        local = binding.local or name
        if (importer.path, local) in visited:
            continue
        visited.add((importer.path, local))
        other_tree = modules[importer.path].tree
        for node, owner in _collect_references(
            other_tree, local, _import_sites(other_tree, local)
        ):
            remote_refs.append(
                (
                    importer.path,
                    FactoryReference(candidate.binding, node, local, owner),
                )
            )
    return local_refs, remote_refs


def analyze_factories(
    modules: Mapping[Path, ParsedModule],
    text_to_key: Mapping[str, str],
    *,
    resolver: ModuleResolver,
    translatable_props: Iterable[str] | None = None,
    outside: Mapping[Path, ModuleImports] | None = None,
    unparsed: Mapping[Path, str] | None = None,
    logger: Logger | None = None,
) -> FactoryPlan:
    """Decide which exported content constants can become factories.

    Args:
        modules: Parsed in-scope files keyed by absolute path.
        text_to_key: Source text to key map.
        resolver: Resolves import sources of both in-scope and out-of-scope
            files.
        translatable_props: Extra markup attributes treated as content.
        outside: Import facts of project files outside the include scope.
        unparsed: Text of project files that failed to parse.
        logger: Optional structured logger.
    """

    log = logger or get_logger(__name__, component="factory")
    importers = _index_importers(modules, outside or {}, resolver)

    definitions: dict[Path, list[FactoryDefinition]] = defaultdict(list)
    references: dict[Path, list[FactoryReference]] = defaultdict(list)
    rejected: dict[BindingId, str] = {}

    for path, module in modules.items():
        candidates, skipped = find_candidates(
            module.tree, text_to_key, translatable_props
        )
        for name, reason in skipped.items():
            rejected[(path, name)] = reason
        for candidate in candidates:
            try:
                local_refs, remote_refs = _analyze_candidate(
                    candidate,
                    modules,
                    importers.get(path, []),
                    unparsed or {},
                )
            except _Rejected as exc:
                rejected[candidate.binding] = exc.reason
                continue
            definitions[path].append(
                FactoryDefinition(
                    binding=candidate.binding,
                    declarator=candidate.declarator,
                    value=candidate.value,
                    occurrences=tuple(candidate.occurrences),
                )
            )
            references[path].extend(local_refs)
            for other, reference in remote_refs:
                references[other].append(reference)

    for (path, name), reason in sorted(
        rejected.items(), key=lambda item: (item[0][0].as_posix(), item[0][1])
    ):
        log.debug(
            "factory-rejected",
            path=path.as_posix(),
            binding=name,
            reason=reason,
        )

    files = {
        path: FileFactoryPlan(
            definitions=tuple(definitions.get(path, ())),
            references=tuple(references.get(path, ())),
        )
        for path in set(definitions) | set(references)
    }
    log.info(
        "factory-plan",
        safe=sum(len(plan.definitions) for plan in files.values()),
        rejected=len(rejected),
    )
    return FactoryPlan(files=files, rejected=rejected)
