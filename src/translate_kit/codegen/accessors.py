"""Translation accessor runtimes and accessor declarations inside functions.

Every rewritten function reads translations through a local ``t`` bound by a
declaration at the top of its body:

=========  ======  =============================================
mode       side    declaration
=========  ======  =============================================
keys       client  ``const t = useTranslations(ns?)``
keys       server  ``const t = await getTranslations(ns?)``
inline     client  ``const t = useT()``
inline     server  ``const t = createT()``
=========  ======  =============================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Mapping

from translate_kit.core.config import CodegenMode
from translate_kit.parsing.nodes import (
    CLASS_TYPES,
    binding_names,
    function_body,
    module_bindings,
    named_children,
    string_value,
    unwrap_parens,
    walk,
)
from translate_kit.parsing.parser import SourceTree

from .models import TransformOptions

__all__ = [
    "ACCESSOR_FACTORIES",
    "ACCESSOR_NAME",
    "AccessorDeclaration",
    "AccessorUsage",
    "Runtime",
    "Side",
    "WRAPPER_COMPONENT",
    "accessor_usage",
    "binds_foreign_accessor",
    "can_receive_accessor",
    "declared_namespace",
    "factory_locals",
    "find_accessor",
    "is_async",
    "runtime_for",
]

ACCESSOR_NAME = "t"
WRAPPER_COMPONENT = "T"
ACCESSOR_FACTORIES = frozenset(
    {"useTranslations", "getTranslations", "useT", "createT"}
)


class Side(StrEnum):
    """Execution environment a file is rewritten for."""

    CLIENT = "client"
    SERVER = "server"


@dataclass(frozen=True, slots=True)
class Runtime:
    """Where an accessor factory is imported from and how it is invoked."""

    source: str
    factory: str
    awaited: bool = False
    scoped: bool = True


def runtime_for(options: TransformOptions, side: Side) -> Runtime:
    """Return the accessor runtime for ``options`` on ``side``.

    Example:
        >>> runtime_for(TransformOptions(), Side.SERVER)
        Runtime(source='next-intl/server', factory='getTranslations', awaited=True, scoped=True)
    """

    if options.mode is CodegenMode.INLINE:
        if side is Side.CLIENT:
            return Runtime(options.inline_client_path, "useT", scoped=False)
        return Runtime(options.inline_server_path, "createT", scoped=False)
    if side is Side.CLIENT:
        return Runtime(options.i18n_import, "useTranslations")
    return Runtime(options.server_import, "getTranslations", awaited=True)


@dataclass(frozen=True, slots=True)
class AccessorDeclaration:
    """An existing ``const t = <factory>(...)`` statement in a function body."""

    statement: Any
    name: Any
    value: Any
    call: Any
    factory: str
    arguments: tuple[Any, ...]

    @property
    def awaited(self) -> bool:
        return self.value.type == "await_expression"


def _factory_call(
    tree: SourceTree,
    value: Any,
    factories: Mapping[str, str],
) -> tuple[Any, str] | None:
    node = unwrap_parens(value)
    if node is not None and node.type == "await_expression":
        inner = named_children(node)
        node = unwrap_parens(inner[0]) if inner else None
    if node is None or node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    if function is None or function.type != "identifier":
        return None
    factory = factories.get(tree.text(function))
    if factory is None:
        return None
    return node, factory


def find_accessor(
    tree: SourceTree,
    function: Any,
    factories: Mapping[str, str],
) -> AccessorDeclaration | None:
    """Find the accessor declaration among a function's top-level statements.

    ``factories`` maps local names to canonical factory names (see
    :data:`ACCESSOR_FACTORIES`), so aliased imports are recognized.
    """

    body = function_body(function)
    if body is None or body.type != "statement_block":
        return None
    for statement in named_children(body):
        if statement.type not in {"lexical_declaration", "variable_declaration"}:
            continue
        for declarator in named_children(statement):
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if (
                name is None
                or value is None
                or name.type != "identifier"
                or tree.text(name) != ACCESSOR_NAME
            ):
                continue
            found = _factory_call(tree, value, factories)
            if found is None:
                return None
            call, factory = found
            arguments = call.child_by_field_name("arguments")
            return AccessorDeclaration(
                statement=statement,
                name=name,
                value=value,
                call=call,
                factory=factory,
                arguments=tuple(named_children(arguments)) if arguments else (),
            )
    return None


def binds_foreign_accessor(
    tree: SourceTree,
    function: Any,
    declaration: AccessorDeclaration | None = None,
) -> bool:
    """Return ``True`` when ``t`` is bound to something other than an accessor.

    Bindings at module scope count, as do parameters and any declaration
    nested in ``function``.
    """

    if ACCESSOR_NAME in module_bindings(tree):
        return True
    own = declaration.name.start_byte if declaration is not None else None
    return any(
        name == ACCESSOR_NAME and identifier.start_byte != own
        for name, identifier in binding_names(tree, function)
    )


def can_receive_accessor(function: Any) -> bool:
    """Whether an accessor declaration can be placed at the top of ``function``.

    Classes and generators cannot; arrow functions with an expression body
    can, by turning the body into a block.
    """

    if function is None or function.type in CLASS_TYPES:
        return False
    if "generator" in function.type or any(
        child.type == "*" for child in function.children
    ):
        return False
    body = function_body(function)
    if body is None:
        return False
    return body.type == "statement_block" or function.type == "arrow_function"


def is_async(function: Any) -> bool:
    return any(child.type == "async" for child in function.children)


def factory_locals(tree: SourceTree) -> dict[str, str]:
    """Map local names of imported accessor factories to their canonical name."""

    locals_: dict[str, str] = {}
    for statement in tree.root.named_children:
        if statement.type != "import_statement":
            continue
        for clause in statement.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type != "named_imports":
                    continue
                for specifier in part.named_children:
                    name = specifier.child_by_field_name("name")
                    if name is None or tree.text(name) not in ACCESSOR_FACTORIES:
                        continue
                    alias = specifier.child_by_field_name("alias")
                    local = tree.text(alias) if alias is not None else tree.text(name)
                    locals_[local] = tree.text(name)
    return locals_


@dataclass(frozen=True, slots=True)
class AccessorUsage:
    """How a function uses its accessor.

    ``calls`` pairs each lookup call (``t("key")``, ``t.rich("key")``) with
    its literal key node. ``dynamic`` is set when some lookup takes a
    computed key, ``passes_value`` when ``t`` escapes as a plain value.
    """

    calls: tuple[tuple[Any, Any], ...] = ()
    dynamic: bool = False
    passes_value: bool = False


def _lookup_call(node: Any) -> Any | None:
    """Return the call when ``node`` is the callee of ``t(...)``/``t.x(...)``."""

    parent = node.parent
    if parent is None:
        return None
    if parent.type == "call_expression":
        function = parent.child_by_field_name("function")
        if function is not None and function.start_byte == node.start_byte:
            return parent
        return None
    if parent.type == "member_expression":
        target = parent.child_by_field_name("object")
        call = parent.parent
        if (
            target is not None
            and target.start_byte == node.start_byte
            and call is not None
            and call.type == "call_expression"
        ):
            function = call.child_by_field_name("function")
            if function is not None and function.start_byte == parent.start_byte:
                return call
    return None


def accessor_usage(
    tree: SourceTree,
    function: Any,
    declaration: AccessorDeclaration | None = None,
) -> AccessorUsage:
    own = declaration.name.start_byte if declaration is not None else None
    calls: list[tuple[Any, Any]] = []
    dynamic = False
    passes_value = False
    for node in walk(function):
        if node.type != "identifier" or node.start_byte == own:
            continue
        if tree.text(node) != ACCESSOR_NAME:
            continue
        call = _lookup_call(node)
        if call is None:
            passes_value = True
            continue
        arguments = call.child_by_field_name("arguments")
        first = named_children(arguments)[:1] if arguments is not None else []
        if first and first[0].type == "string":
            calls.append((call, first[0]))
        else:
            dynamic = True
    return AccessorUsage(
        calls=tuple(calls), dynamic=dynamic, passes_value=passes_value
    )


def declared_namespace(
    tree: SourceTree,
    declaration: AccessorDeclaration | None,
) -> tuple[bool, str | None]:
    """Return ``(known, namespace)`` for an accessor declaration.

    ``known`` is ``False`` when the first argument is not a string literal,
    for example ``getTranslations({ locale, namespace })``.
    """

    if declaration is None or not declaration.arguments:
        return True, None
    first = declaration.arguments[0]
    if first.type != "string":
        return False, None
    return True, string_value(tree, first)
