"""The rewrite pass: route matched strings through the translation runtime.

The pass never re-prints the tree. Every change is a byte-range edit over the
original source, so formatting the rewrite does not touch is preserved.
Running the pass on its own output changes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping

from translate_kit.core.config import CodegenMode
from translate_kit.core.logging import Logger, get_logger
from translate_kit.graph.client import is_client_root
from translate_kit.keys.namespace import detect_namespace, strip_namespace
from translate_kit.parsing.edits import TextEdit, apply_edits, insert, replace
from translate_kit.parsing.nodes import (
    FUNCTION_TYPES,
    PLAIN_FUNCTION_TYPES,
    ComponentOwner,
    binding_names,
    component_owner,
    function_body,
    module_bindings,
    named_children,
    string_value,
    walk,
)
from translate_kit.parsing.parser import SourceTree
from translate_kit.scanner.extractor import Occurrence, iter_occurrences
from translate_kit.scanner.models import StringKind

from .accessors import (
    ACCESSOR_NAME,
    WRAPPER_COMPONENT,
    AccessorDeclaration,
    AccessorUsage,
    Side,
    accessor_usage,
    binds_foreign_accessor,
    can_receive_accessor,
    declared_namespace,
    factory_locals,
    find_accessor,
    is_async,
    runtime_for,
)
from .factory import FactoryDefinition, FactoryReference, FileFactoryPlan
from .import_edits import ImportEditor, quote
from .models import TransformOptions, TransformResult

__all__ = ["transform"]

_TS_FACTORY_PARAMETER = f"({ACCESSOR_NAME}: (...args: any[]) => string)"


@dataclass(frozen=True, slots=True)
class _Wrap:
    occurrence: Occurrence
    key: str


@dataclass(slots=True)
class _FunctionWork:
    owner: ComponentOwner
    wraps: list[_Wrap] = field(default_factory=list)
    references: list[FactoryReference] = field(default_factory=list)

    @property
    def node(self) -> Any:
        return self.owner.node

    @property
    def needs_accessor(self) -> bool:
        return bool(self.wraps or self.references)


def _qualify(key: str, namespace: str | None) -> str:
    return f"{namespace}.{key}" if namespace else key


def _dedupe(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    seen: set[tuple[int, int]] = set()
    unique: list[Occurrence] = []
    for occurrence in occurrences:
        span = (occurrence.start, occurrence.end)
        if span in seen:
            continue
        seen.add(span)
        unique.append(occurrence)
    return unique


def _line_indent(tree: SourceTree, offset: int) -> str:
    line, _ = tree.position(offset)
    start = tree.line_starts[line - 1]
    end = start
    while end < len(tree.source) and tree.source[end : end + 1] in (b" ", b"\t"):
        end += 1
    return tree.slice(start, end)


def _has_other_await(function: Any, exclude: Any) -> bool:
    """Whether ``function`` awaits anything besides ``exclude``.

    Nested functions are not searched.
    """

    body = function_body(function)
    if body is None:
        return False
    stack = [body]
    while stack:
        node = stack.pop()
        if node.type in FUNCTION_TYPES:
            continue
        if node.type == "await_expression" and node.start_byte != exclude.start_byte:
            return True
        if node.type == "for_in_statement" and any(
            child.type == "await" for child in node.children
        ):
            return True
        stack.extend(node.children)
    return False


class _Rewriter:
    def __init__(
        self,
        tree: SourceTree,
        text_to_key: Mapping[str, str],
        options: TransformOptions,
        factory: FileFactoryPlan,
        logger: Logger,
    ) -> None:
        self.tree = tree
        self.text_to_key = text_to_key
        self.options = options
        self.inline = options.mode is CodegenMode.INLINE
        self.side = (
            Side.CLIENT
            if options.force_client or is_client_root(tree)
            else Side.SERVER
        )
        self.runtime = runtime_for(options, self.side)
        self.factory = factory
        self.imports = ImportEditor(tree)
        self.factories = factory_locals(tree)
        self.log = logger
        self.edits: list[TextEdit] = []
        self.wrapped = 0
        self.keys: dict[str, None] = {}
        self.swapped: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self) -> TransformResult:
        occurrences = _dedupe(
            iter_occurrences(self.tree, self.options.translatable_props)
        )
        self._record_existing_keys(occurrences)
        if self.inline:
            self._repair_inline_imports()
        for work in self._plan(occurrences):
            self._rewrite_function(work)
        for definition in self.factory.definitions:
            self._rewrite_definition(definition)
        self._drop_unused_factories()
        self.edits.extend(self.imports.edits())

        original = self.tree.source.decode("utf-8")
        keys = tuple(self.keys)
        namespaces: tuple[str, ...] = ()
        if self.side is Side.CLIENT:
            namespaces = tuple(
                sorted({key.partition(".")[0] for key in keys if "." in key})
            )
        if not self.edits:
            return TransformResult(
                code=original,
                used_keys=keys,
                client_namespaces=namespaces,
            )
        code = apply_edits(self.tree.source, self.edits).decode("utf-8")
        return TransformResult(
            code=code,
            modified=code != original,
            strings_wrapped=self.wrapped,
            used_keys=keys,
            client_namespaces=namespaces,
        )

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _record_existing_keys(self, occurrences: Iterable[Occurrence]) -> None:
        namespaces: dict[int, str | None] = {}
        for occurrence in occurrences:
            if occurrence.kind is StringKind.T_COMPONENT:
                if occurrence.id:
                    self.keys[occurrence.id] = None
                continue
            if occurrence.kind is not StringKind.T_CALL:
                continue
            if occurrence.id:
                self.keys[occurrence.id] = None
                continue
            if self.inline:
                continue
            namespace: str | None = None
            owner = occurrence.owner
            if owner is not None:
                marker = owner.node.start_byte
                if marker not in namespaces:
                    declaration = find_accessor(
                        self.tree, owner.node, self.factories
                    )
                    namespaces[marker] = declared_namespace(
                        self.tree, declaration
                    )[1]
                namespace = namespaces[marker]
            self.keys[_qualify(occurrence.text, namespace)] = None

    def _declaring_functions(self) -> Iterator[Any]:
        tree = self.tree
        for node in walk(tree.root):
            if node.type != "variable_declarator":
                continue
            name = node.child_by_field_name("name")
            if (
                name is None
                or name.type != "identifier"
                or tree.text(name) != ACCESSOR_NAME
            ):
                continue
            statement = node.parent
            block = statement.parent if statement is not None else None
            if block is None or block.type != "statement_block":
                continue
            function = block.parent
            if (
                function is not None
                and function.type in PLAIN_FUNCTION_TYPES
                and find_accessor(tree, function, self.factories) is not None
            ):
                yield function

    def _plan(self, occurrences: Iterable[Occurrence]) -> list[_FunctionWork]:
        work: dict[tuple[int, int], _FunctionWork] = {}

        def entry(owner: ComponentOwner) -> _FunctionWork:
            span = (owner.node.start_byte, owner.node.end_byte)
            if span not in work:
                work[span] = _FunctionWork(owner)
            return work[span]

        for occurrence in occurrences:
            kind = occurrence.kind
            if kind.is_wrapped or kind is StringKind.MODULE_OBJECT_PROPERTY:
                continue
            key = self.text_to_key.get(occurrence.text)
            if key is None:
                continue
            if self.inline and kind is StringKind.JSX_TEXT:
                self._wrap_markup_inline(occurrence, key)
                continue
            owner = occurrence.owner
            if owner is None or not can_receive_accessor(owner.node):
                self.log.debug(
                    "transform-no-accessor-slot",
                    text=occurrence.text,
                    component=owner.name if owner else None,
                )
                continue
            entry(owner).wraps.append(_Wrap(occurrence, key))

        for reference in self.factory.references:
            entry(reference.owner).references.append(reference)
        for function in self._declaring_functions():
            owner = component_owner(self.tree, function)
            if owner is None or owner.node.start_byte != function.start_byte:
                owner = ComponentOwner(name="<anonymous>", node=function)
            entry(owner)
        return sorted(work.values(), key=lambda item: item.node.start_byte)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------
    def _rewrite_function(self, work: _FunctionWork) -> None:
        tree = self.tree
        function = work.node
        declaration = find_accessor(tree, function, self.factories)
        if binds_foreign_accessor(tree, function, declaration):
            if work.needs_accessor:
                self.log.debug(
                    "transform-accessor-taken", component=work.owner.name
                )
            return
        # Inline accessors take message sources, not namespaces.
        known, existing = (
            declared_namespace(tree, declaration)
            if self.runtime.scoped
            else (True, None)
        )
        if not known:
            self.log.debug(
                "transform-namespace-unknown", component=work.owner.name
            )
            return
        usage = (
            accessor_usage(tree, function, declaration)
            if declaration is not None
            else AccessorUsage()
        )

        target = existing
        wraps = work.wraps
        if not self.inline and work.needs_accessor:
            target = self._choose_namespace(work, usage, existing)
            if target is not None:
                prefix = target + "."
                skipped = [wrap for wrap in wraps if not wrap.key.startswith(prefix)]
                for wrap in skipped:
                    self.log.debug(
                        "transform-namespace-pinned",
                        component=work.owner.name,
                        key=wrap.key,
                        namespace=target,
                    )
                wraps = [wrap for wrap in wraps if wrap.key.startswith(prefix)]
            if target != existing:
                for _, argument in usage.calls:
                    full = _qualify(string_value(tree, argument), existing)
                    self.edits.append(
                        replace(argument, quote(strip_namespace(full, target)))
                    )

        if not wraps and not work.references and declaration is None:
            return
        self._ensure_declaration(function, declaration, target, existing)

        for wrap in wraps:
            occurrence = wrap.occurrence
            key = wrap.key if self.inline else strip_namespace(wrap.key, target)
            self.edits.append(
                TextEdit(occurrence.start, occurrence.end, self._render(occurrence, key))
            )
            self.wrapped += 1
            self.keys[wrap.key] = None
        for reference in work.references:
            self.edits.append(
                replace(reference.node, f"{reference.local}({ACCESSOR_NAME})")
            )

    def _choose_namespace(
        self,
        work: _FunctionWork,
        usage: AccessorUsage,
        existing: str | None,
    ) -> str | None:
        if work.references:
            return None
        if usage.dynamic or usage.passes_value:
            return existing
        existing_keys = [
            _qualify(string_value(self.tree, argument), existing)
            for _, argument in usage.calls
        ]
        return detect_namespace(
            [wrap.key for wrap in work.wraps] + existing_keys
        )

    def _accessor_value(self, local: str, arguments: str) -> str:
        prefix = "await " if self.runtime.awaited else ""
        return f"{prefix}{local}({arguments})"

    def _ensure_declaration(
        self,
        function: Any,
        declaration: AccessorDeclaration | None,
        target: str | None,
        existing: str | None,
    ) -> None:
        runtime = self.runtime
        namespace_argument = quote(target) if runtime.scoped and target else ""

        if declaration is None:
            local = self.imports.require(runtime.source, runtime.factory)
            self._inject_declaration(
                function, self._accessor_value(local, namespace_argument)
            )
            self._ensure_async(function)
            return

        same_factory = declaration.factory == runtime.factory
        same_namespace = not runtime.scoped or target == existing
        same_await = declaration.awaited == runtime.awaited
        stale = self._has_stale_argument(function, declaration)
        if same_factory and same_namespace and same_await and not stale:
            self._ensure_async(function)
            return

        if runtime.scoped:
            arguments = namespace_argument
        elif same_factory and not stale:
            arguments = ", ".join(
                self.tree.text(argument) for argument in declaration.arguments
            )
        else:
            arguments = ""
        local = self.imports.require(runtime.source, runtime.factory)
        self.edits.append(
            replace(declaration.value, self._accessor_value(local, arguments))
        )
        if not same_factory:
            callee = declaration.call.child_by_field_name("function")
            old_local = self.tree.text(callee)
            self.swapped[old_local] = self.swapped.get(old_local, 0) + 1
        if runtime.awaited:
            self._ensure_async(function)
        elif (
            declaration.awaited
            and is_async(function)
            and not _has_other_await(function, declaration.value)
        ):
            self._drop_async(function)

    def _has_stale_argument(
        self,
        function: Any,
        declaration: AccessorDeclaration,
    ) -> bool:
        """An inline server accessor argument naming an unbound identifier."""

        if not self.inline or self.side is not Side.SERVER:
            return False
        if declaration.factory != self.runtime.factory:
            return False
        bound = set(module_bindings(self.tree))
        bound.update(name for name, _ in binding_names(self.tree, function))
        return any(
            argument.type == "identifier"
            and self.tree.text(argument) not in bound
            for argument in declaration.arguments
        )

    def _ensure_async(self, function: Any) -> None:
        if self.runtime.awaited and not is_async(function):
            self.edits.append(insert(function.start_byte, "async "))

    def _drop_async(self, function: Any) -> None:
        for child in function.children:
            if child.type != "async":
                continue
            following = child.next_sibling
            end = following.start_byte if following is not None else child.end_byte
            self.edits.append(TextEdit(child.start_byte, end, ""))
            return

    def _inject_declaration(self, function: Any, value: str) -> None:
        tree = self.tree
        body = function_body(function)
        statement = f"const {ACCESSOR_NAME} = {value};"
        if body.type == "statement_block":
            statements = named_children(body)
            open_line, _ = tree.position(body.start_byte)
            if statements and tree.position(statements[0].start_byte)[0] == open_line:
                prefix = " "
            elif statements:
                prefix = "\n" + _line_indent(tree, statements[0].start_byte)
            else:
                prefix = "\n" + _line_indent(tree, body.start_byte) + "  "
            self.edits.append(insert(body.start_byte + 1, prefix + statement))
            return
        indent = _line_indent(tree, function.start_byte)
        self.edits.append(
            insert(body.start_byte, f"{{\n{indent}  {statement}\n{indent}  return ")
        )
        self.edits.append(insert(body.end_byte, f";\n{indent}}}"))

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------
    def _render(self, occurrence: Occurrence, key: str) -> str:
        if self.inline:
            arguments = [quote(occurrence.text), quote(key)]
        else:
            arguments = [quote(key)]
        if occurrence.template is not None:
            values = occurrence.template.values_object()
            if values is not None:
                arguments.append(values)
        call = f"{ACCESSOR_NAME}({', '.join(arguments)})"
        if occurrence.kind is StringKind.JSX_TEXT or occurrence.bare_attribute:
            return "{" + call + "}"
        return call

    def _wrap_markup_inline(self, occurrence: Occurrence, key: str) -> None:
        local = self.imports.require(self.runtime.source, WRAPPER_COMPONENT)
        raw = self.tree.slice(occurrence.start, occurrence.end)
        self.edits.append(
            TextEdit(
                occurrence.start,
                occurrence.end,
                f"<{local} id={quote(key)}>{raw}</{local}>",
            )
        )
        self.wrapped += 1
        self.keys[key] = None

    def _rewrite_definition(self, definition: FactoryDefinition) -> None:
        value = definition.value
        parameter = (
            _TS_FACTORY_PARAMETER
            if self.tree.is_typescript
            else f"({ACCESSOR_NAME})"
        )
        self.edits.append(insert(value.start_byte, f"{parameter} => ("))
        for occurrence in definition.occurrences:
            key = self.text_to_key[occurrence.text]
            self.edits.append(
                TextEdit(occurrence.start, occurrence.end, self._render(occurrence, key))
            )
            self.wrapped += 1
            self.keys[key] = None
        self.edits.append(insert(value.end_byte, ")"))

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------
    def _repair_inline_imports(self) -> None:
        client = self.options.inline_client_path
        server = self.options.inline_server_path
        if self.side is Side.CLIENT:
            wrong, right, old, new = server, client, "createT", "useT"
        else:
            wrong, right, old, new = client, server, "useT", "createT"
        if not self.imports.imports_from(wrong):
            return
        self.imports.rename_specifier(wrong, old, new)
        self.imports.rename_source(wrong, right)
        self.log.debug("transform-inline-runtime-moved", source=wrong, target=right)

    def _factory_source(self, factory: str) -> str | None:
        options = self.options
        if factory == "useTranslations":
            return options.i18n_import
        if factory == "getTranslations":
            return options.server_import
        if not self.inline:
            return None
        if factory == "useT":
            return options.inline_client_path
        if factory == "createT":
            return options.inline_server_path
        return None

    def _drop_unused_factories(self) -> None:
        for local, replaced in self.swapped.items():
            factory = self.factories.get(local)
            source = self._factory_source(factory) if factory else None
            if source is None:
                continue
            remaining = sum(
                1
                for node in walk(self.tree.root)
                if node.type == "identifier"
                and self.tree.text(node) == local
                and (node.parent is None or node.parent.type != "import_specifier")
            )
            if remaining - replaced <= 0:
                self.imports.remove(source, factory)


def transform(
    tree: SourceTree,
    text_to_key: Mapping[str, str],
    options: TransformOptions | None = None,
    *,
    factory: FileFactoryPlan | None = None,
    logger: Logger | None = None,
) -> TransformResult:
    """Rewrite one parsed file so mapped strings go through the runtime.

    Args:
        tree: Parsed source file.
        text_to_key: Source text to dotted key map.
        options: Mode, runtime modules and client promotion flag.
        factory: Module-factory conversions assigned to this file.
        logger: Optional structured logger.

    Returns:
        The rewritten code with wrap statistics. ``modified`` is ``False``
        and ``code`` is the original text when nothing applies.

    Example:
        >>> from translate_kit.parsing import parse_source
        >>> tree = parse_source(
        ...     "function Hero(){ return <h1>Welcome</h1>; }", "Hero.tsx"
        ... )
        >>> result = transform(tree, {"Welcome": "hero.welcome"})
        >>> 'getTranslations("hero")' in result.code, result.strings_wrapped
        (True, 1)
    """

    rewriter = _Rewriter(
        tree,
        text_to_key,
        options or TransformOptions(),
        factory or FileFactoryPlan(),
        logger or get_logger(__name__, component="transform"),
    )
    return rewriter.run()
