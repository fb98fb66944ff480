"""Node-kind table and structural helpers over tree-sitter syntax trees."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import re
from typing import Any, Iterator

from .parser import SourceTree

__all__ = [
    "ComponentOwner",
    "NodeKind",
    "ancestors",
    "binding_names",
    "call_arguments",
    "callee_name",
    "component_owner",
    "contains_jsx",
    "decode_escapes",
    "directive_nodes",
    "has_use_client_directive",
    "import_bindings",
    "is_pascal_case",
    "module_bindings",
    "named_children",
    "nearest_function",
    "parent_tag",
    "pattern_identifiers",
    "string_value",
    "tag_name",
    "top_level_export_const",
    "unwrap_expression",
    "unwrap_parens",
    "walk",
]


class NodeKind(StrEnum):
    """Node types the analysis dispatches on."""

    PROGRAM = "program"
    JSX_ELEMENT = "jsx_element"
    JSX_SELF_CLOSING = "jsx_self_closing_element"
    JSX_FRAGMENT = "jsx_fragment"
    JSX_OPENING = "jsx_opening_element"
    JSX_CLOSING = "jsx_closing_element"
    JSX_ATTRIBUTE = "jsx_attribute"
    JSX_EXPRESSION = "jsx_expression"
    JSX_TEXT = "jsx_text"
    HTML_REFERENCE = "html_character_reference"
    STRING = "string"
    TEMPLATE = "template_string"
    TEMPLATE_SUBSTITUTION = "template_substitution"
    TERNARY = "ternary_expression"
    PARENTHESIZED = "parenthesized_expression"
    PAIR = "pair"
    OBJECT = "object"
    ARRAY = "array"
    CALL = "call_expression"
    IDENTIFIER = "identifier"
    MEMBER = "member_expression"
    SUBSCRIPT = "subscript_expression"
    COMMENT = "comment"

    @classmethod
    def of(cls, node: Any) -> "NodeKind | None":
        try:
            return cls(node.type)
        except ValueError:
            return None


FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
# Functions that can own a component body; class members are excluded.
PLAIN_FUNCTION_TYPES = FUNCTION_TYPES - {"method_definition"}
DECLARED_FUNCTION_TYPES = frozenset(
    {"function_declaration", "generator_function_declaration"}
)
CLASS_TYPES = frozenset(
    {"class_declaration", "abstract_class_declaration", "class"}
)
JSX_TYPES = frozenset(
    {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
)
_EXPRESSION_WRAPPERS = frozenset(
    {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
    }
)

_PASCAL_CASE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_ESCAPE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@dataclass(frozen=True, slots=True)
class ComponentOwner:
    """The function or class a node belongs to, with its resolved name."""

    name: str
    node: Any

    @property
    def is_class(self) -> bool:
        return self.node.type in CLASS_TYPES


# ----------------------------------------------------------------------
# Traversal
# ----------------------------------------------------------------------
def walk(node: Any) -> Iterator[Any]:
    """Yield ``node`` and its descendants in document order."""

    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def ancestors(node: Any) -> Iterator[Any]:
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def named_children(node: Any) -> list[Any]:
    """Return named children, skipping comments."""

    return [child for child in node.named_children if child.type != "comment"]


def unwrap_parens(node: Any) -> Any:
    while node is not None and node.type == "parenthesized_expression":
        inner = named_children(node)
        if not inner:
            break
        node = inner[0]
    return node


def unwrap_expression(node: Any) -> Any:
    """Strip parentheses and TypeScript assertion wrappers."""

    while node is not None and node.type in _EXPRESSION_WRAPPERS:
        inner = named_children(node)
        if not inner:
            break
        node = inner[0]
    return node


# ----------------------------------------------------------------------
# Literals
# ----------------------------------------------------------------------
def _decode_escape(match: re.Match[str]) -> str:
    body = match.group(1)
    if body.startswith("u{"):
        return chr(int(body[2:-1], 16))
    if body.startswith("u") and len(body) == 5:
        return chr(int(body[1:], 16))
    if body.startswith("x") and len(body) == 3:
        return chr(int(body[1:], 16))
    if body in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
        return ""
    return _SIMPLE_ESCAPES.get(body, body)


def decode_escapes(raw: str) -> str:
    r"""Return the cooked value of a JavaScript string body.

    Example:
        >>> decode_escapes(r"It\'s \u00e9")
        "It's é"
    """

    if "\\" not in raw:
        return raw
    return _ESCAPE.sub(_decode_escape, raw)


def string_value(tree: SourceTree, node: Any) -> str:
    """Return the value of a ``string`` node.

    JSX attribute strings do not process escapes, so their body is returned
    verbatim.
    """

    body = tree.slice(node.start_byte + 1, node.end_byte - 1)
    if node.parent is not None and node.parent.type == "jsx_attribute":
        return body
    return decode_escapes(body)


def is_string(node: Any) -> bool:
    return node is not None and node.type == "string"


# ----------------------------------------------------------------------
# Markup
# ----------------------------------------------------------------------
def tag_name(tree: SourceTree, element: Any) -> str | None:
    """Return the tag of a JSX element, or ``None`` for fragments."""

    if element.type == "jsx_element":
        opening = element.child_by_field_name("open_tag")
        if opening is None:
            return None
        name = opening.child_by_field_name("name")
    elif element.type in {"jsx_self_closing_element", "jsx_opening_element"}:
        name = element.child_by_field_name("name")
    else:
        return None
    if name is None:
        return None
    return tree.text(name)


def parent_tag(tree: SourceTree, node: Any) -> str | None:
    """Return the nearest enclosing named JSX tag of ``node``."""

    for ancestor in ancestors(node):
        if ancestor.type in {"jsx_element", "jsx_self_closing_element"}:
            name = tag_name(tree, ancestor)
            if name is not None:
                return name
    return None


def contains_jsx(node: Any) -> bool:
    return any(child.type in JSX_TYPES for child in walk(node))


# ----------------------------------------------------------------------
# Functions and components
# ----------------------------------------------------------------------
def is_pascal_case(name: str | None) -> bool:
    """Return ``True`` for component-style names.

    Example:
        >>> is_pascal_case("HeroBanner"), is_pascal_case("useHero")
        (True, False)
    """

    return bool(name) and _PASCAL_CASE.match(name) is not None


def nearest_function(node: Any, *, include_methods: bool = True) -> Any | None:
    kinds = FUNCTION_TYPES if include_methods else PLAIN_FUNCTION_TYPES
    for ancestor in ancestors(node):
        if ancestor.type in kinds:
            return ancestor
    return None


def _skip_parens_up(node: Any) -> Any:
    parent = node.parent
    while parent is not None and parent.type == "parenthesized_expression":
        node = parent
        parent = node.parent
    return parent


def _is_nested(node: Any) -> bool:
    return any(
        ancestor.type in FUNCTION_TYPES or ancestor.type in CLASS_TYPES
        for ancestor in ancestors(node)
    )


def _declarator_name(tree: SourceTree, node: Any) -> str | None:
    if node is None:
        return None
    if node.type == "variable_declarator":
        name = node.child_by_field_name("name")
        if name is not None and name.type == "identifier":
            return tree.text(name)
        return None
    if node.type == "export_statement":
        return "__default__"
    return None


def _expression_owner_name(tree: SourceTree, node: Any) -> str | None:
    if _is_nested(node):
        return None
    carrier = _skip_parens_up(node)
    if carrier is None:
        return None
    if carrier.type == "arguments":
        call = carrier.parent
        while call is not None and call.type == "call_expression":
            outer = _skip_parens_up(call)
            if (
                outer is not None
                and outer.type == "arguments"
                and outer.parent is not None
                and outer.parent.type == "call_expression"
            ):
                call = outer.parent
                continue
            return _declarator_name(tree, outer)
        return None
    return _declarator_name(tree, carrier)


def _owner_name(tree: SourceTree, node: Any) -> str | None:
    kind = node.type
    if kind in DECLARED_FUNCTION_TYPES or kind in {
        "class_declaration",
        "abstract_class_declaration",
    }:
        name = node.child_by_field_name("name")
        if name is not None:
            return tree.text(name)
        if node.parent is not None and node.parent.type == "export_statement":
            return "__default__"
        return None
    if kind in PLAIN_FUNCTION_TYPES:
        return _expression_owner_name(tree, node)
    if kind == "class":
        if _is_nested(node):
            return None
        return _declarator_name(tree, _skip_parens_up(node))
    return None


def component_owner(tree: SourceTree, node: Any) -> ComponentOwner | None:
    """Return the named component function or class enclosing ``node``.

    Function declarations use their own name; function and arrow expressions
    are named by the variable they initialize, including through wrapper
    calls such as ``memo(forwardRef(...))``. Anonymous default exports are
    named ``__default__``. Nested function expressions defer to their
    enclosing component.
    """

    current = node
    while current is not None:
        name = _owner_name(tree, current)
        if name:
            return ComponentOwner(name=name, node=current)
        current = current.parent
    return None


def function_body(node: Any) -> Any | None:
    return node.child_by_field_name("body")


# ----------------------------------------------------------------------
# Calls
# ----------------------------------------------------------------------
def callee_name(tree: SourceTree, call: Any) -> str | None:
    """Return the identifier name of a call's callee, if it is one."""

    function = call.child_by_field_name("function")
    if function is None or function.type != "identifier":
        return None
    return tree.text(function)


def call_arguments(call: Any) -> list[Any]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return []
    return named_children(arguments)


# ----------------------------------------------------------------------
# Module structure
# ----------------------------------------------------------------------
def directive_nodes(tree: SourceTree) -> list[Any]:
    """Return the string expression statements of the module prologue."""

    directives: list[Any] = []
    for child in tree.root.named_children:
        if child.type in {"comment", "hash_bang_line"}:
            continue
        if child.type != "expression_statement":
            break
        inner = named_children(child)
        if len(inner) != 1 or inner[0].type != "string":
            break
        directives.append(child)
    return directives


def has_use_client_directive(tree: SourceTree) -> bool:
    for statement in directive_nodes(tree):
        literal = named_children(statement)[0]
        if string_value(tree, literal) == "use client":
            return True
    return False


def top_level_export_const(tree: SourceTree, node: Any) -> tuple[str, Any] | None:
    """Return ``(name, declarator)`` when ``node`` sits in ``export const``.

    Only declarators of a top-level ``export const`` statement qualify;
    anything nested in a function or class does not.
    """

    for ancestor in ancestors(node):
        if ancestor.type in FUNCTION_TYPES or ancestor.type in CLASS_TYPES:
            return None
        if ancestor.type != "variable_declarator":
            continue
        declaration = ancestor.parent
        if declaration is None or declaration.type != "lexical_declaration":
            return None
        if not any(child.type == "const" for child in declaration.children):
            return None
        statement = declaration.parent
        if statement is None or statement.type != "export_statement":
            return None
        if statement.parent is None or statement.parent.type != "program":
            return None
        name = ancestor.child_by_field_name("name")
        if name is None or name.type != "identifier":
            return None
        return tree.text(name), ancestor
    return None


# ----------------------------------------------------------------------
# Bindings
# ----------------------------------------------------------------------
def pattern_identifiers(node: Any) -> Iterator[Any]:
    """Yield the identifier nodes bound by a declaration pattern."""

    if node is None:
        return
    kind = node.type
    if kind in {"identifier", "shorthand_property_identifier_pattern"}:
        yield node
    elif kind in {"object_pattern", "array_pattern", "formal_parameters"}:
        for child in named_children(node):
            yield from pattern_identifiers(child)
    elif kind == "pair_pattern":
        yield from pattern_identifiers(node.child_by_field_name("value"))
    elif kind in {"assignment_pattern", "object_assignment_pattern"}:
        yield from pattern_identifiers(node.child_by_field_name("left"))
    elif kind == "rest_pattern":
        for child in named_children(node):
            yield from pattern_identifiers(child)
    elif kind in {"required_parameter", "optional_parameter"}:
        yield from pattern_identifiers(node.child_by_field_name("pattern"))


def import_bindings(statement: Any) -> Iterator[Any]:
    """Yield the local identifier nodes introduced by an import statement."""

    for clause in statement.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                yield part
            elif part.type == "namespace_import":
                yield from (
                    child
                    for child in part.named_children
                    if child.type == "identifier"
                )
            elif part.type == "named_imports":
                for specifier in part.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    local = specifier.child_by_field_name(
                        "alias"
                    ) or specifier.child_by_field_name("name")
                    if local is not None:
                        yield local


def _declared_in(node: Any) -> Iterator[Any]:
    kind = node.type
    if kind == "variable_declarator":
        yield from pattern_identifiers(node.child_by_field_name("name"))
    elif kind in DECLARED_FUNCTION_TYPES or kind in CLASS_TYPES or kind in {
        "function_expression",
        "function",
        "generator_function",
    }:
        name = node.child_by_field_name("name")
        if name is not None and name.type in {"identifier", "type_identifier"}:
            yield name
    if kind in FUNCTION_TYPES:
        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            yield from pattern_identifiers(parameters)
        parameter = node.child_by_field_name("parameter")
        if parameter is not None:
            yield from pattern_identifiers(parameter)
    elif kind == "catch_clause":
        yield from pattern_identifiers(node.child_by_field_name("parameter"))
    elif kind == "import_statement":
        yield from import_bindings(node)


def binding_names(tree: SourceTree, scope: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(name, identifier)`` for every declaration inside ``scope``."""

    for node in walk(scope):
        for identifier in _declared_in(node):
            yield tree.text(identifier), identifier


def module_bindings(tree: SourceTree) -> dict[str, Any]:
    """Return the names declared at module scope mapped to their identifier."""

    bindings: dict[str, Any] = {}
    for statement in tree.root.named_children:
        target = statement
        if statement.type == "export_statement":
            target = statement.child_by_field_name("declaration")
            if target is None:
                continue
        nodes: list[Any] = []
        if target.type in {"lexical_declaration", "variable_declaration"}:
            nodes = [
                child
                for child in target.named_children
                if child.type == "variable_declarator"
            ]
        else:
            nodes = [target]
        for node in nodes:
            if node.type in DECLARED_FUNCTION_TYPES or node.type in CLASS_TYPES:
                name = node.child_by_field_name("name")
                identifiers = [name] if name is not None else []
            elif node.type in {"variable_declarator", "import_statement"}:
                identifiers = list(_declared_in(node))
            else:
                continue
            for identifier in identifiers:
                bindings.setdefault(tree.text(identifier), identifier)
    return bindings
