"""Tests for :mod:`translate_kit.parsing.nodes`."""

from __future__ import annotations

from translate_kit.parsing.nodes import (
    binding_names,
    component_owner,
    decode_escapes,
    has_use_client_directive,
    module_bindings,
    top_level_export_const,
    walk,
)


def _first(tree, kind: str, text: str | None = None):
    for node in walk(tree.root):
        if node.type == kind and (text is None or tree.text(node) == text):
            return node
    raise AssertionError(f"no {kind} node {text!r}")


def test_decode_escapes() -> None:
    assert decode_escapes(r"Tab\there") == "Tab\there"
    assert decode_escapes(r"\u{1F600}") == "\U0001F600"
    assert decode_escapes(r"\x41\q") == "Aq"


def test_component_owner_resolves_wrapped_and_nested_functions(parse) -> None:
    tree = parse(
        """
        const Card = memo(forwardRef((props, ref) => {
          const items = props.items.map((item) => <li>{item}</li>);
          return <ul ref={ref}>{items}</ul>;
        }));

        export default function () {
          return <p>anonymous</p>;
        }
        """
    )

    li = _first(tree, "jsx_element", "<li>{item}</li>")
    paragraph = _first(tree, "jsx_element", "<p>anonymous</p>")

    assert component_owner(tree, li).name == "Card"
    assert component_owner(tree, paragraph).name == "__default__"


def test_top_level_export_const_requires_exported_const(parse) -> None:
    tree = parse(
        """
        export const FEATURES = [{ title: "Fast" }];
        const PRIVATE = { title: "Hidden" };
        export let MUTABLE = { title: "Loose" };
        """,
        "features.ts",
    )

    fast = _first(tree, "string", '"Fast"')
    hidden = _first(tree, "string", '"Hidden"')
    loose = _first(tree, "string", '"Loose"')

    assert top_level_export_const(tree, fast)[0] == "FEATURES"
    assert top_level_export_const(tree, hidden) is None
    assert top_level_export_const(tree, loose) is None


def test_bindings_and_directives(parse) -> None:
    tree = parse(
        """
        "use client";
        import { format as fmt } from "./format";
        const { a, b: [c] } = load();
        function helper(t, ...rest) {
          try {} catch (err) {}
        }
        """,
        "mod.js",
    )

    helper = _first(tree, "function_declaration")

    assert has_use_client_directive(tree) is True
    assert set(module_bindings(tree)) == {"fmt", "a", "c", "helper"}
    assert {name for name, _ in binding_names(tree, helper)} == {
        "helper",
        "t",
        "rest",
        "err",
    }
