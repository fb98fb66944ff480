"""Tests for :mod:`translate_kit.parsing.parser` and edits."""

from __future__ import annotations

import pytest

from translate_kit.parsing.edits import TextEdit, apply_edits, insert
from translate_kit.parsing.parser import grammar_for_path


@pytest.mark.parametrize(
    ("path", "grammar"),
    [
        ("app/page.tsx", "tsx"),
        ("lib/util.ts", "typescript"),
        ("lib/util.mts", "typescript"),
        ("components/Button.jsx", "javascript"),
        ("next.config.mjs", "javascript"),
        ("README", "tsx"),
    ],
)
def test_grammar_for_path(path: str, grammar: str) -> None:
    assert grammar_for_path(path) == grammar


def test_parse_source_reports_position_of_errors(parse) -> None:
    from translate_kit.parsing.errors import ParseFailure

    with pytest.raises(ParseFailure) as excinfo:
        parse(
            """
            export function Broken() {
              return <div>;
            }
            """,
            "Broken.tsx",
        )

    assert excinfo.value.path.name == "Broken.tsx"
    assert excinfo.value.line is not None
    assert "Broken.tsx" in str(excinfo.value)


def test_source_tree_positions_count_characters(parse) -> None:
    tree = parse('const a = "é";\nconst b = "x";\n', "a.ts")
    source = tree.source

    assert tree.is_typescript is True
    assert tree.position(source.index(b"b =")) == (2, 6)
    assert tree.position(source.index(b";")) == (1, 13)


def test_apply_edits_orders_insertions_before_replacements() -> None:
    source = b"const x = 1;"
    edits = [
        TextEdit(10, 11, "2"),
        insert(10, "(", order=1),
        insert(10, "-", order=0),
        insert(12, "\n"),
    ]

    assert apply_edits(source, edits) == b"const x = -(2;\n"


def test_apply_edits_rejects_overlaps() -> None:
    with pytest.raises(ValueError):
        apply_edits(b"abcdef", [TextEdit(0, 3, "x"), TextEdit(2, 4, "y")])
