"""Tests for :mod:`translate_kit.graph.client`."""

from __future__ import annotations

from pathlib import Path

import pytest

from translate_kit.graph.client import (
    classify,
    client_closure,
    is_client_root,
    is_hook_name,
)
from translate_kit.graph.imports import ImportGraph, ModuleResolver


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("useState", True),
        ("useRouter", True),
        ("useCart", True),
        ("use3D", True),
        ("useTranslations", False),
        ("useLocale", False),
        ("use", False),
        ("user", False),
        (None, False),
    ],
)
def test_is_hook_name(name: str | None, expected: bool) -> None:
    assert is_hook_name(name) is expected


def test_use_client_directive_marks_root(parse) -> None:
    tree = parse(
        """
        // header comment
        "use client";

        export function Menu() {
          return <nav>Menu</nav>;
        }
        """
    )

    assert is_client_root(tree) is True


def test_hook_calls_mark_root(parse) -> None:
    member = parse(
        """
        import React from "react";

        export function Counter() {
          const [count] = React.useState(0);
          return <span>{count}</span>;
        }
        """
    )
    neutral = parse(
        """
        import { useTranslations } from "next-intl";

        export function Title() {
          const t = useTranslations("hero");
          return <h1>{t("title")}</h1>;
        }
        """
    )
    late_directive = parse(
        """
        import x from "y";
        "use client";
        export const A = () => <div />;
        """
    )

    assert is_client_root(member) is True
    assert is_client_root(neutral) is False
    assert is_client_root(late_directive) is False


def _graph(tmp_path: Path, edges: dict[str, tuple[str, ...]], roots: set[str]):
    paths = {name: tmp_path / f"{name}.tsx" for name in edges}
    graph = ImportGraph()
    for name, targets in edges.items():
        graph.add_file(
            paths[name],
            tuple(f"./{target}" for target in targets),
            is_client_root=name in roots,
        )
    graph.link(ModuleResolver(root=tmp_path, known_files=paths.values()))
    return graph, paths


def test_client_closure_is_transitive(tmp_path: Path) -> None:
    graph, paths = _graph(
        tmp_path,
        {"A": ("B",), "B": ("C",), "C": (), "D": ("C",)},
        roots={"A"},
    )

    classes = classify(graph)

    assert [classes[paths[name]].is_client_reachable for name in "ABCD"] == [
        True,
        True,
        True,
        False,
    ]
    assert classes[paths["A"]].is_client_root is True
    assert classes[paths["B"]].is_client_root is False
    assert classes[paths["D"]].import_targets == (paths["C"],)


def test_client_closure_terminates_on_cycles(tmp_path: Path) -> None:
    graph, paths = _graph(
        tmp_path,
        {"A": ("B",), "B": ("A",), "C": ()},
        roots={"B"},
    )

    visited = client_closure(graph, [graph.id_of(paths["B"])])

    assert list(visited) == [1, 1, 0]
