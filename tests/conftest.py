"""Shared pytest fixtures for parser-backed tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest


@pytest.fixture
def parse() -> Callable[..., object]:
    """Return a helper parsing dedented source with the grammar for ``path``."""

    pytest.importorskip("tree_sitter_typescript")
    pytest.importorskip("tree_sitter_javascript")
    from translate_kit.parsing import parse_source

    def _parse(code: str, path: str | Path = "Component.tsx"):
        return parse_source(dedent(code).lstrip("\n"), path)

    return _parse


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative path: source}`` files under a temporary project root."""

    def _write(files: dict[str, str]) -> Path:
        for relative, code in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(code).lstrip("\n"), encoding="utf-8")
        return tmp_path

    return _write
