"""Tree-sitter backed parsing for JavaScript and TypeScript sources."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator

import tree_sitter_javascript as ts_javascript
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Parser

from .errors import ParseFailure

__all__ = [
    "SourceTree",
    "grammar_for_path",
    "parse_source",
    "validate_source",
]

_GRAMMARS: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}


@lru_cache(maxsize=None)
def _language(name: str) -> Language:
    if name == "typescript":
        return Language(ts_typescript.language_typescript())
    if name == "tsx":
        return Language(ts_typescript.language_tsx())
    return Language(ts_javascript.language())


def grammar_for_path(path: Path | str) -> str:
    """Return the grammar name used for ``path``.

    Unknown suffixes fall back to the TSX grammar, which accepts the widest
    range of syntax.

    Example:
        >>> grammar_for_path("app/page.tsx")
        'tsx'
        >>> grammar_for_path("lib/util.mjs")
        'javascript'
    """

    return _GRAMMARS.get(Path(path).suffix.lower(), "tsx")


@dataclass(frozen=True, slots=True)
class SourceTree:
    """A parsed source file together with its raw bytes."""

    path: Path
    source: bytes
    tree: Any
    grammar: str
    line_starts: tuple[int, ...]

    @property
    def root(self) -> Any:
        return self.tree.root_node

    @property
    def is_typescript(self) -> bool:
        return self.grammar in {"typescript", "tsx"}

    def text(self, node: Any) -> str:
        """Return the source text spanned by ``node``."""

        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")

    def position(self, offset: int) -> tuple[int, int]:
        """Return the 1-based line and 0-based character column of a byte."""

        index = bisect_right(self.line_starts, offset) - 1
        line_start = self.line_starts[index]
        column = len(
            self.source[line_start:offset].decode("utf-8", errors="replace")
        )
        return index + 1, column


def _line_starts(source: bytes) -> tuple[int, ...]:
    starts = [0]
    index = source.find(b"\n")
    while index != -1:
        starts.append(index + 1)
        index = source.find(b"\n", index + 1)
    return tuple(starts)


def _iter_errors(node: Any) -> Iterator[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            yield current
            continue
        if not current.has_error:
            continue
        stack.extend(reversed(current.children))


def parse_source(code: str | bytes, path: Path | str) -> SourceTree:
    """Parse ``code`` using the grammar selected by ``path``.

    Raises:
        ParseFailure: If the resulting tree contains error or missing nodes.
    """

    source = code.encode("utf-8") if isinstance(code, str) else code
    grammar = grammar_for_path(path)
    parser = Parser(_language(grammar))
    tree = parser.parse(source)
    result = SourceTree(
        path=Path(path),
        source=source,
        tree=tree,
        grammar=grammar,
        line_starts=_line_starts(source),
    )
    if tree.root_node.has_error:
        node = next(_iter_errors(tree.root_node), tree.root_node)
        line, column = result.position(node.start_byte)
        kind = "missing token" if node.is_missing else "syntax error"
        raise ParseFailure(path, kind, line=line, column=column)
    return result


def validate_source(code: str | bytes, path: Path | str) -> None:
    """Re-parse generated output, raising :class:`ParseFailure` on errors."""

    parse_source(code, path)
