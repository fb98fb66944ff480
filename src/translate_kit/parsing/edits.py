"""Byte-range text edits applied over an unchanged source buffer.

Rewrites are expressed as replacements of original byte ranges so that any
formatting the rewrite does not touch survives verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

__all__ = ["TextEdit", "apply_edits", "insert", "replace"]


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replace ``source[start:end]`` with ``text``.

    Insertions use ``start == end``; ``order`` ranks insertions sharing the
    same offset.
    """

    start: int
    end: int
    text: str
    order: int = 0

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end


def replace(node: object, text: str) -> TextEdit:
    """Return an edit replacing the span of a tree-sitter ``node``."""

    return TextEdit(node.start_byte, node.end_byte, text)  # type: ignore[attr-defined]


def insert(offset: int, text: str, *, order: int = 0) -> TextEdit:
    return TextEdit(offset, offset, text, order)


def apply_edits(source: bytes, edits: Iterable[TextEdit]) -> bytes:
    """Apply ``edits`` to ``source`` and return the new buffer.

    Raises:
        ValueError: If two replacements overlap or an insertion falls strictly
            inside a replaced range.

    Example:
        >>> apply_edits(b"abc", [TextEdit(1, 2, "X"), insert(0, ">")])
        b'>aXc'
    """

    indexed = sorted(
        enumerate(edits),
        key=lambda item: (
            item[1].start,
            0 if item[1].is_insertion else 1,
            item[1].order,
            item[0],
        ),
    )
    chunks: list[bytes] = []
    cursor = 0
    for _, edit in indexed:
        if edit.start < cursor:
            raise ValueError(
                f"Overlapping edit at byte {edit.start} (cursor {cursor})"
            )
        if edit.end < edit.start:
            raise ValueError(f"Inverted edit range {edit.start}:{edit.end}")
        chunks.append(source[cursor : edit.start])
        chunks.append(edit.text.encode("utf-8"))
        cursor = edit.end
    chunks.append(source[cursor:])
    return b"".join(chunks)
