"""Data containers produced by the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

__all__ = ["ExtractedString", "ScanFailure", "ScanResult", "StringKind"]


class StringKind(StrEnum):
    """Syntactic shape a candidate string was found in."""

    JSX_TEXT = "jsx-text"
    JSX_ATTRIBUTE = "jsx-attribute"
    JSX_EXPRESSION = "jsx-expression"
    OBJECT_PROPERTY = "object-property"
    MODULE_OBJECT_PROPERTY = "module-object-property"
    T_CALL = "t-call"
    T_COMPONENT = "T-component"

    @property
    def is_wrapped(self) -> bool:
        """Whether the occurrence already goes through the runtime."""

        return self in (StringKind.T_CALL, StringKind.T_COMPONENT)


@dataclass(frozen=True, slots=True)
class ExtractedString:
    """One candidate string occurrence with its structural context."""

    text: str
    kind: StringKind
    file: Path
    line: int
    column: int
    component_name: str | None = None
    parent_tag: str | None = None
    prop_name: str | None = None
    parent_const_name: str | None = None
    route_path: str | None = None
    sibling_texts: tuple[str, ...] = ()
    section_heading: str | None = None
    composite_context: str | None = None
    id: str | None = None


@dataclass(frozen=True, slots=True)
class ScanFailure:
    """A file the scanner could not read or parse."""

    file: Path
    error: str


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Aggregated output of a scan run."""

    strings: tuple[ExtractedString, ...] = ()
    files_scanned: int = 0
    failures: tuple[ScanFailure, ...] = field(default_factory=tuple)

    @property
    def unique_texts(self) -> tuple[str, ...]:
        """Distinct unwrapped texts in first-seen order."""

        seen = dict.fromkeys(
            item.text for item in self.strings if not item.kind.is_wrapped
        )
        return tuple(seen)
