"""Parsing and printing collaborators built on tree-sitter."""

from __future__ import annotations

from .edits import TextEdit, apply_edits
from .errors import ParseFailure
from .parser import SourceTree, grammar_for_path, parse_source, validate_source

__all__ = [
    "ParseFailure",
    "SourceTree",
    "TextEdit",
    "apply_edits",
    "grammar_for_path",
    "parse_source",
    "validate_source",
]
