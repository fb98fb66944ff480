"""Project file discovery backed by :mod:`pathspec`."""

from __future__ import annotations

from pathlib import Path
import re
from typing import Iterator, Sequence

from pathspec import PathSpec

__all__ = [
    "IGNORED_DIRECTORIES",
    "SOURCE_EXTENSIONS",
    "discover_sources",
    "expand_braces",
    "resolve_files",
]

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".tsx",
    ".ts",
    ".jsx",
    ".js",
    ".mjs",
    ".cjs",
    ".mts",
    ".cts",
)

IGNORED_DIRECTORIES = frozenset(
    {
        "node_modules",
        ".next",
        ".nuxt",
        ".turbo",
        ".vercel",
        ".git",
        "dist",
        "build",
        "out",
        "coverage",
    }
)

_BRACE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations, which gitwildmatch does not support.

    Example:
        >>> expand_braces("src/**/*.{ts,tsx}")
        ['src/**/*.ts', 'src/**/*.tsx']
    """

    match = _BRACE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def _build_spec(patterns: Sequence[str]) -> PathSpec | None:
    lines: list[str] = []
    for pattern in patterns:
        lines.extend(expand_braces(pattern.strip().removeprefix("./")))
    if not lines:
        return None
    return PathSpec.from_lines("gitwildmatch", lines)


def _walk(directory: Path) -> Iterator[Path]:
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except PermissionError:
        return
    for entry in entries:
        if entry.is_symlink():
            continue
        if entry.is_dir():
            if entry.name in IGNORED_DIRECTORIES:
                continue
            yield from _walk(entry)
        elif entry.is_file():
            yield entry


def resolve_files(
    root: Path,
    include: Sequence[str],
    exclude: Sequence[str] = (),
) -> list[Path]:
    """Return absolute paths under ``root`` matching the glob patterns.

    Patterns are interpreted relative to ``root`` and the result is sorted so
    runs are deterministic.
    """

    root = root.resolve()
    include_spec = _build_spec(include)
    if include_spec is None:
        return []
    exclude_spec = _build_spec(exclude)

    matched: list[Path] = []
    for path in _walk(root):
        relative = path.relative_to(root).as_posix()
        if not include_spec.match_file(relative):
            continue
        if exclude_spec is not None and exclude_spec.match_file(relative):
            continue
        matched.append(path)
    return matched


def discover_sources(root: Path) -> list[Path]:
    """Return every JavaScript/TypeScript source in the project.

    Dependency, build output and VCS directories are skipped, as are type
    declaration files.
    """

    root = root.resolve()
    return [
        path
        for path in _walk(root)
        if path.suffix in SOURCE_EXTENSIONS and not path.name.endswith(".d.ts")
    ]
