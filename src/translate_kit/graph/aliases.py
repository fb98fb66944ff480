"""Path-alias tables loaded from ``tsconfig.json`` / ``jsconfig.json``."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Any, Mapping

from translate_kit.core.logging import get_logger

__all__ = [
    "AliasConfig",
    "PathAlias",
    "load_alias_config",
    "read_jsonc",
    "strip_jsonc",
]

_CONFIG_NAMES = ("tsconfig.json", "jsconfig.json")
_MAX_EXTENDS_DEPTH = 16


def strip_jsonc(text: str) -> str:
    """Remove comments and trailing commas from JSON-with-comments text.

    String contents are left untouched.

    Example:
        >>> strip_jsonc('{"a": "//x", /* c */ "b": [1,],}')
        '{"a": "//x",  "b": [1]}'
    """

    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char == '"':
            end = index + 1
            while end < length and text[end] != '"':
                end += 2 if text[end] == "\\" else 1
            out.append(text[index : end + 1])
            index = end + 1
            continue
        if text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if text.startswith("/*", index):
            close = text.find("*/", index + 2)
            index = length if close == -1 else close + 2
            continue
        if char == ",":
            ahead = index + 1
            while ahead < length and text[ahead].isspace():
                ahead += 1
            if ahead < length and text[ahead] in "}]":
                index += 1
                continue
            if text.startswith(("//", "/*"), ahead):
                # Re-examine after the comment is dropped.
                rest = strip_jsonc(text[ahead:]).lstrip()
                if rest[:1] in ("}", "]"):
                    index += 1
                    continue
        out.append(char)
        index += 1
    return "".join(out)


def read_jsonc(path: Path) -> dict[str, Any]:
    """Parse a JSON-with-comments file into a mapping."""

    payload = json.loads(strip_jsonc(path.read_text(encoding="utf-8")))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return payload


@dataclass(frozen=True, slots=True)
class PathAlias:
    """One ``compilerOptions.paths`` entry."""

    pattern: str
    targets: tuple[Path, ...]

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.pattern

    @property
    def prefix(self) -> str:
        return self.pattern.split("*", 1)[0]

    @property
    def suffix(self) -> str:
        return self.pattern.split("*", 1)[1] if self.is_wildcard else ""

    def match(self, source: str) -> str | None:
        """Return the text captured by ``*``, ``""`` for exact matches."""

        if not self.is_wildcard:
            return "" if source == self.pattern else None
        prefix, suffix = self.prefix, self.suffix
        if (
            source.startswith(prefix)
            and source.endswith(suffix)
            and len(source) >= len(prefix) + len(suffix)
        ):
            return source[len(prefix) : len(source) - len(suffix)]
        return None

    def substitute(self, captured: str) -> list[Path]:
        return [
            Path(str(target).replace("*", captured, 1)) for target in self.targets
        ]


@dataclass(frozen=True, slots=True)
class AliasConfig:
    """Resolved alias table; targets are absolute paths."""

    aliases: tuple[PathAlias, ...] = ()
    base_url: Path | None = None

    def candidates(self, source: str) -> list[Path]:
        """Return candidate bases for ``source`` in resolution order.

        Exact aliases win; wildcard aliases are tried longest prefix first.
        """

        for alias in self.aliases:
            if not alias.is_wildcard and alias.match(source) is not None:
                return alias.substitute("")
        ordered = sorted(
            (alias for alias in self.aliases if alias.is_wildcard),
            key=lambda alias: len(alias.prefix),
            reverse=True,
        )
        for alias in ordered:
            captured = alias.match(source)
            if captured is not None:
                return alias.substitute(captured)
        return []


def _extends_path(config_path: Path, value: str) -> Path | None:
    if not value.startswith("."):
        return None
    target = config_path.parent / value
    if target.suffix != ".json":
        target = target.with_name(target.name + ".json")
    return Path(os.path.normpath(target))


def _config_chain(config_path: Path) -> list[tuple[Path, Mapping[str, Any]]]:
    log = get_logger(__name__, component="aliases")
    chain: list[tuple[Path, Mapping[str, Any]]] = []
    seen: set[Path] = set()
    current: Path | None = Path(os.path.normpath(config_path))
    while current is not None and current not in seen:
        if len(chain) >= _MAX_EXTENDS_DEPTH or not current.is_file():
            break
        seen.add(current)
        try:
            payload = read_jsonc(current)
        except ValueError as exc:
            log.warning("alias-config-invalid", path=str(current), error=str(exc))
            break
        chain.append((current, payload))
        extends = payload.get("extends")
        if isinstance(extends, list):
            extends = next((item for item in extends if isinstance(item, str)), None)
        current = (
            _extends_path(current, extends) if isinstance(extends, str) else None
        )
    return chain


def load_alias_config(
    root: Path,
    config_path: Path | None = None,
) -> AliasConfig:
    """Load path aliases from ``config_path`` or the project's config file.

    Relative ``extends`` chains are followed; the nearest config defining
    ``baseUrl`` or ``paths`` wins for each option. A missing config yields an
    empty table.
    """

    if config_path is None:
        config_path = next(
            (root / name for name in _CONFIG_NAMES if (root / name).is_file()),
            None,
        )
    if config_path is None:
        return AliasConfig()
    if not config_path.is_absolute():
        config_path = root / config_path

    base_url: Path | None = None
    paths: Mapping[str, Any] | None = None
    paths_owner: Path | None = None
    for path, payload in _config_chain(config_path):
        options = payload.get("compilerOptions") or {}
        if not isinstance(options, Mapping):
            continue
        if base_url is None and isinstance(options.get("baseUrl"), str):
            base_url = Path(
                os.path.normpath(path.parent / options["baseUrl"])
            )
        if paths is None and isinstance(options.get("paths"), Mapping):
            paths = options["paths"]
            paths_owner = path.parent

    aliases: list[PathAlias] = []
    if paths is not None:
        anchor = base_url or paths_owner or root
        for pattern, targets in paths.items():
            if not isinstance(targets, list):
                continue
            resolved = tuple(
                Path(os.path.normpath(anchor / target))
                for target in targets
                if isinstance(target, str)
            )
            if resolved:
                aliases.append(PathAlias(pattern=pattern, targets=resolved))
    return AliasConfig(aliases=tuple(aliases), base_url=base_url)
