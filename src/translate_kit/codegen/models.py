"""Options and result containers for the codegen pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from translate_kit.core.config import (
    DEFAULT_I18N_IMPORT,
    CodegenMode,
    CodegenSettings,
)
from translate_kit.graph.imports import ModuleImports
from translate_kit.parsing.parser import SourceTree

__all__ = [
    "CodegenResult",
    "ParsedModule",
    "TransformOptions",
    "TransformResult",
]


@dataclass(frozen=True, slots=True)
class TransformOptions:
    """Per-file inputs of :func:`~translate_kit.codegen.transform.transform`.

    ``force_client`` marks a file reached from a client root; it overrides the
    file's own directive and hook based classification.
    """

    mode: CodegenMode = CodegenMode.KEYS
    i18n_import: str = DEFAULT_I18N_IMPORT
    component_path: str | None = None
    translatable_props: tuple[str, ...] = ()
    force_client: bool = False

    @classmethod
    def from_settings(
        cls,
        settings: CodegenSettings,
        *,
        force_client: bool = False,
    ) -> "TransformOptions":
        return cls(
            mode=settings.mode,
            i18n_import=settings.i18n_import,
            component_path=settings.component_path,
            translatable_props=settings.translatable_props,
            force_client=force_client,
        )

    @property
    def server_import(self) -> str:
        return f"{self.i18n_import}/server"

    @property
    def inline_client_path(self) -> str:
        if not self.component_path:
            raise ValueError("Inline mode requires component_path.")
        return self.component_path

    @property
    def inline_server_path(self) -> str:
        return f"{self.inline_client_path}-server"


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Outcome of rewriting a single file."""

    code: str
    modified: bool = False
    strings_wrapped: int = 0
    used_keys: tuple[str, ...] = ()
    client_namespaces: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CodegenResult:
    """Summary of a codegen run."""

    files_processed: int = 0
    files_modified: int = 0
    files_skipped: int = 0
    strings_wrapped: int = 0
    client_namespaces: tuple[str, ...] = ()
    failed_files: tuple[Path, ...] = ()
    warnings: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ParsedModule:
    """A parsed in-scope file with its locally computed facts."""

    tree: SourceTree
    imports: ModuleImports = field(default_factory=ModuleImports)
    is_client_root: bool = False

    @property
    def path(self) -> Path:
        return self.tree.path
