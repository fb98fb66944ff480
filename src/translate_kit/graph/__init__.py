"""Import graph construction and client-boundary classification."""

from __future__ import annotations

from .aliases import AliasConfig, PathAlias, load_alias_config
from .client import (
    FileClassification,
    classify,
    client_closure,
    is_client_root,
    is_hook_name,
    uses_hooks,
)
from .imports import (
    BindingKind,
    FileRecord,
    ImportBinding,
    ImportGraph,
    ModuleImports,
    ModuleResolver,
    collect_imports,
    normalize_path,
)

__all__ = [
    "AliasConfig",
    "BindingKind",
    "FileClassification",
    "FileRecord",
    "ImportBinding",
    "ImportGraph",
    "ModuleImports",
    "ModuleResolver",
    "PathAlias",
    "classify",
    "client_closure",
    "collect_imports",
    "normalize_path",
    "is_client_root",
    "is_hook_name",
    "load_alias_config",
    "uses_hooks",
]
