"""Source rewriting: module-factory analysis, transform and codegen runs."""

from __future__ import annotations

from .accessors import Runtime, Side, runtime_for
from .errors import CodegenError, InvalidOutputAfterTransform
from .factory import (
    FactoryDefinition,
    FactoryPlan,
    FactoryReference,
    FileFactoryPlan,
    analyze_factories,
)
from .models import CodegenResult, ParsedModule, TransformOptions, TransformResult
from .service import ProgressCallback, run_codegen
from .transform import transform

__all__ = [
    "CodegenError",
    "CodegenResult",
    "FactoryDefinition",
    "FactoryPlan",
    "FactoryReference",
    "FileFactoryPlan",
    "InvalidOutputAfterTransform",
    "ParsedModule",
    "ProgressCallback",
    "Runtime",
    "Side",
    "TransformOptions",
    "TransformResult",
    "analyze_factories",
    "run_codegen",
    "runtime_for",
    "transform",
]
