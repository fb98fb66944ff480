"""String extraction: filters, extractor, context enricher and scan service."""

from __future__ import annotations

from .context_enricher import composite_template, derive_route_path, enrich_strings
from .extractor import Occurrence, extract_strings, iter_occurrences
from .filters import (
    is_content_property,
    is_ignored_tag,
    is_translatable_prop,
    should_ignore,
)
from .models import ExtractedString, ScanFailure, ScanResult, StringKind
from .service import scan_file, scan_files
from .template_literal import TemplateText, reduce_template

__all__ = [
    "ExtractedString",
    "Occurrence",
    "ScanFailure",
    "ScanResult",
    "StringKind",
    "TemplateText",
    "composite_template",
    "derive_route_path",
    "enrich_strings",
    "extract_strings",
    "is_content_property",
    "is_ignored_tag",
    "is_translatable_prop",
    "iter_occurrences",
    "reduce_template",
    "scan_file",
    "scan_files",
    "should_ignore",
]
