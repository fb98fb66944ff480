"""Configuration models for :mod:`translate_kit` runs."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

ConcurrencyValue = int | Literal["auto"]

DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_I18N_IMPORT = "next-intl"
DEFAULT_INCLUDE: tuple[str, ...] = (
    "src/**/*.{ts,tsx,js,jsx}",
    "app/**/*.{ts,tsx,js,jsx}",
    "pages/**/*.{ts,tsx,js,jsx}",
    "components/**/*.{ts,tsx,js,jsx}",
)
DEFAULT_EXCLUDE: tuple[str, ...] = (
    "**/node_modules/**",
    "**/*.test.*",
    "**/*.spec.*",
    "**/*.d.ts",
)


class CodegenMode(StrEnum):
    """Supported wrapping strategies."""

    KEYS = "keys"
    INLINE = "inline"


def _normalize_names(values: tuple[str, ...]) -> tuple[str, ...]:
    cleaned = (value.strip() for value in values)
    return tuple(dict.fromkeys(value for value in cleaned if value))


class ScanSettings(BaseModel):
    """Inputs controlling which files are scanned and what is extracted."""

    include: tuple[str, ...] = Field(
        default=DEFAULT_INCLUDE,
        description="Glob patterns, relative to the project root, to scan.",
    )
    exclude: tuple[str, ...] = Field(
        default=DEFAULT_EXCLUDE,
        description="Glob patterns removed from the include set.",
    )
    translatable_props: tuple[str, ...] = Field(
        default=(),
        description=(
            "Additional markup attribute names whose values are translatable."
        ),
    )
    max_concurrency: ConcurrencyValue = Field(
        default="auto",
        description="Number of files parsed concurrently or 'auto'.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("include")
    @classmethod
    def _validate_include(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = _normalize_names(value)
        if not normalized:
            raise ValueError("At least one include pattern is required.")
        return normalized

    @field_validator("exclude", "translatable_props")
    @classmethod
    def _validate_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _normalize_names(value)

    @field_validator("max_concurrency")
    @classmethod
    def _validate_max_concurrency(
        cls,
        value: ConcurrencyValue,
    ) -> ConcurrencyValue:
        return _validate_concurrency(value)


class CodegenSettings(BaseModel):
    """Inputs of a codegen run."""

    mode: CodegenMode = Field(
        default=CodegenMode.KEYS,
        description="Wrap strings with accessor calls or inline wrapper tags.",
    )
    i18n_import: str = Field(
        default=DEFAULT_I18N_IMPORT,
        description=(
            "Module providing the keys-mode runtime; server helpers are "
            "imported from '<module>/server'."
        ),
    )
    component_path: str | None = Field(
        default=None,
        description=(
            "Module exporting the inline-mode client runtime; the server "
            "runtime lives at '<module>-server'."
        ),
    )
    translatable_props: tuple[str, ...] = Field(
        default=(),
        description="Additional markup attribute names to rewrite.",
    )
    module_factory: bool = Field(
        default=False,
        description=(
            "Convert exported module-level content constants into factories "
            "taking the translation accessor."
        ),
    )
    tsconfig: Path | None = Field(
        default=None,
        description=(
            "Optional tsconfig/jsconfig file providing path aliases; the "
            "project root is searched when unset."
        ),
    )
    max_concurrency: ConcurrencyValue = Field(
        default="auto",
        description="Number of files processed concurrently or 'auto'.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("i18n_import")
    @classmethod
    def _validate_i18n_import(cls, value: str) -> str:
        if not value:
            raise ValueError("i18n_import cannot be blank.")
        return value

    @field_validator("translatable_props")
    @classmethod
    def _validate_props(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _normalize_names(value)

    @field_validator("max_concurrency")
    @classmethod
    def _validate_max_concurrency(
        cls,
        value: ConcurrencyValue,
    ) -> ConcurrencyValue:
        return _validate_concurrency(value)

    @model_validator(mode="after")
    def _require_component_path(self) -> "CodegenSettings":
        if self.mode is CodegenMode.INLINE and not self.component_path:
            raise ValueError("Inline mode requires component_path.")
        return self

    @property
    def server_import(self) -> str:
        """Module exporting the keys-mode server accessor."""

        return f"{self.i18n_import}/server"

    @property
    def inline_server_path(self) -> str | None:
        """Module exporting the inline-mode server runtime."""

        if self.component_path is None:
            return None
        return f"{self.component_path}-server"

    def worker_count(self) -> int:
        """Return the concrete worker bound for this run."""

        return resolve_concurrency(self.max_concurrency)


def _validate_concurrency(value: ConcurrencyValue) -> ConcurrencyValue:
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized != "auto":
            raise ValueError(
                "max_concurrency must be a positive integer or 'auto'."
            )
        return "auto"
    if value < 1:
        raise ValueError(
            "max_concurrency must be >= 1 when provided as an integer."
        )
    return value


def resolve_concurrency(value: ConcurrencyValue) -> int:
    """Translate ``'auto'`` into the default worker bound.

    Example:
        >>> resolve_concurrency("auto")
        10
        >>> resolve_concurrency(4)
        4
    """

    if value == "auto":
        return DEFAULT_MAX_CONCURRENCY
    return int(value)


__all__ = [
    "CodegenMode",
    "CodegenSettings",
    "ConcurrencyValue",
    "DEFAULT_EXCLUDE",
    "DEFAULT_I18N_IMPORT",
    "DEFAULT_INCLUDE",
    "DEFAULT_MAX_CONCURRENCY",
    "ScanSettings",
    "resolve_concurrency",
]
