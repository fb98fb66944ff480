"""Codegen orchestration: parse, classify, plan factories, rewrite and write."""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass
from pathlib import Path
import threading
from typing import Callable, Iterable, Mapping, Sequence

from translate_kit.core.config import CodegenSettings
from translate_kit.core.files import discover_sources
from translate_kit.core.logging import Logger, get_logger
from translate_kit.graph.aliases import load_alias_config
from translate_kit.graph.client import FileClassification, classify, is_client_root
from translate_kit.graph.imports import (
    ImportGraph,
    ModuleImports,
    ModuleResolver,
    collect_imports,
    normalize_path,
)
from translate_kit.parsing.errors import ParseFailure
from translate_kit.parsing.parser import parse_source, validate_source

from .errors import InvalidOutputAfterTransform
from .factory import BindingId, FactoryPlan, analyze_factories
from .models import CodegenResult, ParsedModule, TransformOptions, TransformResult
from .transform import transform

__all__ = ["ProgressCallback", "run_codegen"]

ProgressCallback = Callable[[int, int], None]


# ---------------------------------------------------------------------------
# Phase 1: parse
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class _ParseOutcome:
    path: Path
    module: ParsedModule | None = None
    text: str | None = None
    error: str | None = None
    aborted: bool = False


def _parse_one(
    path: Path,
    stop_event: threading.Event | None,
    logger: Logger,
) -> _ParseOutcome:
    if stop_event is not None and stop_event.is_set():
        return _ParseOutcome(path=path, aborted=True)
    source = path.read_bytes()
    try:
        tree = parse_source(source, path)
    except ParseFailure as exc:
        logger.warning("codegen-parse-failed", path=str(path), error=str(exc))
        return _ParseOutcome(
            path=path,
            text=source.decode("utf-8", errors="replace"),
            error=str(exc),
        )
    module = ParsedModule(
        tree=tree,
        imports=collect_imports(tree),
        is_client_root=is_client_root(tree),
    )
    return _ParseOutcome(path=path, module=module)


def _parse_all(
    paths: Sequence[Path],
    *,
    workers: int,
    prefix: str,
    stop_event: threading.Event | None,
    logger: Logger,
) -> dict[Path, _ParseOutcome]:
    outcomes: dict[Path, _ParseOutcome] = {}
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix=prefix,
    ) as executor:
        futures = [
            executor.submit(_parse_one, path, stop_event, logger) for path in paths
        ]
        for future in concurrent.futures.as_completed(futures):
            outcome = future.result()
            if not outcome.aborted:
                outcomes[outcome.path] = outcome
    return outcomes


# ---------------------------------------------------------------------------
# Phase 3: rewrite
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class _RewriteOutcome:
    path: Path
    result: TransformResult | None = None
    error: InvalidOutputAfterTransform | None = None
    aborted: bool = False


def _rewrite_one(
    module: ParsedModule,
    text_to_key: Mapping[str, str],
    options: TransformOptions,
    plan: FactoryPlan,
    stop_event: threading.Event | None,
    logger: Logger,
) -> _RewriteOutcome:
    path = module.path
    if stop_event is not None and stop_event.is_set():
        return _RewriteOutcome(path=path, aborted=True)
    try:
        result = transform(
            module.tree,
            text_to_key,
            options,
            factory=plan.for_file(path),
            logger=logger,
        )
    except ValueError as exc:
        # Overlapping edits cannot be applied.
        error = InvalidOutputAfterTransform(path, str(exc))
    else:
        if not result.modified:
            return _RewriteOutcome(path=path, result=result)
        try:
            validate_source(result.code, path)
        except ParseFailure as exc:
            error = InvalidOutputAfterTransform(path, str(exc))
        else:
            return _RewriteOutcome(path=path, result=result)
    logger.warning("codegen-invalid-output", path=str(path), error=str(error))
    return _RewriteOutcome(path=path, error=error)


def _failed_bindings(
    plan: FactoryPlan,
    outcomes: Mapping[Path, _RewriteOutcome],
) -> set[BindingId]:
    bindings: set[BindingId] = set()
    for path, outcome in outcomes.items():
        if outcome.error is not None:
            bindings.update(plan.for_file(path).bindings)
    return bindings


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def run_codegen(
    files: Iterable[Path],
    text_to_key: Mapping[str, str],
    settings: CodegenSettings | None = None,
    *,
    root: Path | None = None,
    on_progress: ProgressCallback | None = None,
    stop_event: threading.Event | None = None,
    logger: Logger | None = None,
) -> CodegenResult:
    """Rewrite ``files`` so that mapped strings use the translation runtime.

    The run has three phases. Files are parsed concurrently, then the import
    graph, client closure and module-factory plan are built from the parsed
    trees, and finally each file is transformed, re-parsed and written
    concurrently. A file whose output does not parse is left untouched, and
    factory conversions touching it are withdrawn from every file of the
    group before those files are rewritten again.

    Args:
        files: In-scope source files.
        text_to_key: Source text to dotted key map.
        settings: Mode, runtime modules and concurrency bound.
        root: Project root for alias and ``@/`` resolution; defaults to the
            current directory.
        on_progress: Called with ``(completed, total)`` after each file.
        stop_event: When set, files not yet started are left alone.
        logger: Optional structured logger.

    Returns:
        Aggregated run summary.
    """

    settings = settings or CodegenSettings()
    log = logger or get_logger(__name__, component="codegen")
    project_root = normalize_path(root or Path.cwd())
    workers = settings.worker_count()
    paths = list(dict.fromkeys(normalize_path(path) for path in files))
    total = len(paths)

    # Phase 1
    parsed = _parse_all(
        paths,
        workers=workers,
        prefix="codegen-parse",
        stop_event=stop_event,
        logger=log,
    )
    modules: dict[Path, ParsedModule] = {}
    unparsed: dict[Path, str] = {}
    failed: list[Path] = []
    warnings: list[str] = []
    for path in paths:
        outcome = parsed.get(path)
        if outcome is None:
            continue
        if outcome.module is not None:
            modules[path] = outcome.module
        else:
            failed.append(path)
            unparsed[path] = outcome.text or ""
            warnings.append(f"{path.as_posix()}: {outcome.error}")

    outside: dict[Path, ModuleImports] = {}
    known_files: list[Path] = list(modules)
    if settings.module_factory and modules:
        in_scope = set(paths)
        extra = [
            normalize_path(path)
            for path in discover_sources(project_root)
            if normalize_path(path) not in in_scope
        ]
        for path, outcome in _parse_all(
            extra,
            workers=workers,
            prefix="codegen-parse",
            stop_event=stop_event,
            logger=log,
        ).items():
            known_files.append(path)
            if outcome.module is not None:
                outside[path] = outcome.module.imports
            else:
                unparsed[path] = outcome.text or ""

    # Phase 2
    aliases = load_alias_config(project_root, settings.tsconfig)
    graph = ImportGraph()
    for path, module in modules.items():
        graph.add_file(
            path, module.imports.sources, is_client_root=module.is_client_root
        )
    graph.link(
        ModuleResolver(root=project_root, known_files=list(modules), aliases=aliases)
    )
    classes: dict[Path, FileClassification] = classify(graph)
    log.info(
        "codegen-graph",
        files=len(graph),
        client_roots=sum(1 for item in classes.values() if item.is_client_root),
        client_reachable=sum(
            1 for item in classes.values() if item.is_client_reachable
        ),
    )

    plan = FactoryPlan()
    if settings.module_factory and modules:
        plan = analyze_factories(
            modules,
            text_to_key,
            resolver=ModuleResolver(
                root=project_root, known_files=known_files, aliases=aliases
            ),
            translatable_props=settings.translatable_props,
            outside=outside,
            unparsed=unparsed,
            logger=log,
        )

    options = {
        path: TransformOptions.from_settings(
            settings,
            force_client=classes[path].is_client_reachable,
        )
        for path in modules
    }

    # Phase 3
    completed = len(failed)
    if on_progress is not None and completed:
        on_progress(completed, total)
    outcomes: dict[Path, _RewriteOutcome] = {}
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix="codegen",
    ) as executor:
        future_map = {
            executor.submit(
                _rewrite_one,
                module,
                text_to_key,
                options[path],
                plan,
                stop_event,
                log,
            ): path
            for path, module in modules.items()
        }
        for future in concurrent.futures.as_completed(future_map):
            outcome = future.result()
            if outcome.aborted:
                continue
            outcomes[outcome.path] = outcome
            completed += 1
            if on_progress is not None:
                on_progress(completed, total)

    dropped = _failed_bindings(plan, outcomes)
    while dropped:
        redo = plan.files_for(dropped) & set(outcomes)
        plan = plan.without(dropped, "group-output-invalid")
        log.info(
            "codegen-factory-rollback",
            bindings=len(dropped),
            files=len(redo),
        )
        for path in sorted(redo):
            outcomes[path] = _rewrite_one(
                modules[path], text_to_key, options[path], plan, None, log
            )
        dropped = _failed_bindings(plan, {path: outcomes[path] for path in redo})

    modified = 0
    wrapped = 0
    skipped = 0
    namespaces: set[str] = set()
    for path in paths:
        outcome = outcomes.get(path)
        if outcome is None:
            continue
        if outcome.error is not None:
            skipped += 1
            warnings.append(str(outcome.error))
            continue
        result = outcome.result
        namespaces.update(result.client_namespaces)
        if not result.modified:
            continue
        path.write_bytes(result.code.encode("utf-8"))
        modified += 1
        wrapped += result.strings_wrapped
        log.debug(
            "codegen-file-written",
            path=str(path),
            strings=result.strings_wrapped,
        )

    summary = CodegenResult(
        files_processed=len(outcomes) + len(failed),
        files_modified=modified,
        files_skipped=skipped,
        strings_wrapped=wrapped,
        client_namespaces=tuple(sorted(namespaces)),
        failed_files=tuple(failed),
        warnings=tuple(warnings),
    )
    log.info(
        "codegen-complete",
        processed=summary.files_processed,
        modified=summary.files_modified,
        skipped=summary.files_skipped,
        strings=summary.strings_wrapped,
    )
    return summary
