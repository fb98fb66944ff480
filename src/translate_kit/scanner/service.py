"""Parallel scan of a file set into enriched candidate strings."""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass
from pathlib import Path
import threading
from typing import Iterable, Sequence

from translate_kit.core.config import DEFAULT_MAX_CONCURRENCY
from translate_kit.core.logging import Logger, get_logger
from translate_kit.parsing.errors import ParseFailure
from translate_kit.parsing.parser import parse_source

from .context_enricher import enrich_strings
from .extractor import extract_strings
from .models import ExtractedString, ScanFailure, ScanResult

__all__ = ["scan_file", "scan_files"]


@dataclass(frozen=True, slots=True)
class _FileScan:
    path: Path
    strings: tuple[ExtractedString, ...] = ()
    failure: ScanFailure | None = None
    aborted: bool = False


def scan_file(
    path: Path,
    *,
    translatable_props: Iterable[str] | None = None,
) -> list[ExtractedString]:
    """Parse, extract and enrich a single file.

    Raises:
        ParseFailure: If the file contains syntax errors.
    """

    tree = parse_source(path.read_bytes(), path)
    strings = extract_strings(tree, translatable_props)
    return enrich_strings(strings, path)


def _scan_one(
    path: Path,
    translatable_props: tuple[str, ...],
    stop_event: threading.Event | None,
    logger: Logger,
) -> _FileScan:
    if stop_event is not None and stop_event.is_set():
        return _FileScan(path=path, aborted=True)
    try:
        strings = scan_file(path, translatable_props=translatable_props)
    except ParseFailure as exc:
        logger.warning("scan-parse-failed", path=str(path), error=str(exc))
        return _FileScan(path=path, failure=ScanFailure(path, str(exc)))
    return _FileScan(path=path, strings=tuple(strings))


def scan_files(
    files: Sequence[Path],
    *,
    translatable_props: Iterable[str] | None = None,
    max_workers: int = DEFAULT_MAX_CONCURRENCY,
    stop_event: threading.Event | None = None,
    logger: Logger | None = None,
) -> ScanResult:
    """Scan ``files`` concurrently and aggregate their strings.

    Results keep the order of ``files`` regardless of completion order. Files
    that fail to parse are reported in :attr:`ScanResult.failures`.
    """

    log = logger or get_logger(__name__, component="scanner")
    props = tuple(translatable_props or ())
    outcomes: dict[Path, _FileScan] = {}

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=max(1, max_workers),
        thread_name_prefix="scan",
    ) as executor:
        future_map: dict[concurrent.futures.Future[_FileScan], Path] = {}
        for path in files:
            if stop_event is not None and stop_event.is_set():
                break
            future = executor.submit(_scan_one, path, props, stop_event, log)
            future_map[future] = path
        for future in concurrent.futures.as_completed(future_map):
            outcome = future.result()
            if not outcome.aborted:
                outcomes[outcome.path] = outcome

    strings: list[ExtractedString] = []
    failures: list[ScanFailure] = []
    for path in files:
        outcome = outcomes.get(path)
        if outcome is None:
            continue
        strings.extend(outcome.strings)
        if outcome.failure is not None:
            failures.append(outcome.failure)

    log.info(
        "scan-complete",
        files=len(outcomes),
        strings=len(strings),
        failures=len(failures),
    )
    return ScanResult(
        strings=tuple(strings),
        files_scanned=len(outcomes),
        failures=tuple(failures),
    )
