"""Text-to-key map construction and invariants.

The finished map is a plain ``dict`` from source text to a dotted key. Two
invariants hold for every map returned here: keys are unique, and no key is
both a leaf and a strict dot-prefix of another key, so the key set can be
unflattened into nested JSON.
"""

from __future__ import annotations

import concurrent.futures
import re
import time
from typing import Callable, Iterable, Mapping, Protocol, Sequence

from translate_kit.core.logging import Logger, get_logger
from translate_kit.scanner.models import ExtractedString

from .errors import KeyGenerationError
from .namespace import infer_namespace

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CONCURRENCY",
    "KeyGenerator",
    "SlugKeyGenerator",
    "generate_text_to_key",
    "resolve_collisions",
    "resolve_path_conflicts",
]

DEFAULT_BATCH_SIZE = 50
DEFAULT_CONCURRENCY = 3
DEFAULT_RETRIES = 2
_MAX_BACKOFF_SECONDS = 30.0


class KeyGenerator(Protocol):
    """Proposes keys for a batch of strings.

    Implementations return a mapping from each string's text to a key; keys
    without a dot are prefixed with an inferred namespace by the caller.
    """

    def __call__(
        self,
        batch: Sequence[ExtractedString],
        existing: Mapping[str, str],
    ) -> Mapping[str, str]: ...


def resolve_collisions(
    new_keys: Mapping[str, str],
    existing: Mapping[str, str],
) -> dict[str, str]:
    """Suffix new keys that collide with existing or earlier new keys.

    Example:
        >>> resolve_collisions({"Sign in": "auth.signIn"}, {"Log in": "auth.signIn"})
        {'Sign in': 'auth.signIn2'}
    """

    used = set(existing.values())
    resolved: dict[str, str] = {}
    for text, key in new_keys.items():
        final = key
        suffix = 2
        while final in used:
            final = f"{key}{suffix}"
            suffix += 1
        used.add(final)
        resolved[text] = final
    return resolved


def resolve_path_conflicts(
    mapping: Mapping[str, str],
    *,
    logger: Logger | None = None,
) -> dict[str, str]:
    """Rename leaf keys that are also a dot-prefix of another key.

    The leaf gains a ``Label`` suffix on its last segment, plus a numeric
    suffix if that name is taken.

    Example:
        >>> resolve_path_conflicts({"A": "nav.item", "B": "nav.item.name"})
        {'A': 'nav.itemLabel', 'B': 'nav.item.name'}
    """

    log = logger or get_logger(__name__)
    all_keys = set(mapping.values())
    resolved: dict[str, str] = {}
    for text, key in mapping.items():
        prefix = key + "."
        if not any(other.startswith(prefix) for other in all_keys):
            resolved[text] = key
            continue
        renamed = f"{key}Label"
        final = renamed
        suffix = 2
        while final in all_keys:
            final = f"{renamed}{suffix}"
            suffix += 1
        all_keys.discard(key)
        all_keys.add(final)
        resolved[text] = final
        log.warning("key-path-conflict", key=key, renamed=final)
    return resolved


_SLUG_SPLIT = re.compile(r"[^0-9A-Za-z]+")


class SlugKeyGenerator:
    """Deterministic offline generator deriving keys from the text itself.

    Keys are ``<namespace>.<camelCaseSlug>`` where the namespace is inferred
    from the string's component, route or file. Texts without ASCII letters
    fall back to ``text``.
    """

    def __init__(self, *, max_words: int = 5) -> None:
        self._max_words = max_words

    def slug(self, text: str) -> str:
        words = [word for word in _SLUG_SPLIT.split(text) if word]
        words = words[: self._max_words]
        if not words:
            return "text"
        head, *rest = (word.lower() for word in words)
        slug = head + "".join(word.capitalize() for word in rest)
        if slug[0].isdigit():
            slug = f"n{slug}"
        return slug

    def __call__(
        self,
        batch: Sequence[ExtractedString],
        existing: Mapping[str, str],
    ) -> dict[str, str]:
        return {
            item.text: "{}.{}".format(
                infer_namespace(
                    component_name=item.component_name,
                    route_path=item.route_path,
                    file=item.file,
                ),
                self.slug(item.text),
            )
            for item in batch
        }


def _qualify(
    keys: Mapping[str, str],
    batch: Sequence[ExtractedString],
    log: Logger,
) -> dict[str, str]:
    by_text = {item.text: item for item in batch}
    qualified: dict[str, str] = {}
    for text, key in keys.items():
        item = by_text.get(text)
        if item is None or not key:
            continue
        if "." not in key:
            namespace = infer_namespace(
                component_name=item.component_name,
                route_path=item.route_path,
                file=item.file,
            )
            log.warning("key-auto-prefixed", key=key, namespace=namespace)
            key = f"{namespace}.{key}"
        qualified[text] = key
    return qualified


def _run_batch(
    generator: KeyGenerator,
    batch: Sequence[ExtractedString],
    existing: Mapping[str, str],
    retries: int,
    log: Logger,
) -> dict[str, str]:
    last_error: Exception | None = None
    for attempt in range(retries + 1):
        try:
            return _qualify(generator(batch, existing), batch, log)
        except Exception as exc:
            last_error = exc
            log.warning(
                "key-batch-failed",
                attempt=attempt + 1,
                size=len(batch),
                error=str(exc),
            )
            if attempt < retries:
                time.sleep(min(2.0**attempt, _MAX_BACKOFF_SECONDS))
    raise KeyGenerationError(
        f"Key generation failed for a batch of {len(batch)} strings"
    ) from last_error


def generate_text_to_key(
    strings: Sequence[ExtractedString],
    generator: KeyGenerator,
    *,
    existing: Mapping[str, str] | None = None,
    all_texts: Iterable[str] | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    concurrency: int = DEFAULT_CONCURRENCY,
    retries: int = DEFAULT_RETRIES,
    on_progress: Callable[[int, int], None] | None = None,
    logger: Logger | None = None,
) -> dict[str, str]:
    """Build the text-to-key map for ``strings``.

    Existing entries are kept while their text is still present in the
    project (``all_texts``, defaulting to the texts of ``strings``). Strings
    already routed through the runtime are never sent to ``generator``. New
    unique texts are batched in file/component order.

    Raises:
        KeyGenerationError: If a batch still fails after ``retries``.
    """

    log = logger or get_logger(__name__, component="keys")
    active_texts = set(all_texts) if all_texts is not None else {
        item.text for item in strings
    }
    active_existing = {
        text: key
        for text, key in (existing or {}).items()
        if text in active_texts
    }

    unique: dict[str, ExtractedString] = {}
    for item in strings:
        if item.kind.is_wrapped or item.text in active_existing:
            continue
        unique.setdefault(item.text, item)
    if not unique:
        return resolve_path_conflicts(active_existing, logger=log)

    ordered = sorted(
        unique.values(),
        key=lambda item: (item.file.as_posix(), item.component_name or ""),
    )
    size = max(1, batch_size)
    batches = [
        ordered[index : index + size] for index in range(0, len(ordered), size)
    ]

    generated: dict[str, str] = {}
    completed = 0
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=max(1, concurrency),
        thread_name_prefix="keys",
    ) as executor:
        futures = [
            executor.submit(
                _run_batch, generator, batch, active_existing, retries, log
            )
            for batch in batches
        ]
        batch_sizes = {
            future: len(batch) for future, batch in zip(futures, batches)
        }
        for future in concurrent.futures.as_completed(futures):
            generated.update(future.result())
            completed += batch_sizes[future]
            if on_progress is not None:
                on_progress(completed, len(ordered))

    # Collision suffixes follow batch order, not completion order.
    ordered_new = {
        item.text: generated[item.text]
        for item in ordered
        if item.text in generated
    }
    resolved = resolve_collisions(ordered_new, active_existing)
    log.info(
        "keys-generated",
        existing=len(active_existing),
        generated=len(resolved),
        batches=len(batches),
    )
    return resolve_path_conflicts({**active_existing, **resolved}, logger=log)
