"""Client-boundary classification over the import graph.

A file is a *client root* when its prologue carries the ``"use client"``
directive or when it calls a hook. Hook detection is an explicit rule table:

* names in :data:`KNOWN_HOOKS` (React, Next.js navigation, data-fetching
  libraries),
* or any name following the ``use`` + uppercase/digit convention,
* except names in :data:`ENVIRONMENT_NEUTRAL_HOOKS`, which also run in
  server components (translation accessors, locale readers).

Client status then spreads to everything a root imports, transitively.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import re
from typing import Any, Iterable

from translate_kit.parsing.nodes import has_use_client_directive, walk
from translate_kit.parsing.parser import SourceTree

from .imports import ImportGraph

__all__ = [
    "ENVIRONMENT_NEUTRAL_HOOKS",
    "FileClassification",
    "KNOWN_HOOKS",
    "client_closure",
    "classify",
    "is_client_root",
    "is_hook_name",
    "uses_hooks",
]

KNOWN_HOOKS = frozenset(
    {
        # React
        "useState",
        "useEffect",
        "useLayoutEffect",
        "useInsertionEffect",
        "useReducer",
        "useRef",
        "useContext",
        "useMemo",
        "useCallback",
        "useImperativeHandle",
        "useTransition",
        "useDeferredValue",
        "useId",
        "useSyncExternalStore",
        "useOptimistic",
        "useActionState",
        "useFormStatus",
        "useFormState",
        # Next.js navigation
        "useRouter",
        "usePathname",
        "useSearchParams",
        "useParams",
        "useSelectedLayoutSegment",
        "useSelectedLayoutSegments",
        "useReportWebVitals",
        # Data fetching
        "useQuery",
        "useMutation",
        "useInfiniteQuery",
        "useQueryClient",
        "useSWR",
        "useSWRMutation",
    }
)
ENVIRONMENT_NEUTRAL_HOOKS = frozenset(
    {
        "useTranslations",
        "useLocale",
        "useFormatter",
        "useMessages",
        "useNow",
        "useTimeZone",
        "useT",
    }
)
_HOOK_CONVENTION = re.compile(r"^use[A-Z0-9]")


def is_hook_name(name: str | None) -> bool:
    """Return ``True`` when a callee name marks its caller as client code.

    Example:
        >>> is_hook_name("useState"), is_hook_name("useCart")
        (True, True)
        >>> is_hook_name("use"), is_hook_name("useTranslations"), is_hook_name("user")
        (False, False, False)
    """

    if not name or name in ENVIRONMENT_NEUTRAL_HOOKS:
        return False
    return name in KNOWN_HOOKS or _HOOK_CONVENTION.match(name) is not None


def _callee_hook_name(tree: SourceTree, call: Any) -> str | None:
    function = call.child_by_field_name("function")
    if function is None:
        return None
    if function.type == "identifier":
        return tree.text(function)
    if function.type == "member_expression":
        # React.useState(...)
        target = function.child_by_field_name("object")
        prop = function.child_by_field_name("property")
        if target is not None and target.type == "identifier" and prop is not None:
            return tree.text(prop)
    return None


def uses_hooks(tree: SourceTree) -> bool:
    for node in walk(tree.root):
        if node.type == "call_expression" and is_hook_name(
            _callee_hook_name(tree, node)
        ):
            return True
    return False


def is_client_root(tree: SourceTree) -> bool:
    """Return ``True`` for files that execute in the client runtime directly."""

    return has_use_client_directive(tree) or uses_hooks(tree)


def client_closure(graph: ImportGraph, roots: Iterable[int]) -> bytearray:
    """Return a visited bitset of every record reachable from ``roots``.

    Traversal is breadth-first over ``graph`` edges; each record is visited
    once, so cyclic graphs terminate.
    """

    visited = bytearray(len(graph))
    queue: deque[int] = deque()
    for root in roots:
        if not visited[root]:
            visited[root] = 1
            queue.append(root)
    records = graph.records
    while queue:
        current = queue.popleft()
        for target in records[current].edges:
            if not visited[target]:
                visited[target] = 1
                queue.append(target)
    return visited


@dataclass(frozen=True, slots=True)
class FileClassification:
    """Per-file classification, read-only once computed."""

    is_parseable: bool
    is_client_root: bool = False
    is_client_reachable: bool = False
    import_targets: tuple[Any, ...] = ()


def classify(graph: ImportGraph) -> dict[Any, FileClassification]:
    """Classify every record of a linked ``graph`` keyed by path."""

    roots = [record.id for record in graph if record.is_client_root]
    reachable = client_closure(graph, roots)
    records = graph.records
    return {
        record.path: FileClassification(
            is_parseable=True,
            is_client_root=record.is_client_root,
            is_client_reachable=bool(reachable[record.id]),
            import_targets=tuple(records[index].path for index in record.edges),
        )
        for record in graph
    }
