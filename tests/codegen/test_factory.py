"""Tests for :mod:`translate_kit.codegen.factory`."""

from __future__ import annotations

from pathlib import Path

import pytest

from translate_kit.codegen.factory import analyze_factories, find_candidates
from translate_kit.codegen.models import ParsedModule
from translate_kit.graph.client import is_client_root
from translate_kit.graph.imports import ModuleImports, ModuleResolver, collect_imports

TEXT_TO_KEY = {
    "Fast": "features.fast",
    "Really fast": "features.reallyFast",
}

DATA = """
export const FEATURES = [
  { title: "Fast", description: "Really fast" },
];
"""

FEATURES = """
import { FEATURES } from "./data";

export default function Features() {
  return (
    <ul>
      {FEATURES.map((feature) => (
        <li key={feature.title}>{feature.title}</li>
      ))}
    </ul>
  );
}
"""


@pytest.fixture
def project(parse, tmp_path: Path):
    """Build parsed modules keyed by absolute path from ``{name: code}``."""

    def _build(files: dict[str, str]):
        modules: dict[Path, ParsedModule] = {}
        for name, code in files.items():
            path = tmp_path / name
            tree = parse(code, path)
            modules[path] = ParsedModule(
                tree=tree,
                imports=collect_imports(tree),
                is_client_root=is_client_root(tree),
            )
        return modules

    return _build


def _analyze(tmp_path: Path, modules, **kwargs):
    known = list(modules) + list(kwargs.get("outside", {}))
    resolver = ModuleResolver(root=tmp_path, known_files=known)
    return analyze_factories(modules, TEXT_TO_KEY, resolver=resolver, **kwargs)


def test_find_candidates_requires_exported_literal(parse) -> None:
    tree = parse(
        """
        export const FEATURES = [{ title: "Fast" }];
        export const metadata = { title: "Fast" };
        export const LABELS: { title: string } = { title: "Fast" };
        const PRIVATE = [{ title: "Really fast" }];
        """,
        "data.ts",
    )

    candidates, rejected = find_candidates(tree, TEXT_TO_KEY)

    assert [candidate.binding[1] for candidate in candidates] == ["FEATURES"]
    assert rejected == {"LABELS": "type-annotated"}


def test_safe_binding_is_planned_for_every_file(project, tmp_path: Path) -> None:
    modules = project({"data.ts": DATA, "Features.tsx": FEATURES})

    plan = _analyze(tmp_path, modules)

    data, features = tmp_path / "data.ts", tmp_path / "Features.tsx"
    assert plan.safe == {(data, "FEATURES")}
    assert plan.rejected == {}
    definition = plan.for_file(data).definitions[0]
    assert [item.text for item in definition.occurrences] == ["Fast", "Really fast"]
    [reference] = plan.for_file(features).references
    assert reference.owner.name == "Features"
    assert reference.local == "FEATURES"
    assert plan.files_for([(data, "FEATURES")]) == {data, features}


@pytest.mark.parametrize(
    ("extra", "reason"),
    [
        (
            {
                "Editor.tsx": """
                    import { FEATURES } from "./data";

                    export function Editor() {
                      FEATURES[0] = { title: "Slow" };
                      return null;
                    }
                """
            },
            "assigned",
        ),
        (
            {
                "Sorter.tsx": """
                    import { FEATURES } from "./data";

                    export function Sorter() {
                      FEATURES.sort();
                      return null;
                    }
                """
            },
            "mutating-call:sort",
        ),
        (
            {
                "All.tsx": """
                    import * as data from "./data";

                    export function All() {
                      return <p>{data.FEATURES.length}</p>;
                    }
                """
            },
            "opaque-import:namespace:",
        ),
        (
            {
                "helpers.ts": """
                    import { FEATURES } from "./data";

                    export function count() {
                      return FEATURES.length;
                    }
                """
            },
            "non-component-reference:count",
        ),
        (
            {
                "Barrel.ts": 'export { FEATURES } from "./data";\n',
            },
            "re-exported:",
        ),
    ],
)
def test_unsafe_references_reject_the_binding(
    project, tmp_path: Path, extra, reason
) -> None:
    modules = project({"data.ts": DATA, "Features.tsx": FEATURES, **extra})

    plan = _analyze(tmp_path, modules)

    binding = (tmp_path / "data.ts", "FEATURES")
    assert plan.safe == frozenset()
    assert plan.rejected[binding].startswith(reason)
    assert plan.files == {}


def test_module_scope_reference_rejects(project, tmp_path: Path) -> None:
    modules = project(
        {
            "data.ts": DATA + "console.log(FEATURES);\n",
            "Features.tsx": FEATURES,
        }
    )

    plan = _analyze(tmp_path, modules)

    assert plan.rejected[(tmp_path / "data.ts", "FEATURES")] == (
        "module-scope-reference"
    )


def test_outside_importer_rejects(project, parse, tmp_path: Path) -> None:
    modules = project({"data.ts": DATA, "Features.tsx": FEATURES})
    other = tmp_path / "scripts" / "dump.ts"
    outside = {
        other: collect_imports(
            parse('import { FEATURES } from "../data";\n', other)
        )
    }

    plan = _analyze(tmp_path, modules, outside=outside)

    reason = plan.rejected[(tmp_path / "data.ts", "FEATURES")]
    assert reason.startswith("outside-importer:")


def test_unparsed_mention_rejects(project, tmp_path: Path) -> None:
    modules = project({"data.ts": DATA, "Features.tsx": FEATURES})
    broken = tmp_path / "Broken.tsx"

    plan = _analyze(
        tmp_path,
        modules,
        unparsed={broken: "export const X = () => <p>{FEATURES</p>;"},
    )

    reason = plan.rejected[(tmp_path / "data.ts", "FEATURES")]
    assert reason.startswith("unparsed-mention:")


def test_without_moves_bindings_to_rejected(project, tmp_path: Path) -> None:
    modules = project({"data.ts": DATA, "Features.tsx": FEATURES})
    plan = _analyze(tmp_path, modules)
    binding = (tmp_path / "data.ts", "FEATURES")

    reduced = plan.without([binding], "group-output-invalid")

    assert reduced.files == {}
    assert reduced.rejected == {binding: "group-output-invalid"}
    assert plan.safe == {binding}


def test_outside_importer_of_other_names_is_ignored(
    project, tmp_path: Path
) -> None:
    modules = project({"data.ts": DATA, "Features.tsx": FEATURES})
    outside = {
        tmp_path / "other.ts": ModuleImports(sources=("./somewhere",)),
    }

    plan = _analyze(tmp_path, modules, outside=outside)

    assert plan.safe == {(tmp_path / "data.ts", "FEATURES")}
