"""Tests for :mod:`translate_kit.graph.imports`."""

from __future__ import annotations

from pathlib import Path

from translate_kit.graph.aliases import AliasConfig, PathAlias
from translate_kit.graph.imports import (
    BindingKind,
    ImportGraph,
    ModuleResolver,
    collect_imports,
)


def test_collect_imports_skips_type_only_and_keeps_dynamic(parse) -> None:
    tree = parse(
        """
        import React from "react";
        import { useState as useLocalState, type FC } from "react";
        import type { Props } from "./types";
        import * as icons from "./icons";
        import "./styles.css";
        export { Button } from "./button";
        export * from "./utils";
        export * as helpers from "./helpers";

        const Chart = React.lazy(() => import("./chart"));
        const legacy = require("./legacy");
        const computed = require(name);
        """
    )

    imports = collect_imports(tree)

    assert imports.sources == (
        "react",
        "./icons",
        "./styles.css",
        "./button",
        "./utils",
        "./helpers",
        "./chart",
        "./legacy",
    )
    by_source = {}
    for binding in imports.bindings:
        by_source.setdefault(binding.source, []).append(binding)

    react = by_source["react"]
    assert [(b.kind, b.imported, b.local) for b in react] == [
        (BindingKind.DEFAULT, "default", "React"),
        (BindingKind.NAMED, "useState", "useLocalState"),
    ]
    assert by_source["./icons"][0].kind is BindingKind.NAMESPACE
    assert by_source["./icons"][0].local == "icons"
    assert by_source["./styles.css"][0].kind is BindingKind.SIDE_EFFECT
    assert by_source["./button"][0].kind is BindingKind.REEXPORT
    assert by_source["./utils"][0].kind is BindingKind.REEXPORT_ALL
    assert by_source["./helpers"][0].kind is BindingKind.NAMESPACE
    assert by_source["./chart"][0].kind is BindingKind.DYNAMIC
    assert by_source["./legacy"][0].kind is BindingKind.REQUIRE
    assert all(
        binding.kind.is_opaque
        for source in ("./icons", "./utils", "./chart", "./legacy")
        for binding in by_source[source]
    )


def _project(tmp_path: Path) -> list[Path]:
    return [
        tmp_path / "app" / "page.tsx",
        tmp_path / "src" / "components" / "Hero.tsx",
        tmp_path / "src" / "components" / "ui" / "index.ts",
        tmp_path / "src" / "lib" / "format.ts",
    ]


def test_module_resolver_tries_extensions_index_and_prefixes(tmp_path: Path) -> None:
    page, hero, ui, format_ = _project(tmp_path)
    resolver = ModuleResolver(root=tmp_path, known_files=_project(tmp_path))

    assert resolver.resolve(page, "../src/components/Hero") == hero
    assert resolver.resolve(page, "@/components/ui") == ui
    assert resolver.resolve(hero, "../lib/format.js") == format_
    assert resolver.resolve(page, "~/lib/format") == format_
    assert resolver.resolve(page, "/src/lib/format") == format_
    assert resolver.resolve(page, "react") is None
    assert resolver.resolve(page, "./missing") is None


def test_module_resolver_finds_module_typescript_files(tmp_path: Path) -> None:
    page = tmp_path / "app" / "page.tsx"
    config = tmp_path / "app" / "config.mts"
    legacy = tmp_path / "app" / "legacy.cts"
    resolver = ModuleResolver(root=tmp_path, known_files=[page, config, legacy])

    assert resolver.resolve(page, "./config") == config
    assert resolver.resolve(page, "./legacy") == legacy


def test_module_resolver_uses_configured_aliases(tmp_path: Path) -> None:
    page, _, _, format_ = _project(tmp_path)
    aliases = AliasConfig(
        aliases=(PathAlias(pattern="#lib/*", targets=(tmp_path / "src" / "lib" / "*",)),),
        base_url=tmp_path / "src",
    )
    resolver = ModuleResolver(
        root=tmp_path, known_files=_project(tmp_path), aliases=aliases
    )

    assert resolver.resolve(page, "#lib/format") == format_
    assert resolver.resolve(page, "lib/format") == format_


def test_import_graph_links_unique_edges_without_self_loops(tmp_path: Path) -> None:
    page, hero, ui, format_ = _project(tmp_path)
    graph = ImportGraph()
    graph.add_file(page, ("@/components/Hero", "../src/components/Hero", "react"))
    graph.add_file(hero, ("./ui", "./Hero", "../lib/format"))
    graph.add_file(ui, ())
    graph.add_file(format_, ())

    graph.link(ModuleResolver(root=tmp_path, known_files=[page, hero, ui, format_]))

    assert len(graph) == 4
    assert graph.targets(page) == (hero,)
    assert graph.targets(hero) == (ui, format_)
    assert graph.targets(ui) == ()
    assert graph.add_file(page).id == graph.id_of(page)
