"""Tests for :mod:`translate_kit.keys.namespace`."""

from __future__ import annotations

import pytest

from translate_kit.keys.namespace import (
    FALLBACK_NAMESPACE,
    detect_namespace,
    infer_namespace,
    strip_namespace,
)


@pytest.mark.parametrize(
    ("keys", "expected"),
    [
        (["hero.welcome", "hero.getStarted"], "hero"),
        (["hero.welcome"], "hero"),
        (["hero.welcome", "common.cancel"], None),
        (["hero.welcome", "welcome"], None),
        ([], None),
    ],
)
def test_detect_namespace(keys: list[str], expected: str | None) -> None:
    assert detect_namespace(keys) == expected


def test_strip_namespace_only_drops_matching_prefix() -> None:
    assert strip_namespace("hero.cta.primary", "hero") == "cta.primary"
    assert strip_namespace("heroes.title", "hero") == "heroes.title"
    assert strip_namespace("hero.title", None) == "hero.title"


def test_infer_namespace_prefers_component_then_route_then_file() -> None:
    assert infer_namespace(component_name="PricingTable") == "pricingTable"
    assert (
        infer_namespace(component_name="__default__", route_path="blog.[slug]")
        == "blog"
    )
    assert infer_namespace(file="src/components/NavBar.tsx") == "navBar"
    assert infer_namespace(file="src/app/checkout/page.tsx") == "checkout"
    assert infer_namespace(file="src/app/[locale]/page.tsx") == FALLBACK_NAMESPACE
    assert infer_namespace() == FALLBACK_NAMESPACE
