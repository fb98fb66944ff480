"""Tests for :mod:`translate_kit.keys.keymap`."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import pytest

from translate_kit.keys.errors import KeyGenerationError
from translate_kit.keys.keymap import (
    SlugKeyGenerator,
    generate_text_to_key,
    resolve_collisions,
    resolve_path_conflicts,
)
from translate_kit.scanner.models import ExtractedString, StringKind


def _string(
    text: str,
    *,
    kind: StringKind = StringKind.JSX_TEXT,
    component: str | None = "Hero",
    file: str = "src/components/Hero.tsx",
) -> ExtractedString:
    return ExtractedString(
        text=text,
        kind=kind,
        file=Path(file),
        line=1,
        column=0,
        component_name=component,
    )


def _assert_invariants(mapping: Mapping[str, str]) -> None:
    keys = list(mapping.values())
    assert len(keys) == len(set(keys))
    for key in keys:
        assert not any(other.startswith(key + ".") for other in keys)


def test_resolve_collisions_suffixes_from_two() -> None:
    resolved = resolve_collisions(
        {"Sign in": "auth.signIn", "Log in": "auth.signIn", "Enter": "auth.signIn"},
        {},
    )

    assert resolved == {
        "Sign in": "auth.signIn",
        "Log in": "auth.signIn2",
        "Enter": "auth.signIn3",
    }


def test_resolve_path_conflicts_renames_the_leaf() -> None:
    resolved = resolve_path_conflicts(
        {
            "Item": "nav.item",
            "Item label": "nav.itemLabel",
            "Item name": "nav.item.name",
        }
    )

    assert resolved["Item"] == "nav.itemLabel2"
    assert resolved["Item name"] == "nav.item.name"
    _assert_invariants(resolved)


def test_slug_generator_is_deterministic() -> None:
    generator = SlugKeyGenerator()

    assert generator.slug("Get started now!") == "getStartedNow"
    assert generator.slug("3 items left") == "n3ItemsLeft"
    assert generator.slug("こんにちは") == "text"
    assert generator([_string("Welcome back")], {}) == {
        "Welcome back": "hero.welcomeBack"
    }


def test_generate_text_to_key_keeps_active_existing_entries() -> None:
    strings = [
        _string("Welcome"),
        _string("Get started"),
        _string("welcome", kind=StringKind.T_CALL),
    ]
    existing = {"Welcome": "hero.welcome", "Gone": "hero.gone"}

    mapping = generate_text_to_key(strings, SlugKeyGenerator(), existing=existing)

    assert mapping == {
        "Welcome": "hero.welcome",
        "Get started": "hero.getStarted",
    }


def test_generate_text_to_key_prefixes_bare_keys_and_resolves_collisions() -> None:
    def generator(
        batch: Sequence[ExtractedString],
        existing: Mapping[str, str],
    ) -> dict[str, str]:
        return {item.text: "title" for item in batch}

    strings = [
        _string("Pricing", component="PricingCard"),
        _string("Plans", component="PricingCard"),
    ]

    mapping = generate_text_to_key(strings, generator, batch_size=1)

    assert mapping == {
        "Pricing": "pricingCard.title",
        "Plans": "pricingCard.title2",
    }
    _assert_invariants(mapping)


def test_generate_text_to_key_reports_progress() -> None:
    calls: list[tuple[int, int]] = []
    strings = [_string(f"Feature number {index}") for index in range(5)]

    generate_text_to_key(
        strings,
        SlugKeyGenerator(),
        batch_size=2,
        concurrency=1,
        on_progress=lambda done, total: calls.append((done, total)),
    )

    assert calls[-1] == (5, 5)
    assert len(calls) == 3


def test_generate_text_to_key_raises_after_retries() -> None:
    attempts: list[int] = []

    def generator(
        batch: Sequence[ExtractedString],
        existing: Mapping[str, str],
    ) -> dict[str, str]:
        attempts.append(len(batch))
        raise RuntimeError("service unavailable")

    with pytest.raises(KeyGenerationError):
        generate_text_to_key([_string("Welcome")], generator, retries=0)
    assert attempts == [1]
