"""Tests for :mod:`translate_kit.scanner.filters`."""

from __future__ import annotations

import pytest

from translate_kit.scanner.filters import (
    is_content_property,
    is_ignored_tag,
    is_reserved_export,
    is_translatable_prop,
    should_ignore,
)


@pytest.mark.parametrize(
    ("text", "ignored"),
    [
        ("Sign up", False),
        ("Bienvenue à bord", False),
        ("   ", True),
        ("42", True),
        ("$19.99", True),
        ("---", True),
        ("https://example.com/docs", True),
        ("primary-button", True),
        ("API_KEY", True),
        ("OK", True),
        ("Ok", False),
    ],
)
def test_should_ignore(text: str, ignored: bool) -> None:
    assert should_ignore(text) is ignored


def test_translatable_props_extend_defaults_but_never_override_blocklist() -> None:
    assert is_translatable_prop("placeholder") is True
    assert is_translatable_prop("tooltip") is False
    assert is_translatable_prop("tooltip", ["tooltip"]) is True
    assert is_translatable_prop("className", ["className"]) is False


def test_tag_property_and_export_tables() -> None:
    assert is_ignored_tag("code") is True
    assert is_ignored_tag("SVG") is True
    assert is_ignored_tag("section") is False
    assert is_content_property("description") is True
    assert is_content_property("icon") is False
    assert is_reserved_export("metadata") is True
    assert is_reserved_export("FEATURES") is False
    assert is_reserved_export(None) is False
