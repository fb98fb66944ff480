"""Tests for :mod:`translate_kit.scanner.extractor`."""

from __future__ import annotations

from translate_kit.scanner.extractor import extract_strings, iter_occurrences
from translate_kit.scanner.models import StringKind


HERO = """
export function Hero({ user }) {
  const cards = [{ title: "Fast setup", icon: "bolt" }];
  return (
    <section className="hero">
      <h1>Welcome back</h1>
      <input placeholder="Search products" type="text" />
      <img alt={user ? "Your avatar" : "Guest avatar"} src="/a.png" />
      <p>{"Learn more"}</p>
      <p>{`Hello ${user.name}`}</p>
      <code>npm install</code>
      <span>42</span>
      <p>{t("existing")}</p>
    </section>
  );
}
"""


def test_extracts_every_supported_shape(parse) -> None:
    tree = parse(HERO, "src/components/Hero.tsx")

    occurrences = iter_occurrences(tree)

    assert [(item.kind, item.text) for item in occurrences] == [
        (StringKind.OBJECT_PROPERTY, "Fast setup"),
        (StringKind.JSX_TEXT, "Welcome back"),
        (StringKind.JSX_ATTRIBUTE, "Search products"),
        (StringKind.JSX_ATTRIBUTE, "Your avatar"),
        (StringKind.JSX_ATTRIBUTE, "Guest avatar"),
        (StringKind.JSX_EXPRESSION, "Learn more"),
        (StringKind.JSX_EXPRESSION, "Hello {userName}"),
        (StringKind.T_CALL, "existing"),
    ]
    assert all(item.owner.name == "Hero" for item in occurrences)
    assert occurrences[2].bare_attribute is True
    assert occurrences[3].bare_attribute is False
    assert occurrences[6].template.values_object() == "{ userName: user.name }"


def test_extract_strings_reports_positions_and_context(parse) -> None:
    tree = parse(HERO, "src/components/Hero.tsx")

    strings = {item.text: item for item in extract_strings(tree)}

    welcome = strings["Welcome back"]
    assert (welcome.line, welcome.column) == (5, 10)
    assert welcome.parent_tag == "h1"
    assert welcome.component_name == "Hero"
    assert strings["Search products"].prop_name == "placeholder"
    assert strings["Fast setup"].prop_name == "title"
    assert "npm install" not in strings


def test_custom_translatable_props(parse) -> None:
    tree = parse(
        """
        export const Tip = () => <Tooltip content="Copied to clipboard" label="Copy" />;
        """
    )

    default = [item.text for item in iter_occurrences(tree)]
    custom = [item.text for item in iter_occurrences(tree, ["content"])]

    assert default == ["Copy"]
    assert custom == ["Copied to clipboard", "Copy"]


def test_module_level_content_needs_an_exported_const(parse) -> None:
    tree = parse(
        """
        export const FEATURES = [
          { title: "Fast", description: "Really fast" },
        ];
        export const metadata = { title: "Home page" };
        const LOCAL = { title: "Local only" };
        """,
        "src/data/features.ts",
    )

    occurrences = iter_occurrences(tree)

    assert [(item.kind, item.text, item.const_name) for item in occurrences] == [
        (StringKind.MODULE_OBJECT_PROPERTY, "Fast", "FEATURES"),
        (StringKind.MODULE_OBJECT_PROPERTY, "Really fast", "FEATURES"),
    ]
    assert occurrences[0].owner is None


def test_markup_text_is_whitespace_collapsed(parse) -> None:
    tree = parse(
        """
        export function Note() {
          return (
            <p>
              Hello
                 world
            </p>
          );
        }
        """
    )

    (occurrence,) = iter_occurrences(tree)

    assert occurrence.text == "Hello world"
    assert tree.slice(occurrence.start, occurrence.end).startswith("Hello")
    assert tree.slice(occurrence.start, occurrence.end).endswith("world")


def test_markup_text_decodes_character_references(parse) -> None:
    tree = parse(
        """
        export function Legal() {
          return (
            <footer>
              <p>Terms &amp; conditions</p>
              <T id="legal.rights">All rights&nbsp;reserved &copy;</T>
            </footer>
          );
        }
        """
    )

    terms, rights = iter_occurrences(tree)

    assert terms.text == "Terms & conditions"
    assert tree.slice(terms.start, terms.end) == "Terms &amp; conditions"
    assert rights.kind is StringKind.T_COMPONENT
    assert rights.text == "All rights\xa0reserved \xa9"


def test_composite_context_for_mixed_markup(parse) -> None:
    tree = parse(
        """
        export function Docs({ topic }) {
          return <p>Read the <a href="/docs">guide</a> for {topic}</p>;
        }
        """
    )

    occurrences = {item.text: item for item in iter_occurrences(tree)}

    assert occurrences["Read the"].composite == "Read the <a>{1}</a> for {topic}"
    assert occurrences["for"].composite == "Read the <a>{1}</a> for {topic}"
    assert occurrences["guide"].composite is None
    assert occurrences["guide"].parent_tag == "a"


def test_inline_wrappers_are_reported_as_existing(parse) -> None:
    tree = parse(
        """
        export function Banner() {
          return (
            <div title={t("Sale ends soon", "banner.saleEnds")}>
              <T id="banner.headline">Big sale</T>
            </div>
          );
        }
        """
    )

    occurrences = iter_occurrences(tree)

    assert [(item.kind, item.text, item.id) for item in occurrences] == [
        (StringKind.T_CALL, "Sale ends soon", "banner.saleEnds"),
        (StringKind.T_COMPONENT, "Big sale", "banner.headline"),
    ]
