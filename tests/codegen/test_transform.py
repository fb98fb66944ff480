"""Tests for :mod:`translate_kit.codegen.transform`."""

from __future__ import annotations

from textwrap import dedent

from translate_kit.codegen.models import TransformOptions
from translate_kit.codegen.transform import transform
from translate_kit.core.config import CodegenMode

INLINE = TransformOptions(mode=CodegenMode.INLINE, component_path="@/components/t")


def _code(text: str) -> str:
    return dedent(text).lstrip("\n")


def test_server_component_gets_awaited_accessor(parse) -> None:
    tree = parse(
        """
        export default function Hero() {
          return (
            <section>
              <h1>Welcome</h1>
              <p>Get started today</p>
            </section>
          );
        }
        """
    )

    result = transform(
        tree, {"Welcome": "hero.welcome", "Get started today": "hero.getStarted"}
    )

    assert result.modified
    assert result.strings_wrapped == 2
    assert result.used_keys == ("hero.welcome", "hero.getStarted")
    assert result.client_namespaces == ()
    assert result.code == _code(
        """
        import { getTranslations } from "next-intl/server";

        export default async function Hero() {
          const t = await getTranslations("hero");
          return (
            <section>
              <h1>{t("welcome")}</h1>
              <p>{t("getStarted")}</p>
            </section>
          );
        }
        """
    )


def test_second_pass_changes_nothing(parse) -> None:
    text_to_key = {"Welcome": "hero.welcome", "Get started today": "hero.getStarted"}
    first = transform(
        parse(
            """
            export default function Hero() {
              return <h1 title="Get started today">Welcome</h1>;
            }
            """
        ),
        text_to_key,
    )

    second = transform(parse(first.code), text_to_key)

    assert first.modified
    assert not second.modified
    assert second.code == first.code
    assert set(second.used_keys) == set(text_to_key.values())


def test_client_template_placeholder(parse) -> None:
    tree = parse(
        """
        "use client";

        export function SearchBar({ type }) {
          return <input placeholder={`Search ${type}`} />;
        }
        """
    )

    result = transform(tree, {"Search {type}": "search.searchType"})

    assert result.code == _code(
        """
        "use client";

        import { useTranslations } from "next-intl";

        export function SearchBar({ type }) {
          const t = useTranslations("search");
          return <input placeholder={t("searchType", { type })} />;
        }
        """
    )
    assert result.client_namespaces == ("search",)


def test_expression_arrow_becomes_block(parse) -> None:
    tree = parse("export const Badge = () => <span>Brand new</span>;\n")

    result = transform(tree, {"Brand new": "badge.new"})

    assert result.code == _code(
        """
        import { getTranslations } from "next-intl/server";

        export const Badge = async () => {
          const t = await getTranslations("badge");
          return <span>{t("new")}</span>;
        };
        """
    )


def test_mixed_namespaces_requalify_existing_calls(parse) -> None:
    tree = parse(
        """
        "use client";
        import { useTranslations } from "next-intl";

        export function Hero() {
          const t = useTranslations("hero");
          return (
            <section>
              <h1>{t("title")}</h1>
              <button>Get started</button>
            </section>
          );
        }
        """
    )

    result = transform(tree, {"Get started": "common.getStarted"})

    assert result.code == _code(
        """
        "use client";
        import { useTranslations } from "next-intl";

        export function Hero() {
          const t = useTranslations();
          return (
            <section>
              <h1>{t("hero.title")}</h1>
              <button>{t("common.getStarted")}</button>
            </section>
          );
        }
        """
    )
    assert result.client_namespaces == ("common", "hero")


def test_dynamic_lookup_pins_namespace(parse) -> None:
    tree = parse(
        """
        "use client";
        import { useTranslations } from "next-intl";

        export function Status({ state }) {
          const t = useTranslations("status");
          return (
            <p>
              {t(state)}
              <span>Learn more</span>
            </p>
          );
        }
        """
    )

    result = transform(tree, {"Learn more": "common.learnMore"})

    assert not result.modified
    assert result.strings_wrapped == 0


def test_client_file_with_server_accessor_is_repaired(parse) -> None:
    tree = parse(
        """
        "use client";
        import { getTranslations } from "next-intl/server";

        export async function Nav() {
          const t = await getTranslations("nav");
          return <nav>{t("home")}</nav>;
        }
        """
    )

    result = transform(tree, {})

    assert result.modified
    assert result.strings_wrapped == 0
    assert result.code == _code(
        """
        "use client";
        import { useTranslations } from "next-intl";

        export function Nav() {
          const t = useTranslations("nav");
          return <nav>{t("home")}</nav>;
        }
        """
    )
    assert result.client_namespaces == ("nav",)


def test_forced_client_demotes_server_accessor(parse) -> None:
    tree = parse(
        """
        import { getTranslations } from "next-intl/server";

        export default async function Logo() {
          const t = await getTranslations("logo");
          return <span>{t("name")}</span>;
        }
        """
    )

    result = transform(tree, {}, TransformOptions(force_client=True))

    assert 'import { useTranslations } from "next-intl";' in result.code
    assert "next-intl/server" not in result.code
    assert "export default function Logo()" in result.code
    assert 'const t = useTranslations("logo");' in result.code


def test_foreign_t_binding_is_left_alone(parse) -> None:
    source = """
        export function List({ items }) {
          return items.map((t) => <li key={t.id}>Remove item</li>);
        }
    """
    tree = parse(source)

    result = transform(tree, {"Remove item": "list.remove"})

    assert not result.modified
    assert result.code == _code(source)


def test_unmapped_strings_are_untouched(parse) -> None:
    tree = parse("export const A = () => <p>Hello there</p>;\n")

    result = transform(tree, {})

    assert not result.modified
    assert result.code == "export const A = () => <p>Hello there</p>;\n"


def test_inline_client_wraps_markup_and_attributes(parse) -> None:
    tree = parse(
        """
        "use client";

        export function Promo() {
          return (
            <aside title="Limited offer">
              <h2>Summer sale</h2>
            </aside>
          );
        }
        """
    )

    result = transform(
        tree,
        {"Limited offer": "promo.offer", "Summer sale": "promo.title"},
        INLINE,
    )

    assert result.strings_wrapped == 2
    assert result.code == _code(
        """
        "use client";

        import { T, useT } from "@/components/t";

        export function Promo() {
          const t = useT();
          return (
            <aside title={t("Limited offer", "promo.offer")}>
              <h2><T id="promo.title">Summer sale</T></h2>
            </aside>
          );
        }
        """
    )


def test_inline_server_file_moves_to_server_runtime(parse) -> None:
    tree = parse(
        """
        import { T, useT } from "@/components/t";

        export function Promo() {
          const t = useT();
          return <p>{t("Hi there", "promo.hi")}</p>;
        }
        """
    )

    result = transform(tree, {}, INLINE)

    assert result.code == _code(
        """
        import { T, createT } from "@/components/t-server";

        export function Promo() {
          const t = createT();
          return <p>{t("Hi there", "promo.hi")}</p>;
        }
        """
    )
    assert result.used_keys == ("promo.hi",)


def test_conditional_branches_are_wrapped_independently(parse) -> None:
    tree = parse(
        """
        "use client";

        export function Menu({ open }) {
          return <button>{open ? "Close menu" : "Open menu"}</button>;
        }
        """
    )

    result = transform(tree, {"Close menu": "menu.close"})

    assert '{open ? t("close") : "Open menu"}' in result.code
    assert 'const t = useTranslations("menu");' in result.code
    assert result.strings_wrapped == 1


def test_placeholder_keeps_full_key_when_namespaces_mix(parse) -> None:
    tree = parse(
        """
        "use client";

        export function SearchBar({ type }) {
          return (
            <form>
              <input placeholder={`Search ${type}`} />
              <button>Clear</button>
            </form>
          );
        }
        """
    )

    result = transform(
        tree, {"Search {type}": "common.searchType", "Clear": "search.clear"}
    )

    assert 'placeholder={t("common.searchType", { type })}' in result.code
    assert '<button>{t("search.clear")}</button>' in result.code
    assert "const t = useTranslations();" in result.code


def test_single_file_keys_are_stripped_and_reparse(parse) -> None:
    code = "function Hero(){ return <h1>Welcome to our platform</h1>; }\n"

    result = transform(parse(code), {"Welcome to our platform": "hero.welcome"})

    assert 'getTranslations("hero")' in result.code
    assert 't("welcome")' in result.code
    assert parse(result.code).root.type == "program"


def test_inline_promotion_drops_server_accessor_argument(parse) -> None:
    tree = parse(
        """
        import { createT } from "@/components/t-server";

        export function Promo({ messages }) {
          const t = createT(messages);
          return <p>{t("Hi there", "promo.hi")}</p>;
        }
        """
    )
    options = TransformOptions(
        mode=CodegenMode.INLINE,
        component_path="@/components/t",
        force_client=True,
    )

    result = transform(tree, {}, options)

    assert result.code == _code(
        """
        import { useT } from "@/components/t";

        export function Promo({ messages }) {
          const t = useT();
          return <p>{t("Hi there", "promo.hi")}</p>;
        }
        """
    )


def test_inline_server_accessor_with_bound_argument_is_reused(parse) -> None:
    source = """
        import { createT } from "@/components/t-server";

        export function Promo({ messages }) {
          const t = createT(messages);
          return <p title="Hi friend">{messages.count}</p>;
        }
    """

    result = transform(parse(source), {"Hi friend": "promo.hi"}, INLINE)

    assert result.strings_wrapped == 1
    assert result.code == _code(source).replace(
        'title="Hi friend"', 'title={t("Hi friend", "promo.hi")}'
    )


def test_inline_server_accessor_with_unbound_argument_is_reset(parse) -> None:
    tree = parse(
        """
        import { createT } from "@/components/t-server";

        export function Promo() {
          const t = createT(messages);
          return <p>{t("Hi there", "promo.hi")}</p>;
        }
        """
    )

    result = transform(tree, {}, INLINE)

    assert "const t = createT();" in result.code
    assert "messages" not in result.code


def test_inline_second_pass_changes_nothing(parse) -> None:
    text_to_key = {"Limited offer": "promo.offer", "Summer sale": "promo.title"}
    code = """
        "use client";

        export function Promo() {
          return (
            <aside title="Limited offer">
              <h2>Summer sale</h2>
            </aside>
          );
        }
    """
    first = transform(parse(code), text_to_key, INLINE)

    second = transform(parse(first.code), text_to_key, INLINE)

    assert '<T id="promo.title">Summer sale</T>' in first.code
    assert 't("Limited offer", "promo.offer")' in first.code
    assert not second.modified
    assert second.strings_wrapped == 0
    assert second.code == first.code
    assert set(second.used_keys) == set(text_to_key.values())
