from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from corpus_fixtures import default_config, write_tree
from docmedic.config import EngineConfig
from docmedic.links import LinkResolver
from docmedic.records import Category
from docmedic.scanner import scan_corpus
from docmedic.transclusion import build_transclusion_map


class LinkResolverTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _resolve(self, rel: str, cfg: EngineConfig | None = None):
        cfg = cfg or default_config()
        docs = {d.rel_path: d for d in scan_corpus(self.root, cfg)}
        tmap = build_transclusion_map(docs.values(), self.root, cfg)
        resolver = LinkResolver(root=self.root, cfg=cfg, tmap=tmap)
        doc = docs[rel]
        text = doc.path.read_text(encoding="utf-8")
        out, records = resolver.resolve_links(text, doc)
        again, more = resolver.resolve_links(out, doc)
        self.assertEqual(again, out, "second pass must be a no-op")
        self.assertEqual(more, [])
        return out, records

    def test_missing_target_is_stripped_to_text(self) -> None:
        write_tree(self.root, {"x/page.md": "See [Link](../missing/file.md) for more.\n"})
        out, records = self._resolve("x/page.md")
        self.assertEqual(out, "See Link for more.\n")
        self.assertEqual(len(records), 1)
        rec = records[0]
        self.assertEqual(rec.category, Category.BROKEN_LINK)
        self.assertEqual((rec.file, rec.original, rec.text), ("x/page.md", "../missing/file.md", "Link"))
        self.assertIsNone(rec.replacement)

    def test_partial_link_valid_from_root_is_kept(self) -> None:
        text = "[See config](/services/concepts/config.md)\n"
        write_tree(
            self.root,
            {
                "_partials/note.mdx": text,
                "a/page.mdx": 'import Note from "../_partials/note.mdx";\n',
                "b/page.mdx": 'import Note from "../_partials/note.mdx";\n',
                "services/concepts/config.md": "# Config\n",
            },
        )
        out, records = self._resolve("_partials/note.mdx")
        self.assertEqual(out, text)
        self.assertEqual(records, [])

    def test_partial_link_valid_from_one_importer_only(self) -> None:
        text = "Read [the sibling](sibling.md) first.\n"
        write_tree(
            self.root,
            {
                "_partials/p.md": text,
                "a/page.mdx": 'import P from "../_partials/p.md";\n',
                "b/page.mdx": 'import P from "../_partials/p.md";\n',
                "b/sibling.md": "sibling",
            },
        )
        out, records = self._resolve("_partials/p.md")
        self.assertEqual(out, text)
        self.assertEqual(records, [])

    def test_orphan_partial_uses_own_directory_only(self) -> None:
        write_tree(
            self.root,
            {
                "_partials/p.md": "Read [the sibling](sibling.md) first.\n",
                "b/sibling.md": "sibling",
            },
        )
        out, records = self._resolve("_partials/p.md")
        self.assertEqual(out, "Read the sibling first.\n")
        self.assertEqual([r.category for r in records], [Category.BROKEN_LINK])

    def test_external_anchor_and_code_links_are_untouched(self) -> None:
        text = (
            "[web](https://example.com/x) [mail](mailto:a@example.com) [top](#top)\n"
            "`[inline](missing.md)`\n"
            "```md\n[fenced](missing.md)\n```\n"
            "{/* [commented](missing.md) */}\n"
            "![picture](missing.png)\n"
        )
        write_tree(self.root, {"page.md": text})
        out, records = self._resolve("page.md")
        self.assertEqual(out, text)
        self.assertEqual(records, [])

    def test_fragment_extension_and_sibling_fallback(self) -> None:
        text = (
            "[frag](../other/page.md#install) [noext](../other/page) "
            "[mdx](../other/guide) [sib](../../sibling.md)\n"
        )
        write_tree(
            self.root,
            {
                "x/page.md": text,
                "other/page.md": "p",
                "other/guide.mdx": "g",
                "x/sibling.md": "s",
            },
        )
        out, records = self._resolve("x/page.md")
        self.assertEqual(out, text)
        self.assertEqual(records, [])

    def test_links_escaping_the_root_are_broken(self) -> None:
        docs = self.root / "docs"
        write_tree(docs, {"page.md": "[up](../outside.md)\n"})
        write_tree(self.root, {"outside.md": "x"})
        cfg = default_config()
        doc = scan_corpus(docs, cfg)[0]
        resolver = LinkResolver(root=docs, cfg=cfg, tmap=build_transclusion_map([doc], docs, cfg))
        out, records = resolver.resolve_links(doc.path.read_text(encoding="utf-8"), doc)
        self.assertEqual(out, "up\n")
        self.assertEqual(len(records), 1)

    def test_builtin_repair_pattern_rewrites_and_keeps_fragment(self) -> None:
        write_tree(
            self.root,
            {
                "services/reference/ethereum/json-rpc/page.md": "[Gas](../../ethereum/concepts/gas.md#fees)\n",
                "services/concepts/gas.md": "gas",
            },
        )
        out, records = self._resolve("services/reference/ethereum/json-rpc/page.md")
        self.assertEqual(out, "[Gas](/services/concepts/gas.md#fees)\n")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].category, Category.REPAIRED_LINK)
        self.assertEqual(records[0].original, "../../ethereum/concepts/gas.md#fees")
        self.assertEqual(records[0].replacement, "/services/concepts/gas.md#fees")

    def test_first_validating_repair_wins(self) -> None:
        cfg = EngineConfig.from_mapping(
            {
                "repair_patterns": [
                    {"pattern": r"^legacy/(.+)$", "replacement": r"/nowhere/\1"},
                    {"pattern": r"^legacy/(.+)$", "replacement": r"/current/\1"},
                    {"pattern": r"^legacy/(.+)$", "replacement": r"/also-current/\1"},
                ]
            }
        )
        write_tree(
            self.root,
            {
                "page.md": '[Doc](legacy/intro.md "Intro")\n',
                "current/intro.md": "i",
                "also-current/intro.md": "i",
            },
        )
        out, _ = self._resolve("page.md", cfg)
        self.assertEqual(out, '[Doc](/current/intro.md "Intro")\n')

    def test_configured_replacements_apply_before_validation(self) -> None:
        cfg = EngineConfig.from_mapping(
            {
                "replacements": {"/old/page": "https://example.com/new"},
                "patterns": [
                    {
                        "pattern": "/developer-tools/dashboard/.+",
                        "replacement": "https://example.com/dashboard/",
                        "extractPath": True,
                    }
                ],
            }
        )
        write_tree(
            self.root,
            {"page.md": "[a](old/page) and [b](/developer-tools/dashboard/how-to/keys)\n"},
        )
        out, records = self._resolve("page.md", cfg)
        self.assertEqual(
            out,
            "[a](https://example.com/new) and [b](https://example.com/dashboard/how-to/keys)\n",
        )
        self.assertEqual([r.detail for r in records], ["replacement", "replacement"])

    def test_unresolvable_replacement_keeps_valid_target(self) -> None:
        cfg = EngineConfig.from_mapping({"replacements": {"/guide.md": "/moved/guide.md"}})
        write_tree(self.root, {"page.md": "[Guide](guide.md)\n", "guide.md": "g"})
        out, records = self._resolve("page.md", cfg)
        self.assertEqual(out, "[Guide](guide.md)\n")
        self.assertEqual(records, [])

    def test_broken_link_nested_in_valid_link_is_stripped(self) -> None:
        write_tree(
            self.root,
            {
                "page.md": "[[a](bad.md)](good.md) and [[b](bad.md)](https://example.com)\n",
                "good.md": "g",
            },
        )
        out, records = self._resolve("page.md")
        self.assertEqual(out, "[a](good.md) and [b](https://example.com)\n")
        self.assertEqual([(r.category, r.original) for r in records], [(Category.BROKEN_LINK, "bad.md")] * 2)

    def test_stripping_titled_and_nested_links_leaves_no_markup(self) -> None:
        write_tree(
            self.root,
            {"page.md": 'A [titled](gone.md "Gone") and [[inner](gone-a.md)](gone-b.md) link.\n'},
        )
        out, records = self._resolve("page.md")
        self.assertEqual(out, "A titled and inner link.\n")
        self.assertEqual(len(records), 3)
        self.assertTrue(all(r.category is Category.BROKEN_LINK for r in records))


if __name__ == "__main__":
    unittest.main()
