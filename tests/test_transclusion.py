from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from corpus_fixtures import default_config, write_tree
from docmedic.scanner import scan_corpus
from docmedic.transclusion import (
    build_transclusion_map,
    context_dirs,
    normalize_partial_imports,
    orphan_partials,
)


class TransclusionMapTest(unittest.TestCase):
    def _corpus(self, root: Path) -> None:
        write_tree(
            root,
            {
                "_partials/note.mdx": "note",
                "_partials/orphan.mdx": "orphan",
                "a/page.mdx": 'import Note from "../_partials/note.mdx";\n\n<Note />\n',
                "b/deep/page.mdx": "import Note from '/_partials/note.mdx'\n\n<Note />\n",
                "c/page.mdx": 'import Gone from "../_partials/missing.mdx";\n',
                "d/page.mdx": 'import Other from "../shared/note.mdx";\n',
                "shared/note.mdx": "not a partial",
            },
        )

    def test_relative_and_absolute_imports_create_edges(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._corpus(root)
            cfg = default_config()
            docs = scan_corpus(root, cfg)
            tmap = build_transclusion_map(docs, root, cfg)

            note = root / "_partials" / "note.mdx"
            self.assertEqual(set(tmap), {note})
            self.assertEqual(tmap[note], frozenset({root / "a" / "page.mdx", root / "b" / "deep" / "page.mdx"}))
            with self.assertRaises(TypeError):
                tmap[note] = frozenset()  # type: ignore[index]

            orphans = [d.rel_path for d in orphan_partials(docs, tmap)]
            self.assertEqual(orphans, ["_partials/orphan.mdx"])

    def test_context_dirs_union_importer_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._corpus(root)
            cfg = default_config()
            docs = {d.rel_path: d for d in scan_corpus(root, cfg)}
            tmap = build_transclusion_map(docs.values(), root, cfg)

            self.assertEqual(
                context_dirs(docs["_partials/note.mdx"], tmap),
                tuple(sorted([root / "_partials", root / "a", root / "b" / "deep"])),
            )
            self.assertEqual(context_dirs(docs["_partials/orphan.mdx"], tmap), (root / "_partials",))
            self.assertEqual(context_dirs(docs["a/page.mdx"], tmap), (root / "a",))

    def test_absolute_partial_imports_become_relative(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._corpus(root)
            cfg = default_config()
            docs = {d.rel_path: d for d in scan_corpus(root, cfg)}
            doc = docs["b/deep/page.mdx"]
            text = doc.path.read_text(encoding="utf-8")

            out = normalize_partial_imports(text, doc, root, cfg)
            self.assertEqual(out, "import Note from '../../_partials/note.mdx'\n\n<Note />\n")
            self.assertEqual(normalize_partial_imports(out, doc, root, cfg), out)

    def test_root_aliases_apply_to_imports(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            write_tree(
                root,
                {
                    "services/reference/_partials/p.mdx": "p",
                    "services/how-to/page.mdx": 'import P from "/service/reference/_partials/p.mdx";\n',
                },
            )
            cfg = default_config(root_aliases={"/service/": "/services/"})
            docs = scan_corpus(root, cfg)
            tmap = build_transclusion_map(docs, root, cfg)
            self.assertEqual(
                tmap[root / "services/reference/_partials/p.mdx"],
                frozenset({root / "services/how-to/page.mdx"}),
            )


if __name__ == "__main__":
    unittest.main()
