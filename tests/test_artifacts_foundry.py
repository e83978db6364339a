from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from _testutil import ensure_repo_on_path


def _write(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class TestFoundryArtifactSource(unittest.TestCase):
    def test_foundry_layout_with_link_references(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.artifacts_foundry import FoundryArtifactSource

        with tempfile.TemporaryDirectory() as td:
            out = Path(td)
            _write(
                out / "FiatTokenV2_2.sol" / "FiatTokenV2_2.json",
                {
                    "bytecode": {
                        "object": "0x6080" + "00" * 60,
                        "linkReferences": {
                            "src/util/SignatureChecker.sol": {"SignatureChecker": [{"start": 40, "length": 20}, {"start": 2, "length": 20}]},
                            "src/util/Aaa.sol": {"Aaa": [{"start": 22, "length": 20}]},
                        },
                    }
                },
            )
            art = FoundryArtifactSource(out).lookup("FiatTokenV2_2")

        self.assertEqual(art.name, "FiatTokenV2_2")
        self.assertTrue(art.object_code.startswith("0x6080"))
        self.assertEqual([(r.symbol, r.start) for r in art.link_references], [("Aaa", 22), ("SignatureChecker", 40), ("SignatureChecker", 2)])
        self.assertEqual(art.link_references[1].source_file, "src/util/SignatureChecker.sol")

    def test_flat_layout_without_prefix(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.artifacts_foundry import FoundryArtifactSource

        with tempfile.TemporaryDirectory() as td:
            out = Path(td)
            _write(out / "proxy" / "FiatTokenProxy.json", {"bytecode": "6080abcd"})
            art = FoundryArtifactSource(out).lookup("FiatTokenProxy")

        self.assertEqual(art.object_code, "0x6080abcd")
        self.assertEqual(art.link_references, ())

    def test_missing_or_empty_artifacts(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.artifacts_foundry import FoundryArtifactSource
        from bridgedeploy.infra.errors import ConfigError

        with tempfile.TemporaryDirectory() as td:
            out = Path(td)
            _write(out / "Iface.sol" / "Iface.json", {"bytecode": {"object": "0x", "linkReferences": {}}})
            src = FoundryArtifactSource(out)
            with self.assertRaises(ConfigError):
                src.lookup("Nope")
            with self.assertRaises(ConfigError):
                src.lookup("Iface")

    def test_malformed_link_reference(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.artifacts_foundry import parse_link_references
        from bridgedeploy.infra.errors import ConfigError

        with self.assertRaises(ConfigError):
            parse_link_references({"a.sol": {"A": [{"start": 1}]}})
        self.assertEqual(parse_link_references(None), [])


if __name__ == "__main__":
    unittest.main()
