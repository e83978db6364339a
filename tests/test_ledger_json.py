from __future__ import annotations

import json
import tempfile
import unittest
from unittest import mock
from pathlib import Path

from _testutil import ensure_repo_on_path

A = "0x" + "11" * 20
B = "0x" + "22" * 20


class TestJsonDeploymentLedger(unittest.TestCase):
    def test_missing_file_loads_empty(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import JsonDeploymentLedger

        with tempfile.TemporaryDirectory() as td:
            self.assertEqual(JsonDeploymentLedger(Path(td) / "deployments.json").load("1"), {})

    def test_networks_are_kept_apart(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import JsonDeploymentLedger

        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "deployments.json"
            ledger = JsonDeploymentLedger(path)
            ledger.save("1", {"token_proxy": A})
            ledger.save("10", {"token_proxy": B}, complete=False)

            reopened = JsonDeploymentLedger(path)
            self.assertEqual(reopened.load("1"), {"token_proxy": A})
            self.assertEqual(reopened.load("10"), {"token_proxy": B})

            raw = json.loads(path.read_text(encoding="utf-8"))
            self.assertTrue(raw["1"]["complete"])
            self.assertFalse(raw["10"]["complete"])
            self.assertIn("updated_at", raw["1"])

    def test_save_replaces_network_entry(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import JsonDeploymentLedger

        with tempfile.TemporaryDirectory() as td:
            ledger = JsonDeploymentLedger(Path(td) / "deployments.json")
            ledger.save("1", {"token_proxy": A, "master_minter": B})
            ledger.save("1", {"token_proxy": B})
            self.assertEqual(ledger.load("1"), {"token_proxy": B})

    def test_invalid_contents_raise_config_error(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import JsonDeploymentLedger
        from bridgedeploy.infra.errors import ConfigError

        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "deployments.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ConfigError):
                JsonDeploymentLedger(path).load("1")

            path.write_text(json.dumps({"1": {"addresses": {"token_proxy": "0xzz"}}}), encoding="utf-8")
            with self.assertRaises(ConfigError):
                JsonDeploymentLedger(path).load("1")

    def test_failed_write_keeps_previous_file_and_leaves_no_temp(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import JsonDeploymentLedger

        for target in ("bridgedeploy.utils.fs.os.fsync", "bridgedeploy.utils.fs.os.replace"):
            with self.subTest(target=target), tempfile.TemporaryDirectory() as td:
                path = Path(td) / "deployments.json"
                ledger = JsonDeploymentLedger(path)
                ledger.save("1", {"token_proxy": A})
                before = path.read_text(encoding="utf-8")

                with mock.patch(target, side_effect=OSError("disk full")):
                    with self.assertRaises(OSError):
                        ledger.save("1", {"token_proxy": B})

                self.assertEqual(path.read_text(encoding="utf-8"), before)
                self.assertEqual(sorted(p.name for p in Path(td).iterdir()), ["deployments.json"])


class TestRunJournals(unittest.TestCase):
    def test_json_journal_survives_reopen(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import JsonRunJournal

        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / ".deploy-journal.json"
            j = JsonRunJournal(path)
            self.assertIsNone(j.get("k"))
            j.put("k", {"cursor": 2})
            j.put("other", {"cursor": 1})

            j2 = JsonRunJournal(path)
            self.assertEqual(j2.get("k"), {"cursor": 2})
            j2.delete("k")
            j2.delete("never-there")
            self.assertIsNone(JsonRunJournal(path).get("k"))
            self.assertEqual(JsonRunJournal(path).get("other"), {"cursor": 1})

    def test_memory_journal_returns_copies(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.adapters.ledger_json import MemoryRunJournal

        j = MemoryRunJournal()
        j.put("k", {"cursor": 1})
        got = j.get("k")
        got["cursor"] = 9
        self.assertEqual(j.get("k"), {"cursor": 1})


if __name__ == "__main__":
    unittest.main()
