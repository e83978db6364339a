from __future__ import annotations

import unittest

from _testutil import ensure_repo_on_path

ensure_repo_on_path()

from _fakechain import DEPLOYER, PROXY_ADMIN, FakeBridgeProxy, FakeLedger  # noqa: E402


class TestAdminTransfer(unittest.TestCase):
    def _proxy(self, ledger: FakeLedger, admin: str = DEPLOYER):
        return ledger.install(FakeBridgeProxy, "0x" + "99" * 20, admin)

    def test_matching_admin_is_unchanged(self) -> None:
        from bridgedeploy.orchestration.admin_transfer import AdminTransfer

        ledger = FakeLedger()
        proxy = self._proxy(ledger, PROXY_ADMIN)

        out = AdminTransfer(ledger).ensure_admin(proxy.address, PROXY_ADMIN)
        self.assertEqual(out.action, "unchanged")
        self.assertEqual(ledger.calls, [])

    def test_different_admin_is_changed(self) -> None:
        from bridgedeploy.orchestration.admin_transfer import AdminTransfer

        ledger = FakeLedger()
        proxy = self._proxy(ledger)

        out = AdminTransfer(ledger).ensure_admin(proxy.address, PROXY_ADMIN)
        self.assertEqual(out.action, "changed")
        self.assertEqual(out.previous_admin, DEPLOYER)
        self.assertEqual(proxy.admin, PROXY_ADMIN)

    def test_unsupported_or_reverted_probe_falls_back_to_change(self) -> None:
        from bridgedeploy.orchestration.admin_transfer import AdminTransfer

        for mode in ("unsupported", "reverted"):
            with self.subTest(mode=mode):
                ledger = FakeLedger()
                proxy = self._proxy(ledger)
                proxy.admin_probe = mode

                out = AdminTransfer(ledger).ensure_admin(proxy.address, PROXY_ADMIN)
                self.assertEqual(out.action, "assumed_and_set")
                self.assertEqual(out.probe_status, mode)
                self.assertEqual(ledger.names(), ["changeAdmin(address)"])
                self.assertEqual(proxy.admin, PROXY_ADMIN)

    def test_failed_change_raises(self) -> None:
        from bridgedeploy.infra.errors import AdminTransferFailed
        from bridgedeploy.orchestration.admin_transfer import AdminTransfer

        ledger = FakeLedger()
        # held by someone else: the deployer cannot change it
        proxy = self._proxy(ledger, "0x" + "ee" * 20)

        with self.assertRaises(AdminTransferFailed):
            AdminTransfer(ledger).ensure_admin(proxy.address, PROXY_ADMIN)


if __name__ == "__main__":
    unittest.main()
