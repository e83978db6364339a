from __future__ import annotations

from ..chain.abi import decode_address, encode_call
from ..infra.contracts import LedgerClient
from ..infra.errors import AdminTransferFailed
from ..infra.models import PROBE_OK, PROBE_UNSUPPORTED, AdminOutcome
from ..utils.addresses import normalize_address
from .idempotency import IdempotencyGuard


class AdminTransfer:
    """Ensures the administrative delegate of an upgrade proxy equals the desired address."""

    def __init__(self, client: LedgerClient) -> None:
        self.client = client
        self.guard = IdempotencyGuard(client)

    def ensure_admin(self, target: str, desired: str) -> AdminOutcome:
        desired = normalize_address(desired)
        probe = self.guard.probe(target, "admin()")

        status = probe.status
        current = ""
        if status == PROBE_OK:
            try:
                current = decode_address(probe.returndata)
            except ValueError:
                # Short return data means the accessor is not what we expect.
                status = PROBE_UNSUPPORTED

        if status == PROBE_OK:
            if current == desired:
                print(f"[admin] target={target} action=unchanged admin={desired}")
                return AdminOutcome(target=target, action="unchanged", probe_status=PROBE_OK, previous_admin=current)
            self._change(target, desired)
            print(f"[admin] target={target} action=changed previous={current} admin={desired}")
            return AdminOutcome(target=target, action="changed", probe_status=PROBE_OK, previous_admin=current)

        # Accessor missing or reverted: assume the change is needed and issue it.
        print(f"[admin] target={target} probe={status} fallback=assume_and_set")
        self._change(target, desired)
        print(f"[admin] target={target} action=assumed_and_set admin={desired}")
        return AdminOutcome(target=target, action="assumed_and_set", probe_status=status)

    def _change(self, target: str, desired: str) -> None:
        res = self.client.call(target, encode_call("changeAdmin(address)", [desired]))
        if not res.success:
            raise AdminTransferFailed(f"changeAdmin({desired}) failed on {target}")
