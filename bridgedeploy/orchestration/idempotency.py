from __future__ import annotations

import hashlib
from typing import Any, Optional, Sequence

from ..chain.abi import decode_address, encode_call
from ..infra.contracts import LedgerClient
from ..infra.models import ProbeResult
from ..utils.addresses import is_zero_address


def _hash(parts: list[str]) -> str:
    msg = "|".join([str(x) for x in parts])
    return hashlib.sha256(msg.encode("utf-8")).hexdigest()[:24]


def key_phase(*, network_id: str, target: str, phase_id: str) -> str:
    return "phase_" + _hash([network_id, target.lower(), phase_id])


def key_role_wiring(*, network_id: str, controller: str, governance: str) -> str:
    """Key for the role wiring cursor.

    The governance principal is part of the key so that retargeting governance
    starts a fresh sequence instead of resuming a cursor aimed elsewhere.
    """
    return "wiring_" + _hash([network_id, controller.lower(), governance.lower()])


class IdempotencyGuard:
    """Reads current remote state to decide whether a mutating step is needed."""

    def __init__(self, client: LedgerClient) -> None:
        self.client = client

    def probe(self, target: str, signature: str, args: Sequence[Any] = ()) -> ProbeResult:
        return self.client.static_call(target, encode_call(signature, args))

    def read_address(self, target: str, signature: str) -> Optional[str]:
        """Return the address an accessor reports, or None when the probe fails."""
        res = self.probe(target, signature)
        if not res.ok:
            return None
        try:
            return decode_address(res.returndata)
        except ValueError:
            return None

    def is_unset(self, target: str, signature: str) -> Optional[bool]:
        """True when the accessor reads the zero address; None when unreadable."""
        value = self.read_address(target, signature)
        if value is None:
            return None
        return is_zero_address(value)

    def owner_is(self, target: str, expected: str) -> bool:
        value = self.read_address(target, "owner()")
        return value is not None and value.lower() == expected.lower()
