from __future__ import annotations

from typing import List, Optional

from ..chain.abi import encode_call
from ..infra.contracts import LedgerClient, RunJournal
from ..infra.errors import WiringPartialFailure
from ..infra.models import RoleWiringStep, WiringOutcome
from ..utils.time import utcnow_iso
from .idempotency import IdempotencyGuard, key_role_wiring

GRANT_TEMPORARY_CONTROLLER = "grant_temporary_controller"
SET_MINTER_ALLOWANCE = "set_minter_allowance"
REVOKE_TEMPORARY_CONTROLLER = "revoke_temporary_controller"
TRANSFER_OWNERSHIP = "transfer_ownership"


def build_role_wiring_steps(*, deployer: str, consumer: str, allowance: int, governance: str) -> List[RoleWiringStep]:
    """The four controller mutations, in the only order that is valid."""
    return [
        RoleWiringStep(GRANT_TEMPORARY_CONTROLLER, "configureController(address,address)", (deployer, consumer)),
        RoleWiringStep(SET_MINTER_ALLOWANCE, "configureMinter(uint256)", (allowance,)),
        RoleWiringStep(REVOKE_TEMPORARY_CONTROLLER, "removeController(address)", (deployer,)),
        RoleWiringStep(TRANSFER_OWNERSHIP, "transferOwnership(address)", (governance,)),
    ]


class RoleWiringEngine:
    """Moves a controller from deployer control to governance control.

    The whole block is gated on one precondition (current owner). Steps are not
    atomic; when a journal is supplied, a cursor is persisted after each step so
    a failed run resumes at the first step that did not complete.
    """

    def __init__(self, client: LedgerClient, *, journal: Optional[RunJournal] = None, network_id: str = "") -> None:
        self.client = client
        self.guard = IdempotencyGuard(client)
        self.journal = journal
        self.network_id = network_id

    def wire(self, *, controller: str, governance: str, deployer: str, consumer: str, allowance: int) -> WiringOutcome:
        key = key_role_wiring(network_id=self.network_id, controller=controller, governance=governance)

        if self.guard.owner_is(controller, governance):
            if self.journal is not None and self.journal.get(key) is not None:
                self.journal.delete(key)
            print(f"[wiring] controller={controller} status=already_wired owner={governance}")
            return WiringOutcome(controller=controller, status="already_wired")

        steps = build_role_wiring_steps(deployer=deployer, consumer=consumer, allowance=allowance, governance=governance)
        cursor = self._cursor(key, len(steps))
        if cursor:
            print(f"[wiring] controller={controller} resuming_at={steps[cursor].step_id} cursor={cursor}")

        applied: List[str] = []
        for idx in range(cursor, len(steps)):
            step = steps[idx]
            res = self.client.call(controller, encode_call(step.signature, step.args))
            if not res.success:
                print(f"[wiring][FAILED] controller={controller} step={step.step_id} applied={applied}")
                raise WiringPartialFailure(
                    f"role wiring step {step.step_id} failed on controller={controller}; "
                    f"completed before failure: {applied or 'none'}",
                    step_id=step.step_id,
                    completed=applied,
                )
            applied.append(step.step_id)
            print(f"[wiring] controller={controller} step={step.step_id} status=applied")
            if self.journal is not None:
                self.journal.put(
                    key,
                    {"kind": "role_wiring", "controller": controller, "cursor": idx + 1, "recorded_at": utcnow_iso()},
                )

        if self.journal is not None:
            self.journal.delete(key)
        return WiringOutcome(controller=controller, status="wired", steps_applied=tuple(applied), resumed_from=cursor)

    def _cursor(self, key: str, step_count: int) -> int:
        if self.journal is None:
            return 0
        entry = self.journal.get(key) or {}
        try:
            cursor = int(entry.get("cursor", 0))
        except (TypeError, ValueError):
            return 0
        # A cursor past the last step means ownership moved elsewhere afterwards; start over.
        if cursor < 0 or cursor >= step_count:
            return 0
        return cursor
