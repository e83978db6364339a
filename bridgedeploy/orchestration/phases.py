from __future__ import annotations

from typing import Any, List, Optional, Sequence

from ..chain.abi import encode_call
from ..infra.config import DeployConfig
from ..infra.contracts import LedgerClient, RunJournal
from ..infra.models import (
    PHASE_ALREADY_APPLIED,
    PHASE_APPLIED,
    PHASE_SKIPPED,
    DeploymentRecord,
    InitializationPhase,
    PhaseOutcome,
)
from ..utils.addresses import is_zero_address
from ..utils.time import utcnow_iso
from .idempotency import IdempotencyGuard, key_phase
from .plan import MASTER_MINTER

BASE_INITIALIZE = "base_initialize"
NAME_UPDATE = "name_update"
LOST_AND_FOUND_UPDATE = "lost_and_found_update"
BLACKLIST_MIGRATION_SYMBOL_UPDATE = "blacklist_migration_symbol_update"

PHASE_ORDER = (BASE_INITIALIZE, NAME_UPDATE, LOST_AND_FOUND_UPDATE, BLACKLIST_MIGRATION_SYMBOL_UPDATE)


def build_initialization_phases(config: DeployConfig, record: DeploymentRecord) -> List[InitializationPhase]:
    """Initialization calls for the token, in the order later phases depend on.

    Role addresses that are not configured default to the governance principal.
    """
    controller = record.address_of(MASTER_MINTER)
    pauser = config.roles.pauser or config.governance
    blacklister = config.roles.blacklister or config.governance
    owner = config.roles.owner or config.governance
    tok = config.token

    return [
        InitializationPhase(
            phase_id=BASE_INITIALIZE,
            signature="initialize(string,string,string,uint8,address,address,address,address)",
            args=(tok.name, tok.symbol, tok.currency, tok.decimals, controller, pauser, blacklister, owner),
            required_input=controller,
            precheck_signature="masterMinter()",
        ),
        InitializationPhase(
            phase_id=NAME_UPDATE,
            signature="initializeV2(string)",
            args=(tok.name,),
            required_input=tok.name,
        ),
        InitializationPhase(
            phase_id=LOST_AND_FOUND_UPDATE,
            signature="initializeV2_1(address)",
            args=(config.roles.lost_and_found,),
            required_input=config.roles.lost_and_found,
        ),
        InitializationPhase(
            phase_id=BLACKLIST_MIGRATION_SYMBOL_UPDATE,
            signature="initializeV2_2(address[],string)",
            args=(list(config.blacklist_migration), tok.symbol),
            required_input=tok.symbol,
        ),
    ]


def _input_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return True
        if s.lower().startswith("0x"):
            return is_zero_address(s)
        return False
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class InitializationPhaseSequencer:
    """Runs best-effort initialization calls against one deployed resource.

    Rejected calls are logged and swallowed: the resource enforces its own
    one-time guards. When a journal is supplied, completed phases are recorded
    and not re-issued on later runs.
    """

    def __init__(self, client: LedgerClient, *, journal: Optional[RunJournal] = None, network_id: str = "") -> None:
        self.client = client
        self.guard = IdempotencyGuard(client)
        self.journal = journal
        self.network_id = network_id

    def run(self, target: str, phases: Sequence[InitializationPhase]) -> List[PhaseOutcome]:
        outcomes: List[PhaseOutcome] = []
        for phase in phases:
            outcome = self._run_phase(target, phase)
            print(f"[phases] target={target} phase={phase.phase_id} status={outcome.status}" + (f" note={outcome.note!r}" if outcome.note else ""))
            outcomes.append(outcome)
        return outcomes

    def _journal_key(self, target: str, phase: InitializationPhase) -> str:
        return key_phase(network_id=self.network_id, target=target, phase_id=phase.phase_id)

    def _journaled(self, target: str, phase: InitializationPhase) -> bool:
        if self.journal is None:
            return False
        return self.journal.get(self._journal_key(target, phase)) is not None

    def _record(self, target: str, phase: InitializationPhase, how: str) -> None:
        if self.journal is None:
            return
        self.journal.put(
            self._journal_key(target, phase),
            {"kind": "phase", "target": target, "phase_id": phase.phase_id, "how": how, "recorded_at": utcnow_iso()},
        )

    def _run_phase(self, target: str, phase: InitializationPhase) -> PhaseOutcome:
        if _input_missing(phase.required_input):
            return PhaseOutcome(phase.phase_id, PHASE_SKIPPED, "required input empty")

        if self._journaled(target, phase):
            return PhaseOutcome(phase.phase_id, PHASE_ALREADY_APPLIED, "recorded in journal")

        if phase.precheck_signature:
            unset = self.guard.is_unset(target, phase.precheck_signature)
            if unset is None:
                return PhaseOutcome(phase.phase_id, PHASE_SKIPPED, f"precheck {phase.precheck_signature} unreadable on {target}")
            if not unset:
                self._record(target, phase, "precheck")
                return PhaseOutcome(phase.phase_id, PHASE_ALREADY_APPLIED, f"{phase.precheck_signature} already set")

        res = self.client.call(target, encode_call(phase.signature, phase.args))
        if not res.success:
            return PhaseOutcome(phase.phase_id, PHASE_ALREADY_APPLIED, f"already applied or not applicable ({phase.signature} rejected)")

        self._record(target, phase, "call")
        return PhaseOutcome(phase.phase_id, PHASE_APPLIED)
