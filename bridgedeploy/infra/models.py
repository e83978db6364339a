from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple

# Provenance of an entry in a DeploymentRecord.
Provenance = Literal["deployed", "reused"]
PROVENANCE_VALUES: Tuple[str, ...] = ("deployed", "reused")

# Outcomes reported by the initialization sequencer.
PHASE_APPLIED = "applied"
PHASE_ALREADY_APPLIED = "already_applied"
PHASE_SKIPPED = "skipped"

# Typed read-only probe statuses.
PROBE_OK = "ok"
PROBE_UNSUPPORTED = "unsupported"
PROBE_REVERTED = "reverted"


@dataclass(frozen=True)
class LinkReference:
    """Placeholder window inside object code that must receive a library address."""

    symbol: str
    start: int
    length: int = 20

    # Source unit that declared the library, as reported by the compiler.
    source_file: str = ""


@dataclass(frozen=True)
class CompiledArtifact:
    name: str
    object_code: str
    link_references: Tuple[LinkReference, ...] = ()


@dataclass(frozen=True)
class ConstructorArg:
    """One ABI-typed constructor argument.

    Either `value` is a literal, or `ref` names another resource whose resolved
    address is substituted at deployment time.
    """

    abi_type: str
    value: Any = None
    ref: str = ""


@dataclass(frozen=True)
class ResourceSpec:
    resource_id: str
    artifact_name: str

    # Presence means reuse; absence means deploy.
    override: str = ""

    constructor_args: Tuple[ConstructorArg, ...] = ()

    # Library symbol -> resource_id providing its address.
    libraries: Dict[str, str] = field(default_factory=dict)

    # Sits behind an upgrade-indirection layer with an administrative delegate.
    upgradeable: bool = False

    @property
    def is_reuse(self) -> bool:
        return bool(str(self.override or "").strip())


@dataclass(frozen=True)
class ProvisioningPlan:
    """Resources in fixed dependency order."""

    resources: Tuple[ResourceSpec, ...] = ()

    def resource_ids(self) -> List[str]:
        return [r.resource_id for r in self.resources]

    def get(self, resource_id: str) -> ResourceSpec:
        for r in self.resources:
            if r.resource_id == resource_id:
                return r
        raise KeyError(resource_id)

    def __contains__(self, resource_id: object) -> bool:
        return any(r.resource_id == resource_id for r in self.resources)

    def __iter__(self) -> Iterator[ResourceSpec]:
        return iter(self.resources)


class DeploymentRecord:
    """Resource id -> resolved address, built incrementally during a run.

    Entries are only ever added; an address is written once a resource is known
    to exist on the ledger.
    """

    def __init__(self) -> None:
        self._addresses: Dict[str, str] = {}
        self._provenance: Dict[str, str] = {}

    def record(self, resource_id: str, address: str, provenance: Provenance) -> None:
        if provenance not in PROVENANCE_VALUES:
            raise ValueError(f"Invalid provenance: {provenance!r}")
        self._addresses[resource_id] = address
        self._provenance[resource_id] = provenance

    def get(self, resource_id: str) -> Optional[str]:
        return self._addresses.get(resource_id)

    def address_of(self, resource_id: str) -> str:
        return self._addresses[resource_id]

    def provenance(self, resource_id: str) -> str:
        return self._provenance.get(resource_id, "")

    def as_dict(self) -> Dict[str, str]:
        return dict(self._addresses)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._addresses.items())

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)


@dataclass(frozen=True)
class CallResult:
    """Outcome of a mutating call or a code-creation call."""

    success: bool

    # Created address for code-creation calls; empty otherwise.
    address: str = ""

    returndata: bytes = b""
    tx_hash: str = ""


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a read-only call.

    A failed probe with no revert data is treated as an unsupported accessor;
    a failed probe carrying revert data is a genuine revert.
    """

    ok: bool
    returndata: bytes = b""

    @property
    def status(self) -> str:
        if self.ok:
            return PROBE_OK
        if not self.returndata:
            return PROBE_UNSUPPORTED
        return PROBE_REVERTED


@dataclass(frozen=True)
class InitializationPhase:
    phase_id: str
    signature: str
    args: Tuple[Any, ...] = ()

    # Phase is skipped when this is empty or the zero address.
    required_input: Any = None

    # Read-only accessor returning an address; phase runs only while it reads zero.
    precheck_signature: str = ""


@dataclass(frozen=True)
class PhaseOutcome:
    phase_id: str
    status: str
    note: str = ""


@dataclass(frozen=True)
class RoleWiringStep:
    step_id: str
    signature: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class WiringOutcome:
    controller: str

    # "already_wired" when the precondition held, "wired" otherwise.
    status: str
    steps_applied: Tuple[str, ...] = ()
    resumed_from: int = 0


@dataclass(frozen=True)
class AdminOutcome:
    target: str

    # "unchanged", "changed" or "assumed_and_set".
    action: str
    probe_status: str = ""
    previous_admin: str = ""
