from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .models import CallResult, CompiledArtifact, ProbeResult


class ArtifactSource(Protocol):
    """Read-only source of compiled object code and its link references."""

    def lookup(self, name: str) -> CompiledArtifact:
        raise NotImplementedError


class LedgerClient(Protocol):
    """Blocking request/response interface to the remote ledger.

    Signing, gas and confirmation policy belong to the implementation; callers
    only see the outcome of each call once it is final.
    """

    def sender(self) -> str:
        raise NotImplementedError

    def network_id(self) -> str:
        raise NotImplementedError

    def call(self, target: Optional[str], payload: bytes) -> CallResult:
        """Mutating call. `target=None` creates code and reports the new address."""
        raise NotImplementedError

    def static_call(self, target: str, payload: bytes) -> ProbeResult:
        """Read-only call; never mutates state."""
        raise NotImplementedError


class DeploymentLedger(Protocol):
    """Persisted resource id -> address map, keyed by network id."""

    def load(self, network_id: str) -> Dict[str, str]:
        raise NotImplementedError

    def save(self, network_id: str, addresses: Dict[str, str], *, complete: bool = True) -> None:
        """Replace the entry for a network. `complete=False` marks an aborted run."""
        raise NotImplementedError


class RunJournal(Protocol):
    """Append/replace store of completed steps, keyed by idempotency key.

    Entries are written as soon as a step completes so a later run can resume
    after an abort.
    """

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def put(self, key: str, entry: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError
