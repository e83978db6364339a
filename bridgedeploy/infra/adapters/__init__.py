from __future__ import annotations

from .artifacts_foundry import FoundryArtifactSource
from .ledger_json import JsonDeploymentLedger, JsonRunJournal, MemoryRunJournal
from .rpc_client import JsonRpcLedgerClient, RpcError

__all__ = [
    "FoundryArtifactSource",
    "JsonDeploymentLedger",
    "JsonRunJournal",
    "MemoryRunJournal",
    "JsonRpcLedgerClient",
    "RpcError",
]
