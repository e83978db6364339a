from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .adapters.artifacts_foundry import FoundryArtifactSource
from .adapters.ledger_json import JsonDeploymentLedger, JsonRunJournal
from .adapters.rpc_client import JsonRpcLedgerClient
from .config import DeployConfig
from .contracts import ArtifactSource, DeploymentLedger, LedgerClient, RunJournal


@dataclass
class InfraBundle:
    config: DeployConfig
    artifact_source: ArtifactSource
    ledger_client: LedgerClient
    deployment_ledger: DeploymentLedger
    run_journal: Optional[RunJournal] = None

    def describe(self) -> Dict[str, Any]:
        def _d(x: Any) -> Dict[str, Any]:
            if hasattr(x, "describe") and callable(getattr(x, "describe")):
                return dict(getattr(x, "describe")())
            return {"class": x.__class__.__name__}

        return {
            "network": self.config.network,
            "adapters": {
                "artifact_source": _d(self.artifact_source),
                "ledger_client": _d(self.ledger_client),
                "deployment_ledger": _d(self.deployment_ledger),
                "run_journal": _d(self.run_journal) if self.run_journal is not None else {"class": "NotConfigured"},
            },
        }


def _resolve(repo_root: Path, raw: str) -> Path:
    p = Path(raw).expanduser()
    return p if p.is_absolute() else (repo_root / p).resolve()


def build_infra(
    *,
    repo_root: Path,
    config: DeployConfig,
    ledger_client: Optional[LedgerClient] = None,
    artifact_source: Optional[ArtifactSource] = None,
    deployment_ledger: Optional[DeploymentLedger] = None,
    run_journal: Optional[RunJournal] = None,
    sender: str = "",
) -> InfraBundle:
    """Wire the default adapters for a config; any adapter may be supplied instead.

    Relative paths in the config resolve against repo_root.
    """
    return InfraBundle(
        config=config,
        artifact_source=artifact_source or FoundryArtifactSource(_resolve(repo_root, config.artifacts_dir)),
        ledger_client=ledger_client or JsonRpcLedgerClient(config.rpc_url, sender=sender),
        deployment_ledger=deployment_ledger or JsonDeploymentLedger(_resolve(repo_root, config.ledger_path)),
        run_journal=run_journal or JsonRunJournal(_resolve(repo_root, config.journal_path)),
    )
