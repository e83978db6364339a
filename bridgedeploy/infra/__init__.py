from __future__ import annotations

from .models import (
    LinkReference,
    CompiledArtifact,
    ConstructorArg,
    ResourceSpec,
    ProvisioningPlan,
    DeploymentRecord,
    CallResult,
    ProbeResult,
    InitializationPhase,
    PhaseOutcome,
    RoleWiringStep,
    WiringOutcome,
    AdminOutcome,
)

from .errors import (
    DeployError,
    ConfigError,
    LinkOverflow,
    DeploymentFailed,
    RecoverableRevert,
    ProbeUnavailable,
    WiringPartialFailure,
    AdminTransferFailed,
    TransportError,
)

from .contracts import (
    ArtifactSource,
    LedgerClient,
    DeploymentLedger,
    RunJournal,
)

from .config import (
    DeployConfig,
    load_deploy_config,
    parse_deploy_config,
    resolve_config_path,
)

from .factory import (
    InfraBundle,
    build_infra,
)

__all__ = [
    "LinkReference",
    "CompiledArtifact",
    "ConstructorArg",
    "ResourceSpec",
    "ProvisioningPlan",
    "DeploymentRecord",
    "CallResult",
    "ProbeResult",
    "InitializationPhase",
    "PhaseOutcome",
    "RoleWiringStep",
    "WiringOutcome",
    "AdminOutcome",
    "DeployError",
    "ConfigError",
    "LinkOverflow",
    "DeploymentFailed",
    "RecoverableRevert",
    "ProbeUnavailable",
    "WiringPartialFailure",
    "AdminTransferFailed",
    "TransportError",
    "ArtifactSource",
    "LedgerClient",
    "DeploymentLedger",
    "RunJournal",
    "DeployConfig",
    "load_deploy_config",
    "parse_deploy_config",
    "resolve_config_path",
    "InfraBundle",
    "build_infra",
]
