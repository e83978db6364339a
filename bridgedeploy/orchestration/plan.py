from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from ..infra.config import DeployConfig
from ..infra.models import ConstructorArg, DeploymentRecord, ProvisioningPlan, ResourceSpec

SIGNATURE_CHECKER = "signature_checker"
TOKEN_IMPLEMENTATION = "token_implementation"
TOKEN_PROXY = "token_proxy"
MASTER_MINTER = "master_minter"
BRIDGE_IMPLEMENTATION = "bridge_implementation"
BRIDGE_PROXY = "bridge_proxy"

# Dependency order is fixed by the domain: each entry only references entries before it.
PLAN_ORDER = (
    SIGNATURE_CHECKER,
    TOKEN_IMPLEMENTATION,
    TOKEN_PROXY,
    MASTER_MINTER,
    BRIDGE_IMPLEMENTATION,
    BRIDGE_PROXY,
)

# Library symbol the token implementation is linked against.
SIGNATURE_CHECKER_SYMBOL = "SignatureChecker"


def build_provisioning_plan(
    config: DeployConfig,
    *,
    deployer: str,
    overrides: Optional[Mapping[str, str]] = None,
) -> ProvisioningPlan:
    """Build the ordered resource plan.

    `overrides` maps resource ids to existing addresses (config overrides merged
    over the previous run's ledger). When omitted, the config's own overrides apply.
    """
    ov: Dict[str, str] = dict(config.seeded_overrides() if overrides is None else overrides)

    def _spec(resource_id: str, **kwargs) -> ResourceSpec:
        return ResourceSpec(
            resource_id=resource_id,
            artifact_name=config.artifact_name(resource_id),
            override=str(ov.get(resource_id, "") or ""),
            **kwargs,
        )

    resources: List[ResourceSpec] = [
        _spec(SIGNATURE_CHECKER),
        _spec(TOKEN_IMPLEMENTATION, libraries={SIGNATURE_CHECKER_SYMBOL: SIGNATURE_CHECKER}),
        _spec(
            TOKEN_PROXY,
            constructor_args=(ConstructorArg("address", ref=TOKEN_IMPLEMENTATION),),
            upgradeable=True,
        ),
        _spec(MASTER_MINTER, constructor_args=(ConstructorArg("address", ref=TOKEN_PROXY),)),
        _spec(
            BRIDGE_IMPLEMENTATION,
            constructor_args=(
                ConstructorArg("address", value=config.l1_bridge_proxy),
                ConstructorArg("address", value=config.l1_token),
                ConstructorArg("address", ref=TOKEN_PROXY),
            ),
        ),
    ]
    if config.deploy_bridge_proxy:
        resources.append(
            _spec(
                BRIDGE_PROXY,
                constructor_args=(
                    ConstructorArg("address", ref=BRIDGE_IMPLEMENTATION),
                    ConstructorArg("address", value=deployer),
                    ConstructorArg("bytes", value=b""),
                ),
                upgradeable=True,
            )
        )
    return ProvisioningPlan(resources=tuple(resources))


def bridge_endpoint(record: DeploymentRecord) -> str:
    """Address the controller grants minting to: the bridge proxy when present."""
    return record.get(BRIDGE_PROXY) or record.address_of(BRIDGE_IMPLEMENTATION)
