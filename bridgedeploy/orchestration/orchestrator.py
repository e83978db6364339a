from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..infra.errors import ConfigError, DeployError
from ..infra.factory import InfraBundle
from ..infra.models import AdminOutcome, DeploymentRecord, PhaseOutcome, ProvisioningPlan, WiringOutcome
from ..utils.addresses import normalize_address
from .admin_transfer import AdminTransfer
from .phases import InitializationPhaseSequencer, build_initialization_phases
from .plan import MASTER_MINTER, TOKEN_PROXY, bridge_endpoint, build_provisioning_plan
from .provisioner import ResourceProvisioner
from .role_wiring import RoleWiringEngine


@dataclass(frozen=True)
class RunSummary:
    network_id: str
    deployer: str
    record: DeploymentRecord
    phases: Tuple[PhaseOutcome, ...] = ()
    wiring: Optional[WiringOutcome] = None
    admin: Tuple[AdminOutcome, ...] = ()


def resolve_overrides(infra: InfraBundle, network_id: str) -> Dict[str, str]:
    """Previous run's ledger entries, with explicit config overrides taking precedence."""
    previous = infra.deployment_ledger.load(network_id)
    merged = dict(previous)
    merged.update(infra.config.seeded_overrides())
    return merged


def check_deployer(infra: InfraBundle) -> str:
    """Return the sending address, enforcing the configured cross-check if any."""
    actual = normalize_address(infra.ledger_client.sender())
    expected = infra.config.deployer
    if expected and expected != actual:
        raise ConfigError(f"deployer mismatch: expected={expected} actual={actual}")
    return actual


def plan_run(infra: InfraBundle) -> Tuple[str, str, ProvisioningPlan]:
    """Resolve (network_id, deployer, plan) without issuing any mutating call."""
    deployer = check_deployer(infra)
    network_id = infra.ledger_client.network_id()
    overrides = resolve_overrides(infra, network_id)
    plan = build_provisioning_plan(infra.config, deployer=deployer, overrides=overrides)
    return network_id, deployer, plan


def run_orchestrator(infra: InfraBundle) -> RunSummary:
    """Provision, initialize, wire roles, settle admins, then persist the record.

    Any fatal error aborts the run immediately. Resources that were resolved
    before the failure are written to the ledger as a partial entry so the next
    run adopts them instead of deploying again; the failed resource and
    everything after it are not written.
    """
    cfg = infra.config
    client = infra.ledger_client

    network_id, deployer, plan = plan_run(infra)
    print(f"[orchestrator] network_id={network_id} deployer={deployer} plan={plan.resource_ids()}")
    print(f"[orchestrator] reuse={[r.resource_id for r in plan if r.is_reuse]}")

    record = DeploymentRecord()
    try:
        provisioner = ResourceProvisioner(client, infra.artifact_source, deployer=deployer, proxy_admin=cfg.proxy_admin)
        result = provisioner.provision(plan, record)

        sequencer = InitializationPhaseSequencer(client, journal=infra.run_journal, network_id=network_id)
        phase_outcomes = sequencer.run(record.address_of(TOKEN_PROXY), build_initialization_phases(cfg, record))

        engine = RoleWiringEngine(client, journal=infra.run_journal, network_id=network_id)
        wiring = engine.wire(
            controller=record.address_of(MASTER_MINTER),
            governance=cfg.governance,
            deployer=deployer,
            consumer=bridge_endpoint(record),
            allowance=cfg.minter_allowance,
        )

        admin = AdminTransfer(client)
        admin_outcomes: List[AdminOutcome] = []
        for spec in plan:
            if not spec.upgradeable or spec.resource_id in result.admin_settled:
                continue
            admin_outcomes.append(admin.ensure_admin(record.address_of(spec.resource_id), cfg.proxy_admin))
    except DeployError as e:
        if len(record):
            infra.deployment_ledger.save(network_id, record.as_dict(), complete=False)
        print(f"[orchestrator][FAILED] network_id={network_id} error={type(e).__name__} persisted={list(record.as_dict())}")
        raise

    infra.deployment_ledger.save(network_id, record.as_dict())

    summary = RunSummary(
        network_id=network_id,
        deployer=deployer,
        record=record,
        phases=tuple(phase_outcomes),
        wiring=wiring,
        admin=tuple(admin_outcomes),
    )
    print_summary(summary)
    return summary


def print_summary(summary: RunSummary) -> None:
    print("\nDEPLOYMENT SUMMARY")
    print(f"network_id: {summary.network_id}")
    print(f"deployer:   {summary.deployer}")
    print("")
    for rid, addr in summary.record.items():
        print(f" - {rid:<22} {addr} ({summary.record.provenance(rid)})")
    print("")
    for p in summary.phases:
        print(f" phase {p.phase_id:<34} {p.status}")
    if summary.wiring is not None:
        print(f" wiring {summary.wiring.status} steps={list(summary.wiring.steps_applied)}")
    for a in summary.admin:
        print(f" admin {a.target} {a.action}")
