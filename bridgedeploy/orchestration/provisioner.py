from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..chain.abi import encode_args, encode_call
from ..chain.linker import link_bytecode
from ..infra.contracts import ArtifactSource, LedgerClient
from ..infra.errors import AdminTransferFailed, ConfigError, DeploymentFailed
from ..infra.models import DeploymentRecord, ProvisioningPlan, ResourceSpec
from ..utils.addresses import is_zero_address, normalize_address


@dataclass(frozen=True)
class ProvisioningResult:
    record: DeploymentRecord

    # Upgradeable resources whose admin delegate was set right after deployment.
    admin_settled: Tuple[str, ...] = ()


def _hex_to_bytes(object_code: str) -> bytes:
    s = str(object_code or "").strip()
    if s.startswith("0x"):
        s = s[2:]
    return bytes.fromhex(s)


class ResourceProvisioner:
    """Decides reuse-vs-deploy per resource and deploys in plan order."""

    def __init__(self, client: LedgerClient, artifacts: ArtifactSource, *, deployer: str, proxy_admin: str) -> None:
        self.client = client
        self.artifacts = artifacts
        self.deployer = normalize_address(deployer)
        self.proxy_admin = normalize_address(proxy_admin)

    def provision(self, plan: ProvisioningPlan, record: Optional[DeploymentRecord] = None) -> ProvisioningResult:
        rec = record if record is not None else DeploymentRecord()
        settled: List[str] = []
        for spec in plan:
            if spec.is_reuse:
                address = self._adopt(spec)
                rec.record(spec.resource_id, address, "reused")
                print(f"[provisioner] resource={spec.resource_id} action=reuse address={address}")
                continue

            address = self._deploy(spec, rec)
            rec.record(spec.resource_id, address, "deployed")
            print(f"[provisioner] resource={spec.resource_id} action=deploy artifact={spec.artifact_name} address={address}")

            if spec.upgradeable:
                self._settle_admin(spec, address)
                settled.append(spec.resource_id)
        return ProvisioningResult(record=rec, admin_settled=tuple(settled))

    def _adopt(self, spec: ResourceSpec) -> str:
        # Operator-supplied addresses are trusted as-is: no code or version check.
        try:
            return normalize_address(spec.override)
        except ValueError as e:
            raise ConfigError(f"invalid override for resource={spec.resource_id}: {e}") from e

    def _resolve(self, rec: DeploymentRecord, resource_id: str, *, needed_by: str) -> str:
        address = rec.get(resource_id)
        if address is None:
            raise ConfigError(f"resource={needed_by} references unresolved resource={resource_id}")
        return address

    def build_creation_payload(self, spec: ResourceSpec, rec: DeploymentRecord) -> bytes:
        artifact = self.artifacts.lookup(spec.artifact_name)

        library_addresses: Dict[str, str] = {}
        for ref in artifact.link_references:
            rid = spec.libraries.get(ref.symbol)
            if not rid:
                raise ConfigError(f"resource={spec.resource_id} has no library mapping for symbol={ref.symbol}")
            library_addresses[ref.symbol] = self._resolve(rec, rid, needed_by=spec.resource_id)

        code = link_bytecode(artifact.object_code, artifact.link_references, library_addresses)

        types: List[str] = []
        values: List[Any] = []
        for arg in spec.constructor_args:
            types.append(arg.abi_type)
            values.append(self._resolve(rec, arg.ref, needed_by=spec.resource_id) if arg.ref else arg.value)
        try:
            encoded = encode_args(types, values)
            return _hex_to_bytes(code) + encoded
        except ValueError as e:
            raise ConfigError(f"cannot encode creation payload for resource={spec.resource_id}: {e}") from e

    def _deploy(self, spec: ResourceSpec, rec: DeploymentRecord) -> str:
        payload = self.build_creation_payload(spec, rec)
        res = self.client.call(None, payload)
        if not res.success or is_zero_address(res.address):
            raise DeploymentFailed(
                f"creation returned no address: resource={spec.resource_id} tx={res.tx_hash or '-'}",
                resource_id=spec.resource_id,
            )
        return normalize_address(res.address)

    def _settle_admin(self, spec: ResourceSpec, address: str) -> None:
        # A fresh proxy is administered by its deployer; no probe is needed to know that.
        if self.proxy_admin == self.deployer:
            return
        res = self.client.call(address, encode_call("changeAdmin(address)", [self.proxy_admin]))
        if not res.success:
            # The resource exists and stays recorded; a later run settles its admin through AdminTransfer.
            raise AdminTransferFailed(f"changeAdmin failed after deployment: resource={spec.resource_id} address={address}")
        print(f"[provisioner] resource={spec.resource_id} action=change_admin admin={self.proxy_admin}")
