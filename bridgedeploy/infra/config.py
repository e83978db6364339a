from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import jsonschema
import yaml

from ..utils.addresses import is_zero_address, normalize_address
from ..utils.yamlio import read_yaml
from .errors import ConfigError

ENV_PREFIX = "BRIDGEDEPLOY_"

MAX_UINT256 = (1 << 256) - 1

# Dotted config paths that must be present before any ledger call is issued.
REQUIRED_FIELDS: Tuple[str, ...] = (
    "signature_checker",
    "l1_token",
    "l1_bridge_proxy",
    "proxy_admin",
    "governance",
    "token.name",
    "token.symbol",
    "token.currency",
    "token.decimals",
)

# Flat fields that may be supplied or overridden from the environment.
ENV_FIELDS: Tuple[str, ...] = REQUIRED_FIELDS + (
    "rpc_url",
    "network",
    "artifacts_dir",
    "ledger_path",
    "journal_path",
    "deployer",
    "minter_allowance",
    "deploy_bridge_proxy",
    "roles.pauser",
    "roles.blacklister",
    "roles.owner",
    "roles.lost_and_found",
)

INT_FIELDS = ("token.decimals", "minter_allowance")
BOOL_FIELDS = ("deploy_bridge_proxy",)

# Resources that may be adopted from an existing address instead of deployed.
RESOURCE_IDS: Tuple[str, ...] = (
    "signature_checker",
    "token_implementation",
    "token_proxy",
    "master_minter",
    "bridge_implementation",
    "bridge_proxy",
)

DEFAULT_ARTIFACTS: Dict[str, str] = {
    "signature_checker": "SignatureChecker",
    "token_implementation": "FiatTokenV2_2",
    "token_proxy": "FiatTokenProxy",
    "master_minter": "MasterMinter",
    "bridge_implementation": "L2TokenBridge",
    "bridge_proxy": "TransparentUpgradeableProxy",
}

_ADDRESS = {"type": "string", "pattern": "^0x[0-9a-fA-F]{40}$"}
_OPT_ADDRESS = {"type": ["string", "null"], "pattern": "^(0x[0-9a-fA-F]{40})?$"}


def _config_schema() -> Dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "required": ["signature_checker", "l1_token", "l1_bridge_proxy", "proxy_admin", "governance", "token"],
        "properties": {
            "network": {"type": "string"},
            "rpc_url": {"type": "string", "minLength": 1},
            "artifacts_dir": {"type": "string", "minLength": 1},
            "ledger_path": {"type": "string", "minLength": 1},
            "journal_path": {"type": "string", "minLength": 1},
            "signature_checker": _ADDRESS,
            "l1_token": _ADDRESS,
            "l1_bridge_proxy": _ADDRESS,
            "proxy_admin": _ADDRESS,
            "governance": _ADDRESS,
            "deployer": _OPT_ADDRESS,
            "token": {
                "type": "object",
                "required": ["name", "symbol", "currency", "decimals"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "symbol": {"type": "string", "minLength": 1},
                    "currency": {"type": "string", "minLength": 1},
                    "decimals": {"type": "integer", "minimum": 0, "maximum": 255},
                },
                "additionalProperties": False,
            },
            "roles": {
                "type": "object",
                "properties": {
                    "pauser": _OPT_ADDRESS,
                    "blacklister": _OPT_ADDRESS,
                    "owner": _OPT_ADDRESS,
                    "lost_and_found": _OPT_ADDRESS,
                },
                "additionalProperties": False,
            },
            "blacklist_migration": {"type": "array", "items": _ADDRESS},
            "minter_allowance": {"type": "integer", "minimum": 0},
            "deploy_bridge_proxy": {"type": "boolean"},
            "overrides": {
                "type": "object",
                "propertyNames": {"enum": list(RESOURCE_IDS)},
                "additionalProperties": _OPT_ADDRESS,
            },
            "artifacts": {
                "type": "object",
                "propertyNames": {"enum": list(RESOURCE_IDS)},
                "additionalProperties": {"type": "string", "minLength": 1},
            },
        },
        "additionalProperties": False,
    }


@dataclass(frozen=True)
class TokenSettings:
    name: str
    symbol: str
    currency: str
    decimals: int


@dataclass(frozen=True)
class RoleSettings:
    pauser: str = ""
    blacklister: str = ""
    owner: str = ""
    lost_and_found: str = ""


@dataclass(frozen=True)
class DeployConfig:
    """Validated provisioning inputs.

    Addresses are normalized to lowercase. Optional addresses are "" when unset.
    """

    signature_checker: str
    l1_token: str
    l1_bridge_proxy: str
    proxy_admin: str
    governance: str
    token: TokenSettings

    roles: RoleSettings = field(default_factory=RoleSettings)
    deployer: str = ""
    blacklist_migration: Tuple[str, ...] = ()
    minter_allowance: int = MAX_UINT256
    deploy_bridge_proxy: bool = True

    # resource_id -> address; presence triggers reuse.
    overrides: Dict[str, str] = field(default_factory=dict)
    artifacts: Dict[str, str] = field(default_factory=dict)

    network: str = ""
    rpc_url: str = "http://127.0.0.1:8545"
    artifacts_dir: str = "out"
    ledger_path: str = "deployments.json"
    journal_path: str = ".deploy-journal.json"

    def artifact_name(self, resource_id: str) -> str:
        return self.artifacts.get(resource_id) or DEFAULT_ARTIFACTS[resource_id]

    def seeded_overrides(self) -> Dict[str, str]:
        """Explicit overrides, plus the signature checker when it is not the zero address."""
        out = dict(self.overrides)
        if not is_zero_address(self.signature_checker) and "signature_checker" not in out:
            out["signature_checker"] = self.signature_checker
        return out


def resolve_config_path(repo_root: Path, cli_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the deploy config YAML path.

    Precedence:
      1) CLI flag --config
      2) BRIDGEDEPLOY_CONFIG
      3) <repo_root>/config/deploy.yml
    """
    environ = os.environ if env is None else env
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_path = str(environ.get(ENV_PREFIX + "CONFIG", "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    return (repo_root / "config" / "deploy.yml").resolve()


def env_var_for(path: str) -> str:
    return ENV_PREFIX + path.replace(".", "_").upper()


def _get_path(data: Dict[str, Any], path: str) -> Any:
    cur: Any = data
    for part in path.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(part)
    return cur


def _set_path(data: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    cur = data
    for part in parts[:-1]:
        nxt = cur.get(part)
        # Copy nested mappings so the caller's data is never mutated.
        nxt = dict(nxt) if isinstance(nxt, dict) else {}
        cur[part] = nxt
        cur = nxt
    cur[parts[-1]] = value


def _coerce_env(path: str, raw: str) -> Any:
    if path in INT_FIELDS:
        try:
            return int(raw, 0)
        except ValueError:
            raise ConfigError(f"{env_var_for(path)} must be an integer, got {raw!r}")
    if path in BOOL_FIELDS:
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}
    return raw


def apply_env_overrides(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    """Overlay BRIDGEDEPLOY_* variables onto raw config data.

    Flat fields use the dotted path upper-cased (BRIDGEDEPLOY_TOKEN_NAME).
    Resource overrides use BRIDGEDEPLOY_OVERRIDE_<RESOURCE_ID>.
    """
    out = dict(data)
    for path in ENV_FIELDS:
        raw = str(env.get(env_var_for(path), "") or "").strip()
        if raw:
            _set_path(out, path, _coerce_env(path, raw))

    for rid in RESOURCE_IDS:
        raw = str(env.get(ENV_PREFIX + "OVERRIDE_" + rid.upper(), "") or "").strip()
        if raw:
            overrides = dict(out.get("overrides") or {})
            overrides[rid] = raw
            out["overrides"] = overrides

    raw_list = str(env.get(ENV_PREFIX + "BLACKLIST_MIGRATION", "") or "").strip()
    if raw_list:
        out["blacklist_migration"] = [x.strip() for x in raw_list.split(",") if x.strip()]
    return out


def missing_required_fields(data: Dict[str, Any]) -> List[str]:
    missing: List[str] = []
    for path in REQUIRED_FIELDS:
        value = _get_path(data, path)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(path)
    return missing


def _opt_address(value: Any, label: str) -> str:
    s = str(value or "").strip()
    if not s or is_zero_address(s):
        return ""
    try:
        return normalize_address(s)
    except ValueError as e:
        raise ConfigError(f"{label}: {e}") from e


def parse_deploy_config(data: Dict[str, Any]) -> DeployConfig:
    """Validate raw config data and build a DeployConfig."""
    missing = missing_required_fields(data)
    if missing:
        raise ConfigError(f"missing required config: {', '.join(missing)}")

    try:
        jsonschema.validate(instance=data, schema=_config_schema())
    except jsonschema.ValidationError as e:
        where = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config schema validation failed at {where}: {e.message}") from e

    tok = data["token"]
    roles_raw = data.get("roles") or {}
    overrides: Dict[str, str] = {}
    for rid, addr in (data.get("overrides") or {}).items():
        norm = _opt_address(addr, f"overrides.{rid}")
        if norm:
            overrides[str(rid)] = norm

    return DeployConfig(
        signature_checker=normalize_address(data["signature_checker"]),
        l1_token=normalize_address(data["l1_token"]),
        l1_bridge_proxy=normalize_address(data["l1_bridge_proxy"]),
        proxy_admin=normalize_address(data["proxy_admin"]),
        governance=normalize_address(data["governance"]),
        token=TokenSettings(
            name=str(tok["name"]),
            symbol=str(tok["symbol"]),
            currency=str(tok["currency"]),
            decimals=int(tok["decimals"]),
        ),
        roles=RoleSettings(
            pauser=_opt_address(roles_raw.get("pauser"), "roles.pauser"),
            blacklister=_opt_address(roles_raw.get("blacklister"), "roles.blacklister"),
            owner=_opt_address(roles_raw.get("owner"), "roles.owner"),
            lost_and_found=_opt_address(roles_raw.get("lost_and_found"), "roles.lost_and_found"),
        ),
        deployer=_opt_address(data.get("deployer"), "deployer"),
        blacklist_migration=tuple(normalize_address(a) for a in (data.get("blacklist_migration") or [])),
        minter_allowance=int(data.get("minter_allowance", MAX_UINT256)),
        deploy_bridge_proxy=bool(data.get("deploy_bridge_proxy", True)),
        overrides=overrides,
        artifacts={str(k): str(v) for k, v in (data.get("artifacts") or {}).items()},
        network=str(data.get("network") or ""),
        rpc_url=str(data.get("rpc_url") or "http://127.0.0.1:8545"),
        artifacts_dir=str(data.get("artifacts_dir") or "out"),
        ledger_path=str(data.get("ledger_path") or "deployments.json"),
        journal_path=str(data.get("journal_path") or ".deploy-journal.json"),
    )


def load_deploy_config(
    repo_root: Path,
    cli_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> DeployConfig:
    """Load config from YAML (when present) overlaid with BRIDGEDEPLOY_* variables.

    A missing file is allowed when the environment supplies every required field.
    An explicitly requested file (CLI flag or BRIDGEDEPLOY_CONFIG) must exist.
    """
    environ = os.environ if env is None else env
    path = resolve_config_path(repo_root, cli_path, environ)
    explicit = bool((cli_path and str(cli_path).strip()) or str(environ.get(ENV_PREFIX + "CONFIG", "") or "").strip())

    data: Dict[str, Any] = {}
    if path.exists():
        try:
            data = read_yaml(path)
        except yaml.YAMLError as e:
            raise ConfigError(f"config file is not valid YAML: {path}: {e}") from e
        except ValueError as e:
            raise ConfigError(str(e)) from e
    elif explicit:
        raise ConfigError(f"config file not found: {path}")

    data = apply_env_overrides(data, environ)
    return parse_deploy_config(data)

