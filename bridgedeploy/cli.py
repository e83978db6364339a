from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .chain.linker import link_bytecode
from .infra.adapters.artifacts_foundry import FoundryArtifactSource
from .infra.adapters.ledger_json import JsonDeploymentLedger
from .infra.config import load_deploy_config
from .infra.errors import ConfigError, DeployError
from .infra.factory import InfraBundle, build_infra
from .orchestration.orchestrator import plan_run, run_orchestrator


def _repo_root() -> Path:
    return Path.cwd()


def _infra(args: argparse.Namespace) -> InfraBundle:
    repo_root = _repo_root()
    env: Dict[str, str] = dict(os.environ)
    if getattr(args, "rpc_url", None):
        env["BRIDGEDEPLOY_RPC_URL"] = args.rpc_url
    config = load_deploy_config(repo_root, cli_path=args.config, env=env)
    return build_infra(repo_root=repo_root, config=config, sender=getattr(args, "sender", "") or "")


def cmd_deploy(args: argparse.Namespace) -> int:
    infra = _infra(args)
    summary = run_orchestrator(infra)
    if args.json:
        print(json.dumps({"network_id": summary.network_id, "addresses": summary.record.as_dict()}, sort_keys=True))
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    infra = _infra(args)
    network_id, deployer, plan = plan_run(infra)
    out = {
        "network_id": network_id,
        "deployer": deployer,
        "resources": [
            {
                "resource_id": r.resource_id,
                "artifact": r.artifact_name,
                "action": "reuse" if r.is_reuse else "deploy",
                "address": r.override,
            }
            for r in plan
        ],
    }
    print(json.dumps(out, indent=2))
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    ledger = JsonDeploymentLedger(Path(args.ledger).resolve())
    print(json.dumps(ledger.load(args.network_id), indent=2, sort_keys=True))
    return 0


def _parse_libraries(items: List[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in items:
        if "=" not in item:
            raise ConfigError(f"--library expects Symbol=0xAddress, got {item!r}")
        symbol, address = item.split("=", 1)
        out[symbol.strip()] = address.strip()
    return out


def cmd_link(args: argparse.Namespace) -> int:
    source = FoundryArtifactSource(Path(args.artifacts_dir).resolve())
    artifact = source.lookup(args.artifact)
    print(link_bytecode(artifact.object_code, artifact.link_references, _parse_libraries(args.library or [])))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bridgedeploy")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("deploy", help="Provision, initialize and wire all resources")
    sp.add_argument("--config", default=None, help="Deploy config YAML (default: config/deploy.yml)")
    sp.add_argument("--rpc-url", default=None)
    sp.add_argument("--sender", default="", help="Node-managed account to send from (default: first eth_accounts entry)")
    sp.add_argument("--json", action="store_true", help="Print the final address map as JSON")
    sp.set_defaults(func=cmd_deploy)

    sp = sub.add_parser("plan", help="Show reuse-vs-deploy decisions without sending transactions")
    sp.add_argument("--config", default=None)
    sp.add_argument("--rpc-url", default=None)
    sp.add_argument("--sender", default="")
    sp.set_defaults(func=cmd_plan)

    sp = sub.add_parser("show", help="Print the persisted address map for a network")
    sp.add_argument("--ledger", default="deployments.json")
    sp.add_argument("--network-id", required=True)
    sp.set_defaults(func=cmd_show)

    sp = sub.add_parser("link", help="Link one artifact offline and print the hex object code")
    sp.add_argument("--artifacts-dir", default="out")
    sp.add_argument("--artifact", required=True)
    sp.add_argument("--library", action="append", help="Symbol=0xAddress (repeatable)")
    sp.set_defaults(func=cmd_link)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args) or 0)
    except DeployError as e:
        print(f"[deploy][FAILED] {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
