from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from _testutil import ensure_repo_on_path

GOV = "0x" + "a1" * 20
ADMIN = "0x" + "b2" * 20
L1_TOKEN = "0x" + "c3" * 20
L1_BRIDGE = "0x" + "e4" * 20
ZERO = "0x" + "00" * 20

YAML = f"""network: local
signature_checker: "{ZERO}"
l1_token: "{L1_TOKEN}"
l1_bridge_proxy: "{L1_BRIDGE}"
proxy_admin: "{ADMIN}"
governance: "{GOV.upper().replace('0X', '0x')}"
token:
  name: Bridged USDC
  symbol: USDC.e
  currency: USD
  decimals: 6
"""


class TestDeployConfigLoad(unittest.TestCase):
    def _repo(self, td: str, text: str = YAML) -> Path:
        root = Path(td)
        (root / "config").mkdir(parents=True, exist_ok=True)
        (root / "config" / "deploy.yml").write_text(text, encoding="utf-8")
        return root

    def test_default_path_and_defaults(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import MAX_UINT256, load_deploy_config

        with tempfile.TemporaryDirectory() as td:
            cfg = load_deploy_config(self._repo(td), env={})

        self.assertEqual(cfg.governance, GOV)
        self.assertEqual(cfg.token.decimals, 6)
        self.assertEqual(cfg.minter_allowance, MAX_UINT256)
        self.assertTrue(cfg.deploy_bridge_proxy)
        self.assertEqual(cfg.roles.pauser, "")
        self.assertEqual(cfg.deployer, "")
        self.assertEqual(cfg.artifact_name("token_implementation"), "FiatTokenV2_2")
        # zero signature checker means deploy, so it is not seeded as an override
        self.assertEqual(cfg.seeded_overrides(), {})

    def test_env_overrides_file_values(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config

        lib = "0x" + "77" * 20
        proxy = "0x" + "88" * 20
        env = {
            "BRIDGEDEPLOY_TOKEN_NAME": "USD Coin",
            "BRIDGEDEPLOY_TOKEN_DECIMALS": "18",
            "BRIDGEDEPLOY_SIGNATURE_CHECKER": lib,
            "BRIDGEDEPLOY_OVERRIDE_TOKEN_PROXY": proxy,
            "BRIDGEDEPLOY_DEPLOY_BRIDGE_PROXY": "false",
            "BRIDGEDEPLOY_BLACKLIST_MIGRATION": f"{lib}, {proxy}",
        }
        with tempfile.TemporaryDirectory() as td:
            cfg = load_deploy_config(self._repo(td), env=env)

        self.assertEqual(cfg.token.name, "USD Coin")
        self.assertEqual(cfg.token.decimals, 18)
        self.assertFalse(cfg.deploy_bridge_proxy)
        self.assertEqual(cfg.blacklist_migration, (lib, proxy))
        self.assertEqual(cfg.seeded_overrides(), {"token_proxy": proxy, "signature_checker": lib})

    def test_env_only_without_file(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config

        env = {
            "BRIDGEDEPLOY_SIGNATURE_CHECKER": ZERO,
            "BRIDGEDEPLOY_L1_TOKEN": L1_TOKEN,
            "BRIDGEDEPLOY_L1_BRIDGE_PROXY": L1_BRIDGE,
            "BRIDGEDEPLOY_PROXY_ADMIN": ADMIN,
            "BRIDGEDEPLOY_GOVERNANCE": GOV,
            "BRIDGEDEPLOY_TOKEN_NAME": "Bridged USDC",
            "BRIDGEDEPLOY_TOKEN_SYMBOL": "USDC.e",
            "BRIDGEDEPLOY_TOKEN_CURRENCY": "USD",
            "BRIDGEDEPLOY_TOKEN_DECIMALS": "6",
        }
        with tempfile.TemporaryDirectory() as td:
            cfg = load_deploy_config(Path(td), env=env)
        self.assertEqual(cfg.l1_bridge_proxy, L1_BRIDGE)

    def test_missing_required_fields_are_listed(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config
        from bridgedeploy.infra.errors import ConfigError

        text = YAML.replace(f'proxy_admin: "{ADMIN}"\n', "").replace("  symbol: USDC.e\n", "")
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError) as ctx:
                load_deploy_config(self._repo(td, text), env={})
        msg = str(ctx.exception)
        self.assertIn("proxy_admin", msg)
        self.assertIn("token.symbol", msg)

    def test_invalid_address_fails_schema(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config
        from bridgedeploy.infra.errors import ConfigError

        text = YAML.replace(f'l1_token: "{L1_TOKEN}"', 'l1_token: "0x1234"')
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError) as ctx:
                load_deploy_config(self._repo(td, text), env={})
        self.assertIn("l1_token", str(ctx.exception))

    def test_unknown_key_rejected(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config
        from bridgedeploy.infra.errors import ConfigError

        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError):
                load_deploy_config(self._repo(td, YAML + "surprise: 1\n"), env={})

    def test_malformed_yaml_is_config_error(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config
        from bridgedeploy.infra.errors import ConfigError

        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError) as ctx:
                load_deploy_config(self._repo(td, "network: local\ntoken: [unclosed\n"), env={})
        self.assertIn("not valid YAML", str(ctx.exception))

    def test_explicit_missing_file_is_an_error(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import load_deploy_config
        from bridgedeploy.infra.errors import ConfigError

        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError):
                load_deploy_config(Path(td), cli_path=str(Path(td) / "nope.yml"), env={})

    def test_path_precedence(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import resolve_config_path

        root = Path("/tmp/repo")
        self.assertEqual(resolve_config_path(root, "/x/cli.yml", {"BRIDGEDEPLOY_CONFIG": "/x/env.yml"}), Path("/x/cli.yml"))
        self.assertEqual(resolve_config_path(root, None, {"BRIDGEDEPLOY_CONFIG": "/x/env.yml"}), Path("/x/env.yml"))
        self.assertEqual(resolve_config_path(root, None, {}), (root / "config" / "deploy.yml").resolve())

    def test_env_overlay_does_not_mutate_input(self) -> None:
        ensure_repo_on_path()

        from bridgedeploy.infra.config import apply_env_overrides

        data = {"token": {"name": "A"}}
        out = apply_env_overrides(data, {"BRIDGEDEPLOY_TOKEN_NAME": "B"})
        self.assertEqual(data["token"]["name"], "A")
        self.assertEqual(out["token"]["name"], "B")


if __name__ == "__main__":
    unittest.main()
