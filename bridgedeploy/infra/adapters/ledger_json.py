from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ...utils.addresses import normalize_address
from ...utils.fs import atomic_write_json
from ...utils.time import utcnow_iso
from ..contracts import DeploymentLedger, RunJournal
from ..errors import ConfigError


def _read_json_object(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"state file is not valid JSON: {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"state file must contain a JSON object: {path}")
    return data


def _write_json_object(path: Path, data: Dict[str, Any]) -> None:
    atomic_write_json(path, data)


class JsonDeploymentLedger(DeploymentLedger):
    """DeploymentLedger backed by one JSON file shared by all networks.

    Shape:
      {"<network_id>": {"updated_at": "...", "addresses": {"<resource_id>": "0x..."}}}
    """

    def __init__(self, path: Path):
        self.path = path

    def describe(self) -> Dict[str, Any]:
        return {"class": self.__class__.__name__, "path": str(self.path)}

    def load(self, network_id: str) -> Dict[str, str]:
        block = _read_json_object(self.path).get(str(network_id)) or {}
        addresses = block.get("addresses") if isinstance(block, dict) else None
        if not isinstance(addresses, dict):
            return {}
        out: Dict[str, str] = {}
        for rid, addr in addresses.items():
            try:
                out[str(rid)] = normalize_address(addr)
            except ValueError as e:
                raise ConfigError(f"ledger entry {network_id}/{rid} is invalid: {e}") from e
        return out

    def save(self, network_id: str, addresses: Dict[str, str], *, complete: bool = True) -> None:
        data = _read_json_object(self.path)
        data[str(network_id)] = {"updated_at": utcnow_iso(), "complete": bool(complete), "addresses": dict(addresses)}
        _write_json_object(self.path, data)


class JsonRunJournal(RunJournal):
    """RunJournal backed by a JSON file; rewritten atomically on every change."""

    def __init__(self, path: Path):
        self.path = path

    def describe(self) -> Dict[str, Any]:
        return {"class": self.__class__.__name__, "path": str(self.path)}

    def _entries(self) -> Dict[str, Any]:
        entries = _read_json_object(self.path).get("entries") or {}
        return entries if isinstance(entries, dict) else {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries().get(key)
        return dict(entry) if isinstance(entry, dict) else None

    def put(self, key: str, entry: Dict[str, Any]) -> None:
        entries = self._entries()
        entries[key] = dict(entry)
        _write_json_object(self.path, {"entries": entries})

    def delete(self, key: str) -> None:
        entries = self._entries()
        if key not in entries:
            return
        del entries[key]
        _write_json_object(self.path, {"entries": entries})


class MemoryRunJournal(RunJournal):
    """In-process RunJournal; nothing survives the process."""

    def __init__(self) -> None:
        self.entries: Dict[str, Dict[str, Any]] = {}

    def describe(self) -> Dict[str, Any]:
        return {"class": self.__class__.__name__, "entries": len(self.entries)}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self.entries.get(key)
        return dict(entry) if entry is not None else None

    def put(self, key: str, entry: Dict[str, Any]) -> None:
        self.entries[key] = dict(entry)

    def delete(self, key: str) -> None:
        self.entries.pop(key, None)
