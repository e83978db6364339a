from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..contracts import ArtifactSource
from ..errors import ConfigError
from ..models import CompiledArtifact, LinkReference


def parse_link_references(raw: Any) -> List[LinkReference]:
    """Flatten `{source_file: {symbol: [{start, length}, ...]}}` into references.

    Sorted by source file then symbol so the result is deterministic.
    """
    out: List[LinkReference] = []
    if not isinstance(raw, dict):
        return out
    for source_file in sorted(raw.keys()):
        symbols = raw.get(source_file) or {}
        if not isinstance(symbols, dict):
            raise ConfigError(f"malformed linkReferences entry for {source_file!r}")
        for symbol in sorted(symbols.keys()):
            for entry in symbols.get(symbol) or []:
                try:
                    start = int(entry["start"])
                    length = int(entry["length"])
                except (KeyError, TypeError, ValueError) as e:
                    raise ConfigError(f"malformed link reference {source_file}:{symbol}: {entry!r}") from e
                out.append(LinkReference(symbol=str(symbol), start=start, length=length, source_file=str(source_file)))
    return out


class FoundryArtifactSource(ArtifactSource):
    """ArtifactSource over a compiler output directory.

    Understands the Foundry layout (`<out>/<Name>.sol/<Name>.json`, with
    `bytecode.object` and `bytecode.linkReferences`) and the flat Hardhat shape
    (`bytecode` string with a top-level `linkReferences`).
    """

    def __init__(self, out_dir: Path):
        self.out_dir = out_dir

    def describe(self) -> Dict[str, Any]:
        return {"class": self.__class__.__name__, "out_dir": str(self.out_dir)}

    def _artifact_path(self, name: str) -> Optional[Path]:
        direct = self.out_dir / f"{name}.sol" / f"{name}.json"
        if direct.exists():
            return direct
        if not self.out_dir.exists():
            return None
        matches = sorted(self.out_dir.glob(f"*/{name}.json"))
        return matches[0] if matches else None

    def lookup(self, name: str) -> CompiledArtifact:
        path = self._artifact_path(name)
        if path is None:
            raise ConfigError(f"artifact not found: {name} (searched {self.out_dir})")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"artifact is not valid JSON: {path}: {e}") from e

        bytecode = data.get("bytecode")
        if isinstance(bytecode, dict):
            obj = bytecode.get("object")
            refs_raw = bytecode.get("linkReferences")
        else:
            obj = bytecode
            refs_raw = data.get("linkReferences")

        code = str(obj or "").strip()
        if not code or code == "0x":
            raise ConfigError(f"artifact has no creation code: {name} ({path})")
        if not code.startswith("0x"):
            code = "0x" + code

        return CompiledArtifact(name=name, object_code=code, link_references=tuple(parse_link_references(refs_raw)))
