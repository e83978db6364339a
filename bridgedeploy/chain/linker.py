from __future__ import annotations

from typing import List, Mapping, Sequence, Tuple

from ..infra.errors import ConfigError, LinkOverflow
from ..infra.models import LinkReference
from ..utils.addresses import address_bytes

# Object code is hex text with a leading "0x" that is not part of the addressable bytes.
HEX_PREFIX_CHARS = 2


def link_window(ref: LinkReference) -> Tuple[int, int]:
    """Return (char_start, char_len) of a reference inside 0x-prefixed hex text."""
    return HEX_PREFIX_CHARS + ref.start * 2, ref.length * 2


def link_bytecode(object_code: str, references: Sequence[LinkReference], addresses: Mapping[str, str]) -> str:
    """Patch every link reference with the address of its library.

    `addresses` maps a library symbol to its resolved address. The input is
    never modified. Every window is bounds-checked before the first patch is
    applied, so a LinkOverflow never leaves a partially linked result behind.
    """
    if not references:
        return object_code

    text = str(object_code)
    patches: List[Tuple[int, int, str]] = []
    for ref in references:
        char_start, char_len = link_window(ref)
        if ref.start < 0 or ref.length <= 0 or char_start + char_len > len(text):
            raise LinkOverflow(
                f"link reference out of bounds: symbol={ref.symbol} start={ref.start} length={ref.length} code_bytes={(len(text) - HEX_PREFIX_CHARS) // 2}",
                symbol=ref.symbol,
                start=ref.start,
                length=ref.length,
            )

        target = addresses.get(ref.symbol)
        if target is None:
            raise ConfigError(f"unresolved link target: symbol={ref.symbol}")
        try:
            patch = address_bytes(target).hex()
        except ValueError as e:
            raise ConfigError(f"invalid link target for symbol={ref.symbol}: {e}") from e
        if len(patch) != char_len:
            raise LinkOverflow(
                f"link window width mismatch: symbol={ref.symbol} window_bytes={ref.length} address_bytes={len(patch) // 2}",
                symbol=ref.symbol,
                start=ref.start,
                length=ref.length,
            )
        patches.append((char_start, char_len, patch))

    out = text
    for char_start, char_len, patch in patches:
        out = out[:char_start] + patch + out[char_start + char_len :]
    return out

