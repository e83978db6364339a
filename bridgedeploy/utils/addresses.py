from __future__ import annotations

import re
from typing import Any

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
ZERO_ADDRESS = "0x" + "0" * 40


def normalize_address(value: Any) -> str:
    """Return the lowercase 0x-prefixed form of a 20-byte address."""
    s = str(value or "").strip()
    if not ADDRESS_RE.match(s):
        raise ValueError(f"Invalid address: {value!r} (expected 0x + 40 hex digits)")
    return s.lower()


def is_zero_address(value: Any) -> bool:
    """Empty, missing and all-zero values all count as unset."""
    s = str(value or "").strip()
    if not s:
        return True
    if s.lower().startswith("0x"):
        s = s[2:]
    if not s:
        return True
    try:
        return int(s, 16) == 0
    except ValueError:
        return False


def address_bytes(value: Any) -> bytes:
    return bytes.fromhex(normalize_address(value)[2:])
