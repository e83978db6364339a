"""Minimal ABI encoding for the calls the provisioner issues.

Supported types: address, bool, uint<N>, bytes, string and dynamic arrays of
the static types. That covers every constructor and initializer used by the
deployment plan; anything else is rejected with ValueError.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from eth_hash.auto import keccak

from ..utils.addresses import address_bytes

WORD = 32


def function_selector(signature: str) -> bytes:
    return keccak(signature.encode("utf-8"))[:4]


def signature_types(signature: str) -> List[str]:
    """Split `name(t1,t2,...)` into its argument types."""
    sig = str(signature or "").strip()
    open_idx = sig.find("(")
    if open_idx <= 0 or not sig.endswith(")"):
        raise ValueError(f"Invalid function signature: {signature!r}")
    inner = sig[open_idx + 1 : -1].strip()
    if not inner:
        return []
    return [t.strip() for t in inner.split(",")]


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ("bytes", "string") or abi_type.endswith("[]")


def _uint_bits(abi_type: str) -> int:
    suffix = abi_type[4:]
    bits = int(suffix) if suffix else 256
    if bits <= 0 or bits > 256 or bits % 8:
        raise ValueError(f"Unsupported ABI type: {abi_type}")
    return bits


def _pad_right(data: bytes) -> bytes:
    rem = len(data) % WORD
    if rem:
        data = data + b"\x00" * (WORD - rem)
    return data


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    s = str(value or "").strip()
    if s.startswith("0x"):
        s = s[2:]
    return bytes.fromhex(s)


def _encode_static(abi_type: str, value: Any) -> bytes:
    if abi_type == "address":
        return b"\x00" * 12 + address_bytes(value)
    if abi_type == "bool":
        return int(bool(value)).to_bytes(WORD, "big")
    if abi_type.startswith("uint"):
        bits = _uint_bits(abi_type)
        n = int(value)
        if n < 0 or n >= (1 << bits):
            raise ValueError(f"Value out of range for {abi_type}: {value!r}")
        return n.to_bytes(WORD, "big")
    raise ValueError(f"Unsupported ABI type: {abi_type}")


def _encode_dynamic(abi_type: str, value: Any) -> bytes:
    if abi_type == "bytes":
        data = _as_bytes(value)
        return len(data).to_bytes(WORD, "big") + _pad_right(data)
    if abi_type == "string":
        data = str(value if value is not None else "").encode("utf-8")
        return len(data).to_bytes(WORD, "big") + _pad_right(data)
    inner = abi_type[:-2]
    if _is_dynamic(inner):
        raise ValueError(f"Unsupported ABI type: {abi_type}")
    items = list(value or [])
    return len(items).to_bytes(WORD, "big") + b"".join(_encode_static(inner, x) for x in items)


def encode_args(types: Sequence[str], values: Sequence[Any]) -> bytes:
    if len(types) != len(values):
        raise ValueError(f"ABI arity mismatch: {len(types)} types, {len(values)} values")

    heads: List[bytes] = []
    tails: List[bytes] = []
    offset = WORD * len(types)
    for abi_type, value in zip(types, values):
        if _is_dynamic(abi_type):
            enc = _encode_dynamic(abi_type, value)
            heads.append(offset.to_bytes(WORD, "big"))
            tails.append(enc)
            offset += len(enc)
        else:
            heads.append(_encode_static(abi_type, value))
    return b"".join(heads + tails)


def encode_call(signature: str, args: Sequence[Any] = ()) -> bytes:
    return function_selector(signature) + encode_args(signature_types(signature), list(args))


def decode_address(returndata: bytes) -> str:
    if len(returndata) < WORD:
        raise ValueError(f"Return data too short for address: {len(returndata)} bytes")
    return "0x" + returndata[12:WORD].hex()

