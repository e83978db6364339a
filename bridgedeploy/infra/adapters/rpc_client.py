from __future__ import annotations

import itertools
import time
from typing import Any, Dict, List, Optional

import requests

from ...utils.addresses import normalize_address
from ..contracts import LedgerClient
from ..errors import ConfigError, TransportError
from ..models import CallResult, ProbeResult


class RpcError(TransportError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        super().__init__(f"{method} failed: code={code} message={message}")
        self.method = method
        self.code = code
        self.data = data


def _hex_bytes(value: Any) -> bytes:
    s = str(value or "").strip()
    if s.startswith("0x"):
        s = s[2:]
    if not s:
        return b""
    try:
        return bytes.fromhex(s)
    except ValueError:
        return b""


def _revert_data(err: RpcError) -> bytes:
    data = err.data
    if isinstance(data, dict):
        data = data.get("data")
    return _hex_bytes(data) if isinstance(data, str) else b""


class JsonRpcLedgerClient(LedgerClient):
    """LedgerClient over an Ethereum-style JSON-RPC endpoint.

    Transactions are sent with `eth_sendTransaction` from an account the node
    manages (local dev node, remote signer); signing is not handled here.
    Each mutating call blocks until its receipt is available.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        sender: str = "",
        timeout_s: float = 30.0,
        receipt_timeout_s: float = 180.0,
        poll_interval_s: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self._sender = normalize_address(sender) if sender else ""
        self.timeout_s = timeout_s
        self.receipt_timeout_s = receipt_timeout_s
        self.poll_interval_s = poll_interval_s
        self.session = session or requests.Session()
        self._ids = itertools.count(1)
        self._network_id = ""

    def describe(self) -> Dict[str, Any]:
        return {"class": self.__class__.__name__, "rpc_url": self.rpc_url}

    def _rpc(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            r = self.session.post(self.rpc_url, json=payload, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise TransportError(f"{method} request failed: {e}") from e
        if r.status_code != 200:
            raise TransportError(f"{method} HTTP {r.status_code}: {r.text[:2000]}")
        try:
            body = r.json()
        except ValueError as e:
            raise TransportError(f"{method} returned non-JSON body: {r.text[:2000]}") from e
        err = body.get("error")
        if err:
            raise RpcError(method, int(err.get("code", 0) or 0), str(err.get("message", "")), err.get("data"))
        return body.get("result")

    def sender(self) -> str:
        if not self._sender:
            accounts = self._rpc("eth_accounts", []) or []
            if not accounts:
                raise ConfigError("node exposes no accounts; configure a sender address")
            self._sender = normalize_address(accounts[0])
        return self._sender

    def network_id(self) -> str:
        if not self._network_id:
            self._network_id = str(int(str(self._rpc("eth_chainId", [])), 16))
        return self._network_id

    def _wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        deadline = time.monotonic() + self.receipt_timeout_s
        while True:
            receipt = self._rpc("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            if time.monotonic() >= deadline:
                raise TransportError(f"no receipt for tx={tx_hash} after {self.receipt_timeout_s}s")
            time.sleep(self.poll_interval_s)

    def call(self, target: Optional[str], payload: bytes) -> CallResult:
        tx: Dict[str, Any] = {"from": self.sender(), "data": "0x" + payload.hex()}
        if target:
            tx["to"] = target
        try:
            tx_hash = str(self._rpc("eth_sendTransaction", [tx]))
        except RpcError as e:
            # Rejected at submission (typically gas estimation hit a revert).
            print(f"[rpc] eth_sendTransaction rejected: to={target or '<create>'} code={e.code} message={e}")
            return CallResult(success=False, returndata=_revert_data(e))

        receipt = self._wait_for_receipt(tx_hash)
        success = int(str(receipt.get("status") or "0x0"), 16) == 1
        address = str(receipt.get("contractAddress") or "") if target is None else ""
        return CallResult(success=success, address=address, tx_hash=tx_hash)

    def static_call(self, target: str, payload: bytes) -> ProbeResult:
        call = {"from": self.sender(), "to": target, "data": "0x" + payload.hex()}
        try:
            result = self._rpc("eth_call", [call, "latest"])
        except RpcError as e:
            return ProbeResult(ok=False, returndata=_revert_data(e))
        data = _hex_bytes(result)
        # An empty result from a view accessor means no such accessor on the target.
        if not data:
            return ProbeResult(ok=False)
        return ProbeResult(ok=True, returndata=data)
