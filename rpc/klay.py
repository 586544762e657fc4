from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, List, Optional, Union

from web3 import Web3
from web3.providers.rpc import HTTPProvider

from config.settings import load_settings
from errors import ConfigurationError, RpcError
from observability import log_event


def _env(name: str) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return None
    v = v.strip()
    return v or None


def rpc_url_from_env() -> str:
    """
    Resolve the node URL.

    Env precedence:
    - KLAYTN_RPC_URL
    - RPC_URL
    """
    url = load_settings().KLAYTN_RPC_URL or _env("RPC_URL")
    if not url:
        raise ConfigurationError(
            "missing_rpc_url",
            "Missing RPC URL. Set KLAYTN_RPC_URL (or RPC_URL).",
            {},
        )
    return url


@lru_cache(maxsize=16)
def get_web3(url: str) -> Web3:
    timeout = float(load_settings().HTTP_TIMEOUT_SEC)
    return Web3(HTTPProvider(url, request_kwargs={"timeout": timeout}))


class KlayRpcClient:
    """
    JSON-RPC client for the klay_* namespace, satisfying rpc.base.NetworkClient.
    """

    def __init__(self, url: Optional[str] = None, *, w3: Optional[Web3] = None) -> None:
        if w3 is None:
            w3 = get_web3(url or rpc_url_from_env())
        self._w3 = w3

    def _request(self, method: str, params: List[Any]) -> Any:
        response = self._w3.provider.make_request(method, params)
        error = response.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise RpcError("rpc_error", f"{method} failed: {message}", {"method": method, "error": error})
        if "result" not in response:
            raise RpcError("rpc_error", f"{method} returned no result", {"method": method})
        log_event("rpc_call", method=method)
        return response["result"]

    def get_pending_nonce(self, address: str) -> str:
        return self._request("klay_getTransactionCount", [address, "pending"])

    def get_chain_id(self) -> str:
        return self._request("klay_chainID", [])

    def get_gas_price(self) -> str:
        return self._request("klay_gasPrice", [])

    def send_raw_transaction(self, raw_transaction: Union[bytes, str]) -> str:
        if isinstance(raw_transaction, (bytes, bytearray)):
            raw_transaction = "0x" + bytes(raw_transaction).hex()
        return self._request("klay_sendRawTransaction", [raw_transaction])
