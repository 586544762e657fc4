from unittest.mock import MagicMock, patch

import pytest

from conftest import CHAIN_ID, TO_ADDRESS
from errors import ConfigurationError, RpcError
from rpc import KlayRpcClient, get_web3, rpc_url_from_env
from transaction import TxType, build_transaction, get_raw_transaction, sign


def _client(results):
    w3 = MagicMock()
    w3.provider.make_request.side_effect = lambda method, params: results[method]
    return KlayRpcClient(w3=w3), w3


def test_rpc_url_from_env(monkeypatch):
    monkeypatch.delenv("KLAYTN_RPC_URL", raising=False)
    monkeypatch.setenv("RPC_URL", "http://fallback:8551")
    assert rpc_url_from_env() == "http://fallback:8551"
    monkeypatch.setenv("KLAYTN_RPC_URL", " http://node:8551 ")
    assert rpc_url_from_env() == "http://node:8551"


def test_rpc_url_missing(monkeypatch):
    monkeypatch.delenv("KLAYTN_RPC_URL", raising=False)
    monkeypatch.delenv("RPC_URL", raising=False)
    with pytest.raises(ConfigurationError):
        rpc_url_from_env()


def test_get_web3_uses_timeout_setting(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT_SEC", "25")
    get_web3.cache_clear()
    try:
        with patch("rpc.klay.HTTPProvider") as provider, patch("rpc.klay.Web3"):
            get_web3("http://node:8551")
        provider.assert_called_once_with("http://node:8551", request_kwargs={"timeout": 25.0})
    finally:
        get_web3.cache_clear()


def test_klay_methods():
    client, w3 = _client(
        {
            "klay_getTransactionCount": {"jsonrpc": "2.0", "id": 1, "result": "0x2"},
            "klay_chainID": {"jsonrpc": "2.0", "id": 2, "result": "0x3e9"},
            "klay_gasPrice": {"jsonrpc": "2.0", "id": 3, "result": "0x5d21dba00"},
        }
    )
    assert client.get_pending_nonce(TO_ADDRESS) == "0x2"
    assert client.get_chain_id() == "0x3e9"
    assert client.get_gas_price() == "0x5d21dba00"
    w3.provider.make_request.assert_any_call("klay_getTransactionCount", [TO_ADDRESS, "pending"])


def test_rpc_error_response():
    client, _ = _client({"klay_chainID": {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "boom"}}})
    with pytest.raises(RpcError) as e:
        client.get_chain_id()
    assert "boom" in e.value.message


def test_rpc_missing_result():
    client, _ = _client({"klay_gasPrice": {"jsonrpc": "2.0", "id": 1}})
    with pytest.raises(RpcError):
        client.get_gas_price()


def test_fill_sign_and_send(keyring):
    client, w3 = _client(
        {
            "klay_getTransactionCount": {"result": "0x0"},
            "klay_chainID": {"result": hex(CHAIN_ID)},
            "klay_gasPrice": {"result": "0x5d21dba00"},
            "klay_sendRawTransaction": {"result": "0x" + "ab" * 32},
        }
    )
    tx = build_transaction(TxType.VALUE_TRANSFER, **{"from": keyring.address, "to": TO_ADDRESS, "value": 1, "gas": 25000})
    signed = sign(tx, keyring, client=client)
    raw = get_raw_transaction(signed)

    assert client.send_raw_transaction(bytes.fromhex(raw[2:])) == "0x" + "ab" * 32
    w3.provider.make_request.assert_called_with("klay_sendRawTransaction", [raw])
