"""
RLP framing of transactions.

Two framings exist for every transaction:

- the signing payload (`encode_for_signature`), which is what gets hashed and
  signed. Klaytn types wrap their type-specific field list as
  RLP([RLP([type, fields...]), chainId, 0, 0]); legacy transactions use the
  flat EIP-155 form; ethereum typed transactions use typeByte || RLP(fields).
- the raw transaction (`encode`), which is what gets sent to the network and
  ends with the signature list.

Field order per type lives in `_LAYOUTS`; every TxType must have one.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple, Union

import rlp
from rlp.exceptions import DecodingError

from errors import FormatError, ValidationError

from .core import AccessTuple, Transaction
from .fields import (
    address_to_bytes,
    bytes_to_address,
    hex_to_bytes,
    int_from_bytes,
    rlp_int,
    to_int,
)
from .signature import SignatureData
from .types import ETHEREUM_TX_TYPE_ENVELOPE, TX_TYPES, TxFamily, TxType, tx_type_from_code

_NUMBER = "number"
_ADDRESS = "address"
_DATA = "data"
_ACCESS_LIST = "access_list"

_KINDS: Dict[str, str] = {
    "nonce": _NUMBER,
    "gas_price": _NUMBER,
    "gas": _NUMBER,
    "value": _NUMBER,
    "chain_id": _NUMBER,
    "max_priority_fee_per_gas": _NUMBER,
    "max_fee_per_gas": _NUMBER,
    "to": _ADDRESS,
    "from_address": _ADDRESS,
    "input": _DATA,
    "account_key": _DATA,
    "access_list": _ACCESS_LIST,
}

_LAYOUTS: Dict[TxType, Tuple[str, ...]] = {
    TxType.LEGACY: ("nonce", "gas_price", "gas", "to", "value", "input"),
    TxType.VALUE_TRANSFER: ("nonce", "gas_price", "gas", "to", "value", "from_address"),
    TxType.VALUE_TRANSFER_MEMO: ("nonce", "gas_price", "gas", "to", "value", "from_address", "input"),
    TxType.ACCOUNT_UPDATE: ("nonce", "gas_price", "gas", "from_address", "account_key"),
    TxType.SMART_CONTRACT_EXECUTION: ("nonce", "gas_price", "gas", "to", "value", "from_address", "input"),
    TxType.CANCEL: ("nonce", "gas_price", "gas", "from_address"),
    TxType.CHAIN_DATA_ANCHORING: ("nonce", "gas_price", "gas", "from_address", "input"),
    TxType.ETHEREUM_ACCESS_LIST: (
        "chain_id", "nonce", "gas_price", "gas", "to", "value", "input", "access_list",
    ),
    TxType.ETHEREUM_DYNAMIC_FEE: (
        "chain_id", "nonce", "max_priority_fee_per_gas", "max_fee_per_gas", "gas", "to", "value", "input", "access_list",
    ),
}

_missing_layouts = set(TxType) - set(_LAYOUTS)
if _missing_layouts:
    raise RuntimeError(f"No RLP layout for: {sorted(t.value for t in _missing_layouts)}")


def _encode_field(name: str, value: Any) -> Any:
    kind = _KINDS[name]
    if kind == _NUMBER:
        return rlp_int(to_int(value))
    if kind == _ADDRESS:
        return address_to_bytes(value)
    if kind == _DATA:
        return hex_to_bytes(value)
    return [entry.to_rlp_list() for entry in value or ()]


def _decode_field(name: str, item: Any) -> Any:
    kind = _KINDS[name]
    if kind == _ACCESS_LIST:
        if not isinstance(item, list):
            raise FormatError("invalid_encoding", f"{name} must be an RLP list", {"field": name})
        entries = []
        for entry in item:
            if not isinstance(entry, list) or len(entry) != 2 or not isinstance(entry[1], list):
                raise FormatError("invalid_encoding", "Malformed access list entry", {"field": name})
            entries.append(AccessTuple(address=bytes_to_address(entry[0]), storage_keys=tuple("0x" + k.hex() for k in entry[1])))
        return tuple(entries)
    if not isinstance(item, bytes):
        raise FormatError("invalid_encoding", f"{name} must be an RLP string", {"field": name})
    if kind == _NUMBER:
        return hex(int_from_bytes(item))
    if kind == _ADDRESS:
        return bytes_to_address(item)
    return "0x" + item.hex()


def _field_list(tx: Transaction) -> List[Any]:
    return [_encode_field(name, getattr(tx, name)) for name in _LAYOUTS[tx.type]]


def get_common_rlp_encoding_for_signature(tx: Transaction) -> bytes:
    """
    Type-specific part of the signing payload.

    For Klaytn types this is RLP([type, fields...]); ethereum-compatible types
    have no separate common part and return their full signing payload.
    """
    if tx.info.family is TxFamily.KLAYTN:
        return rlp.encode([rlp_int(tx.info.code)] + _field_list(tx))
    return encode_for_signature(tx)


def encode_for_signature(tx: Transaction) -> bytes:
    """
    Bytes to hash for signing. Embeds the chain id present at call time,
    including the unset sentinel (encoded as 0).
    """
    row = tx.info
    if row.family is TxFamily.KLAYTN:
        common = get_common_rlp_encoding_for_signature(tx)
        return rlp.encode([common, rlp_int(to_int(tx.chain_id)), b"", b""])
    if row.family is TxFamily.ETHEREUM_LEGACY:
        return rlp.encode(_field_list(tx) + [rlp_int(to_int(tx.chain_id)), b"", b""])
    return bytes([row.code & 0xFF]) + rlp.encode(_field_list(tx))


def encode(tx: Transaction) -> bytes:
    """Raw (transmittable) encoding including signatures."""
    row = tx.info
    fields = _field_list(tx)
    if row.family is TxFamily.KLAYTN:
        sig_list = [sig.to_rlp_list() for sig in tx.signatures]
        return row.type_prefix + rlp.encode(fields + [sig_list])
    # Single-signature families carry v, r, s inline.
    return row.type_prefix + rlp.encode(fields + tx.signatures[0].to_rlp_list())


def _to_raw_bytes(raw: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    try:
        return hex_to_bytes(raw.strip())
    except (AttributeError, ValueError):
        raise FormatError("invalid_encoding", "Raw transaction must be bytes or a 0x-hex string", {}) from None


def _split_type(raw: bytes) -> Tuple[TxType, bytes]:
    first = raw[0]
    if first >= 0xC0:
        return TxType.LEGACY, raw
    try:
        if first == ETHEREUM_TX_TYPE_ENVELOPE:
            if len(raw) < 2:
                raise KeyError(first)
            tx_type = tx_type_from_code((first << 8) | raw[1])
            return tx_type, raw[2:]
        tx_type = tx_type_from_code(first)
    except KeyError:
        raise FormatError("unknown_type", f"Unknown transaction type: 0x{raw[:2].hex()}", {"prefix": "0x" + raw[:2].hex()}) from None
    if TX_TYPES[tx_type].family is not TxFamily.KLAYTN:
        raise FormatError("unknown_type", f"Unknown transaction type: 0x{first:02x}", {"prefix": f"0x{first:02x}"})
    return tx_type, raw[1:]


def _decode_signature(items: List[Any]) -> SignatureData:
    if len(items) != 3 or not all(isinstance(i, bytes) for i in items):
        raise FormatError("invalid_encoding", "Malformed signature", {})
    v, r, s = items
    return SignatureData(v=int_from_bytes(v), r=int_from_bytes(r), s=int_from_bytes(s))


def decode(raw: Union[bytes, bytearray, str]) -> Transaction:
    """
    Decode a raw transaction produced by `encode` back into a Transaction.
    """
    data = _to_raw_bytes(raw)
    if not data:
        raise FormatError("invalid_encoding", "Raw transaction is empty", {})

    tx_type, body = _split_type(data)
    layout = _LAYOUTS[tx_type]
    family = TX_TYPES[tx_type].family

    try:
        items = rlp.decode(body)
    except DecodingError as e:
        raise FormatError("invalid_encoding", f"Invalid RLP: {e}", {"type": tx_type.value}) from e
    if not isinstance(items, list):
        raise FormatError("invalid_encoding", "Transaction body must be an RLP list", {"type": tx_type.value})

    expected = len(layout) + (1 if family is TxFamily.KLAYTN else 3)
    if len(items) != expected:
        raise FormatError(
            "invalid_encoding",
            f"{tx_type.value} expects {expected} RLP items, got {len(items)}",
            {"type": tx_type.value},
        )

    try:
        kwargs = {name: _decode_field(name, item) for name, item in zip(layout, items)}
        if family is TxFamily.KLAYTN:
            sig_items = items[len(layout)]
            if not isinstance(sig_items, list):
                raise FormatError("invalid_encoding", "Signatures must be an RLP list", {"type": tx_type.value})
            signatures = tuple(_decode_signature(s if isinstance(s, list) else []) for s in sig_items)
        else:
            signatures = (_decode_signature(items[len(layout):]),)
        return Transaction(type=tx_type, signatures=signatures, **kwargs)
    except ValidationError as e:
        raise FormatError("invalid_encoding", f"Invalid {tx_type.value} field: {e.message}", dict(e.data)) from e
