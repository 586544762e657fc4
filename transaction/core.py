"""
Immutable, validated transaction value.

Every field is checked and normalised in `__post_init__`, so a `Transaction`
that exists is always well-formed. Updates go through the `with_*` helpers,
which build a new value via `dataclasses.replace` and therefore run the same
validation: a rejected update never touches the original value.

Usage:
    tx = build_transaction(
        TxType.VALUE_TRANSFER,
        **{"from": "0x...", "to": "0x...", "value": 1, "gas": 25000, "gasPrice": "0x5d21dba00"},
    )
    tx = tx.with_nonce(3).with_chain_id(1001)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from errors import ValidationError

from .fields import (
    EMPTY,
    ZERO_ADDRESS,
    address_to_bytes,
    hex_to_bytes,
    is_address,
    is_unset,
    to_hex_data,
    to_hex_number,
    to_optional_hex_number,
)
from .signature import SignatureData, SignatureLike, is_empty_signatures, is_single_signature, refine_signatures
from .types import (
    ACCESS_LIST,
    ACCOUNT_KEY,
    GAS_PRICE,
    INPUT,
    MAX_FEE_PER_GAS,
    MAX_PRIORITY_FEE_PER_GAS,
    TO,
    VALUE,
    VARIANT_FIELDS,
    TxType,
    TxTypeInfo,
    info,
)

# RLP encoding of AccountKeyLegacy, the key type every account starts with.
ACCOUNT_KEY_LEGACY = "0x01c0"


@dataclass(frozen=True)
class AccessTuple:
    """One access list entry: an address and the storage slots it touches."""

    address: str
    storage_keys: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not is_address(self.address):
            raise ValidationError("invalid_access_list", f"Invalid address. : {self.address}", {"address": self.address})
        keys = []
        for key in self.storage_keys:
            k = to_hex_data(key, name="storageKey")
            if len(k) != 66:
                raise ValidationError("invalid_access_list", f"Invalid storage key. : {key}", {"storage_key": key})
            keys.append(k)
        object.__setattr__(self, "storage_keys", tuple(keys))

    @classmethod
    def from_value(cls, value: Any) -> "AccessTuple":
        if isinstance(value, AccessTuple):
            return value
        if isinstance(value, dict):
            return cls(
                address=value.get("address"),
                storage_keys=tuple(value.get("storageKeys") or value.get("storage_keys") or ()),
            )
        try:
            address, storage_keys = value
        except (TypeError, ValueError):
            raise ValidationError("invalid_access_list", f"Invalid access list entry: {value!r}", {}) from None
        return cls(address=address, storage_keys=tuple(storage_keys))

    def to_rlp_list(self) -> list:
        return [address_to_bytes(self.address), [hex_to_bytes(k) for k in self.storage_keys]]

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "storageKeys": list(self.storage_keys)}


def _required(value: Any, name: str, tx_type: TxType) -> Any:
    if value is None:
        raise ValidationError("missing_field", f"{name} is missing.", {"type": tx_type.value, "field": name})
    return value


@dataclass(frozen=True)
class Transaction:
    type: TxType
    from_address: Optional[str] = None
    gas: Optional[str] = None
    nonce: str = EMPTY
    chain_id: str = EMPTY
    signatures: Tuple[SignatureData, ...] = ()

    # Variant fields; which ones apply is decided by the type table.
    to: Optional[str] = None
    value: Optional[str] = None
    input: Optional[str] = None
    gas_price: Optional[str] = None
    account_key: Optional[str] = None
    access_list: Optional[Tuple[AccessTuple, ...]] = None
    max_priority_fee_per_gas: Optional[str] = None
    max_fee_per_gas: Optional[str] = None

    def __post_init__(self) -> None:
        tx_type = self.type
        if not isinstance(tx_type, TxType):
            try:
                tx_type = TxType(tx_type)
            except ValueError:
                raise ValidationError("invalid_type", f"Invalid transaction type. : {tx_type!r}", {"type": tx_type}) from None
            object.__setattr__(self, "type", tx_type)
        row = info(tx_type)

        object.__setattr__(self, "from_address", self._normalize_from(self.from_address, tx_type, row))

        if is_unset(self.gas):
            raise ValidationError("missing_field", "gas is missing.", {"type": tx_type.value, "field": "gas"})
        object.__setattr__(self, "gas", to_hex_number(self.gas, name="gas"))
        object.__setattr__(self, "nonce", to_optional_hex_number(self.nonce, name="nonce"))
        object.__setattr__(self, "chain_id", to_optional_hex_number(self.chain_id, name="chainId"))

        for name in VARIANT_FIELDS:
            current = getattr(self, name)
            if name not in row.fields:
                if current is not None:
                    raise ValidationError(
                        "unsupported_field",
                        f"{name} is not a field of {tx_type.value}.",
                        {"type": tx_type.value, "field": name},
                    )
                continue
            object.__setattr__(self, name, self._normalize_variant(name, current, tx_type, row))

        object.__setattr__(self, "signatures", refine_signatures(self.signatures or (), tx_type))

    @staticmethod
    def _normalize_from(value: Any, tx_type: TxType, row: TxTypeInfo) -> str:
        # "from" of an ethereum-compatible transaction may be left empty.
        if row.nullable_from and (is_unset(value) or str(value).lower() == ZERO_ADDRESS):
            return ZERO_ADDRESS
        if value is None:
            raise ValidationError("missing_field", "from is missing.", {"type": tx_type.value, "field": "from"})
        if not is_address(value):
            raise ValidationError("invalid_address", f"Invalid address. : {value}", {"from": value})
        return value

    @staticmethod
    def _normalize_variant(name: str, value: Any, tx_type: TxType, row: TxTypeInfo) -> Any:
        if name == TO:
            if row.is_ethereum and is_unset(value):
                return EMPTY
            _required(value, "to", tx_type)
            if not is_address(value):
                raise ValidationError("invalid_address", f"Invalid address. : {value}", {"to": value})
            return value
        if name == INPUT:
            if value is None and row.is_ethereum:
                return EMPTY
            return to_hex_data(_required(value, "input", tx_type), name="input")
        if name == ACCOUNT_KEY:
            key = to_hex_data(_required(value, "account_key", tx_type), name="account_key")
            if key == EMPTY:
                raise ValidationError("missing_field", "account_key is missing.", {"type": tx_type.value})
            return key
        if name == ACCESS_LIST:
            return tuple(AccessTuple.from_value(entry) for entry in (value or ()))
        if name == GAS_PRICE:
            return to_optional_hex_number(value, name="gasPrice")
        if name in (VALUE, MAX_PRIORITY_FEE_PER_GAS, MAX_FEE_PER_GAS):
            if is_unset(value):
                raise ValidationError("missing_field", f"{name} is missing.", {"type": tx_type.value, "field": name})
            return to_hex_number(value, name=name)
        raise ValidationError("unsupported_field", f"Unknown field {name}", {"field": name})

    @property
    def info(self) -> TxTypeInfo:
        return info(self.type)

    @property
    def type_int(self) -> int:
        return self.info.code

    def is_signed(self) -> bool:
        return not is_empty_signatures(self.signatures)

    def with_from(self, from_address: Optional[str]) -> "Transaction":
        return replace(self, from_address=from_address)

    def with_nonce(self, nonce: Union[int, str, None]) -> "Transaction":
        return replace(self, nonce=nonce)

    def with_gas(self, gas: Union[int, str, None]) -> "Transaction":
        return replace(self, gas=gas)

    def with_chain_id(self, chain_id: Union[int, str, None]) -> "Transaction":
        return replace(self, chain_id=chain_id)

    def with_gas_price(self, gas_price: Union[int, str, None]) -> "Transaction":
        return replace(self, gas_price=gas_price)

    def with_signatures(self, signatures: Iterable[SignatureLike]) -> "Transaction":
        """Replace the signature list (refined; empty means unsigned)."""
        return replace(self, signatures=tuple(signatures))

    def append_signatures(self, signatures: Union[SignatureLike, Iterable[SignatureLike]]) -> "Transaction":
        """
        Append one signature (SignatureData, {"v","r","s"} dict or a (v, r, s)
        tuple of scalars) or a list of them.
        """
        if is_single_signature(signatures):
            signatures = [signatures]
        return replace(self, signatures=self.signatures + tuple(signatures))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type.value,
            "typeInt": self.type_int,
            "from": self.from_address,
            "nonce": self.nonce,
            "gas": self.gas,
            "chainId": self.chain_id,
            "signatures": [list(sig.to_tuple()) for sig in self.signatures],
        }
        camel = {
            TO: "to",
            VALUE: "value",
            INPUT: "input",
            GAS_PRICE: "gasPrice",
            ACCOUNT_KEY: "key",
            MAX_PRIORITY_FEE_PER_GAS: "maxPriorityFeePerGas",
            MAX_FEE_PER_GAS: "maxFeePerGas",
        }
        for name in sorted(self.info.fields):
            if name == ACCESS_LIST:
                out["accessList"] = [entry.to_dict() for entry in self.access_list or ()]
            else:
                out[camel[name]] = getattr(self, name)
        return out


_ALIASES: Dict[str, str] = {
    "from": "from_address",
    "chainId": "chain_id",
    "gasPrice": "gas_price",
    "accessList": "access_list",
    "maxPriorityFeePerGas": "max_priority_fee_per_gas",
    "maxFeePerGas": "max_fee_per_gas",
    "data": "input",
    "key": "account_key",
}

_FIELD_NAMES = frozenset(
    {"from_address", "gas", "nonce", "chain_id", "signatures"} | set(VARIANT_FIELDS)
)


def build_transaction(tx_type: Union[TxType, str], **fields: Any) -> Transaction:
    """
    Validate `fields` and return a Transaction of `tx_type`.

    Accepts snake_case names as well as the JSON-RPC camelCase spellings
    ("from", "chainId", "gasPrice", "accessList", ...). A single signature
    may be passed as `signatures={"v": .., "r": .., "s": ..}`.
    """
    kwargs: Dict[str, Any] = {}
    for key, value in fields.items():
        name = _ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            raise ValidationError("unsupported_field", f"Unknown transaction field: {key}", {"field": key})
        if name in kwargs:
            raise ValidationError("duplicate_field", f"Transaction field given twice: {key}", {"field": key})
        kwargs[name] = value

    signatures = kwargs.get("signatures")
    if signatures is None:
        kwargs["signatures"] = ()
    elif is_single_signature(signatures):
        kwargs["signatures"] = (signatures,)
    else:
        kwargs["signatures"] = tuple(signatures)

    return Transaction(type=tx_type, **kwargs)
