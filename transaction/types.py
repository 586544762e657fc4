from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet


class TxType(Enum):
    """Transaction variants understood by the codec."""

    LEGACY = "TxTypeLegacyTransaction"
    VALUE_TRANSFER = "TxTypeValueTransfer"
    VALUE_TRANSFER_MEMO = "TxTypeValueTransferMemo"
    ACCOUNT_UPDATE = "TxTypeAccountUpdate"
    SMART_CONTRACT_EXECUTION = "TxTypeSmartContractExecution"
    CANCEL = "TxTypeCancel"
    CHAIN_DATA_ANCHORING = "TxTypeChainDataAnchoring"
    ETHEREUM_ACCESS_LIST = "TxTypeEthereumAccessList"
    ETHEREUM_DYNAMIC_FEE = "TxTypeEthereumDynamicFee"


class TxFamily(Enum):
    """Encoding family; decides payload framing and signature rules."""

    KLAYTN = "klaytn"
    ETHEREUM_LEGACY = "ethereum_legacy"
    ETHEREUM_TYPED = "ethereum_typed"


class RoleGroup(Enum):
    """Key roles of a role-based account."""

    TRANSACTION = 0
    ACCOUNT_UPDATE = 1
    FEE_PAYER = 2


class VConvention(Enum):
    """How the signature's v value is encoded."""

    EIP155 = "eip155"  # parity + chainId * 2 + 35
    PARITY = "parity"  # raw recovery parity, 0 or 1


# Envelope byte in front of ethereum typed transactions on the Klaytn network.
ETHEREUM_TX_TYPE_ENVELOPE = 0x78

# Variant fields (beyond from/nonce/gas/chain_id/signatures).
TO = "to"
VALUE = "value"
INPUT = "input"
GAS_PRICE = "gas_price"
ACCOUNT_KEY = "account_key"
ACCESS_LIST = "access_list"
MAX_PRIORITY_FEE_PER_GAS = "max_priority_fee_per_gas"
MAX_FEE_PER_GAS = "max_fee_per_gas"

VARIANT_FIELDS: FrozenSet[str] = frozenset(
    {TO, VALUE, INPUT, GAS_PRICE, ACCOUNT_KEY, ACCESS_LIST, MAX_PRIORITY_FEE_PER_GAS, MAX_FEE_PER_GAS}
)


@dataclass(frozen=True)
class TxTypeInfo:
    """Static properties of one transaction variant."""

    code: int
    family: TxFamily
    role: RoleGroup
    multi_sig: bool
    v_convention: VConvention
    fields: FrozenSet[str]

    @property
    def is_ethereum(self) -> bool:
        return self.family is not TxFamily.KLAYTN

    @property
    def is_ethereum_typed(self) -> bool:
        return self.family is TxFamily.ETHEREUM_TYPED

    @property
    def nullable_from(self) -> bool:
        return self.is_ethereum

    @property
    def type_prefix(self) -> bytes:
        """Leading bytes of the raw encoding (empty for legacy)."""
        if self.family is TxFamily.ETHEREUM_LEGACY:
            return b""
        if self.family is TxFamily.ETHEREUM_TYPED:
            return bytes([ETHEREUM_TX_TYPE_ENVELOPE, self.code & 0xFF])
        return bytes([self.code])


def _klaytn(code: int, role: RoleGroup, *fields: str) -> TxTypeInfo:
    return TxTypeInfo(
        code=code,
        family=TxFamily.KLAYTN,
        role=role,
        multi_sig=True,
        v_convention=VConvention.EIP155,
        fields=frozenset(fields),
    )


TX_TYPES: Dict[TxType, TxTypeInfo] = {
    TxType.LEGACY: TxTypeInfo(
        code=0x00,
        family=TxFamily.ETHEREUM_LEGACY,
        role=RoleGroup.TRANSACTION,
        multi_sig=False,
        v_convention=VConvention.EIP155,
        fields=frozenset({TO, VALUE, INPUT, GAS_PRICE}),
    ),
    TxType.VALUE_TRANSFER: _klaytn(0x08, RoleGroup.TRANSACTION, TO, VALUE, GAS_PRICE),
    TxType.VALUE_TRANSFER_MEMO: _klaytn(0x10, RoleGroup.TRANSACTION, TO, VALUE, INPUT, GAS_PRICE),
    TxType.ACCOUNT_UPDATE: _klaytn(0x20, RoleGroup.ACCOUNT_UPDATE, ACCOUNT_KEY, GAS_PRICE),
    TxType.SMART_CONTRACT_EXECUTION: _klaytn(0x30, RoleGroup.TRANSACTION, TO, VALUE, INPUT, GAS_PRICE),
    TxType.CANCEL: _klaytn(0x38, RoleGroup.TRANSACTION, GAS_PRICE),
    TxType.CHAIN_DATA_ANCHORING: _klaytn(0x48, RoleGroup.TRANSACTION, INPUT, GAS_PRICE),
    TxType.ETHEREUM_ACCESS_LIST: TxTypeInfo(
        code=0x7801,
        family=TxFamily.ETHEREUM_TYPED,
        role=RoleGroup.TRANSACTION,
        multi_sig=False,
        v_convention=VConvention.PARITY,
        fields=frozenset({TO, VALUE, INPUT, GAS_PRICE, ACCESS_LIST}),
    ),
    TxType.ETHEREUM_DYNAMIC_FEE: TxTypeInfo(
        code=0x7802,
        family=TxFamily.ETHEREUM_TYPED,
        role=RoleGroup.TRANSACTION,
        multi_sig=False,
        v_convention=VConvention.PARITY,
        fields=frozenset({TO, VALUE, INPUT, ACCESS_LIST, MAX_PRIORITY_FEE_PER_GAS, MAX_FEE_PER_GAS}),
    ),
}


def info(tx_type: TxType) -> TxTypeInfo:
    return TX_TYPES[tx_type]


def tx_type_from_code(code: int) -> TxType:
    """Look up a variant by its wire code; raises KeyError for unknown codes."""
    for tx_type, row in TX_TYPES.items():
        if row.code == code:
            return tx_type
    raise KeyError(code)
