from __future__ import annotations

from eth_utils import keccak

from .codec import encode, encode_for_signature
from .core import Transaction


def get_hash_for_signature(tx: Transaction) -> str:
    """Default hasher: keccak256 of the signing payload, as 0x-hex."""
    return "0x" + keccak(encode_for_signature(tx)).hex()


def get_raw_transaction(tx: Transaction) -> str:
    return "0x" + encode(tx).hex()


def get_transaction_hash(tx: Transaction) -> str:
    raw = encode(tx)
    if tx.info.is_ethereum_typed:
        # Hash the ethereum form (typeByte || RLP), without the 0x78 envelope.
        raw = raw[1:]
    return "0x" + keccak(raw).hex()


def get_sender_tx_hash(tx: Transaction) -> str:
    return get_transaction_hash(tx)
