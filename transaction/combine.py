from __future__ import annotations

from typing import Sequence, Union

from errors import FormatError
from observability import build_log_context, log_event

from .codec import decode, encode
from .core import Transaction
from .fields import EMPTY, ZERO_ADDRESS, addresses_equal, to_int
from .types import ACCESS_LIST, ACCOUNT_KEY, GAS_PRICE, INPUT, TO

RawLike = Union[bytes, str]

_NUMERIC_COMMON = ("nonce", "gas")


def _same_sender(a: Transaction, b: Transaction) -> bool:
    # Ethereum-compatible encodings do not carry the sender.
    if a.info.nullable_from and ZERO_ADDRESS in (a.from_address.lower(), b.from_address.lower()):
        return True
    return addresses_equal(a.from_address, b.from_address)


def _same_chain_id(a: Transaction, b: Transaction) -> bool:
    # Klaytn and legacy raw encodings do not carry the chain id; unset matches any.
    if a.chain_id == EMPTY or b.chain_id == EMPTY:
        return True
    return to_int(a.chain_id) == to_int(b.chain_id)


def compare_tx_fields(a: Transaction, b: Transaction, check_sig: bool = False) -> bool:
    """
    True when `a` and `b` describe the same transaction.

    Numbers compare by value and addresses case-insensitively. An unknown
    (zero) sender of an ethereum-compatible transaction matches any sender.
    Chain ids compare when both sides have one; an unset chain id matches
    any. Signatures are compared (in order) only with `check_sig`.
    """
    if a.type is not b.type:
        return False
    if not _same_sender(a, b):
        return False
    for name in _NUMERIC_COMMON:
        if to_int(getattr(a, name)) != to_int(getattr(b, name)):
            return False
    if not _same_chain_id(a, b):
        return False

    for name in sorted(a.info.fields):
        left, right = getattr(a, name), getattr(b, name)
        if name == TO:
            same = addresses_equal(left, right)
        elif name == ACCESS_LIST:
            same = tuple(left or ()) == tuple(right or ())
        elif name in (INPUT, ACCOUNT_KEY):
            same = (left or "").lower() == (right or "").lower()
        else:
            same = to_int(left) == to_int(right)
        if not same:
            return False

    if check_sig and a.signatures != b.signatures:
        return False
    return True


def _adopt_unset_fields(tx: Transaction, decoded: Transaction) -> Transaction:
    if tx.nonce == EMPTY:
        tx = tx.with_nonce(decoded.nonce)
    if GAS_PRICE in tx.info.fields and tx.gas_price == EMPTY:
        tx = tx.with_gas_price(decoded.gas_price)
    if tx.chain_id == EMPTY and decoded.chain_id != EMPTY:
        tx = tx.with_chain_id(decoded.chain_id)
    return tx


def combine_signed_raw_transactions(tx: Transaction, raw_transactions: Sequence[RawLike]) -> Transaction:
    """
    Merge the signatures of `raw_transactions` into `tx`.

    Every raw transaction must decode to the same transaction as `tx` apart
    from its signatures; otherwise FormatError is raised. An unsigned `tx`
    first takes its unset nonce, gas price and chain id from the first
    decoded transaction.
    """
    if not raw_transactions:
        raise FormatError("empty_input", "There are no raw transactions to combine.", {})

    decoded_list = [decode(raw) for raw in raw_transactions]
    if not tx.is_signed():
        tx = _adopt_unset_fields(tx, decoded_list[0])

    merged = tx
    for decoded in decoded_list:
        if not compare_tx_fields(tx, decoded):
            raise FormatError(
                "transactions_mismatch",
                "Transactions containing different information cannot be combined. The transactions do not match.",
                {"expected": tx.to_dict(), "got": decoded.to_dict()},
            )
        merged = merged.append_signatures(decoded.signatures)

    log_event("signatures_combined", inputs=len(raw_transactions), **build_log_context(merged))
    return merged


def combine(raw_transactions: Sequence[RawLike]) -> bytes:
    """
    Combine raw transactions that differ only in their signatures into one
    raw transaction carrying the deduplicated union of signatures.
    """
    if not raw_transactions:
        raise FormatError("empty_input", "There are no raw transactions to combine.", {})
    base = decode(raw_transactions[0])
    merged = combine_signed_raw_transactions(base, list(raw_transactions[1:]) or [raw_transactions[0]])
    return encode(merged)

