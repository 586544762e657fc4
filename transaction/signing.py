"""
Signing protocol: resolve missing fields, hash the signing payload, have the
keyring sign, append the signatures.

Transactions are immutable, so every step returns a new value. When a later
step fails after `from` was adopted or nonce/chain id were filled, the raised
error carries that intermediate value in `error.data["partial_transaction"]`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional

from errors import ConfigurationError, PolicyError, TransactionError
from observability import build_log_context, log_event

from .core import Transaction
from .fields import EMPTY, ZERO_ADDRESS, addresses_equal, to_int
from .hasher import get_hash_for_signature
from .signature import SignatureData
from .types import GAS_PRICE, VConvention

if TYPE_CHECKING:
    from rpc.base import NetworkClient
    from signing.base import Keyring
    from signing.keyring import KeyLike

Hasher = Callable[[Transaction], str]


def _unset_fields(tx: Transaction, check_chain_id: bool = True) -> List[str]:
    missing = []
    if tx.nonce == EMPTY:
        missing.append("nonce")
    if check_chain_id and tx.chain_id == EMPTY:
        missing.append("chainId")
    if GAS_PRICE in tx.info.fields and tx.gas_price == EMPTY:
        missing.append("gasPrice")
    return missing


def fill_transaction(tx: Transaction, client: Optional["NetworkClient"] = None) -> Transaction:
    """
    Fill unset nonce, chain id and gas price from the network.

    Raises ConfigurationError when something is still unset afterwards
    (typically because no client was given).
    """
    if client is not None:
        if tx.nonce == EMPTY:
            tx = tx.with_nonce(client.get_pending_nonce(tx.from_address))
        if tx.chain_id == EMPTY:
            tx = tx.with_chain_id(client.get_chain_id())
        if GAS_PRICE in tx.info.fields and tx.gas_price == EMPTY:
            tx = tx.with_gas_price(client.get_gas_price())

    missing = _unset_fields(tx)
    if missing:
        raise ConfigurationError(
            "cannot_fill_transaction",
            f"Cannot fill transaction data.({', '.join(missing)}). A network client must be given "
            "to fill the nonce, chainId or gasPrice automatically.",
            {"missing": missing, "partial_transaction": tx},
        )
    return tx


def validate_optional_values(tx: Transaction, check_chain_id: bool = True) -> None:
    """Raise ConfigurationError if nonce (and optionally chain id) is undefined."""
    if tx.nonce == EMPTY:
        raise ConfigurationError(
            "nonce_undefined",
            "nonce is undefined. Define nonce in transaction or use 'fill_transaction' to fill values.",
            {"missing": ["nonce"]},
        )
    if check_chain_id and tx.chain_id == EMPTY:
        raise ConfigurationError(
            "chain_id_undefined",
            "chainId is undefined. Define chainId in transaction or use 'fill_transaction' to fill values.",
            {"missing": ["chainId"]},
        )


def sign(
    tx: Transaction,
    keyring: "Keyring",
    *,
    index: Optional[int] = None,
    hasher: Hasher = get_hash_for_signature,
    client: Optional["NetworkClient"] = None,
) -> Transaction:
    """
    Sign `tx` with the keys `keyring` holds for the transaction type's role.

    With `index`, only the key at that position signs. `hasher` replaces the
    default keccak-of-signing-payload hash.
    """
    row = tx.info
    if row.is_ethereum and keyring.is_decoupled():
        raise PolicyError(
            "decoupled_keyring",
            f"{tx.type.value} cannot be signed with a decoupled keyring.",
            {"type": tx.type.value, "address": keyring.address},
        )

    if tx.from_address == EMPTY or tx.from_address.lower() == ZERO_ADDRESS:
        tx = tx.with_from(keyring.address)

    try:
        if not addresses_equal(tx.from_address, keyring.address):
            raise PolicyError(
                "sender_mismatch",
                "The from address of the transaction is different with the address of the keyring to use",
                {"from": tx.from_address, "keyring": keyring.address},
            )

        tx = fill_transaction(tx, client)
        message_hash = hasher(tx)

        produced: List[SignatureData]
        if row.v_convention is VConvention.PARITY:
            if index is None:
                produced = keyring.ecsign(message_hash, row.role)
            else:
                produced = [keyring.ecsign_at(message_hash, row.role, index)]
        else:
            chain_id = to_int(tx.chain_id)
            if index is None:
                produced = keyring.sign(message_hash, chain_id, row.role)
            else:
                produced = [keyring.sign_at(message_hash, chain_id, row.role, index)]

        signed = tx.append_signatures(produced)
    except TransactionError as e:
        e.data.setdefault("partial_transaction", tx)
        raise

    log_event("transaction_signed", role=row.role.name, **build_log_context(signed))
    return signed


def sign_with_private_key(
    tx: Transaction,
    private_key: "KeyLike",
    *,
    hasher: Hasher = get_hash_for_signature,
    client: Optional["NetworkClient"] = None,
) -> Transaction:
    """Sign with a single private key; the keyring address is derived from the key."""
    from signing.keyring import create_from_private_key

    return sign(tx, create_from_private_key(private_key), hasher=hasher, client=client)
