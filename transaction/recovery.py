from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError

from errors import PolicyError

from .core import Transaction
from .fields import EMPTY, hex_to_bytes, to_int
from .hasher import get_hash_for_signature
from .signature import SignatureData
from .types import VConvention


@dataclass(frozen=True)
class RecoveryResult:
    """Recovered public keys plus the transaction they were recovered against.

    `transaction` differs from the input only when its chain id was unset and
    had to be taken from the first signature.
    """

    public_keys: Tuple[str, ...]
    transaction: Transaction


def _recover_key(digest: bytes, sig: SignatureData, recovery_id: int) -> str:
    try:
        signature = keys.Signature(vrs=(recovery_id, sig.r_int, sig.s_int))
        return signature.recover_public_key_from_msg_hash(digest).to_hex()
    except (BadSignature, KeyValidationError) as e:
        raise PolicyError(
            "invalid_signature",
            f"Cannot recover a public key from signature: {e}",
            {"signature": sig.to_tuple()},
        ) from e


def _recover_typed(tx: Transaction) -> List[str]:
    digest = hex_to_bytes(get_hash_for_signature(tx))
    out = []
    for sig in tx.signatures:
        if sig.v_int not in (0, 1):
            raise PolicyError(
                "invalid_v_value",
                "Invalid signature: The y-parity of the transaction should either be 0 or 1.",
                {"v": sig.v},
            )
        out.append(_recover_key(digest, sig, sig.v_int))
    return out


def recover(tx: Transaction) -> RecoveryResult:
    """
    Recover the public key of every signature attached to `tx`.

    For EIP-155 style signatures the chain id folded into v has to match the
    transaction's chain id; an unset chain id is taken from the first
    signature.
    """
    if not tx.is_signed():
        raise PolicyError(
            "no_signatures",
            "Failed to recover public key from signatures: the transaction has no signatures.",
            {"type": tx.type.value},
        )

    if tx.info.v_convention is VConvention.PARITY:
        return RecoveryResult(public_keys=tuple(_recover_typed(tx)), transaction=tx)

    if tx.chain_id == EMPTY:
        tx = tx.with_chain_id(tx.signatures[0].chain_id)
    chain_id = to_int(tx.chain_id)

    digest = hex_to_bytes(get_hash_for_signature(tx))
    out = []
    for sig in tx.signatures:
        if sig.chain_id != chain_id:
            raise PolicyError(
                "chain_id_mismatch",
                f"Invalid signature data: chain id mismatch. The chain id of the signature "
                f"({sig.chain_id}) is different from the chain id of the transaction ({chain_id}).",
                {"signature_chain_id": sig.chain_id, "chain_id": chain_id},
            )
        out.append(_recover_key(digest, sig, sig.recovery_id))
    return RecoveryResult(public_keys=tuple(out), transaction=tx)


def recover_public_keys(tx: Transaction) -> List[str]:
    """Public keys ("0x" + 128 hex chars) in signature order."""
    return list(recover(tx).public_keys)
