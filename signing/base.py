from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Union

from eth_keys import keys

from errors import ValidationError
from transaction.signature import SignatureData
from transaction.types import RoleGroup

HashLike = Union[str, bytes]


def to_digest(message_hash: HashLike) -> bytes:
    """32-byte digest from 0x-hex or bytes."""
    if isinstance(message_hash, str):
        s = message_hash[2:] if message_hash.startswith("0x") else message_hash
        try:
            message_hash = bytes.fromhex(s)
        except ValueError:
            raise ValidationError("invalid_hash", f"Invalid hash: {message_hash!r}", {}) from None
    if len(message_hash) != 32:
        raise ValidationError("invalid_hash", "expected a 32-byte hash", {"length": len(message_hash)})
    return bytes(message_hash)


def to_chain_id(chain_id: Any) -> int:
    if isinstance(chain_id, bool):
        raise ValidationError("invalid_chain_id", f"Invalid chainId: {chain_id}", {})
    if isinstance(chain_id, int):
        return chain_id
    if isinstance(chain_id, str):
        s = chain_id.strip().lower()
        if s.startswith("0x"):
            return int(s, 16) if len(s) > 2 else 0
        return int(s, 10)
    raise ValidationError("invalid_chain_id", f"Invalid chainId: {type(chain_id).__name__}", {})


def to_role(role: Union[RoleGroup, int]) -> RoleGroup:
    if isinstance(role, RoleGroup):
        return role
    try:
        return RoleGroup(int(role))
    except (TypeError, ValueError):
        raise ValidationError("invalid_role", f"Invalid role: {role!r}", {"role": role}) from None


class Keyring(ABC):
    """
    Signing capability for transactions.

    A keyring has an account address and, per role, an ordered list of keys.
    Concrete keyrings only provide `_sign_digest`; the v convention (EIP-155 or
    raw parity) is applied here.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def is_decoupled(self) -> bool:
        """True when the keys are not the ones the address was derived from."""
        raise NotImplementedError

    @abstractmethod
    def key_count(self, role: RoleGroup) -> int:
        """Number of keys usable for `role` (after any role fallback)."""
        raise NotImplementedError

    @abstractmethod
    def _sign_digest(self, digest: bytes, role: RoleGroup, index: int) -> keys.Signature:
        raise NotImplementedError

    def get_address(self) -> str:
        return self.address

    def _check_index(self, role: RoleGroup, index: int) -> None:
        count = self.key_count(role)
        if isinstance(index, bool) or not isinstance(index, int) or index < 0 or index >= count:
            raise ValidationError(
                "invalid_key_index",
                f"Invalid index({index}): index must be less than the length of keys({count}).",
                {"index": index, "role": role.name},
            )

    def ecsign_at(self, message_hash: HashLike, role: Union[RoleGroup, int], index: int) -> SignatureData:
        """Sign with one key; v is the raw recovery parity (0 or 1)."""
        role = to_role(role)
        self._check_index(role, index)
        sig = self._sign_digest(to_digest(message_hash), role, index)
        return SignatureData.from_vrs(sig.v, sig.r, sig.s)

    def ecsign(self, message_hash: HashLike, role: Union[RoleGroup, int]) -> List[SignatureData]:
        role = to_role(role)
        return [self.ecsign_at(message_hash, role, i) for i in range(self.key_count(role))]

    def sign_at(self, message_hash: HashLike, chain_id: Any, role: Union[RoleGroup, int], index: int) -> SignatureData:
        """Sign with one key; v = parity + chainId * 2 + 35."""
        cid = to_chain_id(chain_id)
        sig = self.ecsign_at(message_hash, role, index)
        return SignatureData.from_vrs(sig.v_int + cid * 2 + 35, sig.r_int, sig.s_int)

    def sign(self, message_hash: HashLike, chain_id: Any, role: Union[RoleGroup, int]) -> List[SignatureData]:
        """One EIP-155 signature per key registered under `role`."""
        role = to_role(role)
        return [self.sign_at(message_hash, chain_id, role, i) for i in range(self.key_count(role))]
