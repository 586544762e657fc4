from __future__ import annotations

import secrets
from typing import List, Sequence, Union

from eth_keys import keys
from eth_keys.exceptions import ValidationError as KeyValidationError

from errors import ValidationError
from transaction.fields import addresses_equal, is_address
from transaction.types import RoleGroup

from .base import Keyring

KeyLike = Union[str, bytes, keys.PrivateKey]


def to_private_key(key: KeyLike) -> keys.PrivateKey:
    if isinstance(key, keys.PrivateKey):
        return key
    if isinstance(key, str):
        s = key.strip()
        if s.startswith("0x"):
            s = s[2:]
        try:
            key = bytes.fromhex(s)
        except ValueError:
            raise ValidationError("invalid_private_key", "Invalid private key", {}) from None
    try:
        return keys.PrivateKey(key)
    except KeyValidationError:
        raise ValidationError("invalid_private_key", "Invalid private key", {}) from None


def _check_address(address: str) -> str:
    if not is_address(address):
        raise ValidationError("invalid_address", f"Invalid address. : {address}", {"address": address})
    return address


class _LocalKeyring(Keyring):
    """Keyring holding private keys in process memory, grouped by role."""

    def __init__(self, address: str, role_keys: Sequence[Sequence[KeyLike]]) -> None:
        self._address = _check_address(address)
        self._keys: List[List[keys.PrivateKey]] = [[to_private_key(k) for k in group] for group in role_keys]

    @property
    def address(self) -> str:
        return self._address

    def get_keys_by_role(self, role: RoleGroup) -> List[keys.PrivateKey]:
        return list(self._keys[role.value])

    def key_count(self, role: RoleGroup) -> int:
        return len(self.get_keys_by_role(role))

    def get_public_key(self, role: RoleGroup = RoleGroup.TRANSACTION, index: int = 0) -> str:
        self._check_index(role, index)
        return self.get_keys_by_role(role)[index].public_key.to_hex()

    def _sign_digest(self, digest: bytes, role: RoleGroup, index: int) -> keys.Signature:
        return self.get_keys_by_role(role)[index].sign_msg_hash(digest)


class SingleKeyring(_LocalKeyring):
    """One private key, used for every role."""

    def __init__(self, address: str, key: KeyLike) -> None:
        super().__init__(address, [[key]])

    @property
    def key(self) -> keys.PrivateKey:
        return self._keys[0][0]

    def get_keys_by_role(self, role: RoleGroup) -> List[keys.PrivateKey]:
        return [self.key]

    def is_decoupled(self) -> bool:
        return not addresses_equal(self.address, self.key.public_key.to_checksum_address())


class MultipleKeyring(_LocalKeyring):
    """Several private keys, the same list for every role."""

    def __init__(self, address: str, key_list: Sequence[KeyLike]) -> None:
        if not key_list:
            raise ValidationError("empty_key_list", "MultipleKeyring needs at least one private key.", {"address": address})
        super().__init__(address, [list(key_list)])

    def get_keys_by_role(self, role: RoleGroup) -> List[keys.PrivateKey]:
        return list(self._keys[0])

    def is_decoupled(self) -> bool:
        return True


class RoleBasedKeyring(_LocalKeyring):
    """
    Separate key lists for the transaction, account-update and fee-payer roles.

    A role without keys signs with the transaction role's keys.
    """

    def __init__(self, address: str, role_keys: Sequence[Sequence[KeyLike]]) -> None:
        if len(role_keys) > len(RoleGroup):
            raise ValidationError(
                "invalid_role_keys",
                f"Unsupported role number. The length of the role key list must be {len(RoleGroup)} or less.",
                {"roles": len(role_keys)},
            )
        groups = [list(group) for group in role_keys]
        groups += [[] for _ in range(len(RoleGroup) - len(groups))]
        super().__init__(address, groups)

    def get_keys_by_role(self, role: RoleGroup) -> List[keys.PrivateKey]:
        found = self._keys[role.value]
        if not found and role is not RoleGroup.TRANSACTION:
            found = self._keys[RoleGroup.TRANSACTION.value]
        if not found:
            raise ValidationError(
                "missing_role_key",
                f"The key with {role.name} role does not exist.",
                {"role": role.name},
            )
        return list(found)

    def is_decoupled(self) -> bool:
        return True


def create_from_private_key(private_key: KeyLike) -> SingleKeyring:
    """Keyring whose address is derived from the key itself (not decoupled)."""
    key = to_private_key(private_key)
    return SingleKeyring(key.public_key.to_checksum_address(), key)


def create_with_single_key(address: str, private_key: KeyLike) -> SingleKeyring:
    return SingleKeyring(address, private_key)


def create_with_multiple_key(address: str, key_list: Sequence[KeyLike]) -> MultipleKeyring:
    return MultipleKeyring(address, key_list)


def create_with_role_based_key(address: str, role_keys: Sequence[Sequence[KeyLike]]) -> RoleBasedKeyring:
    return RoleBasedKeyring(address, role_keys)


def generate() -> SingleKeyring:
    return create_from_private_key(keys.PrivateKey(secrets.token_bytes(32)))
