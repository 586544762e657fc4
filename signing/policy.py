from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from eth_keys import keys

from config.settings import Settings, load_settings
from errors import PolicyError
from transaction.signature import SignatureData
from transaction.types import RoleGroup

from .base import HashLike, Keyring, to_chain_id, to_role


@dataclass(frozen=True)
class SignerPolicyConfig:
    allowed_chain_ids: FrozenSet[int]
    allowed_roles: FrozenSet[RoleGroup]


def policy_config_from_settings(s: Optional[Settings] = None) -> SignerPolicyConfig:
    """
    Policy config for signer-side enforcement.

    All rules are opt-in; defaults are permissive unless env vars are set.
    """
    s = s or load_settings()
    return SignerPolicyConfig(
        allowed_chain_ids=s.SIGNER_ALLOWED_CHAIN_IDS,
        allowed_roles=frozenset(RoleGroup[name.upper()] for name in s.SIGNER_ALLOWED_ROLES),
    )


def validate_against_policy(*, role: RoleGroup, chain_id: Optional[int], cfg: SignerPolicyConfig) -> None:
    if cfg.allowed_roles and role not in cfg.allowed_roles:
        raise PolicyError(
            "role_not_allowed",
            f"Signing with the {role.name} role is not allowlisted by signer policy.",
            {"role": role.name, "allowed_roles": sorted(r.name for r in cfg.allowed_roles)},
        )

    if cfg.allowed_chain_ids and chain_id is not None and chain_id not in cfg.allowed_chain_ids:
        raise PolicyError(
            "chain_id_not_allowed",
            "Transaction chain_id is not allowlisted by signer policy.",
            {"chain_id": chain_id, "allowed_chain_ids": sorted(cfg.allowed_chain_ids)},
        )


class PolicyEnforcedKeyring(Keyring):
    """
    Wrap a keyring with local policy enforcement.

    Chain ids are only known to the EIP-155 entry points (`sign`, `sign_at`);
    raw-parity signing (`ecsign*`) is checked against the role rules only.
    """

    def __init__(self, inner: Keyring, cfg: SignerPolicyConfig) -> None:
        self._inner = inner
        self._cfg = cfg

    @property
    def address(self) -> str:
        return self._inner.address

    def is_decoupled(self) -> bool:
        return self._inner.is_decoupled()

    def key_count(self, role: RoleGroup) -> int:
        return self._inner.key_count(role)

    def _sign_digest(self, digest: bytes, role: RoleGroup, index: int) -> keys.Signature:
        return self._inner._sign_digest(digest, role, index)

    def ecsign_at(self, message_hash: HashLike, role, index: int) -> SignatureData:
        validate_against_policy(role=to_role(role), chain_id=None, cfg=self._cfg)
        return super().ecsign_at(message_hash, role, index)

    def sign_at(self, message_hash: HashLike, chain_id, role, index: int) -> SignatureData:
        validate_against_policy(role=to_role(role), chain_id=to_chain_id(chain_id), cfg=self._cfg)
        return super().sign_at(message_hash, chain_id, role, index)


def maybe_wrap_keyring(keyring: Keyring, s: Optional[Settings] = None) -> Keyring:
    """
    Wrap keyring with policy if any signer policy env vars are set.
    """
    s = s or load_settings()
    if not s.has_signer_policy:
        return keyring
    return PolicyEnforcedKeyring(keyring, policy_config_from_settings(s))
