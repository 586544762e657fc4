import os

import pytest

from conftest import CHAIN_ID, KEY_1
from config.settings import load_settings
from errors import PolicyError
from signing.keyring import create_from_private_key
from signing.policy import PolicyEnforcedKeyring, maybe_wrap_keyring, policy_config_from_settings
from transaction.types import RoleGroup

HASH = "0x" + "ab" * 32


def _clear_signer_env(monkeypatch):
    for k in list(os.environ.keys()):
        if k.startswith("SIGNER_"):
            monkeypatch.delenv(k, raising=False)


def test_signer_policy_blocks_chain_id_allowlist(monkeypatch):
    _clear_signer_env(monkeypatch)
    monkeypatch.setenv("SIGNER_POLICY_ENABLED", "true")
    monkeypatch.setenv("SIGNER_ALLOWED_CHAIN_IDS", "8217,0x3e9")

    inner = create_from_private_key(KEY_1)
    k = PolicyEnforcedKeyring(inner, policy_config_from_settings())

    assert k.sign_at(HASH, CHAIN_ID, RoleGroup.TRANSACTION, 0) == inner.sign_at(HASH, CHAIN_ID, RoleGroup.TRANSACTION, 0)
    with pytest.raises(PolicyError) as e:
        k.sign(HASH, 1, RoleGroup.TRANSACTION)
    assert e.value.code == "chain_id_not_allowed"


def test_signer_policy_blocks_roles(monkeypatch):
    _clear_signer_env(monkeypatch)
    monkeypatch.setenv("SIGNER_ALLOWED_ROLES", "transaction")

    k = maybe_wrap_keyring(create_from_private_key(KEY_1))
    assert isinstance(k, PolicyEnforcedKeyring)
    assert len(k.ecsign(HASH, RoleGroup.TRANSACTION)) == 1
    with pytest.raises(PolicyError) as e:
        k.ecsign_at(HASH, RoleGroup.ACCOUNT_UPDATE, 0)
    assert e.value.code == "role_not_allowed"


def test_signer_policy_allows_when_no_rules(monkeypatch):
    _clear_signer_env(monkeypatch)

    inner = create_from_private_key(KEY_1)
    assert maybe_wrap_keyring(inner) is inner

    k = PolicyEnforcedKeyring(inner, policy_config_from_settings(load_settings()))
    assert k.address == inner.address
    assert not k.is_decoupled()
    assert k.sign_at(HASH, 1, RoleGroup.FEE_PAYER, 0) == inner.sign_at(HASH, 1, RoleGroup.FEE_PAYER, 0)
