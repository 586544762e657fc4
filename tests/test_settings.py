import os

import pytest

from conftest import KEY_1
from config.settings import KeyringType, Settings, SettingsValidationError, load_settings
from signing import EnvPrivateKeyKeyring, PolicyEnforcedKeyring, RemoteKeyring
from signing.factory import get_keyring


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in list(os.environ.keys()):
        if k.startswith(("SIGNER_", "KEYRING_", "KEYSTORE_")) or k in ("PRIVATE_KEY", "LOG_LEVEL", "HTTP_TIMEOUT_SEC"):
            monkeypatch.delenv(k, raising=False)
    get_keyring.cache_clear()
    yield
    get_keyring.cache_clear()


def test_defaults():
    s = Settings()
    assert s.KEYRING_TYPE is KeyringType.ENV_PRIVATE_KEY
    assert s.HTTP_TIMEOUT_SEC == 10
    assert s.SIGNER_ALLOWED_CHAIN_IDS == frozenset()
    assert not s.has_signer_policy


def test_parses_env(monkeypatch):
    monkeypatch.setenv("KEYRING_TYPE", "Remote")
    monkeypatch.setenv("SIGNER_ALLOWED_CHAIN_IDS", "1001, 0x2019, junk")
    monkeypatch.setenv("SIGNER_ALLOWED_ROLES", "transaction,FEE_PAYER")
    monkeypatch.setenv("HTTP_TIMEOUT_SEC", "30")
    s = load_settings()
    assert s.KEYRING_TYPE is KeyringType.REMOTE
    assert s.SIGNER_ALLOWED_CHAIN_IDS == frozenset({1001, 8217})
    assert s.SIGNER_ALLOWED_ROLES == frozenset({"transaction", "fee_payer"})
    assert s.HTTP_TIMEOUT_SEC == 30
    assert s.has_signer_policy


def test_rejects_unknown_keyring_type(monkeypatch):
    monkeypatch.setenv("KEYRING_TYPE", "hsm")
    with pytest.raises(SettingsValidationError):
        load_settings()


def test_rejects_unknown_role(monkeypatch):
    monkeypatch.setenv("SIGNER_ALLOWED_ROLES", "admin")
    with pytest.raises(SettingsValidationError):
        load_settings()


def test_to_dict_redacts_secrets(monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", KEY_1)
    monkeypatch.setenv("KEYSTORE_PASSWORD", "pw")
    d = load_settings().to_dict()
    assert d["PRIVATE_KEY"] == "***REDACTED***"
    assert d["KEYSTORE_PASSWORD"] == "***REDACTED***"
    assert d["KEYRING_TYPE"] == "env_private_key"


def test_require_keyring_config():
    with pytest.raises(SettingsValidationError):
        load_settings().require_keyring_config()


def test_get_keyring_default_backend(monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", KEY_1)
    assert isinstance(get_keyring(), EnvPrivateKeyKeyring)


def test_get_keyring_wraps_with_policy(monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", KEY_1)
    monkeypatch.setenv("SIGNER_POLICY_ENABLED", "true")
    assert isinstance(get_keyring(), PolicyEnforcedKeyring)


def test_get_keyring_remote_backend(monkeypatch):
    monkeypatch.setenv("KEYRING_TYPE", "remote")
    monkeypatch.setenv("SIGNER_REMOTE_URL", "http://signer")
    assert isinstance(get_keyring(), RemoteKeyring)
