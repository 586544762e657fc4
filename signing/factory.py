from __future__ import annotations

from functools import lru_cache

from config.settings import KeyringType, load_settings

from .base import Keyring
from .encrypted_keystore import EncryptedKeystoreKeyring
from .env_private_key import EnvPrivateKeyKeyring
from .policy import maybe_wrap_keyring
from .remote_signer import RemoteKeyring


@lru_cache(maxsize=1)
def get_keyring() -> Keyring:
    """
    Select keyring based on KEYRING_TYPE, wrapped with signer policy when configured.

    Supported:
    - env_private_key (default): uses PRIVATE_KEY env var
    - keystore: uses KEYSTORE_PATH + KEYSTORE_PASSWORD
    - remote: uses SIGNER_REMOTE_URL
    """
    s = load_settings()
    s.require_keyring_config()
    keyring: Keyring
    if s.KEYRING_TYPE == KeyringType.ENV_PRIVATE_KEY:
        keyring = EnvPrivateKeyKeyring()
    elif s.KEYRING_TYPE == KeyringType.KEYSTORE:
        keyring = EncryptedKeystoreKeyring()
    else:
        keyring = RemoteKeyring()
    return maybe_wrap_keyring(keyring, s)
