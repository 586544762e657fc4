from __future__ import annotations

import json
import os
from pathlib import Path

from eth_account import Account

from errors import ConfigurationError, ValidationError

from .keyring import SingleKeyring


class EncryptedKeystoreKeyring(SingleKeyring):
    """
    Baseline production keyring: decrypts an Ethereum keystore JSON using a passphrase.

    Env vars:
    - KEYSTORE_PATH: path to keystore json file
    - KEYSTORE_PASSWORD: passphrase
    - KEYRING_ADDRESS: optional account address for decoupled accounts
    """

    def __init__(
        self,
        keystore_path_env: str = "KEYSTORE_PATH",
        password_env: str = "KEYSTORE_PASSWORD",  # nosec B107
        address_env: str = "KEYRING_ADDRESS",
    ) -> None:
        path_raw = os.getenv(keystore_path_env)
        password = os.getenv(password_env)
        if not path_raw:
            raise ConfigurationError("missing_keystore", f"{keystore_path_env} environment variable not set", {"env": keystore_path_env})
        if not password:
            raise ConfigurationError("missing_keystore", f"{password_env} environment variable not set", {"env": password_env})

        path = Path(path_raw).expanduser()
        if not path.exists():
            raise ConfigurationError("missing_keystore", f"Keystore file not found: {path}", {"path": str(path)})

        keystore = json.loads(path.read_text())
        try:
            pk_bytes = Account.decrypt(keystore, password)
        except ValueError as e:
            raise ValidationError("invalid_keystore", f"Cannot decrypt keystore {path}: {e}", {"path": str(path)}) from e
        account = Account.from_key(pk_bytes)
        address = (os.getenv(address_env) or "").strip() or account.address
        super().__init__(address, bytes(account.key))
