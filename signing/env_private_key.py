from __future__ import annotations

import os

from eth_account import Account
from eth_keys.exceptions import ValidationError as KeyValidationError

from errors import ConfigurationError, ValidationError

from .keyring import SingleKeyring


class EnvPrivateKeyKeyring(SingleKeyring):
    """
    Development keyring that reads a raw hex private key from the PRIVATE_KEY env var.

    KEYRING_ADDRESS, when set, overrides the derived address (a decoupled
    account whose key was updated on chain).
    """

    def __init__(self, env_var: str = "PRIVATE_KEY", address_env: str = "KEYRING_ADDRESS") -> None:
        pk = os.getenv(env_var)
        if not pk:
            raise ConfigurationError("missing_private_key", f"{env_var} environment variable not set", {"env": env_var})
        try:
            account = Account.from_key(pk.strip())
        except (ValueError, KeyValidationError):
            raise ValidationError("invalid_private_key", f"{env_var} is not a valid private key", {"env": env_var}) from None
        address = (os.getenv(address_env) or "").strip() or account.address
        super().__init__(address, bytes(account.key))
