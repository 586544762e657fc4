from .base import Keyring
from .encrypted_keystore import EncryptedKeystoreKeyring
from .env_private_key import EnvPrivateKeyKeyring
from .factory import get_keyring
from .keyring import (
    MultipleKeyring,
    RoleBasedKeyring,
    SingleKeyring,
    create_from_private_key,
    create_with_multiple_key,
    create_with_role_based_key,
    create_with_single_key,
    generate,
)
from .policy import PolicyEnforcedKeyring, SignerPolicyConfig, maybe_wrap_keyring
from .remote_signer import RemoteKeyring

__all__ = [
    "Keyring",
    "SingleKeyring",
    "MultipleKeyring",
    "RoleBasedKeyring",
    "create_from_private_key",
    "create_with_single_key",
    "create_with_multiple_key",
    "create_with_role_based_key",
    "generate",
    "EnvPrivateKeyKeyring",
    "EncryptedKeystoreKeyring",
    "RemoteKeyring",
    "get_keyring",
    "PolicyEnforcedKeyring",
    "SignerPolicyConfig",
    "maybe_wrap_keyring",
]
