"""
klaytx settings

A validated, typed settings layer for the keyring backends, the node client
and logging. Environment variables (and a local .env file) are read once when
a `Settings` is instantiated, so misconfigurations surface early.

Usage:
    from config.settings import settings

    if settings.SIGNER_POLICY_ENABLED:
        ...

Code that must observe environment changes after import (tests, long-lived
processes reloading config) calls `load_settings()` for a fresh instance.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, FrozenSet, Set

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class KeyringType(Enum):
    """Keyring backend types."""

    ENV_PRIVATE_KEY = "env_private_key"
    KEYSTORE = "keystore"
    REMOTE = "remote"


class SettingsValidationError(Exception):
    """Raised when settings validation fails."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid configuration for {field}={value!r}: {message}")


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean from environment variable."""
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_int(value: str | None, default: int | None = None) -> int | None:
    """Parse an integer from environment variable."""
    if value is None or value.strip() == "":
        return default
    try:
        return int(value.strip(), 0)  # Support hex with 0x prefix
    except ValueError:
        return default


def _parse_csv_set(value: str | None) -> FrozenSet[str]:
    """Parse a comma-separated list into a frozen set of lowercase strings."""
    if not value:
        return frozenset()
    return frozenset(v.strip().lower() for v in value.split(",") if v.strip())


def _parse_csv_int_set(value: str | None) -> FrozenSet[int]:
    """Parse a comma-separated list of integers (decimal or 0x-hex)."""
    if not value:
        return frozenset()
    result: Set[int] = set()
    for part in value.split(","):
        s = part.strip()
        if not s:
            continue
        try:
            result.add(int(s, 0))
        except ValueError:
            continue
    return frozenset(result)


def _parse_keyring_type(value: str | None) -> KeyringType:
    raw = (value or KeyringType.ENV_PRIVATE_KEY.value).strip().lower()
    try:
        return KeyringType(raw)
    except ValueError:
        raise SettingsValidationError("KEYRING_TYPE", raw, f"must be one of {[t.value for t in KeyringType]}") from None


def _get_version_from_pyproject() -> str:
    """Extract version from pyproject.toml."""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"
    return str(data.get("project", {}).get("version", "0.0.0"))


@dataclass
class Settings:
    """
    Settings for keyrings, the node client and logging, validated at instantiation.
    """

    PROJECT_NAME: str = "klaytx"
    VERSION: str = field(default_factory=_get_version_from_pyproject)

    # Keyring backend
    KEYRING_TYPE: KeyringType = field(default_factory=lambda: _parse_keyring_type(os.getenv("KEYRING_TYPE")))
    PRIVATE_KEY: str | None = field(default_factory=lambda: os.getenv("PRIVATE_KEY"))
    KEYRING_ADDRESS: str | None = field(default_factory=lambda: (os.getenv("KEYRING_ADDRESS") or "").strip() or None)
    KEYSTORE_PATH: str | None = field(default_factory=lambda: os.getenv("KEYSTORE_PATH"))
    KEYSTORE_PASSWORD: str | None = field(default_factory=lambda: os.getenv("KEYSTORE_PASSWORD"))
    SIGNER_REMOTE_URL: str | None = field(default_factory=lambda: (os.getenv("SIGNER_REMOTE_URL") or "").strip() or None)

    # Node
    KLAYTN_RPC_URL: str | None = field(default_factory=lambda: (os.getenv("KLAYTN_RPC_URL") or "").strip() or None)
    HTTP_TIMEOUT_SEC: int = field(default_factory=lambda: _parse_int(os.getenv("HTTP_TIMEOUT_SEC"), 10) or 10)

    # Signer policy
    SIGNER_POLICY_ENABLED: bool = field(default_factory=lambda: _parse_bool(os.getenv("SIGNER_POLICY_ENABLED"), False))
    SIGNER_ALLOWED_CHAIN_IDS: FrozenSet[int] = field(default_factory=lambda: _parse_csv_int_set(os.getenv("SIGNER_ALLOWED_CHAIN_IDS")))
    SIGNER_ALLOWED_ROLES: FrozenSet[str] = field(default_factory=lambda: _parse_csv_set(os.getenv("SIGNER_ALLOWED_ROLES")))

    # Observability
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "warning").strip().lower())
    LOG_JSON: bool = field(default_factory=lambda: _parse_bool(os.getenv("LOG_JSON"), False))

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        self._validate()

    def _validate(self) -> None:
        errors: list[str] = []

        if self.HTTP_TIMEOUT_SEC <= 0:
            errors.append(f"HTTP_TIMEOUT_SEC must be positive, got {self.HTTP_TIMEOUT_SEC}")

        valid_roles = {"transaction", "account_update", "fee_payer"}
        unknown_roles = sorted(self.SIGNER_ALLOWED_ROLES - valid_roles)
        if unknown_roles:
            errors.append(f"SIGNER_ALLOWED_ROLES has unknown roles {unknown_roles} (valid: {sorted(valid_roles)})")

        if self.LOG_LEVEL not in ("debug", "info", "warning", "error", "critical"):
            errors.append(f"LOG_LEVEL must be a logging level name, got {self.LOG_LEVEL!r}")

        if errors:
            raise SettingsValidationError("MULTIPLE", None, "; ".join(errors))

    def require_keyring_config(self) -> None:
        """Check the variables the selected KEYRING_TYPE needs are present."""
        if self.KEYRING_TYPE == KeyringType.ENV_PRIVATE_KEY and not self.PRIVATE_KEY:
            raise SettingsValidationError("PRIVATE_KEY", None, "required when KEYRING_TYPE=env_private_key")
        if self.KEYRING_TYPE == KeyringType.KEYSTORE and (not self.KEYSTORE_PATH or not self.KEYSTORE_PASSWORD):
            raise SettingsValidationError("KEYSTORE_PATH", self.KEYSTORE_PATH, "KEYSTORE_PATH and KEYSTORE_PASSWORD required when KEYRING_TYPE=keystore")
        if self.KEYRING_TYPE == KeyringType.REMOTE and not self.SIGNER_REMOTE_URL:
            raise SettingsValidationError("SIGNER_REMOTE_URL", None, "required when KEYRING_TYPE=remote")

    @property
    def has_signer_policy(self) -> bool:
        return self.SIGNER_POLICY_ENABLED or bool(self.SIGNER_ALLOWED_CHAIN_IDS or self.SIGNER_ALLOWED_ROLES)

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary (redacting secrets)."""
        result: dict[str, Any] = {}
        for key in dir(self):
            if key.startswith("_") or key.isupper() is False:
                continue
            value = getattr(self, key)
            if any(s in key.upper() for s in ["SECRET", "PASSWORD", "PRIVATE_KEY", "TOKEN"]):
                result[key] = "***REDACTED***" if value else None
            elif isinstance(value, frozenset):
                result[key] = sorted(value)
            elif isinstance(value, Enum):
                result[key] = value.value
            else:
                result[key] = value
        return result


def load_settings() -> Settings:
    """Fresh settings read from the current environment."""
    return Settings()


# Global settings instance
settings = Settings()
