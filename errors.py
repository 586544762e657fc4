from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class TransactionError(Exception):
    """
    Base error for the transaction core.

    `code` is a stable machine-readable identifier; `data` carries context
    (offending values, or the partially updated transaction for signing failures).
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class ValidationError(TransactionError):
    """Malformed or missing transaction field."""


class PolicyError(TransactionError):
    """An operation that the transaction's type or sender rules forbid."""


class ConfigurationError(TransactionError):
    """Required data cannot be resolved (e.g. no network client to fill nonce/chain id)."""


class FormatError(TransactionError):
    """Undecodable encodings, or encodings that do not describe the same transaction."""


class RpcError(TransactionError):
    """Error response from a remote service: the node's JSON-RPC endpoint or a signing service."""
