from __future__ import annotations

import os
import secrets
from typing import Optional, Tuple

import requests
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError

from config.settings import load_settings
from errors import ConfigurationError, RpcError
from observability import log_event
from transaction.types import RoleGroup

from .base import Keyring

SECP256K1_N = int(
    "0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141",
    16,
)
SECP256K1_HALF_N = SECP256K1_N // 2


def _http_timeout() -> float:
    return float(load_settings().HTTP_TIMEOUT_SEC)


def _normalize_sig(r: int, s: int) -> Tuple[int, int]:
    if r <= 0 or r >= SECP256K1_N:
        raise RpcError("remote_signer_error", "Remote signer returned an invalid r", {})
    if s <= 0 or s >= SECP256K1_N:
        raise RpcError("remote_signer_error", "Remote signer returned an invalid s", {})
    if s > SECP256K1_HALF_N:
        s = SECP256K1_N - s
    return r, s


def _find_recovery_id(msg_hash_32: bytes, r: int, s: int, expected_address: str) -> int:
    exp = expected_address.strip().lower()
    if not exp.startswith("0x"):
        exp = "0x" + exp
    for recid in (0, 1):
        sig = keys.Signature(vrs=(recid, r, s))
        try:
            pub = sig.recover_public_key_from_msg_hash(msg_hash_32)
        except (BadSignature, KeyValidationError):
            continue
        if pub.to_checksum_address().lower() == exp:
            return recid
    raise RpcError(
        "remote_signer_error",
        "could not determine recovery id (address mismatch)",
        {"address": expected_address},
    )


class RemoteKeyring(Keyring):
    """
    Keyring backed by a remote digest-signing service (sidecar signer, KMS/HSM
    proxy or an MPC signer). The private key never enters this process.

    Protocol (HTTP JSON):
    GET  {SIGNER_REMOTE_URL}/address
         response: {"address": "0x..."}
    POST {SIGNER_REMOTE_URL}/sign_digest
         body: {"session_id": "...", "digest_hex": "0x...", "role": "TRANSACTION"}
         response: {"ok": true, "signature_der_hex": "0x3044..."}

    The service returns a DER-encoded ECDSA signature; it is normalised to
    low-s and the recovery id is found by matching the recovered address.
    The service holds one key, used for every role.
    """

    def __init__(self, url_env: str = "SIGNER_REMOTE_URL") -> None:
        url = (os.getenv(url_env) or "").strip()
        if not url:
            raise ConfigurationError("missing_signer_url", f"{url_env} environment variable not set", {"env": url_env})
        self._base_url = url.rstrip("/")
        self._cached_address: Optional[str] = None

    @property
    def address(self) -> str:
        if self._cached_address:
            return self._cached_address
        r = requests.get(f"{self._base_url}/address", timeout=_http_timeout())
        r.raise_for_status()
        data = r.json()
        addr = str(data.get("address") or "").strip()
        if not addr:
            raise RpcError("remote_signer_error", "Remote signer returned empty address", {})
        self._cached_address = addr
        return addr

    def is_decoupled(self) -> bool:
        return False

    def key_count(self, role: RoleGroup) -> int:
        return 1

    def _remote_sign_digest(self, digest32: bytes, *, role: RoleGroup, session_id: str) -> bytes:
        payload = {"session_id": session_id, "digest_hex": "0x" + digest32.hex(), "role": role.name}
        r = requests.post(f"{self._base_url}/sign_digest", json=payload, timeout=_http_timeout())
        r.raise_for_status()
        data = r.json()
        if not data.get("ok"):
            raise RpcError("remote_signer_error", f"Remote signing failed: {data}", {"response": data})
        sig_hex = str(data.get("signature_der_hex") or "").strip()
        if sig_hex.startswith("0x"):
            sig_hex = sig_hex[2:]
        sig = bytes.fromhex(sig_hex)
        if not sig:
            raise RpcError("remote_signer_error", "Remote signer returned empty signature", {})
        return sig

    def _sign_digest(self, digest: bytes, role: RoleGroup, index: int) -> keys.Signature:
        sid = secrets.token_hex(12)
        sig_der = self._remote_sign_digest(digest, role=role, session_id=sid)
        try:
            r, s = decode_dss_signature(sig_der)
        except ValueError as e:
            raise RpcError("remote_signer_error", f"Remote signer returned a malformed DER signature: {e}", {}) from e
        r, s = _normalize_sig(int(r), int(s))
        recid = _find_recovery_id(digest, r, s, self.address)
        log_event("remote_digest_signed", session_id=sid, role=role.name)
        return keys.Signature(vrs=(recid, r, s))
