from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from config.settings import load_settings

if TYPE_CHECKING:
    from transaction.core import Transaction

LOGGER_NAME = "klaytx"

logger = logging.getLogger(LOGGER_NAME)

_json_lines = False


def configure_logging(level: Optional[str] = None, json_lines: Optional[bool] = None) -> None:
    """
    Attach a stream handler to the package logger.

    Level and line format come from the arguments, falling back to the
    LOG_LEVEL and LOG_JSON settings.
    """
    global _json_lines
    s = load_settings()
    name = (level or s.LOG_LEVEL).strip().upper()
    logger.setLevel(getattr(logging, name, logging.WARNING))
    _json_lines = s.LOG_JSON if json_lines is None else json_lines
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)


def build_log_context(tx: "Transaction") -> Dict[str, Any]:
    """
    Summarised, secret-free view of a transaction for log lines.
    """
    return {
        "type": tx.type.value,
        "from": tx.from_address,
        "nonce": tx.nonce,
        "chain_id": tx.chain_id,
        "signatures": 0 if not tx.is_signed() else len(tx.signatures),
    }


def log_event(event: str, *, level: int = logging.DEBUG, **fields: Any) -> None:
    if not logger.isEnabledFor(level):
        return
    if _json_lines:
        logger.log(level, json.dumps({"event": event, **fields}, sort_keys=True, default=str))
        return
    parts = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
    logger.log(level, f"{event} {parts}".rstrip())
