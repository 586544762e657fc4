from __future__ import annotations

from typing import Any, Optional

from eth_utils import is_hex_address

from errors import ValidationError

EMPTY = "0x"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_HEX_DIGITS = set("0123456789abcdefABCDEF")


def is_address(s: Any) -> bool:
    if not isinstance(s, str):
        return False
    return s.startswith("0x") and is_hex_address(s)


def is_number(s: Any) -> bool:
    """True for a 0x-prefixed hex string with at least one digit."""
    if not isinstance(s, str) or not s.startswith("0x"):
        return False
    digits = s[2:]
    return bool(digits) and all(c in _HEX_DIGITS for c in digits)


def is_unset(s: Any) -> bool:
    return s is None or s == "" or s == EMPTY


def to_hex_number(value: Any, *, name: str) -> str:
    """
    Canonical hex form of a numeric field: ints or 0x-hex strings in, "0x1a" out.
    """
    if isinstance(value, bool):
        raise ValidationError("invalid_number", f"Invalid {name}. : {value!r}", {name: value})
    if isinstance(value, int):
        if value < 0:
            raise ValidationError("invalid_number", f"Invalid {name}. : {value}", {name: value})
        return hex(value)
    if not is_number(value):
        raise ValidationError("invalid_number", f"Invalid {name}. : {value!r}", {name: value})
    return hex(int(value, 16))


def to_optional_hex_number(value: Any, *, name: str) -> str:
    """Like to_hex_number, but None / "" / "0x" mean unset and map to "0x"."""
    if is_unset(value):
        return EMPTY
    return to_hex_number(value, name=name)


def to_hex_data(value: Any, *, name: str) -> str:
    """Normalise a byte-string field (bytes or 0x-hex) to lowercase 0x-hex."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValidationError("invalid_data", f"Invalid {name}. : {value!r}", {name: value})
    digits = value[2:]
    if len(digits) % 2 or any(c not in _HEX_DIGITS for c in digits):
        raise ValidationError("invalid_data", f"Invalid {name}. : {value!r}", {name: value})
    return "0x" + digits.lower()


def to_int(value: Optional[str]) -> int:
    """Numeric value of a hex field; the unset sentinel reads as 0."""
    if is_unset(value):
        return 0
    return int(str(value), 16)


def hex_to_bytes(value: Optional[str]) -> bytes:
    if is_unset(value):
        return b""
    s = str(value)
    if s.startswith("0x"):
        s = s[2:]
    if len(s) % 2:
        s = "0" + s
    return bytes.fromhex(s)


def address_to_bytes(value: Optional[str]) -> bytes:
    b = hex_to_bytes(value)
    if b and len(b) != 20:
        raise ValidationError("invalid_address", f"Invalid address. : {value}", {"address": value})
    return b


def bytes_to_address(b: bytes) -> str:
    if not b:
        return EMPTY
    if len(b) != 20:
        raise ValidationError("invalid_address", f"Invalid address length: {len(b)}", {"address": "0x" + b.hex()})
    return "0x" + b.hex()


def rlp_int(i: int) -> bytes:
    if i == 0:
        return b""
    return int(i).to_bytes((int(i).bit_length() + 7) // 8, "big")


def int_from_bytes(b: bytes) -> int:
    return int.from_bytes(b, "big") if b else 0


def minimal_hex(i: int) -> str:
    """Even-length hex of an integer without leading zero bytes; zero is "0x"."""
    b = rlp_int(i)
    return "0x" + b.hex()


def addresses_equal(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").lower() == (b or "").lower()
