from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence, Tuple, Union

from errors import PolicyError, ValidationError

from .fields import hex_to_bytes, int_from_bytes, is_unset, minimal_hex, rlp_int
from .types import TxType, info


def _component(value: Any, name: str) -> str:
    if isinstance(value, bool):
        raise ValidationError("invalid_signature", f"Invalid signature {name}: {value!r}", {name: value})
    if isinstance(value, int):
        if value < 0:
            raise ValidationError("invalid_signature", f"Invalid signature {name}: {value}", {name: value})
        return minimal_hex(value)
    if isinstance(value, (bytes, bytearray)):
        return minimal_hex(int_from_bytes(bytes(value)))
    if is_unset(value):
        return "0x"
    try:
        return minimal_hex(int_from_bytes(hex_to_bytes(value)))
    except ValueError:
        raise ValidationError("invalid_signature", f"Invalid signature {name}: {value!r}", {name: value}) from None


@dataclass(frozen=True)
class SignatureData:
    """
    One ECDSA signature as (v, r, s) hex strings.

    Components are normalised to even-length lowercase hex without leading zero
    bytes, so structurally equal signatures compare equal regardless of how they
    were written ("0x1" == "0x01", zero is "0x").
    """

    v: str
    r: str
    s: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "v", _component(self.v, "v"))
        object.__setattr__(self, "r", _component(self.r, "r"))
        object.__setattr__(self, "s", _component(self.s, "s"))

    @classmethod
    def from_vrs(cls, v: int, r: int, s: int) -> "SignatureData":
        return cls(v=v, r=r, s=s)

    @property
    def v_int(self) -> int:
        return int_from_bytes(hex_to_bytes(self.v))

    @property
    def r_int(self) -> int:
        return int_from_bytes(hex_to_bytes(self.r))

    @property
    def s_int(self) -> int:
        return int_from_bytes(hex_to_bytes(self.s))

    @property
    def chain_id(self) -> int:
        """Chain id folded into an EIP-155 v value (v = parity + chainId * 2 + 35)."""
        v = self.v_int
        if v < 35:
            return 0
        return (v - 35) // 2

    @property
    def recovery_id(self) -> int:
        """Recovery parity (0 or 1) for either v convention."""
        v = self.v_int
        if v in (0, 1):
            return v
        if v in (27, 28):
            return v - 27
        return (v - 35) % 2

    def is_empty(self) -> bool:
        return self == EMPTY_SIGNATURE

    def to_rlp_list(self) -> List[bytes]:
        return [rlp_int(self.v_int), rlp_int(self.r_int), rlp_int(self.s_int)]

    def to_tuple(self) -> Tuple[str, str, str]:
        return (self.v, self.r, self.s)

    def to_dict(self) -> dict:
        return {"v": self.v, "r": self.r, "s": self.s}


EMPTY_SIGNATURE = SignatureData(v="0x01", r="0x", s="0x")

SignatureLike = Union[SignatureData, Sequence[Any], dict]


def is_single_signature(value: Any) -> bool:
    """True for one signature rather than a list: a (v, r, s) of scalars counts as one."""
    if isinstance(value, (SignatureData, dict)):
        return True
    return (
        isinstance(value, (tuple, list))
        and len(value) == 3
        and all(isinstance(item, (int, str, bytes, bytearray)) for item in value)
    )


def to_signature_data(value: SignatureLike) -> SignatureData:
    """Accept SignatureData, (v, r, s) sequences or {"v", "r", "s"} dicts."""
    if isinstance(value, SignatureData):
        return value
    if isinstance(value, dict):
        return SignatureData(v=value.get("v"), r=value.get("r"), s=value.get("s"))
    try:
        v, r, s = value
    except (TypeError, ValueError):
        raise ValidationError("invalid_signature", f"Invalid signature: {value!r}", {}) from None
    return SignatureData(v=v, r=r, s=s)


def refine_signatures(signatures: Iterable[SignatureLike], tx_type: TxType) -> Tuple[SignatureData, ...]:
    """
    Refine a signature list:
      - removes duplicates, keeping the first occurrence
      - removes the empty signature ("0x01", "0x", "0x") when others are present
      - returns (EMPTY_SIGNATURE,) when nothing is left
      - rejects multiple signatures for single-signature transaction types
    """
    refined: List[SignatureData] = []
    for sig in signatures:
        sig = to_signature_data(sig)
        if sig not in refined:
            refined.append(sig)

    if len(refined) > 1:
        refined = [sig for sig in refined if not sig.is_empty()]

    if not refined:
        return (EMPTY_SIGNATURE,)

    if not info(tx_type).multi_sig and len(refined) > 1:
        raise PolicyError(
            "multiple_signatures_not_allowed",
            f"{tx_type.value} cannot have multiple signature.",
            {"type": tx_type.value, "signatures": [sig.to_tuple() for sig in refined]},
        )

    return tuple(refined)


def is_empty_signatures(signatures: Sequence[SignatureData]) -> bool:
    return len(signatures) == 1 and signatures[0].is_empty()
