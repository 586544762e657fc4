from .codec import decode, encode, encode_for_signature, get_common_rlp_encoding_for_signature
from .combine import combine, combine_signed_raw_transactions, compare_tx_fields
from .core import ACCOUNT_KEY_LEGACY, AccessTuple, Transaction, build_transaction
from .hasher import get_hash_for_signature, get_raw_transaction, get_sender_tx_hash, get_transaction_hash
from .recovery import RecoveryResult, recover, recover_public_keys
from .signature import EMPTY_SIGNATURE, SignatureData, refine_signatures
from .signing import fill_transaction, sign, sign_with_private_key, validate_optional_values
from .types import TX_TYPES, RoleGroup, TxFamily, TxType, TxTypeInfo

__all__ = [
    "ACCOUNT_KEY_LEGACY",
    "AccessTuple",
    "EMPTY_SIGNATURE",
    "RecoveryResult",
    "RoleGroup",
    "SignatureData",
    "TX_TYPES",
    "Transaction",
    "TxFamily",
    "TxType",
    "TxTypeInfo",
    "build_transaction",
    "combine",
    "combine_signed_raw_transactions",
    "compare_tx_fields",
    "decode",
    "encode",
    "encode_for_signature",
    "fill_transaction",
    "get_common_rlp_encoding_for_signature",
    "get_hash_for_signature",
    "get_raw_transaction",
    "get_sender_tx_hash",
    "get_transaction_hash",
    "recover",
    "recover_public_keys",
    "refine_signatures",
    "sign",
    "sign_with_private_key",
    "validate_optional_values",
]
