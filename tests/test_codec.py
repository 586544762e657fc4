import pytest
import rlp
from eth_account import Account
from eth_utils import keccak, to_checksum_address

from conftest import CHAIN_ID, GAS_PRICE, KEY_1, TO_ADDRESS
from errors import FormatError
from signing.keyring import create_from_private_key
from transaction import (
    ACCOUNT_KEY_LEGACY,
    TxType,
    build_transaction,
    combine,
    compare_tx_fields,
    decode,
    encode,
    encode_for_signature,
    get_common_rlp_encoding_for_signature,
    get_hash_for_signature,
    get_raw_transaction,
    get_transaction_hash,
    recover_public_keys,
    sign,
)
from transaction.fields import rlp_int

STORAGE_KEY = "0x" + "00" * 31 + "01"


def _legacy():
    return build_transaction(
        TxType.LEGACY, to=TO_ADDRESS, value=10, gas=21000, gasPrice=GAS_PRICE, nonce=7, chainId=CHAIN_ID, data="0x"
    )


def test_legacy_raw_matches_eth_account(keyring):
    signed = sign(_legacy(), keyring)
    expected = Account.sign_transaction(
        {
            "nonce": 7,
            "gasPrice": GAS_PRICE,
            "gas": 21000,
            "to": to_checksum_address(TO_ADDRESS),
            "value": 10,
            "data": b"",
            "chainId": CHAIN_ID,
        },
        KEY_1,
    )
    assert encode(signed) == bytes(expected.raw_transaction)
    assert get_transaction_hash(signed) == "0x" + bytes(expected.hash).hex()


def test_access_list_raw_matches_eth_account_after_envelope(keyring):
    tx = build_transaction(
        TxType.ETHEREUM_ACCESS_LIST,
        to=TO_ADDRESS,
        value=10,
        gas=30000,
        gasPrice=GAS_PRICE,
        nonce=7,
        chainId=CHAIN_ID,
        accessList=[{"address": TO_ADDRESS, "storageKeys": [STORAGE_KEY]}],
    )
    signed = sign(tx, keyring)
    expected = Account.sign_transaction(
        {
            "type": 1,
            "chainId": CHAIN_ID,
            "nonce": 7,
            "gasPrice": GAS_PRICE,
            "gas": 30000,
            "to": to_checksum_address(TO_ADDRESS),
            "value": 10,
            "data": b"",
            "accessList": [{"address": to_checksum_address(TO_ADDRESS), "storageKeys": [STORAGE_KEY]}],
        },
        KEY_1,
    )
    raw = encode(signed)
    assert raw[:2] == b"\x78\x01"
    assert raw[1:] == bytes(expected.raw_transaction)
    assert get_transaction_hash(signed) == "0x" + bytes(expected.hash).hex()


def test_dynamic_fee_raw_matches_eth_account_after_envelope(keyring):
    tx = build_transaction(
        TxType.ETHEREUM_DYNAMIC_FEE,
        to=TO_ADDRESS,
        value=10,
        gas=30000,
        maxPriorityFeePerGas=GAS_PRICE,
        maxFeePerGas=GAS_PRICE * 2,
        nonce=7,
        chainId=CHAIN_ID,
    )
    signed = sign(tx, keyring)
    expected = Account.sign_transaction(
        {
            "type": 2,
            "chainId": CHAIN_ID,
            "nonce": 7,
            "maxPriorityFeePerGas": GAS_PRICE,
            "maxFeePerGas": GAS_PRICE * 2,
            "gas": 30000,
            "to": to_checksum_address(TO_ADDRESS),
            "value": 10,
            "data": b"",
            "accessList": [],
        },
        KEY_1,
    )
    assert encode(signed)[1:] == bytes(expected.raw_transaction)
    assert signed.signatures[0].v_int in (0, 1)


CAVER_KEY = "0x45a915e4d060149eb4365960e6a7a45f334393093061116b197e3240065ff2d8"
CAVER_VALUE_TRANSFER = {
    "from": "0xa94f5374Fce5edBC8E2a8697C15331677e6EbF0B",
    "to": "0x7b65B75d204aBed71587c9E519a89277766EE1d0",
    "value": "0xa",
    "gas": "0xf4240",
    "gasPrice": "0x19",
    "nonce": "0x4d2",
    "chainId": "0x1",
}
CAVER_SIGNATURE = (
    "0x25",
    "0xf3d0cd43661cabf53425535817c5058c27781f478cb5459874feaa462ed3a29a",
    "0x6748abe186269ff10b8100a4b7d7fea274b53ea2905acbf498dc8b5ab1bf4fbc",
)
CAVER_SIGNING_PAYLOAD = (
    "0xf839b5f4088204d219830f4240947b65b75d204abed71587c9e519a89277766ee1d00a94"
    "a94f5374fce5edbc8e2a8697c15331677e6ebf0b018080"
)
CAVER_RAW = (
    "0x08f87a8204d219830f4240947b65b75d204abed71587c9e519a89277766ee1d00a94"
    "a94f5374fce5edbc8e2a8697c15331677e6ebf0bf845f84325a0"
    "f3d0cd43661cabf53425535817c5058c27781f478cb5459874feaa462ed3a29aa0"
    "6748abe186269ff10b8100a4b7d7fea274b53ea2905acbf498dc8b5ab1bf4fbc"
)


def test_value_transfer_known_vector():
    tx = build_transaction(TxType.VALUE_TRANSFER, **CAVER_VALUE_TRANSFER)
    assert "0x" + encode_for_signature(tx).hex() == CAVER_SIGNING_PAYLOAD
    assert get_raw_transaction(tx.append_signatures(CAVER_SIGNATURE)) == CAVER_RAW


def test_value_transfer_known_vector_signed_with_key():
    signed = sign(build_transaction(TxType.VALUE_TRANSFER, **CAVER_VALUE_TRANSFER), create_from_private_key(CAVER_KEY))
    assert get_raw_transaction(signed) == CAVER_RAW
    decoded = decode(CAVER_RAW)
    assert compare_tx_fields(decoded, signed, check_sig=True)


@pytest.mark.parametrize(
    "tx_type,fields",
    [
        (TxType.ETHEREUM_ACCESS_LIST, {"gasPrice": GAS_PRICE}),
        (TxType.ETHEREUM_DYNAMIC_FEE, {"maxPriorityFeePerGas": 1, "maxFeePerGas": GAS_PRICE}),
    ],
)
def test_typed_contract_creation_round_trips(keyring, tx_type, fields):
    tx = build_transaction(tx_type, value=0, gas=100000, nonce=0, chainId=CHAIN_ID, input="0x6080", **fields)
    assert tx.to == "0x"
    signed = sign(tx, keyring)
    raw = encode(signed)
    decoded = decode(raw)
    assert decoded.to == "0x"
    assert decoded.input == "0x6080"
    assert compare_tx_fields(decoded, signed, check_sig=True)
    assert decode(combine([raw, raw])).signatures == signed.signatures
    assert recover_public_keys(decoded) == [keyring.get_public_key()]


def test_klaytn_signing_payload_wraps_common_encoding(value_transfer):
    tx = value_transfer.with_nonce(1234).with_chain_id(CHAIN_ID)
    common = get_common_rlp_encoding_for_signature(tx)
    assert rlp.decode(common) == [
        b"\x08",
        rlp_int(1234),
        rlp_int(GAS_PRICE),
        rlp_int(25000),
        bytes.fromhex(TO_ADDRESS[2:]),
        b"\x01",
        bytes.fromhex(tx.from_address[2:].lower()),
    ]
    payload = encode_for_signature(tx)
    assert rlp.decode(payload) == [common, rlp_int(CHAIN_ID), b"", b""]
    assert get_hash_for_signature(tx) == "0x" + keccak(payload).hex()


def test_signing_payload_embeds_unset_chain_id_as_zero(value_transfer):
    payload = encode_for_signature(value_transfer.with_nonce(0))
    assert rlp.decode(payload)[1] == b""


def test_klaytn_raw_ends_with_signature_list(value_transfer, keyring):
    signed = sign(value_transfer.with_nonce(3).with_chain_id(CHAIN_ID), keyring)
    raw = encode(signed)
    assert raw[0] == 0x08
    items = rlp.decode(raw[1:])
    assert len(items) == 7
    assert items[-1] == [signed.signatures[0].to_rlp_list()]
    assert get_raw_transaction(signed) == "0x" + raw.hex()
    assert get_transaction_hash(signed) == "0x" + keccak(raw).hex()


def test_unsigned_klaytn_raw_carries_empty_signature(value_transfer):
    items = rlp.decode(encode(value_transfer.with_nonce(0))[1:])
    assert items[-1] == [[b"\x01", b"", b""]]


@pytest.mark.parametrize(
    "tx_type,fields",
    [
        (TxType.VALUE_TRANSFER, {"to": TO_ADDRESS, "value": 1, "gasPrice": GAS_PRICE}),
        (TxType.VALUE_TRANSFER_MEMO, {"to": TO_ADDRESS, "value": 1, "gasPrice": GAS_PRICE, "input": "0x68656c6c6f"}),
        (TxType.ACCOUNT_UPDATE, {"gasPrice": GAS_PRICE, "key": ACCOUNT_KEY_LEGACY}),
        (TxType.SMART_CONTRACT_EXECUTION, {"to": TO_ADDRESS, "value": 0, "gasPrice": GAS_PRICE, "input": "0xa9059cbb"}),
        (TxType.CANCEL, {"gasPrice": GAS_PRICE}),
        (TxType.CHAIN_DATA_ANCHORING, {"gasPrice": GAS_PRICE, "input": "0xf8a6"}),
    ],
)
def test_decode_restores_signed_klaytn_transactions(keyring, tx_type, fields):
    tx = build_transaction(tx_type, **{"from": keyring.address, "gas": 90000, "nonce": 2, "chainId": CHAIN_ID}, **fields)
    signed = sign(tx, keyring)
    decoded = decode(encode(signed))
    assert decoded.type is tx_type
    assert compare_tx_fields(decoded, signed, check_sig=True)
    # Klaytn encodings do not carry the chain id.
    assert decoded.chain_id == "0x"


def test_decode_accepts_hex_strings(keyring):
    signed = sign(_legacy(), keyring)
    decoded = decode(get_raw_transaction(signed))
    assert decoded.type is TxType.LEGACY
    assert decoded.nonce == "0x7"
    assert decoded.signatures == signed.signatures


def test_decode_typed_keeps_chain_id_and_access_list(keyring):
    tx = build_transaction(
        TxType.ETHEREUM_ACCESS_LIST,
        to=TO_ADDRESS,
        value=0,
        gas=30000,
        gasPrice=1,
        nonce=0,
        chainId=CHAIN_ID,
        accessList=[(TO_ADDRESS, [STORAGE_KEY])],
    )
    decoded = decode(encode(sign(tx, keyring)))
    assert decoded.chain_id == hex(CHAIN_ID)
    assert decoded.access_list == tx.access_list


def test_decode_rejects_empty_input():
    with pytest.raises(FormatError):
        decode("0x")


def test_decode_rejects_unknown_type():
    with pytest.raises(FormatError) as e:
        decode(b"\x99" + rlp.encode([]))
    assert e.value.code == "unknown_type"
    with pytest.raises(FormatError):
        decode(bytes([0x78, 0x05]) + rlp.encode([]))


def test_decode_rejects_wrong_item_count():
    with pytest.raises(FormatError) as e:
        decode(b"\x08" + rlp.encode([b"\x01", b"\x02"]))
    assert e.value.code == "invalid_encoding"


def test_decode_rejects_garbage_rlp():
    with pytest.raises(FormatError):
        decode(b"\x08\x81\x01")
