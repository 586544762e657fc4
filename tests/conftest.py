import os
import sys

import pytest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from signing.keyring import create_from_private_key
from transaction import TxType, build_transaction

KEY_1 = "0x45a915e4d060149eb4365960e6a7a45f334393093061116b197e3240065ff2d8"
KEY_2 = "0x2a0de1d9a1e3d1c8b5f2e3c9a1b7d6f5e4c3b2a1908f7e6d5c4b3a2918f7e6d5"
KEY_3 = "0x7b2e6d1c9f8a4b3e2d1c0f9e8d7c6b5a4f3e2d1c0b9a8f7e6d5c4b3a29181716"

TO_ADDRESS = "0x7b65b75d204abed71587c9e519a89277766ee1d0"
CHAIN_ID = 1001
GAS_PRICE = 25000000000


@pytest.fixture
def keyring():
    return create_from_private_key(KEY_1)


@pytest.fixture
def other_keyring():
    return create_from_private_key(KEY_2)


@pytest.fixture
def value_transfer(keyring):
    return build_transaction(
        TxType.VALUE_TRANSFER,
        **{"from": keyring.address, "to": TO_ADDRESS, "value": 1, "gas": 25000, "gasPrice": GAS_PRICE},
    )


@pytest.fixture
def fake_client():
    class FakeClient:
        def __init__(self):
            self.calls = []

        def get_pending_nonce(self, address):
            self.calls.append(("nonce", address))
            return "0x5"

        def get_chain_id(self):
            self.calls.append(("chain_id",))
            return hex(CHAIN_ID)

        def get_gas_price(self):
            self.calls.append(("gas_price",))
            return hex(GAS_PRICE)

        def send_raw_transaction(self, raw_transaction):
            self.calls.append(("send", raw_transaction))
            return "0x" + "00" * 32

    return FakeClient()
