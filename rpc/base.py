from __future__ import annotations

from typing import Protocol, Union


class NetworkClient(Protocol):
    """
    Node access needed by the transaction core.

    All calls are blocking; timeouts and cancellation belong to the implementation.
    """

    def get_pending_nonce(self, address: str) -> str:
        ...

    def get_chain_id(self) -> str:
        ...

    def get_gas_price(self) -> str:
        ...

    def send_raw_transaction(self, raw_transaction: Union[bytes, str]) -> str:
        ...
