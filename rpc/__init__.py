from .base import NetworkClient
from .klay import KlayRpcClient, get_web3, rpc_url_from_env

__all__ = ["NetworkClient", "KlayRpcClient", "get_web3", "rpc_url_from_env"]
