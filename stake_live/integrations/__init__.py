"""Chain access for STAKE LIVE."""
from .chain_fetcher import ChainStateFetcher
from .rpc_client import JsonRpcClient, RpcError

__all__ = ["ChainStateFetcher", "JsonRpcClient", "RpcError"]
