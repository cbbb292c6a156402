"""
JSON-RPC access to a node.
"""
from extrinsic_sdk.rpc.client import JsonRpcClient, validate_rpc_url

__all__ = ["JsonRpcClient", "validate_rpc_url"]
