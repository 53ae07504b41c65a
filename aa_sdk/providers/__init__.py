from .bundler import BundlerConfig, BundlerError, BundlerProvider
from .jsonrpc import JsonRpcClient, RequestCounter, decode_rpc_error
from .node import NodeProvider, TransactionReceipt

__all__ = [
    "BundlerConfig",
    "BundlerError",
    "BundlerProvider",
    "JsonRpcClient",
    "RequestCounter",
    "decode_rpc_error",
    "NodeProvider",
    "TransactionReceipt",
]
