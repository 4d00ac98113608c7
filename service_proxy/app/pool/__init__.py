"""
Backend pool package.

Holds the provider list the proxy forwards to and the routing-id based
selection rule.
"""

from .backend_pool import BackendEndpoint, BackendPool, RpcLists, load_rpc_lists

__all__ = ["BackendEndpoint", "BackendPool", "RpcLists", "load_rpc_lists"]
