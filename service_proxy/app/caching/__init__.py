"""
Proxy caching package.

Short-lived, per-method response cache for read-heavy RPC calls.
"""

from .ttl_cache import CacheEntry, MethodTTLCache

__all__ = ["CacheEntry", "MethodTTLCache"]
