"""
Adapters package for the RPC proxy.

Contains the HTTP client wrapper for backend RPC providers. Keep adapters
thin and side-effect free outside of explicit calls.
"""

from .upstream_client import UpstreamClient

__all__ = ["UpstreamClient"]
