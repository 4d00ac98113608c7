"""
Dispatch package: per-request orchestration of cache and backend calls.
"""

from .dispatcher import DispatchResult, RequestDispatcher, ResultSource, extract_method

__all__ = ["DispatchResult", "RequestDispatcher", "ResultSource", "extract_method"]
