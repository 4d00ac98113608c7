"""
Shared utilities for the RPC proxy.

This package aggregates the ambient building blocks used by the proxy
service and its scripts:

- config: Proxy configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding

Do not import from service_proxy into shared/.
"""
