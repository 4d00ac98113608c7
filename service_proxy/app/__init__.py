"""
RPC proxy application package.

The proxy fronts JSON-RPC clients, serving read-heavy methods from a
per-method TTL cache and forwarding everything else to a pool of backend
providers selected by the routing id in the request path.

Structure:
- app.main: FastAPI app, catch-all proxy route and service wiring.
- app.dispatch: Per-request cache/forward orchestration.
- app.caching: Per-method TTL cache.
- app.pool: Backend provider pool and routing-id selection.
- app.adapters: HTTPS client for backend providers.
"""
