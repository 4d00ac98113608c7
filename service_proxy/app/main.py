"""
JSON-RPC caching reverse proxy.
"""

import re
from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ProxyConfig
from shared.logging import request_id_var, set_routing_context

from service_proxy.app.adapters.upstream_client import UpstreamClient
from service_proxy.app.caching.ttl_cache import MethodTTLCache
from service_proxy.app.dispatch.dispatcher import RequestDispatcher
from service_proxy.app.pool.backend_pool import BackendPool


PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

_ROUTING_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_routing_id(path: str) -> Optional[int]:
    """Read the routing id from the first path segment (``/7/...`` -> 7)."""
    segments = path.split("/")
    if len(segments) < 2:
        return None
    segment = segments[1]
    if not _ROUTING_ID_PATTERN.fullmatch(segment):
        return None
    try:
        return int(segment)
    except ValueError:
        # Beyond the interpreter's integer string-conversion limit
        return None


class RpcProxyService(BaseService):
    """Caching JSON-RPC proxy in front of a pool of backend providers."""

    def __init__(
        self,
        config: Optional[ProxyConfig] = None,
        *,
        pool: Optional[BackendPool] = None,
        upstream: Optional[UpstreamClient] = None,
        cache: Optional[MethodTTLCache] = None,
    ):
        super().__init__("rpc_proxy", config)
        self.pool = pool or BackendPool.from_file(self.config.rpc_list_file)
        self.cache = cache or MethodTTLCache(self.config.cache_ttls)
        self.upstream = upstream or UpstreamClient(metrics=self.metrics)
        self.dispatcher = RequestDispatcher(
            self.cache,
            self.pool,
            self.upstream,
            coalesce_inflight=self.config.coalesce_inflight,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.upstream.close()

        self._setup_proxy_routes()

        self.app.state.proxy_service = self

    def _setup_proxy_routes(self):
        """Register the catch-all proxy route after the operational routes."""

        @self.app.api_route("/{path:path}", methods=PROXY_METHODS)
        async def proxy(request: Request, path: str = ""):
            """Serve or forward one JSON-RPC request."""
            raw_body = await request.body()
            routing_id = parse_routing_id(request.url.path)
            set_routing_context(routing_id)

            result = await self.dispatcher.dispatch(raw_body, routing_id)

            if result.failed and self.config.surface_upstream_errors:
                return JSONResponse(
                    status_code=result.error.status_code,
                    content=result.error.to_response(request_id_var.get()).model_dump(),
                )

            return Response(content=result.payload, media_type="application/json")

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {
            "backends": len(self.pool),
            "cache": self.cache.stats(),
            "coalesce_inflight": self.config.coalesce_inflight,
        }


def create_app(config: Optional[ProxyConfig] = None):
    """Create FastAPI application."""
    service = RpcProxyService(config)
    return service.app


if __name__ == "__main__":
    service = RpcProxyService()
    service.run()
