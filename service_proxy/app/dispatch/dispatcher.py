"""
Request dispatcher: cache lookup, backend selection, forwarding and cache population.
"""

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from shared.errors import InvalidRequestError, UpstreamServiceError
from shared.logging import get_logger

from service_proxy.app.adapters.upstream_client import UpstreamClient
from service_proxy.app.caching.ttl_cache import MethodTTLCache
from service_proxy.app.pool.backend_pool import BackendPool

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class ResultSource(str, Enum):
    CACHE = "cache"
    UPSTREAM = "upstream"
    UPSTREAM_ERROR = "upstream_error"


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of dispatching one inbound request."""

    payload: bytes
    source: ResultSource
    method: Optional[str] = None
    backend: Optional[str] = None
    error: Optional[UpstreamServiceError] = None

    @property
    def failed(self) -> bool:
        return self.source is ResultSource.UPSTREAM_ERROR


def extract_method(raw_body: bytes) -> Optional[str]:
    """Return the JSON-RPC ``method`` of a single-object body, if any.

    Batches, scalars and non-string methods yield ``None``.
    """
    try:
        payload = json.loads(raw_body)
    except ValueError as exc:
        raise InvalidRequestError(f"Malformed JSON body: {exc}") from exc

    if not isinstance(payload, dict):
        return None
    method = payload.get("method")
    return method if isinstance(method, str) else None


class RequestDispatcher:
    """Serves cacheable methods from the TTL cache and forwards everything else.

    Upstream failures never raise out of ``dispatch``; they come back as a
    ``DispatchResult`` with ``source == UPSTREAM_ERROR`` and an empty payload,
    and are never cached.

    With ``coalesce_inflight`` enabled, concurrent misses for the same
    cacheable method share a single upstream call. Otherwise each miss issues
    its own call and the last successful write wins.
    """

    def __init__(
        self,
        cache: MethodTTLCache,
        pool: BackendPool,
        upstream: UpstreamClient,
        *,
        coalesce_inflight: bool = False,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.cache = cache
        self.pool = pool
        self.upstream = upstream
        self.coalesce_inflight = coalesce_inflight
        self.metrics = metrics
        self.logger = get_logger("rpc_proxy.dispatcher")
        self._inflight: Dict[str, "asyncio.Future[DispatchResult]"] = {}

    async def dispatch(self, raw_body: bytes, routing_id: Optional[int] = None) -> DispatchResult:
        method = extract_method(raw_body)
        cacheable = self.cache.is_cacheable(method)

        if cacheable:
            cached = self.cache.get(method)
            self._record_lookup(method, hit=bool(cached))
            if cached:
                self.logger.debug("Cache hit", rpc_method=method)
                return DispatchResult(payload=cached, source=ResultSource.CACHE, method=method)

            self.logger.debug("Cache miss", rpc_method=method)
            if self.coalesce_inflight:
                return await self._forward_coalesced(method, raw_body, routing_id)

        return await self._forward(method, raw_body, routing_id, cacheable)

    async def _forward(
        self,
        method: Optional[str],
        raw_body: bytes,
        routing_id: Optional[int],
        cacheable: bool,
    ) -> DispatchResult:
        endpoint = self.pool.select(routing_id)

        try:
            payload = await self.upstream.post(endpoint, raw_body)
        except UpstreamServiceError as exc:
            self.logger.warning(
                "Upstream call failed",
                rpc_method=method,
                backend=endpoint.host,
                error=exc.message,
                details=exc.details,
            )
            return DispatchResult(
                payload=b"",
                source=ResultSource.UPSTREAM_ERROR,
                method=method,
                backend=endpoint.host,
                error=exc,
            )

        if cacheable:
            self.cache.add(method, payload)

        return DispatchResult(
            payload=payload,
            source=ResultSource.UPSTREAM,
            method=method,
            backend=endpoint.host,
        )

    async def _forward_coalesced(
        self,
        method: str,
        raw_body: bytes,
        routing_id: Optional[int],
    ) -> DispatchResult:
        task = self._inflight.get(method)
        if task is None:
            task = asyncio.ensure_future(self._forward(method, raw_body, routing_id, True))
            self._inflight[method] = task
            task.add_done_callback(lambda done: self._release(method, done))
        else:
            self.logger.debug("Joining in-flight upstream call", rpc_method=method)

        # One cancelled client must not cancel the shared fetch
        return await asyncio.shield(task)

    def _release(self, method: str, task: "asyncio.Future[Any]") -> None:
        if self._inflight.get(method) is task:
            del self._inflight[method]

    def _record_lookup(self, method: str, hit: bool) -> None:
        if self.metrics:
            self.metrics.record_cache_lookup(method, hit)
