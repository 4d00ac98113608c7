"""
Upstream RPC client for the proxy.
"""

import time
from typing import TYPE_CHECKING, Optional

import httpx

from shared.errors import UpstreamServiceError
from shared.logging import get_logger

from service_proxy.app.pool.backend_pool import BackendEndpoint

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class UpstreamClient:
    """Forwards raw JSON-RPC bodies to a backend provider over HTTPS.

    One POST per call with no retry and no timeout; any 2xx answer resolves
    with the response body, everything else raises ``UpstreamServiceError``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.logger = get_logger("rpc_proxy.upstream_client")
        self.metrics = metrics
        self._client = client or httpx.AsyncClient(
            timeout=None,
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=20),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def post(self, endpoint: BackendEndpoint, body: bytes) -> bytes:
        """POST ``body`` verbatim to ``endpoint`` and return the response body."""
        url = endpoint.url
        start = time.perf_counter()
        outcome = "error"

        try:
            # Raw content: httpx adds no content-type header
            response = await self._client.post(url, content=body)
        except httpx.HTTPError as exc:
            self.logger.warning("Backend transport error", backend=endpoint.host, error=str(exc))
            raise UpstreamServiceError(endpoint.host, f"Transport error: {exc}") from exc
        else:
            if 200 <= response.status_code < 300:
                outcome = "ok"
                return response.content

            self.logger.warning(
                "Backend request failed",
                backend=endpoint.host,
                status_code=response.status_code,
                response=response.text,
            )
            raise UpstreamServiceError(
                endpoint.host,
                f"Unexpected status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        finally:
            self._record(endpoint.host, outcome, time.perf_counter() - start)

    def _record(self, backend: str, outcome: str, duration: float) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter("upstream_requests_total", backend=backend, outcome=outcome)
        self.metrics.get_metric("upstream_request_duration_seconds").labels(backend=backend).observe(duration)
