"""
Backend pool of upstream RPC providers.
"""

import json
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, ValidationError

from shared.errors import ConfigurationError
from shared.logging import get_logger


@dataclass(frozen=True)
class BackendEndpoint:
    """Host and request target of one upstream RPC provider."""

    host: str
    path: str

    @classmethod
    def from_url(cls, url: str) -> "BackendEndpoint":
        """Build an endpoint from a provider URL such as ``https://rpc.example/key?x=1``."""
        parts = urlsplit(url.strip())
        if not parts.hostname:
            raise ConfigurationError(f"Backend URL has no host: {url!r}", details={"url": url})

        host = parts.hostname
        if ":" in host:
            host = f"[{host}]"
        if parts.port is not None:
            host = f"{host}:{parts.port}"

        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        return cls(host=host, path=path)

    @property
    def url(self) -> str:
        return f"https://{self.host}{self.path}"


class RpcLists(BaseModel):
    """Contents of the ``rpc_list.json`` configuration file."""

    default_rpc_list: List[str] = Field(min_length=1)
    # Only read by the claim config generator
    submit_rpc_list: List[str] = Field(default_factory=list)


def load_rpc_lists(path: Union[str, Path]) -> RpcLists:
    """Load and validate the named provider lists."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigurationError(f"RPC list file not found: {path}", details={"path": str(path)}) from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"RPC list file is not valid JSON: {path}", details={"error": str(exc)}) from exc

    try:
        return RpcLists.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid RPC list file: {path}", details={"errors": exc.errors()}) from exc


class BackendPool:
    """Immutable, non-empty ordered set of backend endpoints."""

    def __init__(self, endpoints: Iterable[BackendEndpoint], rng: Optional[random.Random] = None):
        self._endpoints: Tuple[BackendEndpoint, ...] = tuple(endpoints)
        if not self._endpoints:
            raise ConfigurationError("Backend pool must contain at least one endpoint")
        self._rng = rng or random.Random()
        self.logger = get_logger("rpc_proxy.backend_pool")

    @classmethod
    def from_urls(cls, urls: Iterable[str], rng: Optional[random.Random] = None) -> "BackendPool":
        return cls((BackendEndpoint.from_url(url) for url in urls), rng=rng)

    @classmethod
    def from_file(cls, path: Union[str, Path], rng: Optional[random.Random] = None) -> "BackendPool":
        """Build the pool from the ``default_rpc_list`` of an RPC list file."""
        pool = cls.from_urls(load_rpc_lists(path).default_rpc_list, rng=rng)
        pool.logger.info("Backend pool loaded", path=str(path), size=len(pool))
        return pool

    @property
    def endpoints(self) -> Tuple[BackendEndpoint, ...]:
        return self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)

    def select_index(self, routing_id: Optional[int] = None) -> int:
        """Pick a pool index: random without a routing id, else ``routing_id mod size``."""
        if routing_id is None:
            return self._rng.randrange(len(self._endpoints))
        return routing_id % len(self._endpoints)

    def select(self, routing_id: Optional[int] = None) -> BackendEndpoint:
        return self._endpoints[self.select_index(routing_id)]
