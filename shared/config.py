"""
Shared configuration management for the RPC proxy.
"""

from typing import Dict, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CACHE_TTLS: Dict[str, int] = {
    "getVersion": 120000,
    "getRecentPrioritizationFees": 5000,
    "getLatestBlockhash": 5000,
}


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RPC_PROXY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class ProxyConfig(BaseConfig):
    """Proxy-specific configuration."""

    service_name: str = "rpc_proxy"
    host: str = "0.0.0.0"
    port: int = 8000

    # Backend pools
    rpc_list_file: str = Field(default="rpc_list.json")

    # Method name -> TTL in milliseconds
    cache_ttls: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_CACHE_TTLS))

    # Share one upstream call between concurrent misses of the same method
    coalesce_inflight: bool = Field(default=False)

    # Answer upstream failures with 502 instead of an empty 200
    surface_upstream_errors: bool = Field(default=False)

    # Claim config generator
    keypair_root: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("keypair_root", "rpc_proxy_keypair_root"),
    )


def get_config(**overrides) -> ProxyConfig:
    """Get proxy configuration, applying explicit overrides over the environment."""
    return ProxyConfig(**overrides)
