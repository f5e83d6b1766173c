"""
Configuration management for the tanX client.

Loads settings from environment variables with validation.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Environment


class TanxSettings(BaseSettings):
    """
    tanX client settings.

    Loads from environment variables with TANX_ prefix.
    """
    model_config = SettingsConfigDict(
        env_prefix="TANX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment selection
    environment: Environment = Field(
        default=Environment.MAINNET,
        description="mainnet or testnet"
    )

    # API URLs
    mainnet_url: str = Field(
        default="https://api.tanx.fi",
        description="Mainnet REST API URL"
    )
    testnet_url: str = Field(
        default="https://api-testnet.tanx.fi",
        description="Testnet REST API URL"
    )

    # Chain configuration
    rpc_url: Optional[str] = Field(None, description="Ethereum RPC URL for on-chain steps")

    # Timeouts
    request_timeout: float = Field(default=30.0, ge=1.0, description="Request timeout (seconds)")
    connect_timeout: float = Field(default=10.0, ge=1.0, description="Connection timeout (seconds)")

    # Connection pooling
    pool_connections: int = Field(default=10, ge=1, le=200,
                                  description="HTTP connection pool size")
    pool_maxsize: int = Field(default=20, ge=1, le=500,
                              description="Max connections per pool")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_requests: bool = Field(default=False, description="Log all HTTP requests")

    # Metrics
    enable_metrics: bool = Field(default=False, description="Enable Prometheus metrics")
    metrics_port: int = Field(default=9090, ge=1024, le=65535, description="Metrics server port")

    # Deposits are gated server-side to institutional accounts
    institutional_access: bool = Field(
        default=False,
        description="Enable deposit flows (institutional accounts only)"
    )

    @property
    def base_url(self) -> str:
        """REST base URL for the selected environment."""
        if self.environment == Environment.TESTNET:
            return self.testnet_url
        return self.mainnet_url

    def __repr__(self) -> str:
        """Safe repr without sensitive data."""
        return (
            f"TanxSettings("
            f"environment={self.environment.value}, "
            f"base_url={self.base_url}, "
            f"institutional_access={self.institutional_access}"
            ")"
        )


def get_settings(**overrides) -> TanxSettings:
    """
    Get tanX settings.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Validated settings instance
    """
    return TanxSettings(**overrides)
