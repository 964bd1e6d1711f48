"""
Configuration for the EnergyGrid aggregator.

Provides settings for the EnergyGrid API, the device population,
rate limiting, retries, and report output.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """EnergyGrid API client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGYGRID_API_",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = Field(default="http://localhost:3000", description="EnergyGrid API URL")
    endpoint: str = Field(default="/device/real/query", description="Device query endpoint")
    token: str = Field(default="interview_token_123", description="Secret token used for signing")
    timeout: float = Field(default=5.0, gt=0, description="Request timeout in seconds")

    @property
    def url(self) -> str:
        """Full URL of the device query endpoint."""
        return f"{self.base_url.rstrip('/')}{self.endpoint}"


class DeviceSettings(BaseSettings):
    """Device population configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGYGRID_DEVICES_",
        env_file=".env",
        extra="ignore",
    )

    total: int = Field(default=500, ge=0, description="Number of devices to query")
    serial_prefix: str = Field(default="SN-", description="Serial number prefix")


class RateLimitSettings(BaseSettings):
    """Batching and request cadence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGYGRID_RATE_LIMIT_",
        env_file=".env",
        extra="ignore",
    )

    batch_size: int = Field(default=10, gt=0, description="Maximum devices per request")
    request_interval: float = Field(
        default=1.0, ge=0, description="Minimum gap between requests (seconds)"
    )


class RetrySettings(BaseSettings):
    """Per-batch retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGYGRID_RETRY_",
        env_file=".env",
        extra="ignore",
    )

    max_retries: int = Field(default=3, ge=0, description="Retries per batch after the first attempt")
    retry_delay: float = Field(default=2.0, ge=0, description="Delay between retries (seconds)")


class OutputSettings(BaseSettings):
    """Report output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGYGRID_OUTPUT_",
        env_file=".env",
        extra="ignore",
    )

    file: Path = Field(
        default=Path("./results/aggregated_data.json"),
        description="Path of the aggregated report",
    )


class AggregatorSettings(BaseSettings):
    """Main configuration for the aggregator."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGYGRID_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="EnergyGrid Data Aggregator")
    log_level: str = Field(default="INFO")

    # Sub-settings
    api: ApiSettings = Field(default_factory=ApiSettings)
    devices: DeviceSettings = Field(default_factory=DeviceSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    output: OutputSettings = Field(default_factory=OutputSettings)

    @property
    def estimated_duration(self) -> float:
        """Lower bound of a full run in seconds, ignoring retries."""
        batches = -(-self.devices.total // self.rate_limit.batch_size)
        return batches * self.rate_limit.request_interval


@lru_cache()
def get_settings() -> AggregatorSettings:
    """
    Get cached aggregator settings.

    Uses LRU cache to avoid re-reading environment variables on every access.
    """
    return AggregatorSettings()
