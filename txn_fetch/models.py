"""Internal data models for txn-fetch.

Configuration and transport-facing models use Pydantic v2. The mutable
per-slot record lives in state.py.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Core HTTP Models
# =============================================================================


class Method(str, Enum):
    """Fetch mode of the pending or most recent call on a slot."""

    UNSET = "unset"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"


class TransportRequest(BaseModel):
    """One outbound request, assembled from a CallState for a single call.

    `method` is the literal HTTP method put on the wire (a custom method
    override when one was set). `fetch_mode` keeps the GET/HEAD/POST flag so
    a transport knows whether to attach `content` and whether to read a body.
    Timeouts are in milliseconds; None means the transport default.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: str = Field(description="HTTP method sent on the wire")
    fetch_mode: Method = Field(description="GET/HEAD/POST semantics for body handling")
    url: str = Field(description="Absolute request URL")
    header_lines: tuple[str, ...] = Field(
        default=(), description="Raw 'Name: Value' lines in send order"
    )
    content: bytes | None = Field(default=None, description="Request entity (POST only)")
    timeout_ms: int | None = Field(default=None, description="Whole-call timeout")
    connect_timeout_ms: int | None = Field(default=None, description="Connect phase timeout")
    verify_peer: bool = Field(default=False, description="Verify server certificate chain")
    verify_host: bool = Field(default=False, description="Verify certificate host name")
    ca_file: str | None = Field(default=None, description="CA bundle file")
    ca_path: str | None = Field(default=None, description="CA certificate directory")
    proxy: str | None = Field(default=None, description="Proxy URL")

    @property
    def wants_body(self) -> bool:
        """HEAD-mode calls never read a response body."""
        return self.fetch_mode is not Method.HEAD


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class PoolSettings(BaseModel):
    """Slot pool sizing."""

    model_config = ConfigDict(extra="forbid")

    initial_slots: int = Field(default=256, gt=0, description="Slots created up front")


class FetchSettings(BaseModel):
    """Defaults applied by the httpx transport."""

    model_config = ConfigDict(extra="forbid")

    default_timeout: float | None = Field(
        default=30.0,
        description="Seconds used when a call sets no positive timeout (None = no limit)",
    )
    user_agent: str | None = Field(default=None, description="User-Agent sent when set")

    @field_validator("default_timeout")
    @classmethod
    def check_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("default_timeout must be positive or null")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Root log level name")
    quiet_libraries: list[str] = Field(
        default_factory=lambda: ["httpx", "httpcore"],
        description="Loggers forced to WARNING",
    )


class RuntimeConfig(BaseModel):
    """Top-level runtime configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    pool: PoolSettings = Field(default_factory=PoolSettings)
    transport: FetchSettings = Field(default_factory=FetchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
