"""Configuration objects for the infrastructure layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class SubjectPatterns:
    """Centralized NATS subject and bucket names."""

    EVENT_STREAM = "SUBJECT_EVENTS"
    KV_BUCKET = "subjects"

    @staticmethod
    def change_event(event_type: str = "subject.created") -> str:
        """Stream subject for a change event type."""
        return f"events.{event_type}"

    @staticmethod
    def change_events_wildcard() -> str:
        return "events.subject.>"

    @staticmethod
    def rpc(service: str, method: str) -> str:
        """Request/reply subject for a remote operation."""
        return f"rpc.{service}.{method}"

    @classmethod
    def provisioning(cls) -> str:
        return cls.rpc("billing", "create_account")


class NATSConnectionConfig(BaseModel):
    """Strongly-typed configuration for NATS connections."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        strict=True,
        validate_assignment=True,
    )

    servers: list[str] = Field(
        default_factory=lambda: ["nats://localhost:4222"],
        min_length=1,
        description="List of NATS server URLs",
    )
    max_reconnect_attempts: int = Field(
        default=10,
        ge=0,
        description="Maximum reconnection attempts",
    )
    reconnect_time_wait: float = Field(
        default=2.0,
        gt=0,
        description="Time to wait between reconnection attempts in seconds",
    )
    enable_jetstream: bool = Field(
        default=True,
        description="Whether to initialize JetStream",
    )
    stream_name: str = Field(
        default=SubjectPatterns.EVENT_STREAM,
        min_length=1,
        description="JetStream stream holding change events",
    )
    stream_max_msgs: int = Field(
        default=100_000,
        gt=0,
        description="Retention limit of the change event stream",
    )

    @field_validator("servers")
    @classmethod
    def validate_servers(cls, v: list[str]) -> list[str]:
        """Validate server URLs format."""
        for server in v:
            if not server.startswith(("nats://", "tls://", "ws://", "wss://")):
                raise ValueError(
                    f"Invalid server URL: {server}. "
                    "Must start with nats://, tls://, ws://, or wss://"
                )
        return v

    def to_connection_params(self) -> dict[str, Any]:
        """Convert to parameters for NATS connection."""
        return {
            "servers": self.servers,
            "max_reconnect_attempts": self.max_reconnect_attempts,
            "reconnect_time_wait": self.reconnect_time_wait,
        }


class AuthConfig(BaseModel):
    """Token signing settings."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    secret_key: SecretStr = Field(..., description="HMAC signing key")
    algorithm: str = Field(default="HS256", pattern="^HS(256|384|512)$")
    access_token_expire_minutes: int = Field(default=60, gt=0)

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: SecretStr) -> SecretStr:
        if len(v.get_secret_value()) < 16:
            raise ValueError("secret_key must be at least 16 characters")
        return v


class LogContext(BaseModel):
    """Strongly-typed context for structured logging."""

    model_config = ConfigDict(
        extra="allow",
        str_strip_whitespace=True,
        strict=False,
        validate_assignment=True,
    )

    operation: str | None = Field(default=None, description="Current operation")
    component: str | None = Field(default=None, description="Component generating the log")
    subject_id: str | None = Field(default=None, description="Subject being processed")
    error_code: str | None = Field(default=None, description="Structured error code")
    error_type: str | None = Field(default=None, description="Type of error encountered")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging frameworks."""
        return {k: v for k, v in self.model_dump().items() if v is not None}

    def with_error(self, error: Exception) -> LogContext:
        """Create a new context with error information."""
        return LogContext(
            **{
                **self.model_dump(),
                "error_code": error.__class__.__name__,
                "error_type": type(error).__module__ + "." + type(error).__name__,
            }
        )
