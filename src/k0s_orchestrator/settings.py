"""Application configuration using Pydantic Settings.

This module centralizes runtime configuration for the orchestrator. Values can
be provided via environment variables (preferred) or fall back to the defaults
below. A ``Settings`` instance is intended to be retrieved via ``get_settings``
which caches the object for reuse across the process.

Environment variable prefix: ``K0S_ORCHESTRATOR_`` (e.g. ``K0S_ORCHESTRATOR_HOST``).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BACKEND = "k0s_orchestrator.backends.simulated:SimulatedBackend"


class Settings(BaseSettings):
    """Runtime application settings.

    Attributes map directly to environment variables using the ``K0S_ORCHESTRATOR_``
    prefix (case-insensitive). For example, ``host`` <- ``K0S_ORCHESTRATOR_HOST``.
    """

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host interface to bind the server",
    )  # fmt: skip
    port: int = Field(
        default=8080,
        description="Server port",
    )  # fmt: skip
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Application log level",
    )
    reload: bool = Field(
        default=False,
        description="Enable auto-reload in development",
    )  # fmt: skip
    sql_log: bool = Field(
        default=False,
        description="Enable SQL query logging",
    )  # fmt: skip
    database_url: str | None = Field(
        default=None,
        description="Database connection string; cluster records are kept in memory when unset",
    )  # fmt: skip

    # Orchestration settings
    lock_backend: Literal["memory", "postgres"] = Field(
        default="memory",
        description="Cluster lock implementation: in-process or PostgreSQL advisory locks",
    )  # fmt: skip
    lock_wait_timeout: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to wait for a contended cluster lock (0 fails immediately)",
    )  # fmt: skip
    backend: str = Field(
        default=DEFAULT_BACKEND,
        description="Provisioning backend import path in 'module:Class' form",
    )  # fmt: skip

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Require the ``module:Class`` import path form."""
        module_name, _, class_name = v.partition(":")
        if not module_name or not class_name:
            raise ValueError(f"Invalid backend '{v}': expected 'module:Class'")
        return v

    @model_validator(mode="after")
    def validate_lock_backend(self) -> "Settings":
        """PostgreSQL advisory locks need a database."""
        if self.lock_backend == "postgres" and not self.database_url:
            raise ValueError("lock_backend 'postgres' requires database_url")
        return self

    model_config = SettingsConfigDict(
        env_prefix="K0S_ORCHESTRATOR_",  # Prefix for env vars
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars
        env_file=".env",  # Optional .env loading (if present)
        env_file_encoding="utf-8",
        validate_assignment=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


__all__ = ["Settings", "get_settings"]
