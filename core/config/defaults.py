# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for lease timing, store and database pool
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Defaults

Static for the process lifetime. Every value can be overridden via
environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- validate() rejects combinations that break the renewal margin
"""

import os
from dataclasses import dataclass
from enum import Enum

from core.errors import ConfigurationError


def _env_number(name: str, default, cast):
    """Read a numeric environment variable, or raise ConfigurationError."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        kind = "an integer" if cast is int else "a number"
        raise ConfigurationError(f"{name} must be {kind} (got '{raw}')")


class StoreBackend(str, Enum):
    """Lease store implementations."""
    POSTGRES = "postgres"
    MEMORY = "memory"    # Single-instance deployments and tests


@dataclass(frozen=True)
class LeaseSettings:
    """
    Lease key and timing.

    lease_duration_seconds is only used when this instance creates the
    lease. Afterwards the duration stored on the record wins, so the first
    creator sets the lifetime for every later holder.
    """
    lease_name: str = "leader-election"
    namespace: str = "default"
    lease_duration_seconds: int = 30
    grace_period_seconds: int = 15
    check_interval_seconds: float = 5.0

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.lease_name}"

    def validate(self) -> "LeaseSettings":
        """
        Check timing invariants.

        Raises:
            ConfigurationError: If the grace margin swallows the duration
                or the check interval is not positive
        """
        if not self.lease_name:
            raise ConfigurationError("LEASE_NAME must not be empty")
        if self.lease_duration_seconds <= 0:
            raise ConfigurationError(
                f"LEASE_DURATION_SEC must be positive "
                f"(got {self.lease_duration_seconds})"
            )
        if self.grace_period_seconds < 0:
            raise ConfigurationError(
                f"LEASE_GRACE_PERIOD_SEC must not be negative "
                f"(got {self.grace_period_seconds})"
            )
        if self.lease_duration_seconds <= self.grace_period_seconds:
            raise ConfigurationError(
                f"LEASE_DURATION_SEC ({self.lease_duration_seconds}) must exceed "
                f"LEASE_GRACE_PERIOD_SEC ({self.grace_period_seconds})"
            )
        if self.check_interval_seconds <= 0:
            raise ConfigurationError(
                f"LEASE_CHECK_INTERVAL_SEC must be positive "
                f"(got {self.check_interval_seconds})"
            )
        return self

    @classmethod
    def from_env(cls) -> "LeaseSettings":
        """Create from environment variables."""
        return cls(
            lease_name=os.getenv("LEASE_NAME", "leader-election"),
            namespace=os.getenv("LEASE_NAMESPACE", "default"),
            lease_duration_seconds=_env_number("LEASE_DURATION_SEC", 30, int),
            grace_period_seconds=_env_number("LEASE_GRACE_PERIOD_SEC", 15, int),
            check_interval_seconds=_env_number("LEASE_CHECK_INTERVAL_SEC", 5.0, float),
        )


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection pool and schema for the PostgreSQL lease store."""
    schema: str = "leader"
    pool_min_size: int = 1
    pool_max_size: int = 4
    pool_timeout_seconds: float = 10.0
    auto_bootstrap_schema: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        """Create from environment variables."""
        return cls(
            schema=os.getenv("LEASE_DB_SCHEMA", "leader"),
            pool_min_size=_env_number("DB_POOL_MIN_SIZE", 1, int),
            pool_max_size=_env_number("DB_POOL_MAX_SIZE", 4, int),
            pool_timeout_seconds=_env_number("DB_POOL_TIMEOUT_SEC", 10.0, float),
            auto_bootstrap_schema=os.getenv("AUTO_BOOTSTRAP_SCHEMA", "").lower() == "true",
        )


def get_store_backend() -> StoreBackend:
    """
    Read LEASE_STORE.

    Raises:
        ConfigurationError: On an unknown backend name
    """
    value = os.getenv("LEASE_STORE", StoreBackend.POSTGRES.value).lower()
    try:
        return StoreBackend(value)
    except ValueError:
        raise ConfigurationError(
            f"Unknown LEASE_STORE '{value}' "
            f"(expected one of {[b.value for b in StoreBackend]})"
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StoreBackend",
    "LeaseSettings",
    "DatabaseSettings",
    "get_store_backend",
]
