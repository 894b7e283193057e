"""Domain layer: models and exceptions. No I/O."""

from autoscaler.domain.exceptions import (
    AutoscalerError,
    ConfigurationError,
    DrainTimeoutError,
    MetricsUnavailableError,
    PoolOperationError,
    StoreError,
    StoreReadError,
    StoreUnavailableError,
    StoreWriteError,
)

__all__ = [
    "AutoscalerError",
    "ConfigurationError",
    "DrainTimeoutError",
    "MetricsUnavailableError",
    "PoolOperationError",
    "StoreError",
    "StoreReadError",
    "StoreUnavailableError",
    "StoreWriteError",
]
