"""Autoscaler exceptions. Each names how far it may travel: recovered in-cycle, fatal at startup, or worker-local."""


class AutoscalerError(Exception):
    """Base for all autoscaler errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(AutoscalerError):
    """Raised when the scaling policy violates its invariants. Fatal: the loop must not start."""


class MetricsUnavailableError(AutoscalerError):
    """Raised by a metrics source with no data. The cycle is treated as having zero samples."""


class PoolOperationError(AutoscalerError):
    """Raised when the platform rejects a create/terminate (quota, scheduling failure)."""


class DrainTimeoutError(PoolOperationError):
    """Raised when a replica does not finish draining in time. The replica is kept, not terminated."""

    def __init__(self, message: str, replica_id: str) -> None:
        self.replica_id = replica_id
        super().__init__(message)


class StoreError(AutoscalerError):
    """Base for backing store client errors. Worker-side only; never reaches the control loop."""


class StoreUnavailableError(StoreError):
    """Raised when the store cannot be reached after all retries."""


class StoreWriteError(StoreError):
    """Raised when a write could not be confirmed. Writes are never dropped silently."""


class StoreReadError(StoreError):
    """Raised when a stored document cannot be decoded into a JSON object."""
