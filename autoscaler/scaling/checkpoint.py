"""Last known desired replica count, kept so a restarted loop can resume a resize."""

from typing import Protocol


class DesiredCountCheckpoint(Protocol):
    async def save(self, desired_count: int) -> None: ...
    async def load(self) -> int | None: ...


class InMemoryCheckpoint:
    """Process-local checkpoint. Does not survive restarts; used in tests and simulation."""

    def __init__(self, initial: int | None = None) -> None:
        self.value = initial

    async def save(self, desired_count: int) -> None:
        self.value = desired_count

    async def load(self) -> int | None:
        return self.value
