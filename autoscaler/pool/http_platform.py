"""httpx adapter for a deployment controller's replica REST API."""

import asyncio
from typing import Any

import httpx


class HttpReplicaPlatform:
    """
    Talks to /v1/deployments/{deployment}/replicas[/{id}[/drain]].
    Non-2xx responses raise httpx.HTTPStatusError; the pool manager turns any
    platform failure into PoolOperationError.
    """

    def __init__(
        self,
        base_url: str,
        deployment: str,
        supports_drain: bool = True,
        drain_poll_interval_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.supports_drain = supports_drain
        self._prefix = f"/v1/deployments/{deployment}/replicas"
        self._drain_poll = drain_poll_interval_seconds
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    async def _get_replica(self, replica_id: str) -> dict[str, Any] | None:
        response = await self._client.get(f"{self._prefix}/{replica_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    async def list_replicas(self) -> list[str]:
        response = await self._client.get(self._prefix)
        response.raise_for_status()
        return [str(r["id"]) for r in response.json().get("replicas", [])]

    async def create_replica(self) -> str:
        response = await self._client.post(self._prefix)
        response.raise_for_status()
        return str(response.json()["id"])

    async def terminate_replica(self, replica_id: str) -> None:
        response = await self._client.delete(f"{self._prefix}/{replica_id}")
        # Already gone counts as terminated
        if response.status_code != 404:
            response.raise_for_status()

    async def drain_replica(self, replica_id: str) -> None:
        """Start a drain and wait until the controller reports it drained. The caller bounds the wait."""
        response = await self._client.post(f"{self._prefix}/{replica_id}/drain")
        response.raise_for_status()
        while True:
            replica = await self._get_replica(replica_id)
            if replica is None or replica.get("drained"):
                return
            await asyncio.sleep(self._drain_poll)

    async def cancel_drain(self, replica_id: str) -> None:
        response = await self._client.delete(f"{self._prefix}/{replica_id}/drain")
        if response.status_code != 404:
            response.raise_for_status()

    async def is_ready(self, replica_id: str) -> bool:
        replica = await self._get_replica(replica_id)
        return bool(replica and replica.get("ready"))

    async def is_healthy(self, replica_id: str) -> bool:
        replica = await self._get_replica(replica_id)
        return bool(replica and replica.get("healthy", True))

    async def aclose(self) -> None:
        await self._client.aclose()
