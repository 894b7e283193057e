"""HTTP adapter for a cluster metrics aggregator."""

import logging
from typing import Any, Sequence

import httpx

from autoscaler.domain.exceptions import MetricsUnavailableError
from autoscaler.domain.models.sample import UtilizationSample

logger = logging.getLogger(__name__)

UTILIZATION_PATH = "/v1/utilization"


class HttpMetricsSource:
    """
    Polls GET {base_url}/v1/utilization?deployment=...&window=... which returns
    {"samples": [{"replica_id", "cpu_utilization_ratio", "timestamp_monotonic"}, ...]}.
    Transport errors, non-2xx responses, malformed bodies and empty sample
    lists all surface as MetricsUnavailableError.
    """

    def __init__(
        self,
        base_url: str,
        deployment: str,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._deployment = deployment
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    async def poll(self, window_seconds: float) -> Sequence[UtilizationSample]:
        try:
            response = await self._client.get(
                UTILIZATION_PATH,
                params={"deployment": self._deployment, "window": window_seconds},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MetricsUnavailableError(f"Metrics aggregator request failed: {e}") from e
        if not isinstance(body, dict):
            raise MetricsUnavailableError("Metrics aggregator returned a non-object body")

        samples = [_parse_sample(raw) for raw in body.get("samples") or []]
        samples = [s for s in samples if s is not None]
        if not samples:
            raise MetricsUnavailableError(f"No utilization samples for {self._deployment}")
        return samples

    async def aclose(self) -> None:
        await self._client.aclose()


def _parse_sample(raw: dict[str, Any]) -> UtilizationSample | None:
    try:
        return UtilizationSample(
            replica_id=str(raw["replica_id"]),
            cpu_utilization_ratio=float(raw["cpu_utilization_ratio"]),
            timestamp_monotonic=int(raw["timestamp_monotonic"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("metrics_sample_rejected", extra={"sample": raw, "error": str(e)})
        return None
