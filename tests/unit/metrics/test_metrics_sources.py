"""Metrics sources: HTTP aggregator adapter and scripted source."""

import httpx
import pytest

from autoscaler.domain.exceptions import MetricsUnavailableError
from autoscaler.metrics.http_source import HttpMetricsSource
from autoscaler.metrics.source import StaticMetricsSource, uniform_samples


def make_source(handler) -> HttpMetricsSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://metrics")
    return HttpMetricsSource("http://metrics", "api-worker", client=client)


@pytest.mark.asyncio
async def test_http_source_parses_samples():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "samples": [
                    {"replica_id": "pod-1", "cpu_utilization_ratio": 0.5, "timestamp_monotonic": 10},
                    {"replica_id": "pod-2", "cpu_utilization_ratio": 0.9, "timestamp_monotonic": 11},
                ]
            },
        )

    samples = await make_source(handler).poll(15)
    assert [s.replica_id for s in samples] == ["pod-1", "pod-2"]
    assert samples[1].cpu_utilization_ratio == 0.9
    assert seen["params"] == {"deployment": "api-worker", "window": "15"}


@pytest.mark.asyncio
async def test_http_source_skips_malformed_samples():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "samples": [
                    {"replica_id": "pod-1", "cpu_utilization_ratio": 1.7, "timestamp_monotonic": 1},
                    {"replica_id": "pod-2"},
                    {"replica_id": "pod-3", "cpu_utilization_ratio": 0.4, "timestamp_monotonic": 1},
                ]
            },
        )

    samples = await make_source(handler).poll(15)
    assert [s.replica_id for s in samples] == ["pod-3"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503),
        httpx.Response(200, json={"samples": []}),
        httpx.Response(200, json=[1, 2]),
        httpx.Response(200, text="not json"),
    ],
)
async def test_http_source_unavailable(response):
    with pytest.raises(MetricsUnavailableError):
        await make_source(lambda request: response).poll(15)


@pytest.mark.asyncio
async def test_http_source_transport_error_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MetricsUnavailableError, match="connection refused"):
        await make_source(handler).poll(15)


@pytest.mark.asyncio
async def test_static_source_replays_then_repeats_last():
    first = uniform_samples(["a"], 0.2)
    source = StaticMetricsSource([first, MetricsUnavailableError("gap"), uniform_samples(["a"], 0.8)])
    assert await source.poll(15) == first
    with pytest.raises(MetricsUnavailableError):
        await source.poll(15)
    assert (await source.poll(15))[0].cpu_utilization_ratio == 0.8
    assert (await source.poll(15))[0].cpu_utilization_ratio == 0.8
    assert source.poll_count == 4


@pytest.mark.asyncio
async def test_static_source_without_script_is_unavailable():
    with pytest.raises(MetricsUnavailableError):
        await StaticMetricsSource().poll(15)
