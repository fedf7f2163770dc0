"""Tests for the fire-and-forget pipeline status reporter."""
import json

import httpx
import pytest

from shared.status import PipelineStatusReporter


@pytest.mark.asyncio
async def test_posts_stage_queue_size_and_source() -> None:
    received: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/internal/pipeline-status"
        received.append(json.loads(request.content))
        return httpx.Response(202)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reporter = PipelineStatusReporter("http://api:8080/", client=client)
    await reporter.report("embedding", 12, "embedding-worker-1")
    assert received == [{"stage": "embedding", "queueSize": 12, "workerSource": "embedding-worker-1"}]


@pytest.mark.asyncio
async def test_failures_are_swallowed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reporter = PipelineStatusReporter("http://api:8080", client=client)
    await reporter.report("chunking", 3, "w")


@pytest.mark.asyncio
async def test_server_errors_are_swallowed() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    reporter = PipelineStatusReporter("http://api:8080", client=client)
    await reporter.report("chunking", 3, "w")


@pytest.mark.asyncio
async def test_disabled_without_base_url() -> None:
    reporter = PipelineStatusReporter(None)
    assert not reporter.enabled
    await reporter.report("chunking", 3, "w")


@pytest.mark.asyncio
async def test_non_http_errors_are_swallowed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("transport bug")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reporter = PipelineStatusReporter("http://api:8080", client=client)
    await reporter.report("chunking", 3, "w")


@pytest.mark.asyncio
async def test_invalid_url_is_swallowed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.InvalidURL("Invalid port")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reporter = PipelineStatusReporter("http://api:8080", client=client)
    await reporter.report("chunking", 3, "w")
