"""Shared construction of async HTTP clients for model and store endpoints."""
import httpx


def create_http_client(
    base_url: str,
    timeout: float = 30.0,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Async client with a fixed timeout and no transport-level retries.

    Retries happen once, at the message level, so that every retried attempt
    replays the whole idempotent unit of work.
    """
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=httpx.Timeout(timeout),
        headers=headers or {},
        transport=transport or httpx.AsyncHTTPTransport(retries=0),
    )
