"""Fire-and-forget pipeline status reporting to the external aggregator."""
import httpx
import structlog

log = structlog.get_logger()

STATUS_PATH = "/internal/pipeline-status"


class PipelineStatusReporter:
    """Posts {stage, queueSize, workerSource}. Never raises; failures are logged at debug."""

    def __init__(self, base_url: str | None, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._base_url is not None

    async def report(self, stage: str, queue_size: int, worker_source: str) -> None:
        if self._base_url is None:
            return
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        payload = {"stage": stage, "queueSize": queue_size, "workerSource": worker_source}
        try:
            resp = await self._client.post(f"{self._base_url}{STATUS_PATH}", json=payload)
            resp.raise_for_status()
        except Exception as e:
            log.debug("pipeline_status_report_failed", stage=stage, error=str(e))

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
