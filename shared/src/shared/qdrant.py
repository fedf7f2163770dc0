"""Qdrant REST client: collection bootstrap, point upsert and filtered delete."""
from typing import Any

import httpx
import structlog

from shared.http_client import create_http_client

log = structlog.get_logger()


class QdrantStore:
    """Thin async wrapper over the Qdrant HTTP API.

    Process-scoped like the embedder: one instance per worker, closed by the
    worker entrypoint.
    """

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"api-key": api_key} if api_key else None
        self._client = client or create_http_client(url, timeout=timeout, headers=headers)
        self._owns_client = client is None
        self._known_collections: set[str] = set()

    async def collection_exists(self, collection: str) -> bool:
        resp = await self._client.get(f"/collections/{collection}")
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True

    async def ensure_collection(self, collection: str, dimensions: int) -> None:
        """Create the collection with cosine distance unless it already exists."""
        if collection in self._known_collections:
            return
        if not await self.collection_exists(collection):
            resp = await self._client.put(
                f"/collections/{collection}",
                json={"vectors": {"size": dimensions, "distance": "Cosine"}},
            )
            # 409: another replica created it between our check and this call.
            if resp.status_code != 409:
                resp.raise_for_status()
                log.info("qdrant_collection_created", collection=collection, dimensions=dimensions)
        self._known_collections.add(collection)

    async def upsert_point(
        self,
        collection: str,
        point_id: int,
        vector: list[float],
        payload: dict[str, Any],
    ) -> None:
        resp = await self._client.put(
            f"/collections/{collection}/points",
            params={"wait": "true"},
            json={"points": [{"id": point_id, "vector": vector, "payload": payload}]},
        )
        resp.raise_for_status()

    async def delete_document_chunks(
        self, collection: str, document_id: int, from_chunk_index: int = 0
    ) -> None:
        """Delete points of one document whose chunkIndex is >= from_chunk_index."""
        body = {
            "filter": {
                "must": [
                    {"key": "documentId", "match": {"value": document_id}},
                    {"key": "chunkIndex", "range": {"gte": from_chunk_index}},
                ]
            }
        }
        resp = await self._client.post(
            f"/collections/{collection}/points/delete",
            params={"wait": "true"},
            json=body,
        )
        if resp.status_code == 404:
            return
        resp.raise_for_status()
        log.debug(
            "qdrant_points_deleted",
            collection=collection,
            document_id=document_id,
            from_chunk_index=from_chunk_index,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
