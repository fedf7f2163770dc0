"""Shared embedder: ollama, sentence-transformers or mock backend behind one async contract."""
from __future__ import annotations

import asyncio
import hashlib
import re
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from shared.errors import EmbeddingGenerationError
from shared.http_client import create_http_client

if TYPE_CHECKING:
    from shared.config import EmbedderSettings

log = structlog.get_logger()

SAMPLE_TEXT = "Sample text to determine embedding dimensions"


class DimensionCache:
    """Embedding dimensionality, resolved once and kept for the life of the worker process.

    Not persisted: a model change means restarting the worker. Concurrent first
    callers wait on one lock so only one sample embedding is ever requested.
    """

    def __init__(self) -> None:
        self._value: int | None = None
        self._lock = asyncio.Lock()

    @property
    def value(self) -> int | None:
        return self._value

    async def get_or_resolve(self, resolver: Callable[[], Awaitable[int]]) -> int:
        if self._value is not None:
            return self._value
        async with self._lock:
            if self._value is None:
                resolved = await resolver()
                if resolved <= 0:
                    raise EmbeddingGenerationError(f"Embedding model reported dimension {resolved}")
                self._value = resolved
        return self._value


class EmbeddingGenerator:
    """Embed texts into vectors.

    Process-scoped and shared by every handler in a worker; callers must not
    close it. The owner (the worker entrypoint) calls aclose() on shutdown.
    """

    def __init__(
        self,
        backend: str = "ollama",
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
        batch_size: int = 64,
        mock_dim: int = 384,
        dimension_cache: DimensionCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._backend = backend.lower()
        self._model_name = model_name
        self._batch_size = max(1, batch_size)
        self._mock_dim = mock_dim
        self._dimensions = dimension_cache or DimensionCache()
        self._model: Any = None
        self._client = client
        self._owns_client = client is None
        if self._backend == "ollama":
            if not base_url or not model_name:
                raise ValueError("ollama backend requires base_url and model_name")
            if self._client is None:
                headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
                self._client = create_http_client(base_url, timeout=timeout, headers=headers)
        elif self._backend not in ("sentence_transformers", "mock"):
            raise ValueError(f"Unknown embedder backend: {backend}")

    @classmethod
    def from_settings(
        cls, settings: EmbedderSettings, dimension_cache: DimensionCache | None = None
    ) -> EmbeddingGenerator:
        generator = cls(
            backend=settings.backend,
            model_name=settings.model_name,
            base_url=settings.base_url,
            api_key=settings.api_key,
            timeout=settings.timeout,
            batch_size=settings.batch_size,
            mock_dim=settings.mock_dim,
            dimension_cache=dimension_cache,
        )
        log.info("embedder_config", backend=generator.backend, model=settings.model_name)
        if generator.backend == "mock":
            log.warning(
                "embedder_mock_mode",
                msg="Mock embedder active: embeddings are not semantic.",
            )
        return generator

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def dimension_cache(self) -> DimensionCache:
        return self._dimensions

    async def dimensions(self) -> int:
        """Vector length of this model, measured on first use."""
        return await self._dimensions.get_or_resolve(self._measure_dimensions)

    async def _measure_dimensions(self) -> int:
        vector = (await self._embed_batch([SAMPLE_TEXT]))[0]
        log.info("embedder_dimensions_resolved", dimensions=len(vector))
        return len(vector)

    async def generate(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per input text, in order."""
        if not texts:
            return []
        if any(not t or not t.strip() for t in texts):
            raise ValueError("Cannot embed blank text")
        out: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            out.extend(await self._embed_batch(texts[start:start + self._batch_size]))
        return out

    async def generate_one(self, text: str) -> list[float]:
        return (await self.generate([text]))[0]

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        if self._backend == "ollama":
            vectors = await self._embed_ollama(texts)
        elif self._backend == "sentence_transformers":
            vectors = await asyncio.to_thread(self._embed_local, texts)
        else:
            vectors = self._embed_mock(texts)
        self._validate(texts, vectors)
        return vectors

    @staticmethod
    def _validate(texts: list[str], vectors: list[list[float]]) -> None:
        if not vectors:
            raise EmbeddingGenerationError("Embedding model returned no embeddings")
        if len(vectors) != len(texts):
            raise EmbeddingGenerationError(
                f"Embedding model returned {len(vectors)} vectors for {len(texts)} inputs"
            )
        if any(len(v) <= 0 for v in vectors):
            raise EmbeddingGenerationError("Embedding model returned an empty vector")

    async def _embed_ollama(self, texts: list[str]) -> list[list[float]]:
        assert self._client is not None
        resp = await self._client.post("/api/embed", json={"model": self._model_name, "input": texts})
        resp.raise_for_status()
        data = resp.json()
        return [[float(x) for x in v] for v in data.get("embeddings") or []]

    def _load_model(self) -> None:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise RuntimeError(
                "sentence_transformers backend requires: pip install sentence-transformers"
            ) from e
        self._model = SentenceTransformer(self._model_name)

    def _embed_local(self, texts: list[str]) -> list[list[float]]:
        if self._model is None:
            self._load_model()
        vectors = self._model.encode(texts, convert_to_numpy=True)
        return [v.tolist() for v in vectors]

    def _embed_mock(self, texts: list[str]) -> list[list[float]]:
        # Bag-of-words hashing: shared words give nearby vectors.
        out = []
        for text in texts:
            vec = [0.0] * self._mock_dim
            for word in re.findall(r"\w+", text.lower()):
                if len(word) >= 2:
                    idx = int(hashlib.sha256(word.encode()).hexdigest(), 16) % self._mock_dim
                    vec[idx] += 1.0
            norm = sum(x * x for x in vec) ** 0.5
            if norm > 0:
                vec = [x / norm for x in vec]
            out.append(vec)
        return out

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
