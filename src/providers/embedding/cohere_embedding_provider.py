"""Cohere embedding provider adapter.

Calls Cohere's ``/v1/embed`` REST endpoint through an injected
``httpx.AsyncClient`` to implement :class:`IEmbeddingProvider`.  The default
model, ``embed-multilingual-v3.0``, produces 1024-dimensional vectors and
distinguishes stored passages (``search_document``) from questions
(``search_query``).
"""

from __future__ import annotations

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.rag import EmbeddingInputType
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_DIMENSIONS: dict[str, int] = {
    "embed-multilingual-v3.0": 1024,
    "embed-english-v3.0": 1024,
    "embed-multilingual-light-v3.0": 384,
    "embed-english-light-v3.0": 384,
}


class CohereEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by the Cohere embed API.

    The whole input list goes out in one request; Cohere rejects requests
    with more than 96 texts and that rejection surfaces as
    :class:`EmbeddingError`.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._api_key = settings.cohere_api_key
        self._model = settings.cohere_embedding_model
        self._endpoint = f"{settings.cohere_base_url.rstrip('/')}/v1/embed"
        self._http = http_client
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1024)

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(
        self,
        texts: list[str],
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_DOCUMENT,
    ) -> list[list[float]]:
        if not texts:
            return []

        payload = {
            "texts": texts,
            "model": self._model,
            "input_type": input_type.value,
            "embedding_types": ["float"],
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            response = await self._http.post(self._endpoint, json=payload, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise EmbeddingError(
                message=f"Cohere embed API returned {exc.response.status_code}: {exc.response.text}",
                provider_name=self.get_provider_name(),
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise EmbeddingError(
                message=f"Cohere embed request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        embeddings = body.get("embeddings")
        # embedding_types=["float"] returns {"float": [...]}; older responses return the list.
        if isinstance(embeddings, dict):
            embeddings = embeddings.get("float")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise EmbeddingError(
                message=(
                    f"Cohere returned {len(embeddings) if isinstance(embeddings, list) else 0} "
                    f"embeddings for {len(texts)} texts"
                ),
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "cohere_embedding_batch",
            model=self._model,
            input_type=input_type.value,
            batch_size=len(texts),
        )
        return [list(map(float, vector)) for vector in embeddings]

    async def embed_single(
        self,
        text: str,
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_QUERY,
    ) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text], input_type)
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "cohere"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
