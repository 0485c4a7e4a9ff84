"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible providers (TogetherAI,
Fireworks, a local vLLM) via custom ``base_url`` and model name settings.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.rag import EmbeddingInputType
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
    "intfloat/multilingual-e5-large-instruct": 1024,
    "intfloat/multilingual-e5-large": 1024,
}

# E5-family models are trained with asymmetric prefixes instead of an
# input-type parameter.
_E5_PREFIXES: dict[EmbeddingInputType, str] = {
    EmbeddingInputType.SEARCH_DOCUMENT: "passage: ",
    EmbeddingInputType.SEARCH_QUERY: "query: ",
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  When
    ``openai_base_url`` is configured the client points at that URL and
    uses ``openai_embedding_model`` if set.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        # base_url only when configured.
        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._uses_prefixes = "e5" in self._model.lower()
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(
        self,
        texts: list[str],
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_DOCUMENT,
    ) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts in one API call."""
        if not texts:
            return []

        if self._uses_prefixes:
            prefix = _E5_PREFIXES[input_type]
            texts = [prefix + t for t in texts]

        try:
            response = await self._client.embeddings.create(input=texts, model=self._model)
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        embeddings = [item.embedding for item in response.data]
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                message=f"Expected {len(texts)} embeddings, got {len(embeddings)}",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "openai_embedding_batch",
            model=self._model,
            provider=self._provider_label,
            input_type=input_type.value,
            batch_size=len(texts),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return embeddings

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
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
