"""Context retrieval for the chat-serving path.

Thin layer over :class:`~src.services.rag_service.RAGService` used when an
agent answers a message: fetch the agent's most relevant knowledge with the
default retrieval parameters, then build a grounded prompt around it.
"""

from __future__ import annotations

from src.models.rag import RAGQuery, RAGResponse
from src.services.rag_service import RAGService

_RETRIEVAL_TOP_K = 5
_RETRIEVAL_THRESHOLD = 0.7


class RAGRetriever:
    """Retrieves knowledge-base context and assembles LLM prompts."""

    def __init__(self, rag_service: RAGService) -> None:
        self._rag_service = rag_service

    async def retrieve_context(self, agent_id: str, user_query: str) -> RAGResponse:
        """Search *agent_id*'s knowledge base for *user_query* (top 5, threshold 0.7)."""
        return await self._rag_service.query(
            RAGQuery(
                query=user_query,
                agent_id=agent_id,
                top_k=_RETRIEVAL_TOP_K,
                threshold=_RETRIEVAL_THRESHOLD,
            )
        )

    @staticmethod
    def build_llm_prompt(
        user_query: str,
        system_instruction: str,
        response: RAGResponse | None = None,
    ) -> str:
        """Combine the system instruction, retrieved context and the user query.

        The "Relevant Context" section is omitted when nothing was retrieved.
        """
        if response is None or not response.context:
            return f"{system_instruction}\n\nUser Query: {user_query}"
        return (
            f"{system_instruction}\n\nRelevant Context:\n{response.context}"
            f"\n\nUser Query: {user_query}"
        )
