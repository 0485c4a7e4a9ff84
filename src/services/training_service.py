"""Agent training entry points.

Higher-level operations built on :class:`~src.services.rag_service.RAGService`:

* uploaded files of unknown type (MIME sniffing, validation, routing)
* pages produced by the external web crawler
* migration of pre-RAG training data stored on the agent record
"""

from __future__ import annotations

from src.interfaces.media_processor import MediaInput, read_media
from src.models.rag import (
    DocumentType,
    LegacyTrainingEntry,
    RAGQuery,
    RAGResponse,
    ScrapedPage,
    TrainingDocument,
)
from src.services.rag_service import RAGService
from src.utils.errors import UnsupportedMediaTypeError, ValidationError
from src.utils.logging import get_logger
from src.utils.mime import (
    detect_mime_type,
    document_type_for_mime,
    is_supported_mime_type,
    normalize_mime_type,
)


def extract_page_text(page: ScrapedPage) -> str:
    """Flatten a scraped page into training text.

    The page title comes first as ``Title: ...``; headings (``h1``-``h6``)
    are set off by blank lines; sections are joined with newlines.
    """
    parts: list[str] = []
    if page.title:
        parts.append(f"Title: {page.title}")
    for section in page.sections:
        if not section.text:
            continue
        if section.tag.lower().startswith("h"):
            parts.append(f"\n{section.text}\n")
        else:
            parts.append(section.text)
    return "\n".join(parts)


class TrainingService:
    """Trains agents from files, crawled pages and legacy data."""

    def __init__(self, rag_service: RAGService) -> None:
        self._rag_service = rag_service
        self._logger = get_logger(__name__)

    async def process_document(
        self,
        agent_id: str,
        title: str,
        content: str,
        document_type: DocumentType | str = DocumentType.TEXT,
        source_url: str | None = None,
    ) -> TrainingDocument:
        return await self._rag_service.process_document(agent_id, title, document_type, content, source_url)

    async def process_file(
        self,
        agent_id: str,
        title: str,
        data: MediaInput,
        mime_type: str | None = None,
        source_url: str | None = None,
    ) -> TrainingDocument:
        """Ingest an uploaded file, detecting its MIME type when not given.

        Plain text is decoded as UTF-8 and ingested directly; images, audio,
        video and PDFs go through media-to-text conversion first.

        Raises
        ------
        UnsupportedMediaTypeError
            If the (detected) MIME type is not in the supported list.
        """
        payload = read_media(data)
        detected = normalize_mime_type(mime_type) if mime_type else detect_mime_type(payload)
        document_type = document_type_for_mime(detected)
        if not is_supported_mime_type(detected) or document_type is None:
            raise UnsupportedMediaTypeError(message=f"Unsupported file type: {detected}")

        self._logger.info(
            "training_file_received",
            agent_id=agent_id,
            mime_type=detected,
            detected=mime_type is None,
            document_type=document_type.value,
            bytes=len(payload),
        )

        if document_type is DocumentType.TEXT:
            return await self._rag_service.process_document(
                agent_id,
                title,
                document_type,
                payload.decode("utf-8", errors="replace"),
                source_url,
                mime_type=detected,
                file_size=len(payload),
            )
        return await self._rag_service.process_media_file(
            agent_id, title, document_type, payload, detected, source_url
        )

    async def process_scraped_pages(
        self,
        agent_id: str,
        title: str,
        pages: list[ScrapedPage],
    ) -> list[TrainingDocument]:
        """Ingest each crawled page as a text document; pages without text are skipped.

        A page's own title wins; otherwise multi-page crawls are titled
        ``"{title} - Page {n}"`` and single pages use *title*.
        """
        documents: list[TrainingDocument] = []
        for number, page in enumerate(pages, start=1):
            page_title = title
            if len(pages) > 1:
                page_title = f"{title} - Page {number}"
            if page.title:
                page_title = page.title

            content = extract_page_text(page)
            if not content:
                self._logger.debug("scraped_page_empty", url=page.url)
                continue

            documents.append(
                await self._rag_service.process_document(
                    agent_id, page_title, DocumentType.TEXT, content, page.url
                )
            )

        self._logger.info(
            "scraped_pages_processed",
            agent_id=agent_id,
            pages=len(pages),
            documents=len(documents),
        )
        return documents

    async def train_from_legacy_data(
        self,
        agent_id: str,
        entries: list[LegacyTrainingEntry],
    ) -> list[TrainingDocument]:
        """Ingest the ``(title, content)`` pairs of every active legacy entry as text documents.

        Raises
        ------
        ValidationError
            If the agent has no legacy training data.
        """
        if not entries:
            raise ValidationError(message=f"No training data found for agent {agent_id}")

        documents: list[TrainingDocument] = []
        for entry in entries:
            if not entry.is_active:
                continue
            for entry_title, content in entry.content:
                documents.append(
                    await self._rag_service.process_document(
                        agent_id, entry_title, DocumentType.TEXT, content
                    )
                )

        self._logger.info("legacy_training_migrated", agent_id=agent_id, documents=len(documents))
        return documents

    async def get_agent_documents(self, agent_id: str) -> list[TrainingDocument]:
        return await self._rag_service.get_agent_documents(agent_id)

    async def delete_agent_training(self, agent_id: str) -> int:
        return await self._rag_service.delete_agent_documents(agent_id)

    async def query_knowledge_base(self, rag_query: RAGQuery) -> RAGResponse:
        return await self._rag_service.query(rag_query)
