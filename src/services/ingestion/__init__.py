"""Document ingestion: **chunk -> embed**, plus media-to-text routing.

1. **Chunk** (chunker.py / Chunker) -- splits extracted text with a
   strategy chosen by document type (word accumulation, FAQ entries, or a
   single image-description chunk) and builds per-chunk metadata.

2. **Embed** (content_processor.py / ContentProcessor) -- embeds every
   chunk of a document in one ``search_document`` call and pairs chunks
   with vectors by position.

Storage is the RAG service's job (src/services/rag_service.py).
"""

from src.services.ingestion.chunker import Chunker
from src.services.ingestion.content_processor import ContentProcessor

__all__ = ["Chunker", "ContentProcessor"]
