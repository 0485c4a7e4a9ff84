"""Media-to-text processors.

Three variants of IMediaProcessor, plus a composite:
    1. OpenAIMediaProcessor   — GPT vision (images) + Whisper (audio/video).
    2. GoogleMediaProcessor   — Cloud Vision TEXT_DETECTION + Cloud Speech.
    3. LocalMediaProcessor    — Tesseract, faster-whisper, ffmpeg, PyMuPDF.
    4. FallbackMediaProcessor — tries the configured variants in order.

Only variants with credentials (or local tool paths) configured are placed
in the chain; see ``build_media_processor`` in ``src/main.py``.
"""

from src.providers.media.fallback_media_processor import FallbackMediaProcessor
from src.providers.media.google_media_processor import GoogleMediaProcessor
from src.providers.media.local_media_processor import LocalMediaProcessor
from src.providers.media.openai_media_processor import OpenAIMediaProcessor

__all__ = [
    "FallbackMediaProcessor",
    "GoogleMediaProcessor",
    "LocalMediaProcessor",
    "OpenAIMediaProcessor",
]
