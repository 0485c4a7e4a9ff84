"""Abstract base class for media-to-text converters.

Defines the contract for turning non-text media (images, audio, video, PDF)
into plain text that can be chunked and embedded.  Implementations wrap a
vision LLM + Whisper, Google Cloud Vision/Speech, or local tools
(Tesseract, faster-whisper, ffmpeg, PyMuPDF).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO, Union

# Media payloads arrive either as raw bytes or as a readable binary stream
# (e.g. an uploaded file handle).  Use ``read_media`` to normalise.
MediaInput = Union[bytes, bytearray, BinaryIO]


def read_media(data: MediaInput) -> bytes:
    """Return the full payload of *data* as ``bytes``."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return data.read()


# Concrete implementations:
#   OpenAIMediaProcessor   — GPT vision + Whisper (vision-model-backed)
#   GoogleMediaProcessor   — Cloud Vision OCR + Cloud Speech (cloud-backed)
#   LocalMediaProcessor    — Tesseract, faster-whisper, ffmpeg, PyMuPDF
#   FallbackMediaProcessor — composite trying the above in priority order
# Located in: src/providers/media/
class IMediaProcessor(ABC):
    """Contract for converting media to text.

    A variant may legitimately not support a given media kind; it then
    raises :class:`~src.utils.errors.MediaNotSupportedError`.  Backend
    failures raise :class:`~src.utils.errors.MediaProcessingError`.
    """

    @abstractmethod
    async def process_image(self, data: MediaInput, mime_type: str) -> str:
        """Extract text from an image, or describe it if it has none."""

    @abstractmethod
    async def process_image_url(self, image_url: str) -> str:
        """Extract text from an image referenced by URL."""

    @abstractmethod
    async def process_multiple_images(
        self,
        images: list[MediaInput],
        mime_types: list[str],
    ) -> str:
        """Extract text from several images; results are joined by blank lines."""

    @abstractmethod
    async def process_audio(self, data: MediaInput, mime_type: str) -> str:
        """Transcribe an audio file."""

    @abstractmethod
    async def process_video(self, data: MediaInput, mime_type: str) -> str:
        """Transcribe the audio track of a video file."""

    @abstractmethod
    async def process_pdf(self, data: MediaInput) -> str:
        """Extract the text layer of a PDF document."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this processor."""
