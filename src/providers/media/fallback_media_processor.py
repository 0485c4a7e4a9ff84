"""Media processor fallback chain.

Wraps a priority-ordered list of :class:`IMediaProcessor` variants and is
itself an :class:`IMediaProcessor`.  Each operation tries the processors in
order and returns the first success.

Architecture: Fallback Chain Pattern
-------------------------------------
Unlike the quality-scored OCR chains, media conversion has no confidence
score: the first processor that returns without raising wins.  Failures of
earlier processors are discarded silently; when every processor fails the
caller receives :class:`AllMediaProcessorsFailedError` chained to the *last*
failure only.  A chain built with no processors raises
:class:`NoMediaProcessorsError` on every call.

Payloads are read to ``bytes`` once up front, so a processor that consumed a
stream cannot starve the next one.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.interfaces.media_processor import IMediaProcessor, MediaInput, read_media
from src.utils.errors import AllMediaProcessorsFailedError, NoMediaProcessorsError
from src.utils.logging import get_logger

T = TypeVar("T")


class FallbackMediaProcessor(IMediaProcessor):
    """Tries each configured media processor in order until one succeeds."""

    def __init__(self, processors: list[IMediaProcessor]) -> None:
        self._processors = list(processors)
        self._logger = get_logger(__name__)

    @property
    def processors(self) -> list[IMediaProcessor]:
        return list(self._processors)

    # ------------------------------------------------------------------
    # IMediaProcessor implementation
    # ------------------------------------------------------------------

    async def process_image(self, data: MediaInput, mime_type: str) -> str:
        payload = read_media(data)
        return await self._run("process_image", lambda p: p.process_image(payload, mime_type))

    async def process_image_url(self, image_url: str) -> str:
        return await self._run("process_image_url", lambda p: p.process_image_url(image_url))

    async def process_multiple_images(
        self,
        images: list[MediaInput],
        mime_types: list[str],
    ) -> str:
        payloads = [read_media(image) for image in images]
        return await self._run(
            "process_multiple_images",
            lambda p: p.process_multiple_images(list(payloads), mime_types),
        )

    async def process_audio(self, data: MediaInput, mime_type: str) -> str:
        payload = read_media(data)
        return await self._run("process_audio", lambda p: p.process_audio(payload, mime_type))

    async def process_video(self, data: MediaInput, mime_type: str) -> str:
        payload = read_media(data)
        return await self._run("process_video", lambda p: p.process_video(payload, mime_type))

    async def process_pdf(self, data: MediaInput) -> str:
        payload = read_media(data)
        return await self._run("process_pdf", lambda p: p.process_pdf(payload))

    def get_provider_name(self) -> str:
        return "fallback_media"

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        call: Callable[[IMediaProcessor], Awaitable[T]],
    ) -> T:
        if not self._processors:
            raise NoMediaProcessorsError(provider_name=self.get_provider_name())

        last_error: Exception | None = None
        for processor in self._processors:
            name = processor.get_provider_name()
            try:
                result = await call(processor)
            except Exception as exc:
                last_error = exc
                continue
            self._logger.info("media_processor_succeeded", operation=operation, provider=name)
            return result

        raise AllMediaProcessorsFailedError(
            message=f"All processors failed: {last_error}",
            provider_name=self.get_provider_name(),
        ) from last_error
