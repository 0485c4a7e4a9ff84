"""Unit tests for FallbackMediaProcessor — ordered fallback across processors."""

from __future__ import annotations

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from structlog.testing import capture_logs

from src.interfaces.media_processor import IMediaProcessor
from src.providers.media.fallback_media_processor import FallbackMediaProcessor
from src.utils.errors import (
    AllMediaProcessorsFailedError,
    MediaNotSupportedError,
    MediaProcessingError,
    NoMediaProcessorsError,
)


def _processor(name: str, **results) -> MagicMock:
    """Build a mock processor; each kwarg is a return value or an exception."""
    processor = MagicMock(spec=IMediaProcessor)
    processor.get_provider_name.return_value = name
    for method in ("process_image", "process_audio", "process_video", "process_pdf"):
        outcome = results.get(method, f"{name}:{method}")
        if isinstance(outcome, Exception):
            setattr(processor, method, AsyncMock(side_effect=outcome))
        else:
            setattr(processor, method, AsyncMock(return_value=outcome))
    return processor


class TestFallbackMediaProcessor:
    @pytest.mark.asyncio
    async def test_first_success_wins(self) -> None:
        first = _processor("first")
        second = _processor("second")
        chain = FallbackMediaProcessor([first, second])

        assert await chain.process_audio(b"wav", "audio/wav") == "first:process_audio"
        second.process_audio.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_through_on_failure(self) -> None:
        first = _processor("first", process_image=MediaProcessingError(message="quota"))
        second = _processor("second")
        chain = FallbackMediaProcessor([first, second])

        assert await chain.process_image(b"png", "image/png") == "second:process_image"
        first.process_image.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unsupported_media_falls_through(self) -> None:
        cloud = _processor("cloud", process_pdf=MediaNotSupportedError(message="no pdf"))
        local = _processor("local", process_pdf="pdf text")
        chain = FallbackMediaProcessor([cloud, local])

        assert await chain.process_pdf(b"%PDF") == "pdf text"

    @pytest.mark.asyncio
    async def test_unexpected_exceptions_also_fall_through(self) -> None:
        first = _processor("first", process_video=RuntimeError("segfault-ish"))
        second = _processor("second")
        chain = FallbackMediaProcessor([first, second])

        assert await chain.process_video(b"mp4", "video/mp4") == "second:process_video"

    @pytest.mark.asyncio
    async def test_intermediate_failures_are_not_logged(self) -> None:
        first = _processor("first", process_image=MediaProcessingError(message="first broke"))
        second = _processor("second", process_image="ok")
        chain = FallbackMediaProcessor([first, second])

        with capture_logs() as logs:
            assert await chain.process_image(b"png", "image/png") == "ok"

        assert not [entry for entry in logs if entry["log_level"] in ("warning", "error")]
        assert all("first broke" not in str(entry.values()) for entry in logs)
        assert [entry["provider"] for entry in logs if entry["event"] == "media_processor_succeeded"] == ["second"]

    @pytest.mark.asyncio
    async def test_all_failures_report_last_error(self) -> None:
        first_error = MediaProcessingError(message="first broke")
        last_error = MediaProcessingError(message="second broke")
        chain = FallbackMediaProcessor(
            [_processor("first", process_audio=first_error), _processor("second", process_audio=last_error)]
        )

        with pytest.raises(AllMediaProcessorsFailedError, match="All processors failed: second broke") as exc_info:
            await chain.process_audio(b"wav", "audio/wav")
        assert exc_info.value.__cause__ is last_error

    @pytest.mark.asyncio
    async def test_empty_chain_raises(self) -> None:
        chain = FallbackMediaProcessor([])

        with pytest.raises(NoMediaProcessorsError):
            await chain.process_image(b"png", "image/png")

    @pytest.mark.asyncio
    async def test_stream_is_read_once_for_every_processor(self) -> None:
        first = _processor("first", process_audio=MediaProcessingError(message="down"))
        second = _processor("second")
        chain = FallbackMediaProcessor([first, second])

        await chain.process_audio(io.BytesIO(b"payload"), "audio/mpeg")

        first.process_audio.assert_awaited_once_with(b"payload", "audio/mpeg")
        second.process_audio.assert_awaited_once_with(b"payload", "audio/mpeg")

    def test_provider_name_and_processors(self) -> None:
        first = _processor("first")
        chain = FallbackMediaProcessor([first])

        assert chain.get_provider_name() == "fallback_media"
        assert chain.processors == [first]
