"""Unit tests for media processors — OpenAI, Google Cloud, local tools."""

from __future__ import annotations

import base64
import io
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
import pytesseract
from PIL import Image

from src.config.settings import Settings
from src.providers.media.google_media_processor import GoogleMediaProcessor
from src.providers.media.local_media_processor import LocalMediaProcessor
from src.providers.media.openai_media_processor import OpenAIMediaProcessor
from src.utils.errors import ConfigurationError, MediaNotSupportedError, MediaProcessingError


def _settings(**overrides) -> Settings:
    defaults = {
        "_env_file": None,
        "openai_api_key": "sk-test",
        "google_api_key": "g-test",
        "tesseract_path": "/usr/bin/tesseract",
        "whisper_model": "base",
        "ffmpeg_path": "/usr/bin/ffmpeg",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), "white").save(buffer, format="PNG")
    return buffer.getvalue()


# ======================================================================
# OpenAI media processor
# ======================================================================


def _chat_response(content: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=42)
    return response


class TestOpenAIMediaProcessor:
    @pytest.fixture()
    def client(self) -> AsyncMock:
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(return_value=_chat_response("MENU: coffee 3"))
        client.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text="hello from whisper"))
        return client

    @pytest.fixture()
    def processor(self, client: AsyncMock) -> OpenAIMediaProcessor:
        with patch(
            "src.providers.media.openai_media_processor.openai.AsyncOpenAI",
            return_value=client,
        ):
            return OpenAIMediaProcessor(_settings())

    @pytest.mark.asyncio
    async def test_image_is_sent_as_data_uri(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        text = await processor.process_image(b"img-bytes", "image/png")

        assert text == "MENU: coffee 3"
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 1000
        parts = kwargs["messages"][0]["content"]
        assert "Extract all text from this image" in parts[0]["text"]
        expected_uri = "data:image/png;base64," + base64.b64encode(b"img-bytes").decode()
        assert parts[1]["image_url"]["url"] == expected_uri

    @pytest.mark.asyncio
    async def test_image_url_is_passed_through(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        await processor.process_image_url("https://example.com/poster.jpg")

        parts = client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert parts[1]["image_url"]["url"] == "https://example.com/poster.jpg"

    @pytest.mark.asyncio
    async def test_streams_are_read(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        await processor.process_image(io.BytesIO(b"streamed"), "image/jpeg")

        parts = client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert parts[1]["image_url"]["url"].endswith(base64.b64encode(b"streamed").decode())

    @pytest.mark.asyncio
    async def test_multiple_images_joined_in_order(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        client.chat.completions.create = AsyncMock(
            side_effect=[_chat_response("first"), _chat_response("second")]
        )

        text = await processor.process_multiple_images([b"a", b"b"], ["image/png", "image/png"])

        assert text == "first\n\nsecond"

    @pytest.mark.asyncio
    async def test_multiple_images_length_mismatch(self, processor: OpenAIMediaProcessor) -> None:
        with pytest.raises(MediaProcessingError):
            await processor.process_multiple_images([b"a", b"b"], ["image/png"])

    @pytest.mark.asyncio
    async def test_audio_filename_follows_mime_type(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        text = await processor.process_audio(b"wav-bytes", "audio/wav")

        assert text == "hello from whisper"
        kwargs = client.audio.transcriptions.create.await_args.kwargs
        assert kwargs["model"] == "whisper-1"
        assert kwargs["file"] == ("audio.wav", b"wav-bytes")

    @pytest.mark.asyncio
    async def test_video_uploaded_as_container(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        await processor.process_video(b"mov-bytes", "video/quicktime")

        assert client.audio.transcriptions.create.await_args.kwargs["file"] == ("video.mov", b"mov-bytes")

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self, processor: OpenAIMediaProcessor, client: AsyncMock) -> None:
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.test"))
        )

        with pytest.raises(MediaProcessingError) as exc_info:
            await processor.process_image(b"x", "image/png")
        assert exc_info.value.provider_name == "openai_media"

    @pytest.mark.asyncio
    async def test_pdf_not_supported(self, processor: OpenAIMediaProcessor) -> None:
        with pytest.raises(MediaNotSupportedError):
            await processor.process_pdf(b"%PDF-1.4")


# ======================================================================
# Google media processor
# ======================================================================


def _google(handler) -> GoogleMediaProcessor:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleMediaProcessor(_settings(google_speech_language="de-DE"), client)


class TestGoogleMediaProcessor:
    @pytest.mark.asyncio
    async def test_text_detection_returns_full_text(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"responses": [{"textAnnotations": [{"description": "OPEN 9-5"}, {"description": "OPEN"}]}]},
            )

        text = await _google(handler).process_image(b"png", "image/png")

        assert text == "OPEN 9-5"
        assert seen[0].url.params["key"] == "g-test"
        body = json.loads(seen[0].content)
        assert body["requests"][0]["features"] == [{"type": "TEXT_DETECTION"}]
        assert body["requests"][0]["image"]["content"] == base64.b64encode(b"png").decode()

    @pytest.mark.asyncio
    async def test_image_without_text_returns_empty(self) -> None:
        processor = _google(lambda request: httpx.Response(200, json={"responses": [{}]}))
        assert await processor.process_image(b"png", "image/png") == ""

    @pytest.mark.asyncio
    async def test_per_image_error_raises(self) -> None:
        processor = _google(
            lambda request: httpx.Response(200, json={"responses": [{"error": {"message": "bad image"}}]})
        )
        with pytest.raises(MediaProcessingError, match="bad image"):
            await processor.process_image(b"png", "image/png")

    @pytest.mark.asyncio
    async def test_multiple_images_in_one_batch(self) -> None:
        calls: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={"responses": [{"textAnnotations": [{"description": "one"}]}, {}, {"textAnnotations": [{"description": "three"}]}]},
            )

        text = await _google(handler).process_multiple_images([b"1", b"2", b"3"], ["image/png"] * 3)

        assert text == "one\n\nthree"
        assert len(calls) == 1
        assert len(calls[0]["requests"]) == 3

    @pytest.mark.asyncio
    async def test_image_url_is_downloaded_first(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, content=b"downloaded")
            body = json.loads(request.content)
            assert body["requests"][0]["image"]["content"] == base64.b64encode(b"downloaded").decode()
            return httpx.Response(200, json={"responses": [{"textAnnotations": [{"description": "SIGN"}]}]})

        assert await _google(handler).process_image_url("https://example.com/sign.png") == "SIGN"

    @pytest.mark.asyncio
    async def test_speech_config_and_transcript_join(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"alternatives": [{"transcript": "Guten Tag."}]},
                        {"alternatives": [{"transcript": " Wie geht's?"}]},
                    ]
                },
            )

        text = await _google(handler).process_audio(b"flac", "audio/flac")

        assert text == "Guten Tag. Wie geht's?"
        config = bodies[0]["config"]
        assert config["encoding"] == "FLAC"
        assert config["sampleRateHertz"] == 16000
        assert config["languageCode"] == "de-DE"
        assert config["enableAutomaticPunctuation"] is True

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self) -> None:
        processor = _google(lambda request: httpx.Response(403, text="API key invalid"))

        with pytest.raises(MediaProcessingError, match="403") as exc_info:
            await processor.process_audio(b"x", "audio/wav")
        assert exc_info.value.provider_name == "google_media"

    @pytest.mark.asyncio
    async def test_pdf_not_supported(self) -> None:
        with pytest.raises(MediaNotSupportedError):
            await _google(lambda request: httpx.Response(200)).process_pdf(b"%PDF")


# ======================================================================
# Local media processor
# ======================================================================


class TestLocalMediaProcessor:
    @pytest.fixture()
    def processor(self) -> LocalMediaProcessor:
        return LocalMediaProcessor(_settings(), MagicMock(spec=httpx.AsyncClient))

    @pytest.mark.parametrize("missing", ["tesseract_path", "whisper_model", "ffmpeg_path"])
    def test_requires_every_tool(self, missing: str) -> None:
        with pytest.raises(ConfigurationError, match=missing.upper()):
            LocalMediaProcessor(_settings(**{missing: ""}), MagicMock(spec=httpx.AsyncClient))

    def test_tesseract_binary_is_set_at_construction(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")

        LocalMediaProcessor(_settings(), MagicMock(spec=httpx.AsyncClient))

        assert pytesseract.pytesseract.tesseract_cmd == "/usr/bin/tesseract"

    @pytest.mark.asyncio
    async def test_image_ocr_does_not_touch_the_binary_path(
        self, processor: LocalMediaProcessor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "/opt/other/tesseract")
        with patch(
            "src.providers.media.local_media_processor.pytesseract.image_to_string",
            return_value="  EXIT  \n",
        ) as ocr:
            text = await processor.process_image(_png_bytes(), "image/png")

        assert text == "EXIT"
        ocr.assert_called_once()
        assert pytesseract.pytesseract.tesseract_cmd == "/opt/other/tesseract"

    @pytest.mark.asyncio
    async def test_unreadable_image_raises(self, processor: LocalMediaProcessor) -> None:
        with pytest.raises(MediaProcessingError):
            await processor.process_image(b"not an image", "image/png")

    @pytest.mark.asyncio
    async def test_audio_uses_whisper_segments(self, processor: LocalMediaProcessor) -> None:
        model = MagicMock()
        model.transcribe.return_value = (
            [MagicMock(text=" hello "), MagicMock(text=""), MagicMock(text="world")],
            MagicMock(),
        )
        processor._whisper = model

        assert await processor.process_audio(b"wav", "audio/wav") == "hello world"

    @pytest.mark.asyncio
    async def test_video_goes_through_ffmpeg(self, processor: LocalMediaProcessor) -> None:
        process = MagicMock(returncode=0)
        process.communicate = AsyncMock(return_value=(b"RIFFwav", b""))
        processor.process_audio = AsyncMock(return_value="transcript")

        with patch(
            "src.providers.media.local_media_processor.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as exec_mock:
            text = await processor.process_video(b"mp4", "video/mp4")

        assert text == "transcript"
        args = exec_mock.await_args.args
        assert args[0] == "/usr/bin/ffmpeg"
        assert args[-1] == "pipe:1"
        processor.process_audio.assert_awaited_once_with(b"RIFFwav", "audio/wav")

    @pytest.mark.asyncio
    async def test_ffmpeg_failure_raises(self, processor: LocalMediaProcessor) -> None:
        process = MagicMock(returncode=1)
        process.communicate = AsyncMock(return_value=(b"", b"Invalid data found"))

        with patch(
            "src.providers.media.local_media_processor.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(MediaProcessingError, match="Invalid data found"):
                await processor.process_video(b"junk", "video/mp4")

    @pytest.mark.asyncio
    async def test_pdf_text_layer(self, processor: LocalMediaProcessor) -> None:
        import fitz

        doc = fitz.open()
        for line in ("Refund policy", "Shipping times"):
            page = doc.new_page()
            page.insert_text((72, 72), line)
        payload = doc.tobytes()
        doc.close()

        text = await processor.process_pdf(payload)

        assert text == "Refund policy\n\nShipping times"

    def test_provider_name(self, processor: LocalMediaProcessor) -> None:
        assert processor.get_provider_name() == "local_media"
