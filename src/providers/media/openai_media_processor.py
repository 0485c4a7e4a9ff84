"""OpenAI media processor: GPT vision for images, Whisper for audio/video.

Wraps the ``openai`` async client to implement :class:`IMediaProcessor`.
Images are sent to the vision model as base64 data URIs together with an
extract-or-describe prompt, so an image without readable text still yields
useful training content.  Audio and video files are uploaded to the Whisper
transcription endpoint as-is (Whisper accepts mp4/webm containers and reads
the audio track itself).
"""

from __future__ import annotations

import base64

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.media_processor import IMediaProcessor, MediaInput, read_media
from src.utils.errors import MediaNotSupportedError, MediaProcessingError

logger = structlog.get_logger(logger_name=__name__)

_VISION_PROMPT = (
    "Extract all text from this image. If there's no readable text, provide a "
    "detailed description of what you see in the image. Focus on information "
    "that would be useful for training a knowledge base."
)

# Whisper infers the container format from the upload's file name.
_AUDIO_EXTENSIONS: dict[str, str] = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mp4": "m4a",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/flac": "flac",
}

_VIDEO_EXTENSIONS: dict[str, str] = {
    "video/mp4": "mp4",
    "video/mpeg": "mpeg",
    "video/webm": "webm",
    "video/quicktime": "mov",
}


class OpenAIMediaProcessor(IMediaProcessor):
    """Media-to-text conversion backed by OpenAI vision and Whisper models."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._vision_model = settings.openai_vision_model
        self._transcription_model = settings.openai_transcription_model

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def process_image(self, data: MediaInput, mime_type: str) -> str:
        b64 = base64.b64encode(read_media(data)).decode("utf-8")
        return await self._vision(f"data:{mime_type or 'image/jpeg'};base64,{b64}")

    async def process_image_url(self, image_url: str) -> str:
        return await self._vision(image_url)

    async def process_multiple_images(
        self,
        images: list[MediaInput],
        mime_types: list[str],
    ) -> str:
        if len(images) != len(mime_types):
            raise MediaProcessingError(
                message=f"Got {len(images)} images but {len(mime_types)} MIME types",
                provider_name=self.get_provider_name(),
            )
        texts = []
        for image, mime_type in zip(images, mime_types):
            text = await self.process_image(image, mime_type)
            if text:
                texts.append(text)
        return "\n\n".join(texts)

    async def _vision(self, url: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": _VISION_PROMPT},
                            {"type": "image_url", "image_url": {"url": url}},
                        ],
                    }
                ],
                max_tokens=1000,
            )
        except openai.APIError as exc:
            raise MediaProcessingError(
                message=f"OpenAI vision API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            raise MediaProcessingError(
                message="OpenAI vision returned no choices",
                provider_name=self.get_provider_name(),
            )
        content = response.choices[0].message.content or ""
        logger.info(
            "openai_vision_extract",
            model=self._vision_model,
            chars=len(content),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    # ------------------------------------------------------------------
    # Audio / video
    # ------------------------------------------------------------------

    async def process_audio(self, data: MediaInput, mime_type: str) -> str:
        extension = _AUDIO_EXTENSIONS.get(mime_type, "mp3")
        return await self._transcribe(read_media(data), f"audio.{extension}")

    async def process_video(self, data: MediaInput, mime_type: str) -> str:
        extension = _VIDEO_EXTENSIONS.get(mime_type, "mp4")
        return await self._transcribe(read_media(data), f"video.{extension}")

    async def _transcribe(self, payload: bytes, filename: str) -> str:
        try:
            response = await self._client.audio.transcriptions.create(
                model=self._transcription_model,
                file=(filename, payload),
            )
        except openai.APIError as exc:
            raise MediaProcessingError(
                message=f"OpenAI transcription API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_transcription_complete",
            model=self._transcription_model,
            filename=filename,
            chars=len(response.text),
        )
        return response.text

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    async def process_pdf(self, data: MediaInput) -> str:
        raise MediaNotSupportedError(
            message="PDF processing is not supported by the OpenAI media processor",
            provider_name=self.get_provider_name(),
        )

    def get_provider_name(self) -> str:
        return "openai_media"
