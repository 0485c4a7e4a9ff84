"""Google Cloud media processor: Vision OCR and Speech-to-Text over REST.

Uses the ``images:annotate`` (``TEXT_DETECTION``) and ``speech:recognize``
REST endpoints with an API key, through an injected ``httpx.AsyncClient``.
No Google SDK is required.

Speech settings: 16 kHz sample rate, automatic punctuation, and the
language from ``GOOGLE_SPEECH_LANGUAGE`` (default ``en-US``).  Synchronous
recognition only accepts about one minute of audio; longer files come back
as a backend error.
"""

from __future__ import annotations

import base64
from typing import Any

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.media_processor import IMediaProcessor, MediaInput, read_media
from src.utils.errors import MediaNotSupportedError, MediaProcessingError

logger = structlog.get_logger(logger_name=__name__)

_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"
_SPEECH_URL = "https://speech.googleapis.com/v1/speech:recognize"

_SAMPLE_RATE_HERTZ = 16000

_SPEECH_ENCODINGS: dict[str, str] = {
    "audio/wav": "LINEAR16",
    "audio/x-wav": "LINEAR16",
    "audio/wave": "LINEAR16",
    "audio/mpeg": "MP3",
    "audio/mp3": "MP3",
    "audio/flac": "FLAC",
    "audio/x-flac": "FLAC",
    "audio/ogg": "OGG_OPUS",
    "audio/webm": "WEBM_OPUS",
}


class GoogleMediaProcessor(IMediaProcessor):
    """Media-to-text conversion backed by Google Cloud Vision and Speech."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._api_key = settings.google_api_key
        self._language = settings.google_speech_language
        self._http = http_client

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def process_image(self, data: MediaInput, mime_type: str) -> str:
        texts = await self._annotate([read_media(data)])
        return texts[0]

    async def process_image_url(self, image_url: str) -> str:
        try:
            response = await self._http.get(image_url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise MediaProcessingError(
                message=f"Failed to download image {image_url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        texts = await self._annotate([response.content])
        return texts[0]

    async def process_multiple_images(
        self,
        images: list[MediaInput],
        mime_types: list[str],
    ) -> str:
        if not images:
            return ""
        texts = await self._annotate([read_media(image) for image in images])
        return "\n\n".join(text for text in texts if text)

    async def _annotate(self, payloads: list[bytes]) -> list[str]:
        """Run TEXT_DETECTION on every payload in one batch request."""
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(payload).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
                for payload in payloads
            ]
        }
        result = await self._post(_VISION_URL, body)

        responses = result.get("responses", [])
        texts: list[str] = []
        for item in responses:
            if "error" in item:
                raise MediaProcessingError(
                    message=f"Vision API error: {item['error'].get('message', item['error'])}",
                    provider_name=self.get_provider_name(),
                )
            annotations = item.get("textAnnotations") or []
            # The first annotation holds the full detected text.
            texts.append(annotations[0].get("description", "") if annotations else "")

        # Missing entries mean "no text detected".
        texts.extend([""] * (len(payloads) - len(texts)))
        logger.info(
            "google_vision_text_detection",
            images=len(payloads),
            with_text=sum(1 for t in texts if t),
        )
        return texts

    # ------------------------------------------------------------------
    # Audio / video
    # ------------------------------------------------------------------

    async def process_audio(self, data: MediaInput, mime_type: str) -> str:
        return await self._recognize(read_media(data), mime_type)

    async def process_video(self, data: MediaInput, mime_type: str) -> str:
        # Speech has no video container support; the payload is submitted as
        # LINEAR16 and the backend rejects anything it cannot decode.
        return await self._recognize(read_media(data), "audio/wav")

    async def _recognize(self, payload: bytes, mime_type: str) -> str:
        body = {
            "config": {
                "encoding": _SPEECH_ENCODINGS.get(mime_type, "ENCODING_UNSPECIFIED"),
                "sampleRateHertz": _SAMPLE_RATE_HERTZ,
                "languageCode": self._language,
                "enableAutomaticPunctuation": True,
            },
            "audio": {"content": base64.b64encode(payload).decode("ascii")},
        }
        result = await self._post(_SPEECH_URL, body)

        transcripts = [
            alternatives[0].get("transcript", "")
            for alternatives in (r.get("alternatives") or [] for r in result.get("results", []))
            if alternatives
        ]
        transcript = " ".join(t.strip() for t in transcripts if t.strip())
        logger.info(
            "google_speech_recognized",
            mime_type=mime_type,
            segments=len(transcripts),
            chars=len(transcript),
        )
        return transcript

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    async def process_pdf(self, data: MediaInput) -> str:
        raise MediaNotSupportedError(
            message="PDF processing is not supported by the Google media processor",
            provider_name=self.get_provider_name(),
        )

    def get_provider_name(self) -> str:
        return "google_media"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.post(url, params={"key": self._api_key}, json=body)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise MediaProcessingError(
                message=f"Google API returned {exc.response.status_code}: {exc.response.text}",
                provider_name=self.get_provider_name(),
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise MediaProcessingError(
                message=f"Google API request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
