"""Local media processor: Tesseract, faster-whisper, ffmpeg and PyMuPDF.

Runs entirely on the host with no API costs:

* images  → Tesseract OCR via ``pytesseract`` + Pillow
* audio   → ``faster-whisper`` (CTranslate2) transcription
* video   → ``ffmpeg`` extracts a mono 16 kHz WAV track, then Whisper
* PDF     → PyMuPDF (``fitz``) text-layer extraction

Every backend call blocks, so each one runs in a worker thread
(``asyncio.to_thread``) or a subprocess (``asyncio.create_subprocess_exec``).
"""

from __future__ import annotations

import asyncio
import io
import tempfile
from pathlib import Path

import httpx
import pytesseract
import structlog
from PIL import Image

from src.config.settings import Settings
from src.interfaces.media_processor import IMediaProcessor, MediaInput, read_media
from src.utils.errors import ConfigurationError, MediaProcessingError

logger = structlog.get_logger(logger_name=__name__)

_VIDEO_SUFFIXES: dict[str, str] = {
    "video/mp4": ".mp4",
    "video/mpeg": ".mpeg",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}


class LocalMediaProcessor(IMediaProcessor):
    """Media-to-text conversion using locally installed tools.

    Parameters
    ----------
    settings:
        Must provide ``tesseract_path``, ``whisper_model`` and
        ``ffmpeg_path``; a missing one raises :class:`ConfigurationError`.
    http_client:
        Used only to download images for :meth:`process_image_url`.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        missing = [
            name
            for name, value in (
                ("TESSERACT_PATH", settings.tesseract_path),
                ("WHISPER_MODEL", settings.whisper_model),
                ("FFMPEG_PATH", settings.ffmpeg_path),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                message=f"Local media processor requires {', '.join(missing)}",
                provider_name="local_media",
            )
        self._tesseract_path = settings.tesseract_path
        # pytesseract keeps the binary path in a module global.
        pytesseract.pytesseract.tesseract_cmd = self._tesseract_path
        self._whisper_model_name = settings.whisper_model
        self._ffmpeg_path = settings.ffmpeg_path
        self._http = http_client
        self._whisper = None

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def process_image(self, data: MediaInput, mime_type: str) -> str:
        payload = read_media(data)
        try:
            text = await asyncio.to_thread(self._ocr, payload)
        except (pytesseract.TesseractError, OSError) as exc:
            raise MediaProcessingError(
                message=f"Tesseract OCR failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("tesseract_ocr_complete", chars=len(text))
        return text

    def _ocr(self, payload: bytes) -> str:
        with Image.open(io.BytesIO(payload)) as image:
            return pytesseract.image_to_string(image.convert("RGB")).strip()

    async def process_image_url(self, image_url: str) -> str:
        try:
            response = await self._http.get(image_url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise MediaProcessingError(
                message=f"Failed to download image {image_url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return await self.process_image(response.content, response.headers.get("content-type", ""))

    async def process_multiple_images(
        self,
        images: list[MediaInput],
        mime_types: list[str],
    ) -> str:
        texts = []
        for image, mime_type in zip(images, mime_types):
            text = await self.process_image(image, mime_type)
            if text:
                texts.append(text)
        return "\n\n".join(texts)

    # ------------------------------------------------------------------
    # Audio / video
    # ------------------------------------------------------------------

    async def process_audio(self, data: MediaInput, mime_type: str) -> str:
        payload = read_media(data)
        try:
            text = await asyncio.to_thread(self._transcribe, payload)
        except (RuntimeError, ValueError, OSError) as exc:
            raise MediaProcessingError(
                message=f"Whisper transcription failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("whisper_local_transcription_complete", mime_type=mime_type, chars=len(text))
        return text

    def _transcribe(self, payload: bytes) -> str:
        if self._whisper is None:
            # Loaded on first use.
            from faster_whisper import WhisperModel

            self._whisper = WhisperModel(self._whisper_model_name, device="cpu", compute_type="int8")
            logger.info("whisper_model_loaded", model=self._whisper_model_name)

        segments, _info = self._whisper.transcribe(io.BytesIO(payload), beam_size=5)
        return " ".join(seg.text.strip() for seg in segments if seg.text.strip())

    async def process_video(self, data: MediaInput, mime_type: str) -> str:
        wav = await self._extract_audio_track(read_media(data), _VIDEO_SUFFIXES.get(mime_type, ".mp4"))
        return await self.process_audio(wav, "audio/wav")

    async def _extract_audio_track(self, payload: bytes, suffix: str) -> bytes:
        """Return the video's audio as mono 16 kHz WAV bytes."""
        # ffmpeg needs a seekable input for containers with a trailing index (mp4/mov).
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / f"input{suffix}"
            source.write_bytes(payload)
            try:
                process = await asyncio.create_subprocess_exec(
                    self._ffmpeg_path,
                    "-nostdin",
                    "-loglevel", "error",
                    "-i", str(source),
                    "-vn",
                    "-ac", "1",
                    "-ar", "16000",
                    "-f", "wav",
                    "pipe:1",
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
                stdout, stderr = await process.communicate()
            except OSError as exc:
                raise MediaProcessingError(
                    message=f"Could not run ffmpeg at {self._ffmpeg_path}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

        if process.returncode != 0:
            raise MediaProcessingError(
                message=f"ffmpeg exited with {process.returncode}: {stderr.decode(errors='replace').strip()}",
                provider_name=self.get_provider_name(),
            )
        logger.debug("ffmpeg_audio_extracted", wav_bytes=len(stdout))
        return stdout

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    async def process_pdf(self, data: MediaInput) -> str:
        payload = read_media(data)
        try:
            text = await asyncio.to_thread(self._pdf_text, payload)
        except (RuntimeError, ValueError) as exc:
            raise MediaProcessingError(
                message=f"PDF text extraction failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("pdf_text_extracted", chars=len(text))
        return text

    @staticmethod
    def _pdf_text(payload: bytes) -> str:
        import fitz  # PyMuPDF

        with fitz.open(stream=payload, filetype="pdf") as doc:
            pages = [page.get_text().strip() for page in doc]
        return "\n\n".join(p for p in pages if p)

    def get_provider_name(self) -> str:
        return "local_media"
