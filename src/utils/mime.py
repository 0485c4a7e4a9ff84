"""MIME type detection, validation and document-type mapping for uploads.

Detection sniffs magic bytes (the first few bytes that identify a file
format) rather than trusting a file extension.  Only the formats listed in
``SUPPORTED_MIME_TYPES`` can be trained on.
"""

from __future__ import annotations

from src.models.rag import DocumentType

SUPPORTED_MIME_TYPES = frozenset(
    {
        # Images
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/tiff",
        "image/webp",
        # Audio
        "audio/mpeg",
        "audio/wav",
        "audio/flac",
        "audio/mp4",
        "audio/ogg",
        "audio/aac",
        # Video
        "video/mp4",
        "video/avi",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
        "video/x-flv",
        # Documents
        "application/pdf",
        "text/plain",
    }
)

_OCTET_STREAM = "application/octet-stream"


def normalize_mime_type(mime_type: str) -> str:
    """Lower-case *mime_type* and drop parameters (``text/plain; charset=utf-8`` → ``text/plain``)."""
    return mime_type.split(";", 1)[0].strip().lower()


def detect_mime_type(data: bytes) -> str:
    """Detect the MIME type of *data* from its magic bytes.

    Returns ``application/octet-stream`` when the format is not recognised.
    Valid UTF-8 without NUL bytes is reported as ``text/plain``.
    """
    head = data[:16]

    if head.startswith(b"%PDF-"):
        return "application/pdf"
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if head.startswith((b"II*\x00", b"MM\x00*")):
        return "image/tiff"
    if head.startswith(b"RIFF") and len(head) >= 12:
        form = head[8:12]
        if form == b"WEBP":
            return "image/webp"
        if form == b"WAVE":
            return "audio/wav"
        if form == b"AVI ":
            return "video/x-msvideo"
    if head.startswith(b"BM"):
        return "image/bmp"
    if head.startswith(b"fLaC"):
        return "audio/flac"
    if head.startswith(b"OggS"):
        return "audio/ogg"
    if head.startswith(b"ID3"):
        return "audio/mpeg"
    if head.startswith(b"FLV"):
        return "video/x-flv"
    if head.startswith(b"\x1a\x45\xdf\xa3"):
        return "video/webm"
    if head[4:8] == b"ftyp":
        brand = head[8:12]
        if brand == b"qt  ":
            return "video/quicktime"
        if brand in (b"M4A ", b"M4B "):
            return "audio/mp4"
        return "video/mp4"
    if len(head) >= 2 and head[0] == 0xFF:
        # ADTS (AAC) and MPEG audio frames share the 12-bit sync word.
        if head[1] & 0xF6 == 0xF0:
            return "audio/aac"
        if head[1] & 0xE0 == 0xE0:
            return "audio/mpeg"

    if b"\x00" not in data[:512]:
        try:
            data[:4096].decode("utf-8")
        except UnicodeDecodeError as exc:
            # A multi-byte character cut at the sample boundary is still text.
            if exc.start < len(data[:4096]) - 3:
                return _OCTET_STREAM
        return "text/plain"
    return _OCTET_STREAM


def is_supported_mime_type(mime_type: str) -> bool:
    return normalize_mime_type(mime_type) in SUPPORTED_MIME_TYPES


def document_type_for_mime(mime_type: str) -> DocumentType | None:
    """Map a MIME type to the document type it is ingested as, or ``None``."""
    mime_type = normalize_mime_type(mime_type)
    if mime_type.startswith("image/"):
        return DocumentType.IMAGE
    if mime_type.startswith("audio/"):
        return DocumentType.AUDIO
    if mime_type.startswith("video/"):
        return DocumentType.VIDEO
    if mime_type == "application/pdf":
        return DocumentType.PDF
    if mime_type.startswith("text/"):
        return DocumentType.TEXT
    return None
