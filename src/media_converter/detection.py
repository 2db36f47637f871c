from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class InputKind(str, Enum):
    RASTER = "raster"
    DOCUMENT = "document"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class DetectionResult:
    kind: InputKind
    mime_type: str


_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"%PDF", "application/pdf"),
)


class DetectionError(RuntimeError):
    """Raised when format detection fails."""


def sniff_mime(data: bytes) -> str:
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    return "application/octet-stream"


def detect_input_kind(data: bytes) -> DetectionResult:
    if not data:
        raise DetectionError("Input is empty")
    mime = sniff_mime(data)
    if mime == "application/pdf":
        return DetectionResult(kind=InputKind.DOCUMENT, mime_type=mime)
    if mime.startswith("image/"):
        return DetectionResult(kind=InputKind.RASTER, mime_type=mime)
    return DetectionResult(kind=InputKind.UNKNOWN, mime_type=mime)
