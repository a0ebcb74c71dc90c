"""Image payload decoding and encoding."""

import base64
import binascii
import re

from landmark_guide.domain.errors import MalformedInputError
from landmark_guide.domain.guide import ImagePayload

_DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z+.-]+);base64,(.+)$", re.DOTALL)


def payload_from_upload(
    data: bytes, content_type: str | None, max_bytes: int | None = None
) -> ImagePayload:
    """Build an image payload from raw uploaded bytes."""
    if not data:
        raise MalformedInputError("Uploaded image is empty")
    if max_bytes is not None and len(data) > max_bytes:
        raise MalformedInputError(
            f"Uploaded image is too large ({len(data)} bytes, limit {max_bytes})"
        )
    resolved_type = _normalize_content_type(content_type) or detect_mime_type(data)
    if not resolved_type.startswith("image/"):
        raise MalformedInputError(f"Unsupported content type: {resolved_type}")
    return ImagePayload(data=data, content_type=resolved_type)


def payload_from_data_url(data_url: str) -> ImagePayload:
    """Parse a base64 ``data:`` URL into an image payload."""
    match = _DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        raise MalformedInputError("Invalid image format")
    mime_type, encoded = match.groups()
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedInputError("Image data is not valid base64") from exc
    if not data:
        raise MalformedInputError("Image data is empty")
    return ImagePayload(data=data, content_type=mime_type)


def to_data_url(image: ImagePayload) -> str:
    """Convert a payload to a base64 data URL for image input."""
    encoded = base64.b64encode(image.data).decode("utf-8")
    return f"data:{image.content_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"


def _normalize_content_type(content_type: str | None) -> str | None:
    if content_type is None:
        return None
    cleaned = content_type.split(";", 1)[0].strip().lower()
    if cleaned in {"", "application/octet-stream"}:
        return None
    return cleaned
