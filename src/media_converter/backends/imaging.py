"""Raster decode/encode on top of Pillow."""

from __future__ import annotations

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import EncodeUnsupported, UnreadableInput
from ..models import ImageFormat

_ALPHA_MODES = {"RGBA", "LA", "PA"}
_NATIVE_MODES = {"RGB", "RGBA", "L", "LA"}


def decode_image(data: bytes, name: str = "image") -> Image.Image:
    """Decode *data* into a fully loaded, orientation-corrected image."""
    if not data:
        raise UnreadableInput(f"{name} is empty")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise UnreadableInput(f"{name} could not be decoded as an image: {exc}") from exc
    return ImageOps.exif_transpose(image)


def has_alpha(image: Image.Image) -> bool:
    return image.mode in _ALPHA_MODES or "transparency" in image.info


def flatten(image: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite *image* onto an opaque RGB background."""
    if not has_alpha(image):
        return image if image.mode == "RGB" else image.convert("RGB")
    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background)
    canvas.paste(rgba, mask=rgba.getchannel("A"))
    return canvas


def ensure_encoder(fmt: ImageFormat) -> None:
    Image.init()
    if fmt.pillow_format not in Image.SAVE:
        raise EncodeUnsupported(f"Installed Pillow cannot write {fmt.value}")


def _prepare(image: Image.Image, fmt: ImageFormat) -> Image.Image:
    if not fmt.supports_alpha:
        return flatten(image)
    if image.mode in _NATIVE_MODES:
        return image
    return image.convert("RGBA" if has_alpha(image) else "RGB")


def encode_image(image: Image.Image, fmt: ImageFormat, quality: int = 92) -> bytes:
    ensure_encoder(fmt)
    prepared = _prepare(image, fmt)
    params: dict[str, object] = {}
    if fmt in {ImageFormat.JPEG, ImageFormat.WEBP}:
        params["quality"] = quality
    buffer = io.BytesIO()
    try:
        prepared.save(buffer, format=fmt.pillow_format, **params)
    except (OSError, KeyError, ValueError) as exc:
        raise EncodeUnsupported(f"Encoding to {fmt.value} failed: {exc}") from exc
    return buffer.getvalue()


__all__ = ["decode_image", "encode_image", "ensure_encoder", "flatten", "has_alpha"]
