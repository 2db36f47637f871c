from __future__ import annotations

from typing import Iterator, Sequence

from ..backends.imaging import encode_image, ensure_encoder
from ..loader import Loaded
from ..models import ContentKind, ConversionMode, ConversionOptions, ConversionResult
from .base import BaseAdapter


class ImageRecodeAdapter(BaseAdapter):
    mode = ConversionMode.IMAGE_RECODE

    def convert(self, loaded: Sequence[Loaded], options: ConversionOptions) -> Iterator[ConversionResult]:
        ensure_encoder(options.target)
        for item in self._images(loaded):
            payload = encode_image(item.image, options.target, options.quality)
            yield ConversionResult(
                name=f"{item.base_name}{options.target.extension}",
                data=payload,
                kind=ContentKind.IMAGE,
            )
