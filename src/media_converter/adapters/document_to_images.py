from __future__ import annotations

from typing import Iterator, Sequence

from ..backends.imaging import encode_image, ensure_encoder
from ..errors import EmptyBatch
from ..loader import Loaded
from ..models import ContentKind, ConversionMode, ConversionOptions, ConversionResult
from .base import BaseAdapter


class DocumentToImagesAdapter(BaseAdapter):
    mode = ConversionMode.DOCUMENT_TO_IMAGES

    def convert(self, loaded: Sequence[Loaded], options: ConversionOptions) -> Iterator[ConversionResult]:
        ensure_encoder(options.target)
        documents = self._documents(loaded)
        if not documents:
            raise EmptyBatch("document-to-images needs a document")
        # Only the first document of a batch is extracted.
        document = documents[0]
        scale = self._config.runtime.render_scale
        for index in range(document.page_count):
            image = document.render(index, scale)
            try:
                payload = encode_image(image, options.target, options.quality)
            finally:
                image.close()
            yield ConversionResult(
                name=f"page_{index + 1}{options.target.extension}",
                data=payload,
                kind=ContentKind.IMAGE,
            )
