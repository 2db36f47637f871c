from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from ..errors import EmptyBatch
from ..loader import Loaded
from ..models import ContentKind, ConversionMode, ConversionOptions, ConversionResult
from .base import BaseAdapter

DOCUMENT_NAME = "converted_images.pdf"


@dataclass(frozen=True, slots=True)
class Placement:
    x: float
    y: float
    width: float
    height: float


def fit_to_page(
    image_width: float, image_height: float, page_width: float, page_height: float
) -> Placement:
    """Scale an image uniformly to fit the page and center it."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")
    scale = min(page_width / image_width, page_height / image_height)
    width = min(image_width * scale, page_width)
    height = min(image_height * scale, page_height)
    # Offsets never go negative on the bound axis, even with float residue.
    return Placement(
        x=max(0.0, (page_width - width) / 2),
        y=max(0.0, (page_height - height) / 2),
        width=width,
        height=height,
    )


class ImagesToDocumentAdapter(BaseAdapter):
    """Assembles the whole batch, in order, into a single PDF with one image per page."""

    mode = ConversionMode.IMAGES_TO_DOCUMENT

    def convert(self, loaded: Sequence[Loaded], options: ConversionOptions) -> Iterator[ConversionResult]:
        images = self._images(loaded)
        if not images:
            raise EmptyBatch("images-to-document needs at least one image")
        builder = self._collaborators.new_document_builder()
        builder.new_document()
        page_width, page_height = builder.page_size
        for item in images:
            placement = fit_to_page(item.width, item.height, page_width, page_height)
            page = builder.add_page()
            builder.place_image(
                page, item.image, placement.x, placement.y, placement.width, placement.height
            )
        yield ConversionResult(name=DOCUMENT_NAME, data=builder.export(), kind=ContentKind.DOCUMENT)
