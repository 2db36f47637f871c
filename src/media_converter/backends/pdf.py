"""PDF reading, page rendering and construction on top of pypdfium2."""

from __future__ import annotations

import io
from typing import Any

from PIL import Image

from ..errors import CollaboratorUnavailable, DocumentLibraryUnavailable, UnreadableDocument
from .imaging import flatten

# A4 portrait in PDF points.
A4_PAGE_SIZE: tuple[float, float] = (595.28, 841.89)


def _import_pdfium(error: type[CollaboratorUnavailable]) -> Any:
    try:
        import pypdfium2 as pdfium
    except ModuleNotFoundError as exc:  # pragma: no cover - import guard
        raise error("pypdfium2 dependency is required for PDF conversion") from exc
    return pdfium


class PdfDocumentHandle:
    """An opened PDF exposing its page count and per-page rendering."""

    def __init__(self, pdf: Any) -> None:
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf)

    def render_page(self, index: int, scale: float) -> Image.Image:
        """Render the zero-based page *index* at *scale* times its natural size."""
        if not 0 <= index < self.page_count:
            raise IndexError(f"Page {index} out of range (have {self.page_count} pages)")
        page = self._pdf[index]
        bitmap = page.render(scale=scale)
        return bitmap.to_pil()

    def close(self) -> None:
        self._pdf.close()


def open_document(data: bytes, name: str = "document") -> PdfDocumentHandle:
    pdfium = _import_pdfium(CollaboratorUnavailable)
    try:
        pdf = pdfium.PdfDocument(data)
    except pdfium.PdfiumError as exc:
        raise UnreadableDocument(f"{name} could not be opened as a PDF: {exc}") from exc
    return PdfDocumentHandle(pdf)


class PdfDocumentBuilder:
    """Assembles raster images into a PDF with a fixed page geometry."""

    def __init__(self, page_size: tuple[float, float] = A4_PAGE_SIZE) -> None:
        self._pdfium = _import_pdfium(DocumentLibraryUnavailable)
        self._page_size = page_size
        self._pdf: Any = None

    @property
    def page_size(self) -> tuple[float, float]:
        return self._page_size

    def new_document(self) -> None:
        self._pdf = self._pdfium.PdfDocument.new()

    def add_page(self) -> Any:
        width, height = self._page_size
        return self._pdf.new_page(width, height)

    def place_image(
        self, page: Any, image: Image.Image, x: float, y: float, width: float, height: float
    ) -> None:
        pdfium = self._pdfium
        image_obj = pdfium.PdfImage.new(self._pdf)
        bitmap = pdfium.PdfBitmap.from_pil(flatten(image))
        image_obj.set_bitmap(bitmap)
        bitmap.close()
        image_obj.set_matrix(pdfium.PdfMatrix().scale(width, height).translate(x, y))
        page.insert_obj(image_obj)
        page.gen_content()

    def export(self) -> bytes:
        buffer = io.BytesIO()
        self._pdf.save(buffer)
        self._pdf.close()
        self._pdf = None
        return buffer.getvalue()


__all__ = ["A4_PAGE_SIZE", "PdfDocumentBuilder", "PdfDocumentHandle", "open_document"]
