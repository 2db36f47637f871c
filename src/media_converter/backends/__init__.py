"""Codec collaborators used by the pipeline and their lazy lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

from PIL import Image

from ..errors import ArchiveLibraryUnavailable, CollaboratorUnavailable, DocumentLibraryUnavailable
from .archive import ZipArchiver
from .pdf import PdfDocumentBuilder, PdfDocumentHandle, open_document


class DocumentHandle(Protocol):
    @property
    def page_count(self) -> int:  # pragma: no cover - interface
        ...

    def render_page(self, index: int, scale: float) -> Image.Image:  # pragma: no cover - interface
        ...

    def close(self) -> None:  # pragma: no cover - interface
        ...


class DocumentBuilder(Protocol):
    @property
    def page_size(self) -> tuple[float, float]:  # pragma: no cover - interface
        ...

    def new_document(self) -> None:  # pragma: no cover - interface
        ...

    def add_page(self) -> Any:  # pragma: no cover - interface
        ...

    def place_image(
        self, page: Any, image: Image.Image, x: float, y: float, width: float, height: float
    ) -> None:  # pragma: no cover - interface
        ...

    def export(self) -> bytes:  # pragma: no cover - interface
        ...


class Archiver(Protocol):
    def new_archive(self) -> None:  # pragma: no cover - interface
        ...

    def add_entry(self, name: str, data: bytes) -> None:  # pragma: no cover - interface
        ...

    def export(self) -> bytes:  # pragma: no cover - interface
        ...


@dataclass(slots=True)
class Collaborators:
    """Factories for the external codec capabilities.

    A factory set to ``None`` models a capability that is not installed; the
    matching ``*Unavailable`` error is raised the first time it is needed.
    """

    document_reader: Callable[[bytes, str], DocumentHandle] | None = open_document
    document_builder: Callable[[], DocumentBuilder] | None = PdfDocumentBuilder
    archiver: Callable[[], Archiver] | None = ZipArchiver

    def open_document(self, data: bytes, name: str) -> DocumentHandle:
        if self.document_reader is None:
            raise CollaboratorUnavailable("No document reader is configured")
        return self.document_reader(data, name)

    def new_document_builder(self) -> DocumentBuilder:
        if self.document_builder is None:
            raise DocumentLibraryUnavailable("No document construction library is configured")
        return self.document_builder()

    def new_archiver(self) -> Archiver:
        if self.archiver is None:
            raise ArchiveLibraryUnavailable("No archive library is configured")
        return self.archiver()


__all__ = [
    "Archiver",
    "Collaborators",
    "DocumentBuilder",
    "DocumentHandle",
    "PdfDocumentBuilder",
    "PdfDocumentHandle",
    "ZipArchiver",
]
