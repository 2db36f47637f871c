"""Turns selected input units into decoded rasters or opened documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from PIL import Image

from .backends import Collaborators, DocumentHandle
from .backends.imaging import decode_image
from .config import AppConfig
from .detection import DetectionError, InputKind, detect_input_kind
from .errors import InputTooLarge, UnreadableInput
from .models import ConversionMode, InputUnit
from .utils import run_sync


@dataclass(slots=True)
class LoadedImage:
    name: str
    base_name: str
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def close(self) -> None:
        self.image.close()


@dataclass(slots=True)
class LoadedDocument:
    name: str
    base_name: str
    handle: DocumentHandle

    @property
    def page_count(self) -> int:
        return self.handle.page_count

    def render(self, index: int, scale: float) -> Image.Image:
        return self.handle.render_page(index, scale)

    def close(self) -> None:
        self.handle.close()


Loaded = Union[LoadedImage, LoadedDocument]


class ResourceLoader:
    def __init__(self, config: AppConfig, collaborators: Collaborators) -> None:
        self._config = config
        self._collaborators = collaborators

    async def load(self, unit: InputUnit, mode: ConversionMode) -> Loaded:
        if mode is ConversionMode.DOCUMENT_TO_IMAGES:
            return await self.load_document(unit)
        return await self.load_image(unit)

    async def load_image(self, unit: InputUnit) -> LoadedImage:
        return await run_sync(self._load_image_sync, unit)

    async def load_document(self, unit: InputUnit) -> LoadedDocument:
        return await run_sync(self._load_document_sync, unit)

    def _load_image_sync(self, unit: InputUnit) -> LoadedImage:
        data = self._read(unit, InputKind.RASTER)
        image = decode_image(data, unit.name)
        return LoadedImage(name=unit.name, base_name=unit.base_name, image=image)

    def _load_document_sync(self, unit: InputUnit) -> LoadedDocument:
        data = self._read(unit, InputKind.DOCUMENT)
        handle = self._collaborators.open_document(data, unit.name)
        return LoadedDocument(name=unit.name, base_name=unit.base_name, handle=handle)

    def _read(self, unit: InputUnit, expected: InputKind) -> bytes:
        if unit.size > self._config.max_file_size_bytes:
            raise InputTooLarge(
                f"{unit.name} exceeds the {self._config.runtime.max_file_size_mb} MB limit"
            )
        try:
            data = unit.read()
        except OSError as exc:
            raise UnreadableInput(f"{unit.name} could not be read: {exc}") from exc
        try:
            detection = detect_input_kind(data)
        except DetectionError as exc:
            raise UnreadableInput(f"{unit.name}: {exc}") from exc
        if expected is InputKind.DOCUMENT and detection.kind is not InputKind.DOCUMENT:
            raise UnreadableInput(f"{unit.name} is not a PDF document ({detection.mime_type})")
        if expected is InputKind.RASTER and detection.kind is InputKind.DOCUMENT:
            raise UnreadableInput(f"{unit.name} is a PDF document, expected an image")
        return data


__all__ = ["Loaded", "LoadedDocument", "LoadedImage", "ResourceLoader"]
