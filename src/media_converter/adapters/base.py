from __future__ import annotations

from typing import Iterator, Protocol, Sequence

from ..backends import Collaborators
from ..config import AppConfig
from ..loader import Loaded, LoadedDocument, LoadedImage
from ..models import ConversionMode, ConversionOptions, ConversionResult


class Adapter(Protocol):
    mode: ConversionMode

    def convert(
        self, loaded: Sequence[Loaded], options: ConversionOptions
    ) -> Iterator[ConversionResult]:  # pragma: no cover - interface
        ...


class BaseAdapter:
    mode: ConversionMode

    def __init__(self, collaborators: Collaborators, config: AppConfig) -> None:
        self._collaborators = collaborators
        self._config = config

    def _images(self, loaded: Sequence[Loaded]) -> list[LoadedImage]:
        images = [item for item in loaded if isinstance(item, LoadedImage)]
        if len(images) != len(loaded):
            raise TypeError(f"{self.mode.value} expects decoded images")
        return images

    def _documents(self, loaded: Sequence[Loaded]) -> list[LoadedDocument]:
        documents = [item for item in loaded if isinstance(item, LoadedDocument)]
        if len(documents) != len(loaded):
            raise TypeError(f"{self.mode.value} expects opened documents")
        return documents
