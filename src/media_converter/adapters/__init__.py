from __future__ import annotations

from typing import Dict, Type

from ..backends import Collaborators
from ..config import AppConfig
from ..models import ConversionMode
from .base import Adapter, BaseAdapter
from .document_to_images import DocumentToImagesAdapter
from .image_recode import ImageRecodeAdapter
from .images_to_document import DOCUMENT_NAME, ImagesToDocumentAdapter, Placement, fit_to_page

_ADAPTER_CLASSES: Dict[ConversionMode, Type[BaseAdapter]] = {
    ConversionMode.IMAGE_RECODE: ImageRecodeAdapter,
    ConversionMode.IMAGES_TO_DOCUMENT: ImagesToDocumentAdapter,
    ConversionMode.DOCUMENT_TO_IMAGES: DocumentToImagesAdapter,
}


def get_adapter(mode: ConversionMode, collaborators: Collaborators, config: AppConfig) -> Adapter:
    adapter_cls = _ADAPTER_CLASSES.get(mode)
    if not adapter_cls:
        raise KeyError(f"No adapter registered for {mode}")
    return adapter_cls(collaborators, config)


__all__ = [
    "DOCUMENT_NAME",
    "Adapter",
    "BaseAdapter",
    "DocumentToImagesAdapter",
    "ImageRecodeAdapter",
    "ImagesToDocumentAdapter",
    "Placement",
    "fit_to_page",
    "get_adapter",
]
