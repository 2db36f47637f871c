"""Domain models for the batch conversion pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from .errors import EncodeUnsupported
from .logging import StageTimings


class ConversionMode(str, Enum):
    IMAGE_RECODE = "image-recode"
    IMAGES_TO_DOCUMENT = "images-to-document"
    DOCUMENT_TO_IMAGES = "document-to-images"

    @property
    def per_unit(self) -> bool:
        """Whether the adapter is invoked once per input unit."""
        return self is ConversionMode.IMAGE_RECODE


class ImageFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def pillow_format(self) -> str:
        return self.value.upper()

    @property
    def supports_alpha(self) -> bool:
        return self is not ImageFormat.JPEG

    @classmethod
    def parse(cls, value: object, *, strict: bool = False) -> ImageFormat:
        """Resolve a user-supplied encoding name.

        Unrecognized names fall back to JPEG unless *strict* is set, in which
        case :class:`EncodeUnsupported` is raised.
        """
        if isinstance(value, ImageFormat):
            return value
        normalized = str(value or "").strip().lower().lstrip(".")
        if normalized == "jpg":
            normalized = "jpeg"
        try:
            return cls(normalized)
        except ValueError:
            if strict:
                raise EncodeUnsupported(f"Unrecognized target encoding: {value!r}") from None
            return cls.JPEG


class ContentKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    ARCHIVE = "archive"


class RunState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    CONVERTING = "converting"
    PACKAGING = "packaging"
    DONE = "done"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def terminal(self) -> bool:
        return self in {RunState.DONE, RunState.FAILED, RunState.CANCELED}

    @property
    def in_flight(self) -> bool:
        return self in {RunState.LOADING, RunState.CONVERTING, RunState.PACKAGING}


@dataclass(frozen=True, slots=True)
class InputUnit:
    """One selected source file; content is read on demand."""

    name: str
    size: int
    reader: Callable[[], bytes] = field(repr=False, compare=False)

    @classmethod
    def from_path(cls, path: Path) -> InputUnit:
        return cls(name=path.name, size=path.stat().st_size, reader=path.read_bytes)

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> InputUnit:
        return cls(name=name, size=len(data), reader=lambda: data)

    @property
    def base_name(self) -> str:
        stem = Path(self.name).name.split(".")[0]
        return stem or "file"

    def read(self) -> bytes:
        return self.reader()


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    target: ImageFormat = ImageFormat.JPEG
    quality: int = 92

    @classmethod
    def from_values(
        cls, target: object = None, quality: int | None = None, *, strict: bool = False
    ) -> ConversionOptions:
        fmt = ImageFormat.parse(target, strict=strict) if target is not None else ImageFormat.JPEG
        return cls(target=fmt, quality=quality if quality is not None else 92)

    def as_dict(self) -> dict[str, object]:
        return {"target": self.target.value, "quality": self.quality}


@dataclass(frozen=True, slots=True)
class ConversionResult:
    name: str
    data: bytes = field(repr=False)
    kind: ContentKind

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class Artifact:
    """A packaged result exposed to the caller through the registry."""

    artifact_id: str
    name: str
    kind: ContentKind
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class BatchRun:
    run_id: str
    mode: ConversionMode
    options: ConversionOptions
    inputs: list[str]
    state: RunState = RunState.LOADING
    results: list[ConversionResult] = field(default_factory=list)
    artifacts: list[Artifact] = field(default_factory=list)
    error_code: str | None = None
    error_message: str | None = None
    started_at: str | None = None
    finished_at: str | None = None
    timings: StageTimings = field(default_factory=StageTimings)

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE

    def to_payload(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "mode": self.mode.value,
            "options": self.options.as_dict(),
            "inputs": list(self.inputs),
            "state": self.state.value,
            "results": [result.name for result in self.results],
            "artifacts": [artifact.name for artifact in self.artifacts],
            "error_code": self.error_code,
            "error_message": self.error_message,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "timings": asdict(self.timings),
        }


__all__ = [
    "Artifact",
    "BatchRun",
    "ContentKind",
    "ConversionMode",
    "ConversionOptions",
    "ConversionResult",
    "ImageFormat",
    "InputUnit",
    "RunState",
]
