from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable

from .models import Artifact, ConversionResult
from .utils import atomic_write_bytes, generate_run_id, slugify


class ArtifactRegistry:
    """Tracks live artifacts and the file handles created to download them."""

    def __init__(self, spool_dir: Path | None = None) -> None:
        self._spool_dir = spool_dir
        self._artifacts: dict[str, Artifact] = {}
        self._handles: dict[str, Path] = {}

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._artifacts

    @property
    def artifacts(self) -> list[Artifact]:
        return list(self._artifacts.values())

    @property
    def live_handles(self) -> list[str]:
        return [path.as_uri() for path in self._handles.values()]

    def register(self, results: Iterable[ConversionResult]) -> list[Artifact]:
        registered: list[Artifact] = []
        for result in results:
            artifact = Artifact(
                artifact_id=generate_run_id("artifact"),
                name=result.name,
                kind=result.kind,
                data=result.data,
            )
            self._artifacts[artifact.artifact_id] = artifact
            registered.append(artifact)
        return registered

    def get(self, artifact_id: str) -> Artifact:
        try:
            return self._artifacts[artifact_id]
        except KeyError:
            raise KeyError(f"Unknown or released artifact: {artifact_id}") from None

    def open_uri(self, artifact_id: str) -> str:
        """Materialize the artifact as a temporary file and return its ``file://`` URI.

        The file lives until :meth:`release` or :meth:`release_all` revokes it.
        """
        artifact = self.get(artifact_id)
        existing = self._handles.get(artifact_id)
        if existing is not None:
            return existing.as_uri()
        if self._spool_dir is not None:
            self._spool_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(artifact.name).suffix
        fd, raw_path = tempfile.mkstemp(prefix="artifact-", suffix=suffix, dir=self._spool_dir)
        with os.fdopen(fd, "wb") as handle:
            handle.write(artifact.data)
        path = Path(raw_path).resolve()
        self._handles[artifact_id] = path
        return path.as_uri()

    def save(self, artifact_id: str, directory: Path) -> Path:
        """Write a download copy of the artifact; the copy is owned by the caller."""
        artifact = self.get(artifact_id)
        destination = directory / slugify(artifact.name)
        atomic_write_bytes(destination, artifact.data)
        return destination

    def release(self, artifact_id: str) -> None:
        path = self._handles.pop(artifact_id, None)
        if path is not None:
            path.unlink(missing_ok=True)
        self._artifacts.pop(artifact_id, None)

    def release_all(self) -> int:
        released = len(self._artifacts)
        for artifact_id in list(self._artifacts):
            self.release(artifact_id)
        for path in self._handles.values():
            path.unlink(missing_ok=True)
        self._handles.clear()
        return released


__all__ = ["ArtifactRegistry"]
