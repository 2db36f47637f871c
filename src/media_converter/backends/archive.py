from __future__ import annotations

import io
from zipfile import ZIP_DEFLATED, ZipFile


class ZipArchiver:
    """In-memory zip archive writer."""

    def __init__(self) -> None:
        self._buffer: io.BytesIO | None = None
        self._archive: ZipFile | None = None

    def new_archive(self) -> None:
        self._buffer = io.BytesIO()
        self._archive = ZipFile(self._buffer, "w", compression=ZIP_DEFLATED)

    def add_entry(self, name: str, data: bytes) -> None:
        if self._archive is None:
            raise RuntimeError("new_archive() must be called before add_entry()")
        self._archive.writestr(name, data)

    def export(self) -> bytes:
        if self._archive is None or self._buffer is None:
            raise RuntimeError("new_archive() must be called before export()")
        self._archive.close()
        payload = self._buffer.getvalue()
        self._archive = None
        self._buffer = None
        return payload


__all__ = ["ZipArchiver"]
