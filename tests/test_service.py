from __future__ import annotations

import asyncio
import io
import zipfile
from pathlib import Path

import pypdfium2 as pdfium
import pytest

from _samples import RecordingBuilder, image_bytes, open_image, pdf_bytes, unit
from media_converter.adapters import ImageRecodeAdapter
from media_converter.backends import Collaborators
from media_converter.config import AppConfig, RuntimeConfig
from media_converter.core import BatchOrchestrator
from media_converter.errors import (
    BatchRejected,
    DocumentLibraryUnavailable,
    EncodeUnsupported,
    InvalidState,
    RunCanceled,
    UnreadableInput,
)
from media_converter.loader import ResourceLoader
from media_converter.logging import RunLogger
from media_converter.models import ContentKind, ConversionMode, ConversionOptions, ImageFormat, RunState


def run(orchestrator: BatchOrchestrator):
    return asyncio.run(orchestrator.run())


def test_recode_single_photo_to_jpeg():
    orchestrator = BatchOrchestrator()
    orchestrator.select_batch([unit("photo.png", image_bytes(100, 50))], ConversionMode.IMAGE_RECODE)
    orchestrator.set_options(ConversionMode.IMAGE_RECODE, ConversionOptions.from_values("jpeg"))
    result = run(orchestrator)

    assert result is not None
    assert result.state is RunState.DONE
    assert orchestrator.state is RunState.DONE
    assert [artifact.name for artifact in result.artifacts] == ["photo.jpeg"]
    image = open_image(result.artifacts[0].data)
    assert image.format == "JPEG"
    assert image.size == (100, 50)


def test_recode_batch_exposes_each_result_in_input_order():
    orchestrator = BatchOrchestrator()
    batch = [
        unit("b.png", image_bytes(10, 10)),
        unit("a.gif", image_bytes(20, 10, fmt="GIF", mode="P", color=3)),
        unit("a.png", image_bytes(30, 10)),
    ]
    orchestrator.select_batch(batch, ConversionMode.IMAGE_RECODE)
    orchestrator.set_options(ConversionMode.IMAGE_RECODE, ConversionOptions(ImageFormat.PNG))
    result = run(orchestrator)

    assert [item.name for item in result.results] == ["b.png", "a.png", "a_2.png"]
    assert [artifact.name for artifact in result.artifacts] == ["b.png", "a.png", "a_2.png"]
    assert all(artifact.kind is ContentKind.IMAGE for artifact in result.artifacts)
    assert [open_image(artifact.data).size for artifact in result.artifacts] == [(10, 10), (20, 10), (30, 10)]


def test_recode_failure_is_all_or_nothing():
    orchestrator = BatchOrchestrator()
    batch = [unit("good.png", image_bytes(10, 10)), unit("broken.png", b"\x89PNG\r\n\x1a\nnope")]
    orchestrator.select_batch(batch, ConversionMode.IMAGE_RECODE)

    with pytest.raises(UnreadableInput):
        run(orchestrator)

    failed = orchestrator.last_run
    assert failed is not None
    assert failed.state is RunState.FAILED
    assert failed.error_code == "UNREADABLE_INPUT"
    assert failed.results == []
    assert failed.artifacts == []
    assert len(orchestrator.registry) == 0
    assert orchestrator.state is RunState.FAILED


def test_images_to_single_pdf():
    orchestrator = BatchOrchestrator()
    batch = [unit("a.png", image_bytes(200, 100)), unit("b.png", image_bytes(100, 200))]
    orchestrator.select_batch(batch, ConversionMode.IMAGES_TO_DOCUMENT)
    result = run(orchestrator)

    assert [artifact.name for artifact in result.artifacts] == ["converted_images.pdf"]
    assert result.artifacts[0].kind is ContentKind.DOCUMENT
    pdf = pdfium.PdfDocument(result.artifacts[0].data)
    try:
        assert len(pdf) == 2
    finally:
        pdf.close()


def test_images_to_pdf_places_every_image_within_its_page():
    builder = RecordingBuilder()
    orchestrator = BatchOrchestrator(collaborators=Collaborators(document_builder=lambda: builder))
    batch = [unit(f"{index}.png", image_bytes(10 * index, 300)) for index in range(1, 5)]
    orchestrator.select_batch(batch, ConversionMode.IMAGES_TO_DOCUMENT)
    run(orchestrator)

    page_width, page_height = builder.page_size
    assert builder.pages == [0, 1, 2, 3]
    for _, _, x, y, width, height in builder.placements:
        assert width <= page_width + 1e-6 and height <= page_height + 1e-6
        assert width == pytest.approx(page_width) or height == pytest.approx(page_height)
        assert x == pytest.approx((page_width - width) / 2)
        assert y == pytest.approx((page_height - height) / 2)


def test_images_to_pdf_without_document_library():
    orchestrator = BatchOrchestrator(collaborators=Collaborators(document_builder=None))
    orchestrator.select_batch([unit("a.png", image_bytes(5, 5))], ConversionMode.IMAGES_TO_DOCUMENT)
    with pytest.raises(DocumentLibraryUnavailable):
        run(orchestrator)
    assert orchestrator.last_run.error_code == "DOCUMENT_LIBRARY_UNAVAILABLE"


def test_pdf_pages_bundled_into_zip():
    orchestrator = BatchOrchestrator()
    orchestrator.select_batch([unit("doc.pdf", pdf_bytes(3))], ConversionMode.DOCUMENT_TO_IMAGES)
    orchestrator.set_options(ConversionMode.DOCUMENT_TO_IMAGES, ConversionOptions(ImageFormat.PNG))
    result = run(orchestrator)

    assert [item.name for item in result.results] == ["page_1.png", "page_2.png", "page_3.png"]
    assert [artifact.name for artifact in result.artifacts] == ["converted_pages.zip"]
    assert result.artifacts[0].kind is ContentKind.ARCHIVE
    with zipfile.ZipFile(io.BytesIO(result.artifacts[0].data)) as archive:
        assert archive.namelist() == ["page_1.png", "page_2.png", "page_3.png"]
        assert open_image(archive.read("page_2.png")).size == (300, 450)


def test_single_page_pdf_is_exposed_directly():
    orchestrator = BatchOrchestrator()
    orchestrator.select_batch([unit("doc.pdf", pdf_bytes(1))], ConversionMode.DOCUMENT_TO_IMAGES)
    orchestrator.set_options(ConversionMode.DOCUMENT_TO_IMAGES, ConversionOptions(ImageFormat.PNG))
    result = run(orchestrator)

    assert [artifact.name for artifact in result.artifacts] == ["page_1.png"]
    assert result.artifacts[0].kind is ContentKind.IMAGE


def test_render_scale_comes_from_config():
    orchestrator = BatchOrchestrator(AppConfig(runtime=RuntimeConfig(render_scale=2.0)))
    orchestrator.select_batch([unit("doc.pdf", pdf_bytes(1, size=(100, 50)))], ConversionMode.DOCUMENT_TO_IMAGES)
    result = run(orchestrator)
    assert open_image(result.artifacts[0].data).size == (200, 100)


def test_document_mode_rejects_multiple_files():
    orchestrator = BatchOrchestrator()
    with pytest.raises(BatchRejected):
        orchestrator.select_batch(
            [unit("a.pdf", pdf_bytes(1)), unit("b.pdf", pdf_bytes(1))], ConversionMode.DOCUMENT_TO_IMAGES
        )
    assert orchestrator.batch == ()


def test_run_without_batch_is_noop():
    orchestrator = BatchOrchestrator()
    assert run(orchestrator) is None
    orchestrator.select_batch([], ConversionMode.IMAGE_RECODE)
    assert run(orchestrator) is None
    assert orchestrator.state is RunState.IDLE
    assert orchestrator.last_run is None


def test_new_run_requires_reset():
    orchestrator = BatchOrchestrator()
    orchestrator.select_batch([unit("photo.png", image_bytes(4, 4))], ConversionMode.IMAGE_RECODE)
    run(orchestrator)
    with pytest.raises(InvalidState):
        run(orchestrator)
    with pytest.raises(InvalidState):
        orchestrator.select_batch([unit("other.png", image_bytes(4, 4))], ConversionMode.IMAGE_RECODE)


def test_reset_releases_artifacts_and_is_idempotent():
    def convert_once(orchestrator: BatchOrchestrator) -> list[tuple[str, int]]:
        orchestrator.select_batch([unit("doc.pdf", pdf_bytes(2))], ConversionMode.DOCUMENT_TO_IMAGES)
        orchestrator.set_options(ConversionMode.DOCUMENT_TO_IMAGES, ConversionOptions(ImageFormat.PNG))
        result = run(orchestrator)
        return [(item.name, item.size) for item in result.results]

    fresh = convert_once(BatchOrchestrator())

    orchestrator = BatchOrchestrator()
    convert_once(orchestrator)
    artifact = orchestrator.registry.artifacts[0]
    handle = orchestrator.registry.open_uri(artifact.artifact_id)
    orchestrator.reset()
    assert orchestrator.state is RunState.IDLE
    assert len(orchestrator.registry) == 0
    assert orchestrator.registry.live_handles == []
    assert handle not in orchestrator.registry.live_handles

    assert convert_once(orchestrator) == fresh


def test_strict_formats_reject_unknown_default():
    config = AppConfig(runtime=RuntimeConfig(default_format="tiff", strict_formats=True))
    orchestrator = BatchOrchestrator(config)
    orchestrator.select_batch([unit("photo.png", image_bytes(4, 4))], ConversionMode.IMAGE_RECODE)
    with pytest.raises(EncodeUnsupported):
        run(orchestrator)


def test_reset_during_run_discards_results():
    async def scenario() -> BatchOrchestrator:
        orchestrator = BatchOrchestrator()
        orchestrator.select_batch(
            [unit("a.png", image_bytes(50, 50)), unit("b.png", image_bytes(50, 50))],
            ConversionMode.IMAGE_RECODE,
        )
        task = asyncio.create_task(orchestrator.run())
        await asyncio.sleep(0)
        assert orchestrator.state.in_flight
        orchestrator.reset()
        with pytest.raises(RunCanceled):
            await task
        return orchestrator

    orchestrator = asyncio.run(scenario())
    assert orchestrator.state is RunState.IDLE
    assert orchestrator.last_run is None
    assert len(orchestrator.registry) == 0


def test_runs_are_logged(tmp_path: Path):
    logger = RunLogger(tmp_path / "runs.jsonl")
    orchestrator = BatchOrchestrator(logger=logger)
    orchestrator.select_batch([unit("photo.png", image_bytes(8, 8))], ConversionMode.IMAGE_RECODE)
    run(orchestrator)
    orchestrator.reset()
    orchestrator.select_batch([unit("broken.png", b"garbage")], ConversionMode.IMAGE_RECODE)
    with pytest.raises(UnreadableInput):
        run(orchestrator)

    entries = logger.read_entries()
    assert [entry["status"] for entry in entries] == ["done", "failed"]
    assert entries[0]["artifacts"] == ["photo.jpeg"]
    assert entries[0]["size_bytes"] > 0
    assert entries[1]["error_code"] == "UNREADABLE_INPUT"
    assert entries[1]["artifacts"] == []


def test_per_unit_runs_load_each_unit_after_the_previous_conversion(monkeypatch):
    calls: list[tuple[str, str]] = []
    original_load = ResourceLoader.load
    original_convert = ImageRecodeAdapter.convert

    async def recording_load(self, unit, mode):
        calls.append(("load", unit.name))
        return await original_load(self, unit, mode)

    def recording_convert(self, loaded, options):
        calls.extend(("convert", item.name) for item in loaded)
        return original_convert(self, loaded, options)

    monkeypatch.setattr(ResourceLoader, "load", recording_load)
    monkeypatch.setattr(ImageRecodeAdapter, "convert", recording_convert)

    orchestrator = BatchOrchestrator()
    orchestrator.select_batch(
        [unit("a.png", image_bytes(6, 6)), unit("b.png", image_bytes(6, 6))], ConversionMode.IMAGE_RECODE
    )
    run(orchestrator)

    assert calls == [("load", "a.png"), ("convert", "a.png"), ("load", "b.png"), ("convert", "b.png")]


def test_cancelling_the_run_task_marks_the_run_canceled(tmp_path: Path):
    logger = RunLogger(tmp_path / "runs.jsonl")

    async def scenario() -> BatchOrchestrator:
        orchestrator = BatchOrchestrator(logger=logger)
        orchestrator.select_batch(
            [unit("a.png", image_bytes(50, 50)), unit("b.png", image_bytes(50, 50))],
            ConversionMode.IMAGE_RECODE,
        )
        task = asyncio.create_task(orchestrator.run())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return orchestrator

    orchestrator = asyncio.run(scenario())
    assert orchestrator.state is RunState.CANCELED
    assert orchestrator.last_run.state is RunState.CANCELED
    assert orchestrator.last_run.artifacts == []
    assert len(orchestrator.registry) == 0
    assert [entry["status"] for entry in logger.read_entries()] == ["canceled"]

    with pytest.raises(InvalidState):
        orchestrator.select_batch([unit("c.png", image_bytes(4, 4))], ConversionMode.IMAGE_RECODE)
    orchestrator.reset()
    orchestrator.select_batch([unit("c.png", image_bytes(4, 4))], ConversionMode.IMAGE_RECODE)
    assert [artifact.name for artifact in run(orchestrator).artifacts] == ["c.jpeg"]
