import io
import zipfile

import pypdfium2 as pdfium
import pytest
from PIL import Image

from _samples import image_bytes, open_image, pdf_bytes
from media_converter.backends import PdfDocumentBuilder, ZipArchiver
from media_converter.backends.imaging import decode_image, encode_image, flatten
from media_converter.backends.pdf import A4_PAGE_SIZE, open_document
from media_converter.errors import UnreadableInput
from media_converter.models import ImageFormat


def test_encode_keeps_dimensions_for_each_format():
    source = decode_image(image_bytes(64, 32))
    for fmt in (ImageFormat.JPEG, ImageFormat.PNG):
        encoded = open_image(encode_image(source, fmt))
        assert encoded.size == (64, 32)
        assert encoded.format == fmt.pillow_format


def test_jpeg_encode_flattens_transparency_onto_white():
    transparent = decode_image(image_bytes(8, 8, mode="RGBA", color=(0, 0, 0, 0)))
    encoded = open_image(encode_image(transparent, ImageFormat.JPEG))
    assert encoded.mode == "RGB"
    assert all(channel > 240 for channel in encoded.getpixel((4, 4)))


def test_png_encode_keeps_alpha():
    transparent = decode_image(image_bytes(8, 8, mode="RGBA", color=(0, 0, 0, 0)))
    encoded = open_image(encode_image(transparent, ImageFormat.PNG))
    assert encoded.mode == "RGBA"


def test_flatten_passes_opaque_rgb_through():
    image = Image.new("RGB", (2, 2))
    assert flatten(image) is image


def test_decode_rejects_empty():
    with pytest.raises(UnreadableInput):
        decode_image(b"", "empty.png")


def test_open_document_renders_scaled_pages():
    handle = open_document(pdf_bytes(2, size=(200, 300)))
    try:
        assert handle.page_count == 2
        rendered = handle.render_page(1, 1.5)
        assert rendered.size == (300, 450)
        with pytest.raises(IndexError):
            handle.render_page(2, 1.0)
    finally:
        handle.close()


def test_pdf_builder_produces_one_page_per_add():
    builder = PdfDocumentBuilder()
    builder.new_document()
    image = Image.new("RGB", (40, 20), (10, 200, 10))
    for _ in range(3):
        page = builder.add_page()
        builder.place_image(page, image, 10, 20, 400, 200)
    payload = builder.export()
    pdf = pdfium.PdfDocument(payload)
    try:
        assert len(pdf) == 3
        width, height = pdf[0].get_size()
        assert width == pytest.approx(A4_PAGE_SIZE[0], abs=0.01)
        assert height == pytest.approx(A4_PAGE_SIZE[1], abs=0.01)
    finally:
        pdf.close()


def test_zip_archiver_preserves_entry_order():
    archiver = ZipArchiver()
    archiver.new_archive()
    archiver.add_entry("page_1.png", b"one")
    archiver.add_entry("page_2.png", b"two")
    payload = archiver.export()
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        assert archive.namelist() == ["page_1.png", "page_2.png"]
        assert archive.read("page_2.png") == b"two"


def test_zip_archiver_requires_new_archive():
    with pytest.raises(RuntimeError):
        ZipArchiver().add_entry("x", b"")
