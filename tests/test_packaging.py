import io
import zipfile

import pytest

from media_converter.backends import Collaborators
from media_converter.errors import ArchiveLibraryUnavailable
from media_converter.models import ContentKind, ConversionMode, ConversionResult
from media_converter.packaging import ARCHIVE_NAME, PackagingDecision, decide_packaging, package_results


def results(count: int) -> list[ConversionResult]:
    return [
        ConversionResult(name=f"page_{index}.png", data=f"payload-{index}".encode(), kind=ContentKind.IMAGE)
        for index in range(1, count + 1)
    ]


@pytest.mark.parametrize(
    ("count", "mode", "expected"),
    [
        (1, ConversionMode.IMAGE_RECODE, PackagingDecision.SINGLE),
        (1, ConversionMode.IMAGES_TO_DOCUMENT, PackagingDecision.SINGLE),
        (1, ConversionMode.DOCUMENT_TO_IMAGES, PackagingDecision.SINGLE),
        (3, ConversionMode.IMAGE_RECODE, PackagingDecision.INDIVIDUAL),
        (3, ConversionMode.DOCUMENT_TO_IMAGES, PackagingDecision.BUNDLE),
        (0, ConversionMode.DOCUMENT_TO_IMAGES, PackagingDecision.INDIVIDUAL),
    ],
)
def test_decide_packaging(count, mode, expected):
    assert decide_packaging(count, mode) is expected


def test_decide_packaging_rejects_negative_count():
    with pytest.raises(ValueError):
        decide_packaging(-1, ConversionMode.IMAGE_RECODE)


def test_document_pages_are_bundled_in_order():
    packaged = package_results(results(3), ConversionMode.DOCUMENT_TO_IMAGES, Collaborators())
    assert len(packaged) == 1
    archive_result = packaged[0]
    assert archive_result.name == ARCHIVE_NAME
    assert archive_result.kind is ContentKind.ARCHIVE
    with zipfile.ZipFile(io.BytesIO(archive_result.data)) as archive:
        assert archive.namelist() == ["page_1.png", "page_2.png", "page_3.png"]
        assert archive.read("page_3.png") == b"payload-3"


def test_single_page_is_not_bundled():
    single = results(1)
    assert package_results(single, ConversionMode.DOCUMENT_TO_IMAGES, Collaborators()) == single


def test_recoded_images_are_exposed_individually():
    many = results(4)
    assert package_results(many, ConversionMode.IMAGE_RECODE, Collaborators(archiver=None)) == many


def test_bundle_without_archive_library():
    with pytest.raises(ArchiveLibraryUnavailable):
        package_results(results(2), ConversionMode.DOCUMENT_TO_IMAGES, Collaborators(archiver=None))
