"""Decides how a run's results are exposed: as-is, individually, or as one archive."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from .backends import Collaborators
from .models import ContentKind, ConversionMode, ConversionResult

ARCHIVE_NAME = "converted_pages.zip"


class PackagingDecision(str, Enum):
    SINGLE = "single"
    INDIVIDUAL = "individual"
    BUNDLE = "bundle"


# Modes whose multi-result runs are bundled into one archive.
_BUNDLED_MODES = frozenset({ConversionMode.DOCUMENT_TO_IMAGES})


def decide_packaging(result_count: int, mode: ConversionMode) -> PackagingDecision:
    if result_count < 0:
        raise ValueError(f"result_count must be non-negative, got {result_count}")
    if result_count == 1:
        return PackagingDecision.SINGLE
    if result_count > 1 and mode in _BUNDLED_MODES:
        return PackagingDecision.BUNDLE
    return PackagingDecision.INDIVIDUAL


def bundle(results: Sequence[ConversionResult], collaborators: Collaborators) -> ConversionResult:
    archiver = collaborators.new_archiver()
    archiver.new_archive()
    for result in results:
        archiver.add_entry(result.name, result.data)
    return ConversionResult(name=ARCHIVE_NAME, data=archiver.export(), kind=ContentKind.ARCHIVE)


def package_results(
    results: Sequence[ConversionResult],
    mode: ConversionMode,
    collaborators: Collaborators,
) -> list[ConversionResult]:
    decision = decide_packaging(len(results), mode)
    if decision is PackagingDecision.BUNDLE:
        return [bundle(results, collaborators)]
    return list(results)


__all__ = ["ARCHIVE_NAME", "PackagingDecision", "bundle", "decide_packaging", "package_results"]
