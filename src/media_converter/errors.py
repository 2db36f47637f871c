"""Error taxonomy shared by loaders, adapters, packaging and the orchestrator."""

from __future__ import annotations


class ConversionError(RuntimeError):
    code = "CONVERSION_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class UnreadableInput(ConversionError):
    code = "UNREADABLE_INPUT"


class UnreadableDocument(UnreadableInput):
    code = "UNREADABLE_DOCUMENT"


class InputTooLarge(ConversionError):
    code = "SIZE_LIMIT"


class EncodeUnsupported(ConversionError):
    code = "ENCODE_UNSUPPORTED"


class EmptyBatch(ConversionError):
    code = "EMPTY_BATCH"


class BatchRejected(ConversionError):
    code = "BATCH_REJECTED"


class CollaboratorUnavailable(ConversionError):
    code = "COLLABORATOR_UNAVAILABLE"


class DocumentLibraryUnavailable(CollaboratorUnavailable):
    code = "DOCUMENT_LIBRARY_UNAVAILABLE"


class ArchiveLibraryUnavailable(CollaboratorUnavailable):
    code = "ARCHIVE_LIBRARY_UNAVAILABLE"


class InvalidState(ConversionError):
    code = "INVALID_STATE"


class RunCanceled(ConversionError):
    code = "CANCELED"


__all__ = [
    "ArchiveLibraryUnavailable",
    "BatchRejected",
    "CollaboratorUnavailable",
    "ConversionError",
    "DocumentLibraryUnavailable",
    "EmptyBatch",
    "EncodeUnsupported",
    "InputTooLarge",
    "InvalidState",
    "RunCanceled",
    "UnreadableDocument",
    "UnreadableInput",
]
