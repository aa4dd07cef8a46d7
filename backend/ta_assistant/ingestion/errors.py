"""
Ingestion errors.

Everything the normalizer can raise derives from IngestionError, so callers can
turn any of them into a single "could not process the submission" response.
"""
from typing import Optional


class IngestionError(Exception):
    """Base class for document ingestion failures."""


class DocumentParseError(IngestionError):
    """
    The text layer could not be read.

    Never reaches the caller of DocumentNormalizer: it redirects the document
    to the recognition path.
    """


class NoProcessablePagesError(IngestionError):
    """The document could not be opened for rasterization, or has no pages."""

    def __init__(self, detail: Optional[str] = None):
        message = "PDF has no processable pages"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PageRecognitionError(IngestionError):
    """Recognition failed for one page; the whole document fails with it."""

    def __init__(self, page_number: int, cause: BaseException):
        self.page_number = page_number
        self.cause = cause
        super().__init__(f"Failed to recognize page {page_number}: {cause}")


class RecognizerNotConfiguredError(IngestionError):
    """No text-recognition capability was supplied."""

    def __init__(self):
        super().__init__("DocumentNormalizer requires a text recognizer")


class IngestionTimeoutError(IngestionError):
    """The normalization deadline expired."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Document normalization exceeded {timeout_seconds:.0f}s")
