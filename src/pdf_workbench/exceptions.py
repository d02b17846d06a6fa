"""Exception hierarchy for pdf-workbench."""


class WorkbenchError(Exception):
    """Base exception for all pdf-workbench errors."""


class DocumentError(WorkbenchError):
    """Base exception for document engine errors."""


class LoadError(DocumentError):
    """Raised when input bytes cannot be parsed as a PDF document."""


class SerializeError(DocumentError):
    """Raised when the edited document cannot be written back to bytes."""


class PageNotFoundError(DocumentError):
    """Raised when an operation references a page the document does not have."""

    def __init__(self, index: int, page_count: int) -> None:
        self.index = index
        self.page_count = page_count
        super().__init__(
            f"Page index {index} out of range (document has {page_count} pages)"
        )


class EmptySelectionError(DocumentError):
    """Raised when a page selection contains no valid pages."""


class NoDocumentsError(DocumentError):
    """Raised when a merge is requested without any input documents."""


class OverlayError(DocumentError):
    """Raised when an overlay item cannot be placed or drawn."""


class ImageEmbedError(OverlayError):
    """Raised when image bytes do not match their declared format."""


class RotationError(WorkbenchError):
    """Raised when a rotation delta is not a multiple of 90 degrees."""


class SourceError(WorkbenchError):
    """Base exception for errors while loading a source document."""


class SourceNotFoundError(SourceError):
    """Raised when a local source file does not exist."""


class SourceConnectionError(SourceError):
    """Raised when a remote source cannot be reached."""


class SourceHTTPError(SourceError):
    """Raised when a remote source responds with an error status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        if detail:
            msg = f"HTTP error {status_code}: {detail}"
        else:
            msg = f"HTTP error {status_code}"
        super().__init__(msg)
