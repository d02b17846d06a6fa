"""Loading, saving and inspecting PDF documents with pikepdf."""

from __future__ import annotations

import io
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import pikepdf
from pikepdf import Name

from pdf_workbench.exceptions import LoadError, PageNotFoundError, SerializeError


@dataclass(frozen=True)
class PageInfo:
    """Size (in points) and rotation of a single page."""

    index: int
    width: float
    height: float
    rotation: int


@contextmanager
def open_document(data: bytes, label: str = "document") -> Iterator[pikepdf.Pdf]:
    """Open PDF bytes for editing; the caller's buffer is never modified.

    Raises:
        LoadError: If the bytes are not a readable PDF.
    """
    try:
        pdf = pikepdf.open(io.BytesIO(data))
    except pikepdf.PasswordError as e:
        raise LoadError(f"{label.capitalize()} is encrypted: {e}") from e
    except pikepdf.PdfError as e:
        raise LoadError(f"Invalid PDF ({label}): {e}") from e

    with pdf:
        yield pdf


def save_document(pdf: pikepdf.Pdf) -> bytes:
    """Serialize a document into a fresh bytes object.

    Raises:
        SerializeError: If pikepdf cannot write the document.
    """
    buf = io.BytesIO()
    try:
        pdf.save(buf)
    except pikepdf.PdfError as e:
        raise SerializeError(f"Failed to write PDF: {e}") from e
    return buf.getvalue()


def page_size(page: pikepdf.Page) -> tuple[float, float]:
    """Return the MediaBox (width, height) of a page in points."""
    box = page.mediabox
    width = float(box[2]) - float(box[0])
    height = float(box[3]) - float(box[1])
    return width, height


def current_rotation(page: pikepdf.Page) -> int:
    """Return the page's effective /Rotate, following page-tree inheritance."""
    node = page.obj
    while node is not None:
        if Name.Rotate in node:
            return int(node[Name.Rotate]) % 360
        node = node.get(Name.Parent)
    return 0


def page_count(data: bytes) -> int:
    """Return the number of pages in a PDF."""
    with open_document(data) as pdf:
        return len(pdf.pages)


def get_page_dimensions(data: bytes, index: int = 0) -> tuple[float, float]:
    """Read the MediaBox of one page and return (width, height) in points.

    Raises:
        LoadError: If the PDF cannot be read.
        PageNotFoundError: If the page does not exist.
    """
    with open_document(data) as pdf:
        total = len(pdf.pages)
        if not 0 <= index < total:
            raise PageNotFoundError(index, total)
        return page_size(pdf.pages[index])


def describe_pages(data: bytes) -> list[PageInfo]:
    """Return size and rotation for every page, in document order."""
    with open_document(data) as pdf:
        infos: list[PageInfo] = []
        for index, page in enumerate(pdf.pages):
            width, height = page_size(page)
            infos.append(
                PageInfo(
                    index=index,
                    width=width,
                    height=height,
                    rotation=current_rotation(page),
                )
            )
        return infos
