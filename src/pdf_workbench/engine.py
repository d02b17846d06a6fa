"""Document engine: merge, extract, rotate and overlay operations.

Every operation takes raw PDF bytes, performs one load → mutate → save
cycle and returns newly allocated bytes. Nothing is kept between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from contextlib import ExitStack

import pikepdf
from pikepdf import Name

from pdf_workbench.batch import apply_overlays
from pdf_workbench.document import current_rotation, open_document, save_document
from pdf_workbench.exceptions import (
    EmptySelectionError,
    NoDocumentsError,
    PageNotFoundError,
)
from pdf_workbench.overlay import OverlayItem

logger = logging.getLogger(__name__)


def normalize_rotation(angle: int) -> int:
    """Fold any angle into [0, 360)."""
    return angle % 360


def _pin_rotation(page: pikepdf.Page) -> pikepdf.Page:
    """Store an inherited /Rotate on the page itself so it survives copying."""
    if Name.Rotate not in page.obj:
        page.obj[Name.Rotate] = current_rotation(page)
    return page


def merge_documents(documents: Sequence[bytes]) -> bytes:
    """Concatenate all pages of *documents*, in order, into one PDF.

    Source documents stay open until the merged output has been written,
    since copied pages may still reference their stream data.

    Raises:
        NoDocumentsError: If *documents* is empty.
        LoadError: If any input is not a readable PDF.
        SerializeError: If the merged document cannot be written.
    """
    if not documents:
        raise NoDocumentsError("At least one document is required to merge")

    with pikepdf.new() as merged, ExitStack() as stack:
        for position, data in enumerate(documents, start=1):
            src = stack.enter_context(
                open_document(data, label=f"document {position}")
            )
            for page in src.pages:
                _pin_rotation(page)
            merged.pages.extend(src.pages)
            logger.debug("Merged %d page(s) from document %d", len(src.pages), position)

        return save_document(merged)


def extract_pages(document: bytes, selection: Sequence[int]) -> bytes:
    """Copy the selected zero-based pages, in ascending order, into a new PDF.

    Raises:
        EmptySelectionError: If *selection* is empty.
        LoadError: If the document cannot be read.
        PageNotFoundError: If a selected page does not exist.
        SerializeError: If the output cannot be written.
    """
    if not selection:
        raise EmptySelectionError("No pages selected")

    indices = sorted(set(selection))
    with open_document(document) as src, pikepdf.new() as out:
        total = len(src.pages)
        for index in indices:
            if not 0 <= index < total:
                raise PageNotFoundError(index, total)

        for index in indices:
            out.pages.append(_pin_rotation(src.pages[index]))

        return save_document(out)


def rotate_pages(document: bytes, rotations: Mapping[int, int]) -> bytes:
    """Add a rotation delta to each listed page.

    The new angle is stored as the page's absolute /Rotate, normalized into
    [0, 360). Pages without an entry are untouched; entries for pages the
    document does not have are ignored.
    """
    with open_document(document) as pdf:
        total = len(pdf.pages)
        for index, delta in sorted(rotations.items()):
            if not 0 <= index < total:
                logger.debug(
                    "Ignoring rotation for page %d: document has %d pages",
                    index,
                    total,
                )
                continue
            page = pdf.pages[index]
            angle = normalize_rotation(current_rotation(page) + delta)
            page.obj[Name.Rotate] = angle

        return save_document(pdf)


def insert_overlay(
    document: bytes, item: OverlayItem, rendered_width: float
) -> bytes:
    """Draw a single image or text overlay onto its target page.

    Raises:
        PageNotFoundError: If the item's page does not exist.
    """
    return apply_overlays(document, [item], rendered_width, strict=True)
