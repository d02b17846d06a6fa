"""Apply many overlay items to a document in a single load/save pass."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence

import pikepdf
from pikepdf import Name, Rectangle

from pdf_workbench.document import open_document, page_size, save_document
from pdf_workbench.exceptions import PageNotFoundError
from pdf_workbench.overlay import (
    OverlayItem,
    OverlaySheet,
    TextOverlay,
    generate_overlay_document,
    place_overlay,
)

logger = logging.getLogger(__name__)


def apply_overlays(
    document: bytes,
    items: Sequence[OverlayItem],
    rendered_width: float,
    *,
    strict: bool = False,
) -> bytes:
    """Draw image and text overlays onto their target pages.

    Every item is mapped from screen space using its target page's own
    MediaBox size and the width the pages were rendered at. All items are
    rendered into one overlay document that is stamped onto the pages, so
    the text font is embedded once regardless of how many items there are.

    Args:
        document: Bytes of the PDF to edit.
        items: Overlays to apply; each targets a zero-based page index.
        rendered_width: On-screen width (pixels) the pages were shown at.
        strict: Raise instead of skipping items whose page does not exist.

    Returns:
        Bytes of the edited PDF.

    Raises:
        LoadError: If the document cannot be read.
        PageNotFoundError: If ``strict`` and an item targets a missing page.
        OverlayError: If an item cannot be placed or drawn.
        SerializeError: If the result cannot be written.
    """
    with open_document(document) as pdf:
        total = len(pdf.pages)
        sheets: dict[int, OverlaySheet] = {}

        for item in items:
            if not 0 <= item.page < total:
                if strict:
                    raise PageNotFoundError(item.page, total)
                logger.warning(
                    "Skipping overlay for page %d: document has %d pages",
                    item.page,
                    total,
                )
                continue

            width, height = page_size(pdf.pages[item.page])
            sheet = sheets.setdefault(item.page, OverlaySheet(width, height))
            sheet.placements.append(
                place_overlay(item, rendered_width, width, height)
            )

        if not sheets:
            logger.debug("No overlays to apply")
            return save_document(pdf)

        overlay_bytes = generate_overlay_document(list(sheets.values()))
        with pikepdf.open(io.BytesIO(overlay_bytes)) as overlay:
            for sheet_index, page_index in enumerate(sheets):
                _stamp_page(pdf, pdf.pages[page_index], overlay.pages[sheet_index])
            logger.debug(
                "Applied %d overlay(s) to %d page(s)",
                sum(len(s.placements) for s in sheets.values()),
                len(sheets),
            )
            return save_document(pdf)


def apply_annotations(
    document: bytes,
    annotations: Sequence[TextOverlay],
    rendered_width: float,
) -> bytes:
    """Apply a full set of text annotations, skipping ones for missing pages."""
    return apply_overlays(document, annotations, rendered_width)


def _stamp_page(
    pdf: pikepdf.Pdf, page: pikepdf.Page, overlay_page: pikepdf.Page
) -> None:
    """Place an overlay page over *page* in its unrotated user space.

    The existing content is wrapped in q/Q so any graphics state it leaves
    behind cannot shift the overlay.
    """
    formx = pdf.copy_foreign(overlay_page.as_form_xobject())
    name = page.add_resource(formx, Name.XObject, prefix="Ovl")
    placement = page.calc_form_xobject_placement(
        formx,
        name,
        Rectangle(page.mediabox),
        invert_transformations=False,
        allow_shrink=False,
        allow_expand=False,
    )
    page.contents_add(pikepdf.Stream(pdf, b"q\n"), prepend=True)
    page.contents_add(pikepdf.Stream(pdf, b"\nQ\n" + placement), prepend=False)
