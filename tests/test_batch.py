"""Unit tests for batched overlay application."""

from __future__ import annotations

import io
import logging

import pikepdf
import pytest

from pdf_workbench.batch import apply_annotations, apply_overlays
from pdf_workbench.exceptions import LoadError, PageNotFoundError
from pdf_workbench.overlay import ImageFormat, ImageOverlay, TextOverlay

from .conftest import A4_HEIGHT, A4_WIDTH, _make_pdf, _page_widths


def _overlay_xobjects(page: pikepdf.Page) -> list[pikepdf.Object]:
    resources = page.obj.get("/Resources")
    if resources is None or "/XObject" not in resources:
        return []
    return [xobj for _, xobj in resources.XObject.items()]


def _fonts(pdf: pikepdf.Pdf) -> set[tuple[int, int]]:
    found: set[tuple[int, int]] = set()
    for page in pdf.pages:
        for xobj in _overlay_xobjects(page):
            fonts = xobj.get("/Resources", {}).get("/Font", {})
            for _, font in fonts.items():
                found.add(font.objgen)
    return found


class TestApplyAnnotations:
    def test_annotations_on_several_pages(self, multipage_pdf):
        notes = [
            TextOverlay(0, 20, 20, 14, "first"),
            TextOverlay(2, 20, 20, 14, "third"),
            TextOverlay(2, 20, 60, 14, "third again", color=(0, 0, 1)),
        ]
        result = apply_annotations(multipage_pdf, notes, 800)
        with pikepdf.open(io.BytesIO(result)) as pdf:
            assert len(pdf.pages) == 3
            assert len(_overlay_xobjects(pdf.pages[0])) == 1
            assert _overlay_xobjects(pdf.pages[1]) == []
            # both items for page 3 share one overlay sheet
            assert len(_overlay_xobjects(pdf.pages[2])) == 1

    def test_one_font_for_all_pages(self, multipage_pdf):
        notes = [TextOverlay(i, 20, 20, 14, f"page {i}") for i in range(3)]
        result = apply_annotations(multipage_pdf, notes, 800)
        with pikepdf.open(io.BytesIO(result)) as pdf:
            assert len(_fonts(pdf)) == 1

    def test_missing_page_skipped_with_warning(self, multipage_pdf, caplog):
        notes = [
            TextOverlay(0, 20, 20, 14, "kept"),
            TextOverlay(9, 20, 20, 14, "stale"),
        ]
        with caplog.at_level(logging.WARNING, logger="pdf_workbench.batch"):
            result = apply_annotations(multipage_pdf, notes, 800)
        assert "Skipping overlay for page 9" in caplog.text
        with pikepdf.open(io.BytesIO(result)) as pdf:
            assert len(_overlay_xobjects(pdf.pages[0])) == 1

    def test_all_missing_still_returns_document(self, multipage_pdf):
        result = apply_annotations(multipage_pdf, [TextOverlay(5, 0, 0, 10, "x")], 800)
        assert len(_page_widths(result)) == 3

    def test_no_annotations(self, a4_pdf):
        result = apply_annotations(a4_pdf, [], 800)
        assert len(_page_widths(result)) == 1

    def test_load_failure_is_fatal(self):
        with pytest.raises(LoadError):
            apply_annotations(b"garbage", [TextOverlay(0, 0, 0, 10, "x")], 800)


class TestApplyOverlays:
    def test_mixed_items_single_pass(self, multipage_pdf, png_bytes, jpeg_bytes):
        items = [
            ImageOverlay(0, 10, 10, 100, 80, png_bytes, ImageFormat.PNG),
            TextOverlay(0, 10, 120, 16, "caption"),
            ImageOverlay(1, 50, 50, 40, 40, jpeg_bytes, ImageFormat.JPEG),
        ]
        result = apply_overlays(multipage_pdf, items, 800)
        with pikepdf.open(io.BytesIO(result)) as pdf:
            assert len(_overlay_xobjects(pdf.pages[0])) == 1
            assert len(_overlay_xobjects(pdf.pages[1])) == 1
            assert _overlay_xobjects(pdf.pages[2]) == []

    def test_strict_raises_for_missing_page(self, multipage_pdf):
        with pytest.raises(PageNotFoundError):
            apply_overlays(
                multipage_pdf, [TextOverlay(3, 0, 0, 10, "x")], 800, strict=True
            )

    def test_overlay_sized_like_page(self, a4_pdf):
        result = apply_overlays(a4_pdf, [TextOverlay(0, 0, 0, 10, "x")], 800)
        with pikepdf.open(io.BytesIO(result)) as pdf:
            (xobj,) = _overlay_xobjects(pdf.pages[0])
            bbox = [float(v) for v in xobj.BBox]
            assert bbox[2] - bbox[0] == pytest.approx(A4_WIDTH, abs=1)
            assert bbox[3] - bbox[1] == pytest.approx(A4_HEIGHT, abs=1)

    def test_offset_mediabox(self):
        pdf = pikepdf.new()
        pdf.add_blank_page(page_size=(200, 300))
        pdf.pages[0].obj.MediaBox = pikepdf.Array([50, 60, 250, 360])
        buf = io.BytesIO()
        pdf.save(buf)

        result = apply_overlays(buf.getvalue(), [TextOverlay(0, 0, 0, 10, "x")], 200)
        with pikepdf.open(io.BytesIO(result)) as out:
            placements = [
                [float(v) for v in operands]
                for operands, op in pikepdf.parse_content_stream(out.pages[0])
                if str(op) == "cm"
            ]
            assert placements[-1][4:] == pytest.approx([50, 60])

    def test_original_content_kept(self):
        base = _make_pdf(300, 300, pages=1)
        result = apply_overlays(base, [TextOverlay(0, 5, 5, 10, "x")], 300)
        with pikepdf.open(io.BytesIO(result)) as pdf:
            ops = [str(op) for _, op in pikepdf.parse_content_stream(pdf.pages[0])]
            assert ops[0] == "q"
            assert "Do" in ops


def _overlay_operations(
    pdf_bytes: bytes, page_index: int = 0
) -> list[tuple[str, list]]:
    """Operators and operands drawn by the overlay stamped on a page."""
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        (xobj,) = _overlay_xobjects(pdf.pages[page_index])
        return [
            (str(op), list(operands))
            for operands, op in pikepdf.parse_content_stream(xobj)
        ]


def _operands_before(ops: list[tuple[str, list]], operator: str, marker: str) -> list:
    """Operands of the last *operator* that precedes the first *marker*."""
    found: list = []
    for op, operands in ops:
        if op == marker:
            return found
        if op == operator:
            found = operands
    raise AssertionError(f"{marker} not found")


class TestOverlayPlacement:
    # 612 pt wide page shown at 306 px: one screen pixel is two points
    def test_image_drawn_at_mapped_box(self, letter_pdf, png_bytes):
        item = ImageOverlay(0, 10, 20, 100, 50, png_bytes, ImageFormat.PNG)
        ops = _overlay_operations(apply_overlays(letter_pdf, [item], 306))
        matrix = [float(v) for v in _operands_before(ops, "cm", "Do")]
        assert matrix == pytest.approx([200, 0, 0, 100, 20, 652])

    def test_text_drawn_at_mapped_baseline(self, letter_pdf):
        item = TextOverlay(0, 10, 20, 12, "Approved")
        ops = _overlay_operations(apply_overlays(letter_pdf, [item], 306))

        font = _operands_before(ops, "Tf", "Tj")
        assert float(font[1]) == pytest.approx(24)

        origin = [float(v) for v in _operands_before(ops, "Tm", "Tj")]
        # baseline: 792 - 20 * 2 - 12 * 2
        assert origin == pytest.approx([1, 0, 0, 1, 20, 728])

    def test_placement_follows_target_page(self, png_bytes):
        doc = _make_pdf(200, 300, pages=2)
        items = [
            TextOverlay(0, 0, 0, 10, "first"),
            ImageOverlay(1, 50, 100, 20, 10, png_bytes, ImageFormat.PNG),
        ]
        result = apply_overlays(doc, items, 100)
        ops = _overlay_operations(result, page_index=1)
        matrix = [float(v) for v in _operands_before(ops, "cm", "Do")]
        # scale 2: box (100, 300 - 200 - 20) sized 40 x 20
        assert matrix == pytest.approx([40, 0, 0, 20, 100, 80])
