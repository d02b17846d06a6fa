"""Shared pytest fixtures for pdf-workbench tests."""

from __future__ import annotations

import io

import pikepdf
import pytest
from PIL import Image

# Standard page sizes in points
A4_WIDTH, A4_HEIGHT = 595.28, 841.89
LETTER_WIDTH, LETTER_HEIGHT = 612.0, 792.0


def _make_pdf(width: float, height: float, pages: int = 1) -> bytes:
    """Create a minimal blank PDF with the given dimensions."""
    pdf = pikepdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(width, height))

    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def _make_sized_pdf(widths: list[float], height: float = 500.0) -> bytes:
    """Create a PDF whose pages are told apart by their widths."""
    pdf = pikepdf.new()
    for width in widths:
        pdf.add_blank_page(page_size=(width, height))

    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def _page_widths(pdf_bytes: bytes) -> list[float]:
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        return [float(p.mediabox[2]) - float(p.mediabox[0]) for p in pdf.pages]


def _rotations(pdf_bytes: bytes) -> list[int]:
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        return [int(p.obj.get("/Rotate", 0)) for p in pdf.pages]


def _image_bytes(fmt: str, size: tuple[int, int] = (8, 8)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, fmt)
    return buf.getvalue()


@pytest.fixture
def a4_pdf() -> bytes:
    """Single-page A4 PDF."""
    return _make_pdf(A4_WIDTH, A4_HEIGHT)


@pytest.fixture
def letter_pdf() -> bytes:
    """Single-page US Letter PDF."""
    return _make_pdf(LETTER_WIDTH, LETTER_HEIGHT)


@pytest.fixture
def multipage_pdf() -> bytes:
    """Three-page A4 PDF."""
    return _make_pdf(A4_WIDTH, A4_HEIGHT, pages=3)


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")
