"""Mapping between on-screen pixel space and PDF user space.

Screen space has its origin at the top-left with Y growing downward and is
measured in pixels of the rendered page. PDF user space has its origin at
the bottom-left with Y growing upward and is measured in points. The only
link between the two is the ratio of the page's width in points to the
width it was rendered at.
"""

from __future__ import annotations

from dataclasses import dataclass

from pdf_workbench.exceptions import OverlayError


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle anchored at (x, y) in its own coordinate space."""

    x: float
    y: float
    width: float
    height: float


def render_scale(page_width: float, rendered_width: float) -> float:
    """Points per screen pixel for a page rendered at *rendered_width*."""
    if rendered_width <= 0:
        raise OverlayError(f"Invalid rendered width: {rendered_width}")
    return page_width / rendered_width


def screen_to_document(
    rect: Rect,
    rendered_width: float,
    page_width: float,
    page_height: float,
) -> Rect:
    """Convert a top-left anchored screen rectangle into PDF user space.

    The result is anchored at its bottom-left corner, as PDF drawing
    operators expect.
    """
    scale = render_scale(page_width, rendered_width)
    width = rect.width * scale
    height = rect.height * scale
    return Rect(
        x=rect.x * scale,
        y=page_height - rect.y * scale - height,
        width=width,
        height=height,
    )


def document_to_screen(
    rect: Rect,
    rendered_width: float,
    page_width: float,
    page_height: float,
) -> Rect:
    """Inverse of :func:`screen_to_document`."""
    scale = render_scale(page_width, rendered_width)
    return Rect(
        x=rect.x / scale,
        y=(page_height - rect.y - rect.height) / scale,
        width=rect.width / scale,
        height=rect.height / scale,
    )


def text_to_document(
    x: float,
    y: float,
    font_size: float,
    rendered_width: float,
    page_width: float,
    page_height: float,
) -> tuple[float, float, float]:
    """Map a text anchor and font size to (x, baseline y, font size) in points.

    The glyph box height is approximated by the font size itself, so the
    baseline lands one font size below the on-screen top edge.
    """
    box = screen_to_document(
        Rect(x, y, 0.0, font_size), rendered_width, page_width, page_height
    )
    return box.x, box.y, box.height
