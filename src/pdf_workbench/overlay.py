"""Overlay items and their rendering into a ReportLab overlay document."""

from __future__ import annotations

import enum
import io
from dataclasses import dataclass, field

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from pdf_workbench.exceptions import ImageEmbedError, OverlayError
from pdf_workbench.geometry import Rect, screen_to_document, text_to_document

# Helvetica is a PDF base-14 font, so ReportLab needs no registration for it
_FONT_NAME = "Helvetica"

_LINE_SPACING = 1.2  # line advance relative to font size for multi-line text

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_JPEG_SIGNATURE = b"\xff\xd8\xff"

RGB = tuple[float, float, float]


class ImageFormat(enum.Enum):
    """Raster formats that can be embedded as image overlays."""

    PNG = "image/png"
    JPEG = "image/jpeg"

    @classmethod
    def from_mime(cls, mime: str) -> ImageFormat:
        """Resolve a declared MIME type, raising OverlayError if unsupported."""
        normalized = mime.strip().lower()
        if normalized == "image/png":
            return cls.PNG
        if normalized in ("image/jpeg", "image/jpg", "image/pjpeg"):
            return cls.JPEG
        raise OverlayError(f"Unsupported image type: {mime}")

    @property
    def signature(self) -> bytes:
        return _PNG_SIGNATURE if self is ImageFormat.PNG else _JPEG_SIGNATURE

    def embed(self, data: bytes) -> ImageReader:
        """Wrap image bytes for drawing, checking they match this format."""
        if not data.startswith(self.signature):
            raise ImageEmbedError(f"Image data is not a valid {self.name} file")
        try:
            return ImageReader(io.BytesIO(data))
        except (OSError, ValueError) as e:
            raise ImageEmbedError(f"Cannot read {self.name} image: {e}") from e


@dataclass(frozen=True)
class ImageOverlay:
    """An image placed by the user at screen coordinates on a page."""

    page: int
    x: float
    y: float
    width: float
    height: float
    data: bytes = field(repr=False)
    image_format: ImageFormat = ImageFormat.PNG

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise OverlayError(f"Invalid image size: {self.width}x{self.height}")


@dataclass(frozen=True)
class TextOverlay:
    """A text item placed by the user; (x, y) is its top-left on screen."""

    page: int
    x: float
    y: float
    font_size: float
    text: str
    color: RGB = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if len(self.color) != 3 or not all(0.0 <= c <= 1.0 for c in self.color):
            raise OverlayError(f"Invalid RGB color: {self.color}")
        if self.font_size <= 0:
            raise OverlayError(f"Invalid font size: {self.font_size}")


OverlayItem = ImageOverlay | TextOverlay


@dataclass(frozen=True)
class OverlayPlacement:
    """An overlay item mapped into the user space of its target page."""

    item: OverlayItem
    box: Rect


@dataclass
class OverlaySheet:
    """All placements destined for one page, sized like that page."""

    page_width: float
    page_height: float
    placements: list[OverlayPlacement] = field(default_factory=list)


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert hex color string to (r, g, b) floats in [0, 1]."""
    h = hex_color.lstrip("#")
    if len(h) != 6:
        raise OverlayError(f"Invalid hex color: {hex_color}")
    try:
        r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    except ValueError as e:
        raise OverlayError(f"Invalid hex color: {hex_color}") from e
    return r / 255.0, g / 255.0, b / 255.0


def place_overlay(
    item: OverlayItem,
    rendered_width: float,
    page_width: float,
    page_height: float,
) -> OverlayPlacement:
    """Map an item's screen placement into page user space.

    For text, the box is anchored at the baseline and its height is the
    font size in points; the width is left at zero.
    """
    if isinstance(item, TextOverlay):
        x, y, size = text_to_document(
            item.x, item.y, item.font_size, rendered_width, page_width, page_height
        )
        return OverlayPlacement(item=item, box=Rect(x, y, 0.0, size))

    box = screen_to_document(
        Rect(item.x, item.y, item.width, item.height),
        rendered_width,
        page_width,
        page_height,
    )
    return OverlayPlacement(item=item, box=box)


def generate_overlay_document(sheets: list[OverlaySheet]) -> bytes:
    """Render overlay sheets into a PDF with one page per sheet.

    All sheets share a single canvas, so the text font resource is
    created once for the whole document.

    Raises:
        OverlayError: If there is nothing to render or a sheet has an
            invalid size.
        ImageEmbedError: If an image overlay cannot be embedded.
    """
    if not sheets:
        raise OverlayError("At least one overlay sheet is required")

    buf = io.BytesIO()
    first = sheets[0]
    c = canvas.Canvas(buf, pagesize=(first.page_width, first.page_height))

    for sheet in sheets:
        if sheet.page_width <= 0 or sheet.page_height <= 0:
            raise OverlayError(
                f"Invalid page dimensions: {sheet.page_width}x{sheet.page_height}"
            )
        c.setPageSize((sheet.page_width, sheet.page_height))
        for placement in sheet.placements:
            if isinstance(placement.item, TextOverlay):
                _draw_text(c, placement.item, placement.box)
            else:
                _draw_image(c, placement.item, placement.box)
        c.showPage()

    c.save()
    return buf.getvalue()


def _draw_text(c: canvas.Canvas, item: TextOverlay, box: Rect) -> None:
    c.saveState()
    c.setFillColorRGB(*item.color)
    c.setFont(_FONT_NAME, box.height)
    baseline = box.y
    for line in item.text.split("\n"):
        c.drawString(box.x, baseline, line)
        baseline -= box.height * _LINE_SPACING
    c.restoreState()


def _draw_image(c: canvas.Canvas, item: ImageOverlay, box: Rect) -> None:
    image = item.image_format.embed(item.data)
    c.drawImage(image, box.x, box.y, width=box.width, height=box.height, mask="auto")
