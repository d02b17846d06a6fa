#!/usr/bin/env python3
"""CLI script for visual verification of overlay placement.

Usage:
    # Generate a numbered sample PDF
    python scripts/overlay_demo.py --generate-sample sample.pdf --pages 3

    # Draw corner markers on every page as if the pages were shown 800px wide
    python scripts/overlay_demo.py sample.pdf marked.pdf --rendered-width 800

    # Same, with a PNG in the top-left corner of page 1
    python scripts/overlay_demo.py sample.pdf marked.pdf --image logo.png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running from project root without install
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from pdf_workbench.batch import apply_overlays
from pdf_workbench.document import describe_pages
from pdf_workbench.overlay import ImageFormat, ImageOverlay, TextOverlay

# Page sizes in points
PAGE_SIZES = {
    "a4": (595.28, 841.89),
    "letter": (612.0, 792.0),
}


def generate_sample_pdf(path: Path, page_size: str, pages: int) -> None:
    """Generate a sample PDF with a large page number on every page."""
    from reportlab.pdfgen import canvas

    w, h = PAGE_SIZES[page_size]
    c = canvas.Canvas(str(path), pagesize=(w, h))
    for number in range(1, pages + 1):
        c.setFont("Helvetica", 96)
        c.drawCentredString(w / 2, h / 2, str(number))
        c.setFont("Helvetica", 12)
        c.drawString(72, h - 72, f"Sample page {number} of {pages}")
        c.showPage()
    c.save()
    print(f"Generated sample PDF: {path} ({pages} pages, {page_size.upper()})")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Visual overlay placement verification tool",
    )
    parser.add_argument("input", nargs="?", help="Input PDF")
    parser.add_argument("output", nargs="?", help="Output PDF")
    parser.add_argument(
        "--generate-sample", metavar="PATH",
        help="Generate a sample PDF",
    )
    parser.add_argument(
        "--page-size", choices=["a4", "letter"], default="a4",
    )
    parser.add_argument("--pages", type=int, default=3)
    parser.add_argument(
        "--rendered-width", type=float, default=800.0,
        help="Screen width the coordinates are expressed in",
    )
    parser.add_argument("--image", type=Path, help="PNG or JPEG to place")

    args = parser.parse_args()

    if args.generate_sample:
        generate_sample_pdf(Path(args.generate_sample), args.page_size, args.pages)
        return

    if not args.input or not args.output:
        parser.error(
            "input and output paths required "
            "(or use --generate-sample)",
        )

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: {input_path} not found", file=sys.stderr)
        sys.exit(1)

    original_pdf = input_path.read_bytes()
    width = args.rendered_width
    items: list[TextOverlay | ImageOverlay] = []
    for page in describe_pages(original_pdf):
        # Screen height of this page at the chosen rendered width
        height = width * page.height / page.width
        print(
            f"Page {page.index + 1}: {page.width:.0f} x {page.height:.0f} pt, "
            f"rotation {page.rotation}, shown as {width:.0f} x {height:.0f} px"
        )
        items.append(TextOverlay(page.index, 10, 10, 16, "top-left", (0.8, 0, 0)))
        items.append(
            TextOverlay(page.index, 10, height - 26, 16, "bottom-left", (0, 0, 0.8))
        )

    if args.image:
        mime = "image/png" if args.image.suffix.lower() == ".png" else "image/jpeg"
        items.append(
            ImageOverlay(
                page=0,
                x=width - 110,
                y=10,
                width=100,
                height=100,
                data=args.image.read_bytes(),
                image_format=ImageFormat.from_mime(mime),
            )
        )

    result = apply_overlays(original_pdf, items, width)
    Path(args.output).write_bytes(result)
    print(f"Output: {args.output} ({len(result)} bytes, {len(items)} overlays)")


if __name__ == "__main__":
    main()
