"""
pdf-workbench - command line interface

Merge, split, rotate and annotate PDF documents. Sources may be local paths
or http(s) URLs.

Usage:
    pdf-workbench merge a.pdf b.pdf
    pdf-workbench split report.pdf --pages "1, 3-5, 8"
    pdf-workbench rotate scan.pdf --angle 90 --pages 2
    pdf-workbench annotate form.pdf notes.json --rendered-width 800
    pdf-workbench info report.pdf
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pdf_workbench.exceptions import WorkbenchError
from pdf_workbench.sources import SourceLoader
from pdf_workbench.workbench import (
    OperationResult,
    WorkbenchConfig,
    annotate_source,
    inspect_source,
    merge_sources,
    rotate_source,
    split_source,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog="pdf-workbench",
        description="Merge, split, rotate and annotate PDF documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  PDF_WORKBENCH_OUTPUT_DIR       Directory for output files (default: .)
  PDF_WORKBENCH_RENDERED_WIDTH   Screen width annotations were placed at (default: 800)
  PDF_WORKBENCH_TEXT_COLOR       Default text annotation color (default: #000000)
  PDF_WORKBENCH_FETCH_TIMEOUT    Timeout in seconds for URL sources (default: 30)
  PDF_WORKBENCH_LOG_LEVEL        Logging level (default: INFO)
""",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file path (default: <output-dir>/<operation>-<name>)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for output files (overrides PDF_WORKBENCH_OUTPUT_DIR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    merge = commands.add_parser("merge", help="Combine documents in order")
    merge.add_argument("sources", nargs="+", help="PDF paths or URLs")

    split = commands.add_parser("split", help="Extract selected pages")
    split.add_argument("source", help="PDF path or URL")
    split.add_argument(
        "-p",
        "--pages",
        required=True,
        help='Pages to keep, e.g. "1, 3-5, 8"',
    )

    rotate = commands.add_parser("rotate", help="Rotate pages")
    rotate.add_argument("source", help="PDF path or URL")
    rotate.add_argument(
        "-a",
        "--angle",
        type=int,
        default=90,
        help="Rotation in degrees, a multiple of 90; negative is counter-clockwise"
        " (default: 90)",
    )
    rotate.add_argument(
        "-p",
        "--pages",
        help="Pages to rotate (default: all pages)",
    )

    annotate = commands.add_parser("annotate", help="Draw text and image overlays")
    annotate.add_argument("source", help="PDF path or URL")
    annotate.add_argument("annotations", type=Path, help="JSON file of overlays")
    annotate.add_argument(
        "-w",
        "--rendered-width",
        type=float,
        help="Screen width (pixels) the overlays were placed at",
    )

    info = commands.add_parser("info", help="Show page count, sizes and rotation")
    info.add_argument("source", help="PDF path or URL")

    return parser


def _report(result: OperationResult) -> int:
    if result.success:
        print(f"Wrote {result.output_path} ({result.page_count} pages)")
        return 0
    print(f"Error: {result.error_message}", file=sys.stderr)
    return 1


def _show_info(ref: str, loader: SourceLoader) -> int:
    try:
        source, pages = inspect_source(ref, loader)
    except WorkbenchError as exc:
        logger.error("Failed to inspect %s: %s", ref, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"{source.name}: {len(pages)} pages")
    for page in pages:
        print(
            f"  page {page.index + 1}: {page.width:.2f} x {page.height:.2f} pt,"
            f" rotation {page.rotation}"
        )
    return 0


def run(args: argparse.Namespace, config: WorkbenchConfig) -> int:
    """Dispatch parsed arguments to the matching workbench operation."""
    if args.output_dir is not None:
        config.output_dir = args.output_dir
    if getattr(args, "rendered_width", None) is not None:
        if args.rendered_width <= 0:
            print("Error: --rendered-width must be positive", file=sys.stderr)
            return 2
        config.rendered_width = args.rendered_width

    with SourceLoader(timeout=config.fetch_timeout) as loader:
        if args.command == "merge":
            result = merge_sources(args.sources, config, loader, args.output)
        elif args.command == "split":
            result = split_source(args.source, args.pages, config, loader, args.output)
        elif args.command == "rotate":
            result = rotate_source(
                args.source, args.angle, config, loader, args.pages, args.output
            )
        elif args.command == "annotate":
            result = annotate_source(
                args.source, args.annotations, config, loader, args.output
            )
        else:
            return _show_info(args.source, loader)

    return _report(result)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = WorkbenchConfig.from_env()
    except ValueError as exc:
        logging.basicConfig(level=logging.ERROR, stream=sys.stdout)
        logging.getLogger(__name__).error("Configuration error: %s", exc)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    return run(args, config)
