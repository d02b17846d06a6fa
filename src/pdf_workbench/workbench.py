"""Orchestration of engine operations: load sources, run, write artifacts."""

from __future__ import annotations

import json
import logging
import mimetypes
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pdf_workbench.batch import apply_overlays
from pdf_workbench.document import PageInfo, describe_pages, page_count
from pdf_workbench.engine import extract_pages, merge_documents, rotate_pages
from pdf_workbench.exceptions import (
    EmptySelectionError,
    OverlayError,
    RotationError,
    WorkbenchError,
)
from pdf_workbench.overlay import (
    RGB,
    ImageFormat,
    ImageOverlay,
    OverlayItem,
    TextOverlay,
    hex_to_rgb,
)
from pdf_workbench.page_range import parse_page_range
from pdf_workbench.sources import Source, SourceLoader

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "."
DEFAULT_RENDERED_WIDTH = 800.0
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"

MERGED_FILENAME = "merged-document.pdf"
OUTPUT_PREFIXES = {
    "split": "split-",
    "rotate": "rotated-",
    "annotate": "edited-",
}


@dataclass
class WorkbenchConfig:
    """Runtime configuration shared by all operations."""

    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    rendered_width: float = DEFAULT_RENDERED_WIDTH
    text_color: str = DEFAULT_TEXT_COLOR
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> WorkbenchConfig:
        """Build configuration from environment variables."""
        output_dir = Path(
            os.environ.get("PDF_WORKBENCH_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)
        )
        rendered_width = _env_float(
            "PDF_WORKBENCH_RENDERED_WIDTH", DEFAULT_RENDERED_WIDTH
        )
        if rendered_width <= 0:
            raise ValueError("PDF_WORKBENCH_RENDERED_WIDTH must be positive")

        fetch_timeout = _env_float(
            "PDF_WORKBENCH_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT
        )

        text_color = os.environ.get("PDF_WORKBENCH_TEXT_COLOR", DEFAULT_TEXT_COLOR)
        try:
            hex_to_rgb(text_color)
        except OverlayError as exc:
            raise ValueError(f"PDF_WORKBENCH_TEXT_COLOR: {exc}") from exc

        log_level = os.environ.get(
            "PDF_WORKBENCH_LOG_LEVEL", DEFAULT_LOG_LEVEL
        ).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Unknown PDF_WORKBENCH_LOG_LEVEL: {log_level}")

        return cls(
            output_dir=output_dir,
            rendered_width=rendered_width,
            text_color=text_color,
            fetch_timeout=fetch_timeout,
            log_level=log_level,
        )

    @property
    def default_rgb(self) -> RGB:
        return hex_to_rgb(self.text_color)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class OperationResult:
    """Outcome of a single workbench operation."""

    operation: str
    success: bool
    output_path: Path | None = None
    page_count: int | None = None
    error_message: str | None = None
    processing_ms: int | None = None


def output_filename(operation: str, original_name: str | None = None) -> str:
    """Name an artifact: ``merged-document.pdf`` or ``<prefix><original>``."""
    if operation == "merge":
        return MERGED_FILENAME
    prefix = OUTPUT_PREFIXES.get(operation)
    if prefix is None:
        raise ValueError(f"Unknown operation: {operation}")
    return f"{prefix}{original_name or 'document.pdf'}"


def validate_rotation_delta(delta: int) -> int:
    """Reject rotation deltas that are not whole quarter turns."""
    if delta % 90 != 0:
        raise RotationError(f"Rotation must be a multiple of 90 degrees, got {delta}")
    return delta


def build_rotation_map(
    delta: int, total_pages: int, pages: str | None = None
) -> dict[int, int]:
    """Map each selected page (all pages when *pages* is None) to *delta*."""
    validate_rotation_delta(delta)
    if pages is None:
        indices = list(range(total_pages))
    else:
        indices = parse_page_range(pages, total_pages)
        if not indices:
            raise EmptySelectionError(f"Invalid page range: {pages!r}")
    return {index: delta for index in indices}


def _parse_color(value: Any, default: RGB) -> RGB:
    if value is None:
        return default
    if isinstance(value, str):
        return hex_to_rgb(value)
    if isinstance(value, dict):
        return (
            float(value.get("r", 0.0)),
            float(value.get("g", 0.0)),
            float(value.get("b", 0.0)),
        )
    raise OverlayError(f"Invalid color value: {value!r}")


def _parse_record(
    record: dict[str, Any], base_dir: Path, default_color: RGB
) -> OverlayItem:
    if not isinstance(record, dict):
        raise OverlayError(f"Invalid annotation record {record!r}")
    kind = record.get("type", "text")
    try:
        page = int(record.get("page", 1)) - 1
        x, y = float(record["x"]), float(record["y"])

        if kind == "text":
            return TextOverlay(
                page=page,
                x=x,
                y=y,
                font_size=float(record.get("size", 12)),
                text=str(record["text"]),
                color=_parse_color(record.get("color"), default_color),
            )

        if kind == "image":
            image_path = base_dir / record["path"]
            mime = record.get("mime") or mimetypes.guess_type(image_path.name)[0]
            if not mime:
                raise OverlayError(f"Cannot determine image type of {image_path}")
            try:
                data = image_path.read_bytes()
            except OSError as exc:
                raise OverlayError(f"Cannot read image {image_path}: {exc}") from exc
            return ImageOverlay(
                page=page,
                x=x,
                y=y,
                width=float(record["width"]),
                height=float(record["height"]),
                data=data,
                image_format=ImageFormat.from_mime(mime),
            )
    except KeyError as exc:
        raise OverlayError(f"Annotation record missing field {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise OverlayError(f"Invalid annotation record {record!r}: {exc}") from exc

    raise OverlayError(f"Unknown annotation type: {kind!r}")


def load_annotations(path: Path, config: WorkbenchConfig) -> list[OverlayItem]:
    """Read overlay items from a JSON file.

    The file holds a list of records (or ``{"annotations": [...]}``) with
    1-based ``page`` numbers and screen coordinates. Text records carry
    ``text``, ``size`` and an optional ``color``; image records carry
    ``path`` (relative to the JSON file), ``width``, ``height`` and an
    optional ``mime``.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise OverlayError(f"Cannot read annotations file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise OverlayError(f"Invalid annotations file {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("annotations", [])
    if not isinstance(payload, list):
        raise OverlayError(f"Annotations file {path} must contain a list")

    default_color = config.default_rgb
    return [_parse_record(r, path.parent, default_color) for r in payload]


def _write_output(
    data: bytes, name: str, config: WorkbenchConfig, output: Path | None
) -> Path:
    target = output if output is not None else config.output_dir / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target


def _run(
    operation: str,
    config: WorkbenchConfig,
    action: Callable[[], tuple[bytes, str]],
    output: Path | None,
) -> OperationResult:
    """Execute *action*, write its bytes and report the outcome."""
    start_time = time.monotonic()
    try:
        data, name = action()
        target = _write_output(data, name, config, output)
        pages = page_count(data)
    except (WorkbenchError, OSError) as exc:
        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.error("Failed to %s: %s", operation, exc)
        return OperationResult(
            operation=operation,
            success=False,
            error_message=str(exc),
            processing_ms=elapsed_ms,
        )

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    logger.info(
        "%s complete: %s (%d pages, %d bytes) in %dms",
        operation.capitalize(),
        target,
        pages,
        len(data),
        elapsed_ms,
    )
    return OperationResult(
        operation=operation,
        success=True,
        output_path=target,
        page_count=pages,
        processing_ms=elapsed_ms,
    )


def merge_sources(
    refs: Sequence[str],
    config: WorkbenchConfig,
    loader: SourceLoader,
    output: Path | None = None,
) -> OperationResult:
    """Merge all sources, in order, into ``merged-document.pdf``."""

    def action() -> tuple[bytes, str]:
        sources = [loader.load(ref) for ref in refs]
        logger.info("Merging %d document(s)", len(sources))
        return merge_documents([s.data for s in sources]), output_filename("merge")

    return _run("merge", config, action, output)


def split_source(
    ref: str,
    pages: str,
    config: WorkbenchConfig,
    loader: SourceLoader,
    output: Path | None = None,
) -> OperationResult:
    """Extract the pages named by a range expression into ``split-<name>``.

    An expression that selects nothing is refused before the engine runs.
    """

    def action() -> tuple[bytes, str]:
        source = loader.load(ref)
        selection = parse_page_range(pages, page_count(source.data))
        if not selection:
            raise EmptySelectionError(f"Invalid page range: {pages!r}")
        logger.info("Extracting %d page(s) from %s", len(selection), source.name)
        return (
            extract_pages(source.data, selection),
            output_filename("split", source.name),
        )

    return _run("split", config, action, output)


def rotate_source(
    ref: str,
    delta: int,
    config: WorkbenchConfig,
    loader: SourceLoader,
    pages: str | None = None,
    output: Path | None = None,
) -> OperationResult:
    """Rotate the selected pages (default: all) by *delta* degrees."""

    def action() -> tuple[bytes, str]:
        source = loader.load(ref)
        rotations = build_rotation_map(delta, page_count(source.data), pages)
        logger.info(
            "Rotating %d page(s) of %s by %d degrees",
            len(rotations),
            source.name,
            delta,
        )
        return (
            rotate_pages(source.data, rotations),
            output_filename("rotate", source.name),
        )

    return _run("rotate", config, action, output)


def annotate_source(
    ref: str,
    annotations_path: Path,
    config: WorkbenchConfig,
    loader: SourceLoader,
    output: Path | None = None,
) -> OperationResult:
    """Apply every annotation from a JSON file in one pass.

    Without annotations the original bytes are written unchanged.
    """

    def action() -> tuple[bytes, str]:
        source = loader.load(ref)
        items = load_annotations(annotations_path, config)
        name = output_filename("annotate", source.name)
        if not items:
            logger.info("No annotations for %s; keeping original", source.name)
            return source.data, name
        logger.info("Applying %d annotation(s) to %s", len(items), source.name)
        return apply_overlays(source.data, items, config.rendered_width), name

    return _run("annotate", config, action, output)


def inspect_source(
    ref: str, loader: SourceLoader
) -> tuple[Source, list[PageInfo]]:
    """Load a source and describe its pages."""
    source = loader.load(ref)
    return source, describe_pages(source.data)
