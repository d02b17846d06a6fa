"""Page-range expression parsing (``"1, 3-5, 8"`` → zero-based indices)."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def _parse_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_page_range(expression: str, total_pages: int) -> list[int]:
    """Parse a 1-based page-range expression into sorted zero-based indices.

    Tokens are comma separated; each is either a page number or an
    inclusive ``start-end`` range. Tokens that do not parse or fall outside
    ``1..total_pages`` are dropped rather than rejected, so the result may
    be empty. Callers must treat an empty result as an invalid range.
    """
    pages: set[int] = set()

    for part in expression.split(","):
        token = part.strip()
        if not token:
            continue

        if "-" in token:
            start_text, _, end_text = token.partition("-")
            start, end = _parse_int(start_text), _parse_int(end_text)
            if start is None or end is None:
                logger.debug("Dropping unparseable range token %r", token)
                continue
            for value in range(start, end + 1):
                if 1 <= value <= total_pages:
                    pages.add(value - 1)
        else:
            value = _parse_int(token)
            if value is None or not 1 <= value <= total_pages:
                logger.debug(
                    "Dropping page token %r (document has %d pages)",
                    token,
                    total_pages,
                )
                continue
            pages.add(value - 1)

    return sorted(pages)


def full_range(total_pages: int) -> str:
    """Return the expression selecting every page, e.g. ``"1-12"``."""
    if total_pages <= 0:
        return ""
    if total_pages == 1:
        return "1"
    return f"1-{total_pages}"
