"""
Table of contents pagination.

The TOC sits in front of the body, but its page numbers refer to pages that
are only appended after it. The pages are therefore handled in two steps:
``estimate_toc_pages`` computes how many pages the TOC will need from the
hierarchy alone and ``reserve_toc_pages`` inserts that many blank pages before
any body page exists. Once the body is assembled, ``render_toc`` draws the
entries onto the reserved pages. Both steps share ``layout_toc`` so the
estimate and the final drawing place rows identically.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Sequence

import pikepdf

from folderbind.model import Hierarchy, TocEntry
from folderbind.normalize import A4, new_page
from folderbind.text import (
    BOLD,
    REGULAR,
    encode_content,
    font_dictionary,
    measure_text_width,
    text_op,
    wrap_text,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADING = "Indholdsfortegnelse"

MARGIN = 50.0
HEADING_SIZE = 18
ENTRY_SIZE = 12
# Distances from the top edge
HEADING_TOP = 50.0
FIRST_ROW_TOP = 80.0
CONTINUATION_TOP = 50.0
# Rows are not placed below this y coordinate
BOTTOM_LIMIT = 50.0
INDENT_PER_LEVEL = 15.0
ROW_HEIGHT_TOP_LEVEL = 25.0
ROW_HEIGHT_NESTED = 20.0
WRAPPED_LINE_HEIGHT = 15.0
# Width kept free on the right of a title for the leader and page number
NUMBER_COLUMN = 40.0
LEADER_GAP = 5.0


@dataclass(frozen=True)
class TocLine:
    entry: int  # index of the row this line belongs to
    page: int  # 0-based offset from the first TOC page
    x: float
    y: float
    text: str
    font: str
    last: bool  # the leader and page number go on the last line of a row


def entry_font(level: int) -> str:
    return BOLD if level == 0 else REGULAR


def layout_toc(
    rows: Sequence[tuple[str, int]],
    page_size: tuple[float, float] = A4,
) -> list[TocLine]:
    """
    Place (title, level) rows on consecutive TOC pages.

    Pure function: positions depend only on the titles, their levels and the
    page size, never on page numbers.
    """
    width, height = page_size
    lines: list[TocLine] = []
    page = 0
    y = height - FIRST_ROW_TOP

    for index, (title, level) in enumerate(rows):
        x = MARGIN + level * INDENT_PER_LEVEL
        font = entry_font(level)
        available = width - MARGIN - NUMBER_COLUMN - x
        wrapped = wrap_text(title, available, ENTRY_SIZE, font)

        for line_no, text in enumerate(wrapped):
            if y < BOTTOM_LIMIT:
                page += 1
                y = height - CONTINUATION_TOP
            last = line_no == len(wrapped) - 1
            lines.append(TocLine(index, page, x, y, text, font, last))
            if last:
                y -= ROW_HEIGHT_TOP_LEVEL if level == 0 else ROW_HEIGHT_NESTED
            else:
                y -= WRAPPED_LINE_HEIGHT

    return lines


def pages_needed(lines: Sequence[TocLine]) -> int:
    return lines[-1].page + 1 if lines else 1


def estimate_toc_pages(hierarchy: Hierarchy, page_size: tuple[float, float] = A4) -> int:
    """Number of TOC pages the hierarchy needs, computed without touching any file."""
    rows = [(container.title, level) for container, level in hierarchy.walk()]
    return pages_needed(layout_toc(rows, page_size))


def reserve_toc_pages(
    combined_pdf: pikepdf.Pdf,
    count: int,
    page_size: tuple[float, float] = A4,
) -> range:
    """Append ``count`` blank pages (at least one) and return their indices."""
    start = len(combined_pdf.pages)
    for _ in range(max(1, count)):
        combined_pdf.pages.append(new_page(combined_pdf, page_size))
    reserved = range(start, len(combined_pdf.pages))
    logger.info("Reserved %d TOC page(s) starting at page %d", len(reserved), start + 1)
    return reserved


def _insert_overflow_pages(
    combined_pdf: pikepdf.Pdf,
    entries: Sequence[TocEntry],
    reserved: range,
    extra: int,
    page_size: tuple[float, float],
) -> tuple[range, list[TocEntry]]:
    for offset in range(extra):
        combined_pdf.pages.insert(reserved.stop + offset, new_page(combined_pdf, page_size))
    shifted = [
        replace(entry, start_page=entry.start_page + extra)
        if entry.start_page >= reserved.stop
        else entry
        for entry in entries
    ]
    logger.warning(
        "TOC needed %d more page(s) than reserved; later page numbers shifted", extra
    )
    return range(reserved.start, reserved.stop + extra), shifted


def _draw_entry_line(
    line: TocLine,
    entry: TocEntry,
    page_width: float,
    fonts: dict[str, str],
) -> list[str]:
    ops = [text_op(fonts[line.font], ENTRY_SIZE, line.text, line.x, line.y)]
    if not (line.last and entry.show_page):
        return ops

    number = str(entry.start_page + 1)
    number_x = page_width - MARGIN - measure_text_width(number, ENTRY_SIZE)
    leader_x = line.x + measure_text_width(line.text, ENTRY_SIZE, line.font) + LEADER_GAP
    dot_width = measure_text_width(".", ENTRY_SIZE)
    dot_count = max(0, math.floor((number_x - LEADER_GAP - leader_x) / dot_width))
    if dot_count:
        ops.append(text_op(fonts[REGULAR], ENTRY_SIZE, "." * dot_count, leader_x, line.y))
    ops.append(text_op(fonts[REGULAR], ENTRY_SIZE, number, number_x, line.y))
    return ops


def render_toc(
    combined_pdf: pikepdf.Pdf,
    entries: Sequence[TocEntry],
    reserved: range,
    page_size: tuple[float, float] = A4,
    heading: str = DEFAULT_HEADING,
) -> tuple[range, list[TocEntry]]:
    """
    Draw the TOC onto the reserved pages.

    If the entries need more pages than were reserved, the missing pages are
    inserted right after the reservation and the start pages of everything
    behind them are shifted before any number is drawn.

    Returns the final range of TOC pages and the entries as printed.
    """
    lines = layout_toc([(entry.title, entry.level) for entry in entries], page_size)
    needed = pages_needed(lines)
    toc_pages = reserved
    printed = list(entries)
    if needed > len(reserved):
        toc_pages, printed = _insert_overflow_pages(
            combined_pdf, entries, reserved, needed - len(reserved), page_size
        )

    width, height = page_size
    for offset, page_index in enumerate(toc_pages):
        page = combined_pdf.pages[page_index]
        fonts = {
            font: str(
                page.add_resource(
                    combined_pdf.make_indirect(font_dictionary(font)),
                    pikepdf.Name.Font,
                    prefix="F",
                )
            )
            for font in (REGULAR, BOLD)
        }

        ops: list[str] = []
        if offset == 0:
            ops.append(text_op(fonts[BOLD], HEADING_SIZE, heading, MARGIN, height - HEADING_TOP))
        for line in lines:
            if line.page == offset:
                ops.extend(_draw_entry_line(line, printed[line.entry], width, fonts))

        page.contents_add(combined_pdf.make_stream(encode_content(ops)))

    logger.info("Rendered %d TOC entries on %d page(s)", len(printed), len(toc_pages))
    return toc_pages, printed
