"""Stamp page numbers and document numbers onto finished pages."""

import logging
from typing import Collection, Literal

import pikepdf

from folderbind.normalize import page_rotation, visual_size
from folderbind.text import REGULAR, encode_content, font_dictionary, measure_text_width, text_op

logger = logging.getLogger(__name__)

STAMP_SIZE = 10
SIDE_MARGIN = 50.0
# Baseline distance from the top and bottom edges
EDGE_OFFSET = 15.0

NumberAlignment = Literal["right", "center"]


def footer_text(index: int, total: int) -> str:
    return f"Page {index + 1} of {total}"


def stamp_ops(
    font_name: str,
    size: tuple[float, float],
    footer: str,
    left: str = "",
    center: str = "",
    alignment: NumberAlignment = "right",
    rotated: bool = False,
) -> list[str]:
    """
    Text operators for one page of ``size`` (width, height) with its origin at 0, 0.

    With ``rotated`` the page is treated as a portrait sheet turned on its
    side: everything is laid out for the sheet turned a quarter clockwise and
    drawn reading upwards along the edges.
    """
    width, height = size
    # Dimensions of the page as the reader holds it
    view_w, view_h = (height, width) if rotated else (width, height)

    def place(text: str, vx: float, vy: float) -> str:
        if rotated:
            return text_op(font_name, STAMP_SIZE, text, width - vy, vx, rotated=True)
        return text_op(font_name, STAMP_SIZE, text, vx, vy)

    ops = [place(footer, SIDE_MARGIN, EDGE_OFFSET)]
    if left:
        ops.append(place(left, SIDE_MARGIN, view_h - EDGE_OFFSET))
    if center:
        text_width = measure_text_width(center, STAMP_SIZE)
        if alignment == "center":
            vx = (view_w - text_width) / 2
        else:
            vx = view_w - text_width - SIDE_MARGIN
        ops.append(place(center, vx, view_h - EDGE_OFFSET))
    return ops


def view_matrix(page: pikepdf.Page) -> str:
    """
    ``cm`` operands mapping upright viewing coordinates onto the page's user space.

    The origin is the lower left corner of the page as a viewer shows it,
    after the MediaBox offset and /Rotate are applied.
    """
    box = pikepdf.Rectangle(page.mediabox)
    rotation = page_rotation(page)
    if rotation == 90:
        matrix = (0, 1, -1, 0, box.urx, box.lly)
    elif rotation == 180:
        matrix = (-1, 0, 0, -1, box.urx, box.ury)
    elif rotation == 270:
        matrix = (0, -1, 1, 0, box.llx, box.ury)
    else:
        matrix = (1, 0, 0, 1, box.llx, box.lly)
    a, b, c, d, e, f = matrix
    return f"{a} {b} {c} {d} {e:.2f} {f:.2f}"


def _font_name(page: pikepdf.Page, font: pikepdf.Object) -> str:
    # Pages sharing a /Resources dictionary get the font registered once
    resources = page.obj.get("/Resources")
    if resources is not None:
        for name, existing in resources.get("/Font", {}).items():
            if existing.is_indirect and existing.objgen == font.objgen:
                return name
    return str(page.add_resource(font, pikepdf.Name.Font, prefix="FS"))


def stamp_pages(
    combined_pdf: pikepdf.Pdf,
    document_number_left: str = "",
    document_number_center: str = "",
    skip: Collection[int] = (),
    smart_placement: bool = False,
    alignment: NumberAlignment = "right",
) -> int:
    """
    Add "Page X of Y" footers and document-number headers to every page.

    Pages whose index is in ``skip`` (the TOC) get no text but still count
    towards the total. Positions follow the page as it is displayed, so
    pages carrying /Rotate get upright text. With ``smart_placement``, pages
    displayed wider than tall get their texts rotated so they read as header
    and footer in portrait orientation.
    Returns the total page count.
    """
    total = len(combined_pdf.pages)
    font = combined_pdf.make_indirect(font_dictionary(REGULAR))
    rotated_count = 0

    for index, page in enumerate(combined_pdf.pages):
        if index in skip:
            continue

        view_w, view_h = visual_size(page)
        rotated = smart_placement and view_w > view_h
        rotated_count += rotated

        font_name = _font_name(page, font)
        ops = stamp_ops(
            font_name,
            (view_w, view_h),
            footer_text(index, total),
            document_number_left,
            document_number_center,
            alignment,
            rotated,
        )

        # Isolate the original content so its graphics state cannot move the stamp
        page.contents_add(combined_pdf.make_stream(b"q\n"), prepend=True)
        stamp = ["Q", "q", f"{view_matrix(page)} cm", *ops, "Q"]
        page.contents_add(combined_pdf.make_stream(encode_content(stamp)))

    logger.info(
        "Stamped %d page(s), %d with rotated text", total - len(skip), rotated_count
    )
    return total
