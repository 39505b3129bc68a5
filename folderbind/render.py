"""Build the combined PDF: cover, front page, table of contents, body, stamps."""

import io
import logging
from dataclasses import dataclass, field
from datetime import date

import pikepdf
from pydantic import BaseModel

from folderbind.assemble import assemble
from folderbind.cover import prepare_cover
from folderbind.errors import AssemblyError
from folderbind.model import Hierarchy, TocEntry
from folderbind.normalize import A4
from folderbind.stamp import NumberAlignment, stamp_pages
from folderbind.toc import DEFAULT_HEADING, estimate_toc_pages, render_toc, reserve_toc_pages

logger = logging.getLogger(__name__)


class RenderOptions(BaseModel):
    """Settings for one document, usually taken from the project record."""

    output_name: str = "document"
    document_number_left: str = ""
    document_number_center: str = ""
    smart_placement: bool = False
    number_alignment: NumberAlignment = "right"
    page_size: tuple[float, float] = A4
    toc_heading: str = DEFAULT_HEADING


@dataclass
class RenderedDocument:
    filename: str
    data: bytes = field(repr=False)
    page_count: int
    toc_entries: list[TocEntry]
    toc_pages: range


def append_pdf(combined_pdf: pikepdf.Pdf, data: bytes, phase: str) -> int:
    """Append every page of a PDF unchanged. Returns the number of pages added."""
    try:
        with pikepdf.Pdf.open(io.BytesIO(data)) as front_pdf:
            combined_pdf.pages.extend(front_pdf.pages)
            return len(front_pdf.pages)
    except pikepdf.PdfError as e:
        raise AssemblyError(f"cannot read PDF: {e}", phase) from e


def render_document(
    hierarchy: Hierarchy,
    options: RenderOptions | None = None,
    extra_front_page: bytes | None = None,
    cover_template: bytes | None = None,
    today: date | None = None,
) -> RenderedDocument:
    """
    Combine the hierarchy into one paginated PDF.

    Page order: standard cover (if a template is given), the extra front page,
    the table of contents, then the body in hierarchy order. Every page except
    the TOC is stamped with its page number and the document numbers.

    Raises AssemblyError if any source cannot be read; nothing is returned in
    that case.
    """
    options = options or RenderOptions()
    page_size = options.page_size

    # Estimated before any body page exists so the TOC can be reserved in front
    toc_page_count = estimate_toc_pages(hierarchy, page_size)

    with pikepdf.Pdf.new() as combined_pdf:
        cover = prepare_cover(cover_template, options.output_name, today)
        if cover is not None:
            with cover:
                combined_pdf.pages.extend(cover.pages)
            logger.info("Added %d standard cover page(s)", len(combined_pdf.pages))

        if extra_front_page:
            added = append_pdf(combined_pdf, extra_front_page, "front_page")
            logger.info("Added %d extra page(s)", added)

        reserved = reserve_toc_pages(combined_pdf, toc_page_count, page_size)
        entries = assemble(combined_pdf, hierarchy, page_size)
        toc_pages, entries = render_toc(
            combined_pdf, entries, reserved, page_size, options.toc_heading
        )

        try:
            total = stamp_pages(
                combined_pdf,
                options.document_number_left,
                options.document_number_center,
                skip=toc_pages,
                smart_placement=options.smart_placement,
                alignment=options.number_alignment,
            )
            output = io.BytesIO()
            combined_pdf.save(output)
        except pikepdf.PdfError as e:
            raise AssemblyError(f"cannot write document: {e}", "serialize") from e

    filename = f"{options.output_name}.pdf"
    logger.info("Generated %s with %d page(s)", filename, total)
    return RenderedDocument(
        filename=filename,
        data=output.getvalue(),
        page_count=total,
        toc_entries=entries,
        toc_pages=toc_pages,
    )
