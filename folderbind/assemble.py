"""Walk a hierarchy and append every file's pages to the output document."""

import logging

import pikepdf

from folderbind.model import Container, Hierarchy, TocEntry
from folderbind.normalize import A4, normalize_file

logger = logging.getLogger(__name__)


def assemble_container(
    combined_pdf: pikepdf.Pdf,
    container: Container,
    level: int,
    toc: list[TocEntry],
    page_size: tuple[float, float],
) -> None:
    # The entry points at the page about to be written, even if the container adds none
    toc.append(
        TocEntry(
            title=container.title,
            level=level,
            start_page=len(combined_pdf.pages),
            show_page=container.show_in_toc,
        )
    )

    # Files directly in the folder come before its subfolders
    for source in container.files:
        normalize_file(combined_pdf, source, page_size)

    for child in container.children:
        assemble_container(combined_pdf, child, level + 1, toc, page_size)


def assemble(
    combined_pdf: pikepdf.Pdf,
    hierarchy: Hierarchy,
    page_size: tuple[float, float] = A4,
) -> list[TocEntry]:
    """
    Append the pages of every container in depth-first pre-order and return
    one table-of-contents entry per container, in the same order.
    """
    toc: list[TocEntry] = []
    first_page = len(combined_pdf.pages)

    for container in hierarchy.containers:
        assemble_container(combined_pdf, container, 0, toc, page_size)

    logger.info(
        "Assembled %d page(s) from %d section(s)",
        len(combined_pdf.pages) - first_page,
        len(toc),
    )
    return toc
