"""Standard cover page: a PDF template with optional `unitname` and `date` form fields."""

import io
import logging
import re
from datetime import date
from typing import Iterator

import pikepdf

logger = logging.getLogger(__name__)

UNIT_NAME_FIELD = "unitname"
DATE_FIELD = "date"
# Output names end in " SQP"; the cover shows the unit name only
OUTPUT_SUFFIX = re.compile(r" SQP$")

CENTER = 1


def unit_name(output_name: str) -> str:
    return OUTPUT_SUFFIX.sub("", output_name)


def cover_date(today: date) -> str:
    return f"{today:%Y.%m.%d}"


def iter_form_fields(fields: pikepdf.Array) -> Iterator[pikepdf.Dictionary]:
    for form_field in fields:
        yield form_field
        if "/Kids" in form_field:
            yield from iter_form_fields(form_field.Kids)


def fill_form(pdf: pikepdf.Pdf, values: dict[str, str]) -> int:
    """
    Set and centre the named text fields, then flatten every form field into
    page content. Returns the number of fields filled. PDFs without a form are
    left untouched.
    """
    if "/AcroForm" not in pdf.Root or not pdf.Root.AcroForm.get("/Fields"):
        return 0

    acroform = pdf.Root.AcroForm
    filled = 0
    for form_field in iter_form_fields(acroform.Fields):
        name = str(form_field.get("/T", ""))
        if name not in values:
            continue
        form_field.V = pikepdf.String(values[name])
        form_field.Q = CENTER
        # Drop stale appearances so they are regenerated with the new value
        for widget in [form_field, *form_field.get("/Kids", [])]:
            if "/AP" in widget:
                del widget.AP
        filled += 1
        logger.debug("Filled cover field %s with %r", name, values[name])

    acroform.NeedAppearances = True
    pdf.generate_appearance_streams()
    pdf.flatten_annotations("all")
    return filled


def prepare_cover(
    template: bytes | None,
    output_name: str,
    today: date | None = None,
) -> pikepdf.Pdf | None:
    """
    Open the standard cover template and fill in its unit name and date.

    The cover is optional: a missing template returns None, and so does a
    template that cannot be read (with a warning). The caller owns and must
    close the returned PDF.
    """
    if not template:
        logger.info("No standard cover found, skipping")
        return None

    values = {
        UNIT_NAME_FIELD: unit_name(output_name),
        DATE_FIELD: cover_date(today or date.today()),
    }
    try:
        cover = pikepdf.Pdf.open(io.BytesIO(template))
    except pikepdf.PdfError as e:
        logger.warning("Could not load standard cover: %s", e)
        return None
    try:
        filled = fill_form(cover, values)
    except pikepdf.PdfError as e:
        cover.close()
        logger.warning("Could not fill standard cover: %s", e)
        return None
    logger.info("Prepared standard cover (%d page(s), %d field(s) filled)", len(cover.pages), filled)
    return cover
