"""Tests for the folderbind.cover module."""

import io
from datetime import date

import pdfplumber
import pikepdf

from folderbind.cover import cover_date, prepare_cover, unit_name


def create_template(*field_names: str) -> bytes:
    """A one-page A4 PDF with a text field per name, stacked down the page."""
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(595, 842))
    page = pdf.pages[0]

    fields = []
    for i, name in enumerate(field_names):
        top = 700 - i * 60
        widget = pdf.make_indirect(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Annot,
                Subtype=pikepdf.Name.Widget,
                FT=pikepdf.Name.Tx,
                T=pikepdf.String(name),
                Rect=pikepdf.Array([100, top - 30, 500, top]),
                F=4,
                P=page.obj,
                DA=pikepdf.String("/Helv 14 Tf 0 g"),
            )
        )
        fields.append(widget)

    if fields:
        page.obj.Annots = pdf.make_indirect(pikepdf.Array(fields))
        pdf.Root.AcroForm = pdf.make_indirect(
            pikepdf.Dictionary(
                Fields=pikepdf.Array(fields),
                DA=pikepdf.String("/Helv 0 Tf 0 g"),
                DR=pikepdf.Dictionary(
                    Font=pikepdf.Dictionary(
                        Helv=pikepdf.Dictionary(
                            Type=pikepdf.Name.Font,
                            Subtype=pikepdf.Name.Type1,
                            BaseFont=pikepdf.Name.Helvetica,
                            Encoding=pikepdf.Name.WinAnsiEncoding,
                        )
                    )
                ),
            )
        )

    output = io.BytesIO()
    pdf.save(output)
    pdf.close()
    return output.getvalue()


def test_unit_name_drops_sqp_suffix() -> None:
    assert unit_name("Plant 7 SQP") == "Plant 7"
    assert unit_name("Plant 7") == "Plant 7"
    assert unit_name("SQP Plant") == "SQP Plant"


def test_cover_date_format() -> None:
    assert cover_date(date(2026, 3, 5)) == "2026.03.05"


def test_missing_template_is_not_an_error() -> None:
    assert prepare_cover(None, "Plant 7 SQP") is None
    assert prepare_cover(b"", "Plant 7 SQP") is None


def test_unreadable_template_is_skipped() -> None:
    assert prepare_cover(b"definitely not a pdf", "Plant 7 SQP") is None


def test_template_without_form_is_kept_unchanged() -> None:
    cover = prepare_cover(create_template(), "Plant 7 SQP")

    assert cover is not None
    with cover:
        assert len(cover.pages) == 1
        assert "/AcroForm" not in cover.Root


def test_form_fields_are_filled_and_flattened() -> None:
    template = create_template("unitname", "date")

    cover = prepare_cover(template, "Plant 7 SQP", today=date(2026, 10, 19))

    assert cover is not None
    with cover:
        page = cover.pages[0]
        assert len(page.obj.get("/Annots", [])) == 0
        output = io.BytesIO()
        cover.save(output)

    with pdfplumber.open(io.BytesIO(output.getvalue())) as plumber:
        text = plumber.pages[0].extract_text()
    assert "Plant 7" in text
    assert "SQP" not in text
    assert "2026.10.19" in text
