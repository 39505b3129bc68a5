"""Convert source files into pages of a fixed target size."""

import io
import logging

import pikepdf
from PIL import Image, UnidentifiedImageError

from folderbind.errors import AssemblyError, ContractViolation
from folderbind.model import JPEG_MIME, PDF_MIME, SourceFile

logger = logging.getLogger(__name__)

# A4 portrait in points
A4 = (595.28, 841.89)

# Pages within this fraction of the target size in both axes are kept as-is
SIZE_TOLERANCE = 0.10
# Scaled content fills at most this fraction of the target page
FIT_FRACTION = 0.90

# MPO files are JPEGs with further frames appended; the first frame is what gets shown
JPEG_FORMATS = ("JPEG", "MPO")

JPEG_COLOR_SPACES = {
    "L": pikepdf.Name.DeviceGray,
    "RGB": pikepdf.Name.DeviceRGB,
    "YCbCr": pikepdf.Name.DeviceRGB,
    "CMYK": pikepdf.Name.DeviceCMYK,
}


def page_rotation(page: pikepdf.Page) -> int:
    return int(page.obj.get("/Rotate", 0)) % 360


def visual_size(page: pikepdf.Page) -> tuple[float, float]:
    """Width and height of a page as a viewer shows it, honouring /Rotate."""
    box = pikepdf.Rectangle(page.mediabox)
    if page_rotation(page) in (90, 270):
        return box.height, box.width
    return box.width, box.height


def fits_target(size: tuple[float, float], page_size: tuple[float, float]) -> bool:
    """True if size is within tolerance of the target in portrait or landscape orientation."""
    width, height = size
    for target_w, target_h in (page_size, (page_size[1], page_size[0])):
        if (
            abs(width - target_w) <= target_w * SIZE_TOLERANCE
            and abs(height - target_h) <= target_h * SIZE_TOLERANCE
        ):
            return True
    return False


def fit_scale(
    content_size: tuple[float, float],
    page_size: tuple[float, float],
    fraction: float = FIT_FRACTION,
) -> float:
    """Largest uniform scale that fits content into ``fraction`` of the page in both axes."""
    return min(
        page_size[0] * fraction / content_size[0],
        page_size[1] * fraction / content_size[1],
    )


def new_page(pdf: pikepdf.Pdf, page_size: tuple[float, float]) -> pikepdf.Page:
    """Create a blank page object owned by ``pdf`` without inserting it."""
    page_dict = pikepdf.Dictionary(
        Type=pikepdf.Name.Page,
        MediaBox=pikepdf.Array([0, 0, page_size[0], page_size[1]]),
        Resources=pikepdf.Dictionary(),
    )
    return pikepdf.Page(pdf.make_indirect(page_dict))


def _form_bounds(form_xobj: pikepdf.Object) -> tuple[float, float, float, float]:
    """Bounding box (x0, y0, x1, y1) of a form XObject after applying its /Matrix."""
    bbox = [float(v) for v in form_xobj.BBox]
    a, b, c, d, e, f = (
        [float(v) for v in form_xobj.Matrix] if "/Matrix" in form_xobj else [1, 0, 0, 1, 0, 0]
    )
    corners = [
        (a * x + c * y + e, b * x + d * y + f)
        for x in (bbox[0], bbox[2])
        for y in (bbox[1], bbox[3])
    ]
    xs = [x for x, _ in corners]
    ys = [y for _, y in corners]
    return min(xs), min(ys), max(xs), max(ys)


def place_page(
    combined_pdf: pikepdf.Pdf,
    source_page: pikepdf.Page,
    page_size: tuple[float, float],
    fraction: float | None = FIT_FRACTION,
) -> None:
    """
    Append a page of ``page_size`` showing ``source_page`` as a form XObject.

    With a ``fraction`` the content is scaled to fit that share of the page;
    with None it is drawn at its natural size. Either way it is centred.
    """
    target = new_page(combined_pdf, page_size)

    # Convert original page to form xobject and copy to destination
    form_xobj = source_page.as_form_xobject()
    form_xobj_copy = combined_pdf.copy_foreign(form_xobj)
    xobj_name = target.add_resource(form_xobj_copy, pikepdf.Name.XObject)

    x0, y0, x1, y1 = _form_bounds(form_xobj_copy)
    width, height = x1 - x0, y1 - y0
    scale = fit_scale((width, height), page_size, fraction) if fraction else 1.0
    tx = (page_size[0] - width * scale) / 2 - x0 * scale
    ty = (page_size[1] - height * scale) / 2 - y0 * scale

    content = f"""
q
{scale:.6f} 0 0 {scale:.6f} {tx:.4f} {ty:.4f} cm
{xobj_name} Do
Q
""".encode()
    target.contents_add(combined_pdf.make_stream(content))
    combined_pdf.pages.append(target)


def copy_pdf_pages(
    combined_pdf: pikepdf.Pdf,
    input_pdf: pikepdf.Pdf,
    page_size: tuple[float, float],
) -> int:
    """
    Copy every page of input_pdf into combined_pdf, normalizing sizes.
    Returns the number of pages added.
    """
    for source_page in input_pdf.pages:
        size = visual_size(source_page)
        if fits_target(size, page_size):
            if page_rotation(source_page) == 0:
                combined_pdf.pages.append(source_page)
            else:
                # Bake the rotation into the content so stamps land upright
                place_page(combined_pdf, source_page, size, fraction=None)
        else:
            place_page(combined_pdf, source_page, page_size)
    return len(input_pdf.pages)


def embed_jpeg(
    combined_pdf: pikepdf.Pdf, data: bytes, page_size: tuple[float, float]
) -> None:
    """Append one page of ``page_size`` with the JPEG scaled to fit and centred."""
    with Image.open(io.BytesIO(data)) as image:
        if image.format not in JPEG_FORMATS:
            raise ValueError(f"expected JPEG data, got {image.format}")
        image.load()
        width, height = image.size
        mode = image.mode
        adobe = "adobe" in image.info

    color_space = JPEG_COLOR_SPACES.get(mode)
    if color_space is None:
        raise ValueError(f"unsupported JPEG colour mode {mode}")

    image_stream = pikepdf.Stream(combined_pdf, data)
    image_stream.Type = pikepdf.Name.XObject
    image_stream.Subtype = pikepdf.Name.Image
    image_stream.Width = width
    image_stream.Height = height
    image_stream.ColorSpace = color_space
    image_stream.BitsPerComponent = 8
    image_stream.Filter = pikepdf.Name.DCTDecode
    if mode == "CMYK" and adobe:
        # Adobe writes CMYK JPEGs inverted
        image_stream.Decode = pikepdf.Array([1, 0, 1, 0, 1, 0, 1, 0])

    target = new_page(combined_pdf, page_size)
    image_name = target.add_resource(image_stream, pikepdf.Name.XObject)

    scale = fit_scale((width, height), page_size)
    draw_w, draw_h = width * scale, height * scale
    x = (page_size[0] - draw_w) / 2
    y = (page_size[1] - draw_h) / 2

    content = f"q {draw_w:.4f} 0 0 {draw_h:.4f} {x:.4f} {y:.4f} cm {image_name} Do Q".encode()
    target.contents_add(combined_pdf.make_stream(content))
    combined_pdf.pages.append(target)


def normalize_file(
    combined_pdf: pikepdf.Pdf,
    source: SourceFile,
    page_size: tuple[float, float] = A4,
) -> int:
    """
    Append the normalized pages of one source file to combined_pdf.
    Returns the number of pages added.
    """
    if source.mime_type == PDF_MIME:
        try:
            with pikepdf.Pdf.open(io.BytesIO(source.data)) as input_pdf:
                added = copy_pdf_pages(combined_pdf, input_pdf, page_size)
        except pikepdf.PdfError as e:
            raise AssemblyError(f"cannot read PDF: {e}", "normalize", source.path) from e
    elif source.mime_type == JPEG_MIME:
        try:
            embed_jpeg(combined_pdf, source.data, page_size)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise AssemblyError(f"cannot read JPEG: {e}", "normalize", source.path) from e
        added = 1
    else:
        raise ContractViolation(
            f"unsupported content type {source.mime_type!r} for {source.path}"
        )

    logger.debug("Added %d page(s) from %s", added, source.path)
    return added
