"""Text metrics and content-stream helpers for the standard Helvetica fonts."""

import pikepdf

# Helvetica character widths (in 1000ths of a point at 1pt size)
# Only the printable ASCII range; other characters use DEFAULT_CHAR_WIDTH
HELVETICA_WIDTHS = {
    " ": 278, "!": 278, '"': 355, "#": 556, "$": 556, "%": 889, "&": 667, "'": 191,
    "(": 333, ")": 333, "*": 389, "+": 584, ",": 278, "-": 333, ".": 278, "/": 278,
    "0": 556, "1": 556, "2": 556, "3": 556, "4": 556, "5": 556, "6": 556, "7": 556,
    "8": 556, "9": 556, ":": 278, ";": 278, "<": 584, "=": 584, ">": 584, "?": 556,
    "@": 1015, "A": 667, "B": 667, "C": 722, "D": 722, "E": 667, "F": 611, "G": 778,
    "H": 722, "I": 278, "J": 500, "K": 667, "L": 556, "M": 833, "N": 722, "O": 778,
    "P": 667, "Q": 778, "R": 722, "S": 667, "T": 611, "U": 722, "V": 667, "W": 944,
    "X": 667, "Y": 667, "Z": 611, "[": 278, "\\": 278, "]": 278, "^": 469, "_": 556,
    "`": 333, "a": 556, "b": 556, "c": 500, "d": 556, "e": 556, "f": 278, "g": 556,
    "h": 556, "i": 222, "j": 222, "k": 500, "l": 222, "m": 833, "n": 556, "o": 556,
    "p": 556, "q": 556, "r": 333, "s": 500, "t": 278, "u": 556, "v": 500, "w": 722,
    "x": 500, "y": 500, "z": 500, "{": 334, "|": 260, "}": 334, "~": 584,
    "æ": 889, "ø": 611, "å": 556, "Æ": 1000, "Ø": 778, "Å": 667,
}

HELVETICA_BOLD_WIDTHS = {
    " ": 278, "!": 333, '"': 474, "#": 556, "$": 556, "%": 889, "&": 722, "'": 238,
    "(": 333, ")": 333, "*": 389, "+": 584, ",": 278, "-": 333, ".": 278, "/": 278,
    "0": 556, "1": 556, "2": 556, "3": 556, "4": 556, "5": 556, "6": 556, "7": 556,
    "8": 556, "9": 556, ":": 333, ";": 333, "<": 584, "=": 584, ">": 584, "?": 611,
    "@": 975, "A": 722, "B": 722, "C": 722, "D": 722, "E": 667, "F": 611, "G": 778,
    "H": 722, "I": 278, "J": 556, "K": 722, "L": 611, "M": 833, "N": 722, "O": 778,
    "P": 667, "Q": 778, "R": 722, "S": 667, "T": 611, "U": 722, "V": 667, "W": 944,
    "X": 667, "Y": 667, "Z": 611, "[": 333, "\\": 278, "]": 333, "^": 584, "_": 556,
    "`": 333, "a": 556, "b": 611, "c": 556, "d": 611, "e": 556, "f": 333, "g": 611,
    "h": 611, "i": 278, "j": 278, "k": 556, "l": 278, "m": 889, "n": 611, "o": 611,
    "p": 611, "q": 611, "r": 389, "s": 556, "t": 333, "u": 611, "v": 556, "w": 778,
    "x": 556, "y": 556, "z": 500, "{": 389, "|": 280, "}": 389, "~": 584,
    "æ": 889, "ø": 611, "å": 556, "Æ": 1000, "Ø": 778, "Å": 722,
}

DEFAULT_CHAR_WIDTH = 556

REGULAR = "Helvetica"
BOLD = "Helvetica-Bold"

_WIDTHS = {REGULAR: HELVETICA_WIDTHS, BOLD: HELVETICA_BOLD_WIDTHS}


def measure_text_width(text: str, font_size: float, font: str = REGULAR) -> float:
    """Measure the width of text in the given standard font at given size."""
    widths = _WIDTHS[font]
    width = sum(widths.get(char, DEFAULT_CHAR_WIDTH) for char in text)
    return width * font_size / 1000.0


def wrap_text(text: str, max_width: float, font_size: float, font: str = REGULAR) -> list[str]:
    """
    Wrap text at word boundaries to fit within max_width.

    A single word wider than max_width is kept on its own line. Always returns
    at least one line, so empty titles still occupy a row.
    """
    lines: list[str] = []
    current_line: list[str] = []

    for word in text.split():
        test_line = " ".join(current_line + [word])
        if measure_text_width(test_line, font_size, font) <= max_width:
            current_line.append(word)
        else:
            if current_line:
                lines.append(" ".join(current_line))
                current_line = [word]
            else:
                # Single word is too long, add it anyway
                lines.append(word)

    if current_line:
        lines.append(" ".join(current_line))

    return lines or [""]


def escape_pdf_string(text: str) -> str:
    """Escape special characters for PDF string literals."""
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def font_dictionary(font: str) -> pikepdf.Dictionary:
    # WinAnsiEncoding so Danish letters render from cp1252-encoded strings
    return pikepdf.Dictionary(
        Type=pikepdf.Name.Font,
        Subtype=pikepdf.Name.Type1,
        BaseFont=pikepdf.Name("/" + font),
        Encoding=pikepdf.Name.WinAnsiEncoding,
    )


def text_op(
    font_name: str,
    font_size: float,
    text: str,
    x: float,
    y: float,
    rotated: bool = False,
) -> str:
    """
    Content-stream operators drawing one line of text with its baseline starting at (x, y).

    ``rotated`` draws the text turned 90 degrees counter-clockwise (reading upwards).
    """
    matrix = f"0 1 -1 0 {x:.2f} {y:.2f}" if rotated else f"1 0 0 1 {x:.2f} {y:.2f}"
    return (
        f"BT {font_name} {font_size} Tf {matrix} Tm "
        f"({escape_pdf_string(text)}) Tj ET"
    )


def encode_content(ops: list[str]) -> bytes:
    return "\n".join(ops).encode("cp1252", errors="replace")
