"""Split pasted spreadsheet text into a TableSchema."""

import re
import unicodedata
from typing import List

from shared.logger import get_logger

from .exceptions import ParseError
from .models import DataSource, TableSchema

logger = get_logger(__name__)

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")


def normalize_column_name(name: str) -> str:
    """Strip accents and remove spaces: ``"Código Artículo"`` -> ``"CodigoArticulo"``."""
    if not name or not name.strip():
        return name

    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped.replace(" ", ""))


def split_lines(text: str) -> List[str]:
    """Split on any newline style, dropping blank lines."""
    return [line for line in _LINE_SPLIT.split(text) if line.strip()]


def detect_delimiter(first_line: str) -> str:
    """Tab if present, else comma, else empty string for a single column."""
    if "\t" in first_line:
        return "\t"
    if "," in first_line:
        return ","
    return ""


def _split(line: str, delimiter: str) -> List[str]:
    if not delimiter:
        return [line]
    return line.split(delimiter)


def parse_tabular_text(text: str, has_headers: bool = True) -> TableSchema:
    """
    Parse text copied from a spreadsheet.

    This is a plain delimiter split (no quoting rules), which is what Excel
    puts on the clipboard as TSV.

    Args:
        text: Raw clipboard or file text
        has_headers: First line holds column names; otherwise ``Col1..ColN``

    Returns:
        Rectangular TableSchema with untyped columns

    Raises:
        ParseError: If the text is empty
    """
    if not text or not text.strip():
        raise ParseError("Input is empty")

    lines = split_lines(text)
    delimiter = detect_delimiter(lines[0])
    source = {
        "\t": DataSource.CLIPBOARD_TSV,
        ",": DataSource.CLIPBOARD_CSV,
        "": DataSource.CLIPBOARD_SINGLE,
    }[delimiter]

    if has_headers:
        headers = [normalize_column_name(h.strip()) for h in _split(lines[0], delimiter)]
        data_lines = lines[1:]
    else:
        width = len(_split(lines[0], delimiter))
        headers = [f"Col{i + 1}" for i in range(width)]
        data_lines = lines

    if not any(headers):
        raise ParseError("No columns found in header")

    width = len(headers)
    rows = []
    for line in data_lines:
        values = [v.strip() for v in _split(line, delimiter)]
        # pad short rows, drop cells past the header
        rows.append((values + [""] * width)[:width])

    logger.debug(f"Parsed {len(rows)} rows x {width} columns ({source.value})")
    return TableSchema.from_rows(headers, rows, source=source)


def is_tabular_text(text: str) -> bool:
    """Check whether text looks like a pasted table (2+ lines, delimited)."""
    if not text or not text.strip():
        return False
    lines = split_lines(text)
    return len(lines) >= 2 and detect_delimiter(lines[0]) != ""
