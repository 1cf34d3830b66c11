"""
Spreadsheet row parsing.

Pharmacy stock exports arrive as loosely formatted sheets: every row is
flattened to one space-joined string and matched against two layouts, the
full one first. Trying the shorter layout first would bind the extra numeric
column of a well-formed row to the count.

Full layout:
    № | name | code | qty-in | count | price | sum | manufacturer
Short layout (one numeric column fewer):
    № | name | count | price | sum | manufacturer
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from app.schemas.ingestion import UNKNOWN_MANUFACTURER

FULL_ROW_PATTERN = re.compile(
    r"^(\d+)\s+(.+?)\s+\d+\s+[\d,]+\s+([\d,]+)\s+([\d\s,]+)\s+[\d\s,]+\s*(.*)$"
)
SHORT_ROW_PATTERN = re.compile(
    r"^(\d+)\s+(.+?)\s+([\d,]+)\s+([\d\s,]+)\s+[\d\s,]+\s*(.*)$"
)
ROW_PATTERNS = (FULL_ROW_PATTERN, SHORT_ROW_PATTERN)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedCandidate:
    ok: bool
    row_number: int = 0
    name: str = ""
    count: int = 0
    price: int = 0
    manufacturer: str = UNKNOWN_MANUFACTURER


NOT_OK = ParsedCandidate(ok=False)


def parse_number(text: str) -> int:
    """
    Parse a sheet number to an int, truncating decimals.

    "1 234,50" and "1234.50" both give 1234. Unparseable text gives 0
    instead of failing the row.
    """
    text = (text or "").strip().replace(" ", "").replace(",", ".")
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def format_cell(value: Any) -> str:
    """
    Render one cell the way the sheet displays it.

    Integral floats lose the ".0" and fractional ones use a decimal comma,
    matching what the row patterns expect from the exported sheets.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        # repr() gives exponent notation below 1e-4
        return format(Decimal(repr(value)), "f").replace(".", ",")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return _WHITESPACE.sub(" ", str(value).replace("\xa0", " ")).strip()


def flatten_row(cells: Iterable[Any] | str) -> str:
    """Join a row's cells into the single line the patterns run on."""
    if isinstance(cells, str):
        text = cells.replace("\xa0", " ")
    else:
        text = " ".join(format_cell(cell) for cell in cells)
    return _WHITESPACE.sub(" ", text).strip()


def parse_row(row_text: str) -> ParsedCandidate:
    """
    Parse one flattened row.

    Not ok when neither layout matches or the leading row number is 0,
    which marks header and total lines.
    """
    row_text = (row_text or "").strip()
    if not row_text:
        return NOT_OK

    match: Optional[re.Match] = None
    for pattern in ROW_PATTERNS:
        match = pattern.match(row_text)
        if match:
            break
    if not match:
        return NOT_OK

    row_number = int(match.group(1))
    name = match.group(2).strip()
    if row_number == 0 or not name:
        return NOT_OK

    return ParsedCandidate(
        ok=True,
        row_number=row_number,
        name=name,
        count=parse_number(match.group(3)),
        price=parse_number(match.group(4)),
        manufacturer=match.group(5).strip() or UNKNOWN_MANUFACTURER,
    )
