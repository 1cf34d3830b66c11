"""Read the first worksheet of an uploaded .xlsx from memory."""
import io
import logging
import zipfile
from typing import Any, List
from xml.etree.ElementTree import ParseError

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.core.exceptions import SheetReadError

logger = logging.getLogger(__name__)

# Worksheet XML is parsed lazily while rows are iterated, so a corrupt part
# surfaces at either step. lxml's XMLSyntaxError, like ParseError, derives
# from SyntaxError.
READ_ERRORS = (
    InvalidFileException,
    zipfile.BadZipFile,
    ParseError,
    SyntaxError,
    KeyError,
    OSError,
    ValueError,
    TypeError,
    EOFError,
)


def read_first_sheet(data: bytes) -> List[List[Any]]:
    """
    Return the first sheet's rows as lists of raw cell values.

    Raises SheetReadError when the container cannot be opened, holds no
    worksheet, or its rows cannot be read.
    """
    if not data:
        raise SheetReadError("fayl bo'sh")

    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except READ_ERRORS as e:
        raise SheetReadError("fayl ochilmadi", cause=e) from e

    try:
        if not workbook.worksheets:
            raise SheetReadError("sheet topilmadi")
        sheet = workbook.worksheets[0]
        try:
            rows = [list(row) for row in sheet.iter_rows(values_only=True)]
        except READ_ERRORS as e:
            raise SheetReadError("qatorlar o'qilmadi", cause=e) from e
        logger.info(f"[SHEET] '{sheet.title}': {len(rows)} rows")
        return rows
    finally:
        workbook.close()
