"""
Reads CSV and Excel uploads into a plain grid of strings.

The first row of the grid is the header row. Cells are strings; empty or
missing cells are "".
"""

from io import BytesIO, StringIO
from typing import Optional
import math
import structlog

import pandas as pd

from exceptions import ImportParseError

logger = structlog.get_logger(__name__)

CSV_EXTENSIONS = (".csv", ".txt")
EXCEL_EXTENSIONS = (".xlsx", ".xls")

# Brazilian exports are often latin-1 / cp1252
CSV_ENCODINGS = ("utf-8-sig", "latin-1")


def read_grid(content: bytes, filename: str) -> list[list[str]]:
    """
    Read an uploaded file into rows of string cells.

    Args:
        content: Raw file bytes
        filename: Original filename, used to pick CSV or Excel

    Returns:
        Grid with the header row first

    Raises:
        ImportParseError: Unsupported extension, unreadable file or no data rows
    """
    lower_name = (filename or "").lower()

    logger.info("reading_import_file", filename=filename, size_bytes=len(content))

    if lower_name.endswith(CSV_EXTENSIONS):
        grid = _read_csv(content)
    elif lower_name.endswith(EXCEL_EXTENSIONS):
        grid = _read_excel(content, lower_name)
    else:
        raise ImportParseError(
            message="Unsupported file format. Use CSV or XLSX files",
            details={"filename": filename}
        )

    if len(grid) < 2:
        raise ImportParseError(
            message="File is empty or has no data rows",
            details={"filename": filename, "rows": len(grid)}
        )

    logger.debug("import_file_read", rows=len(grid) - 1, columns=len(grid[0]))

    return grid


def detect_separator(header_line: str) -> str:
    """Semicolon if the header line has one, otherwise comma."""
    return ";" if ";" in header_line else ","


# ===================
# HELPER FUNCTIONS
# ===================

def _decode(content: bytes) -> str:
    """Decode bytes trying the encodings used by the exports we receive."""
    last_error: Optional[Exception] = None
    for encoding in CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
            continue
    raise ImportParseError(
        message="Could not decode file",
        details={"original_error": str(last_error)}
    )


def _read_csv(content: bytes) -> list[list[str]]:
    """
    Parse delimited text with the separator detected from the header.

    The header fixes the column count. Shorter rows are padded with "" and
    cells past the last header (a trailing separator, a stray extra value)
    are dropped.
    """
    text = _decode(content)
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    separator = detect_separator(lines[0])
    width: Optional[int] = None

    def fit_to_header(fields: list[str]) -> list[str]:
        return fields[:width]

    try:
        width = len(pd.read_csv(StringIO(lines[0]), sep=separator, header=None, dtype=str).columns)
        df = pd.read_csv(
            StringIO("\n".join(lines)),
            sep=separator,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=fit_to_header,
        )
    except Exception as e:
        logger.error("csv_read_failed", error=str(e), separator=separator)
        raise ImportParseError(
            message="Failed to read CSV file",
            details={"original_error": str(e), "separator": separator}
        )

    logger.debug("csv_loaded", separator=separator, columns=len(df.columns))

    return _frame_to_grid(df)


def _read_excel(content: bytes, lower_name: str) -> list[list[str]]:
    """Parse the first sheet of a workbook without header inference."""
    engine = "xlrd" if lower_name.endswith(".xls") else "openpyxl"

    try:
        df = pd.read_excel(
            BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=engine,
        )
    except Exception as e:
        logger.error("excel_read_failed", error=str(e), engine=engine)
        raise ImportParseError(
            message="Failed to read Excel file",
            details={"original_error": str(e)}
        )

    logger.debug("excel_loaded", engine=engine, columns=len(df.columns))

    return _frame_to_grid(df)


def _frame_to_grid(df: pd.DataFrame) -> list[list[str]]:
    return [[cell_to_str(value) for value in row] for row in df.itertuples(index=False, name=None)]


def cell_to_str(value) -> str:
    """
    Coerce a cell to a trimmed string.

    Integral floats lose the ".0" Excel adds ("12345.0" → "12345").
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()
