"""
Turns a grid of cells into import records.

Rows are processed in file order. Blank rows are skipped, rows missing a
required field are rejected with a message, and extraction always runs to
the end of the file.
"""

from dataclasses import dataclass, field
from typing import Mapping, Sequence
import structlog

from utils.text_utils import normalize_code

logger = structlog.get_logger(__name__)

# Field name -> cleaned value
ImportRecord = dict[str, str]


@dataclass
class RowExtractionResult:
    """Accepted records plus one message per rejected row."""
    records: list[ImportRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    skipped_empty: int = 0

    @property
    def total_accepted(self) -> int:
        return len(self.records)

    @property
    def total_rejected(self) -> int:
        return len(self.errors)

    def summary(self) -> str:
        """Human-readable partial success line."""
        return (
            f"{self.total_accepted} records accepted, "
            f"{self.total_rejected} rows rejected due to missing fields"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "records": self.records,
            "errors": self.errors,
            "total_accepted": self.total_accepted,
            "total_rejected": self.total_rejected,
            "skipped_empty": self.skipped_empty,
        }


def extract_rows(
    grid: Sequence[Sequence[str]],
    mapping: Mapping[int, str],
    required_fields: Sequence[str],
    code_field: str = "code",
) -> RowExtractionResult:
    """
    Build records from every data row of the grid.

    Args:
        grid: Rows of cells, header row first
        mapping: Column index -> field name
        required_fields: Fields that must be non-empty
        code_field: Field whose dots/commas are stripped

    Returns:
        RowExtractionResult with accepted records and row errors
    """
    result = RowExtractionResult()
    columns = sorted(mapping.items())

    for index, row in enumerate(grid[1:], start=1):
        row_num = index + 1  # 1-indexed, header is row 1

        if _is_blank(row):
            result.skipped_empty += 1
            continue

        record: ImportRecord = {}
        for column, field_name in columns:
            value = _cell(row, column)
            if field_name == code_field:
                value = normalize_code(value)
            record[field_name] = value

        missing = [name for name in required_fields if not record.get(name)]
        if missing:
            result.errors.append(
                f"Row {row_num}: missing required field "
                + ", ".join(f"'{name}'" for name in missing)
            )
            continue

        result.records.append(record)

    logger.info(
        "rows_extracted",
        accepted=result.total_accepted,
        rejected=result.total_rejected,
        skipped_empty=result.skipped_empty
    )

    return result


def _cell(row: Sequence[str], column: int) -> str:
    if column >= len(row):
        return ""
    value = row[column]
    if value is None:
        return ""
    return str(value).strip()


def _is_blank(row: Sequence[str]) -> bool:
    return all(cell is None or not str(cell).strip() for cell in row)
