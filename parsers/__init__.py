"""
Import file parsers.

Header matching, grid reading and row extraction for CSV/XLSX catalogs,
plus the legacy SQL dump reader.
"""

from parsers.header_mapper import (
    HeaderSynonymTable,
    build_column_mapping,
    require_fields,
)
from parsers.tabular_reader import read_grid
from parsers.row_extractor import (
    ImportRecord,
    RowExtractionResult,
    extract_rows,
)
from parsers.import_jobs import (
    CommitMode,
    ImportJob,
    PDV_JOB,
    PRODUTO_JOB,
    get_import_job,
)
from parsers.sql_dump_parser import parse_sql_dump, SqlDumpParseResult

__all__ = [
    "HeaderSynonymTable",
    "build_column_mapping",
    "require_fields",
    "read_grid",
    "ImportRecord",
    "RowExtractionResult",
    "extract_rows",
    "CommitMode",
    "ImportJob",
    "PDV_JOB",
    "PRODUTO_JOB",
    "get_import_job",
    "parse_sql_dump",
    "SqlDumpParseResult",
]
