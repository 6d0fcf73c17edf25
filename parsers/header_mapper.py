"""
Header synonym matching for spreadsheet imports.

Finds which column holds which field by comparing each header cell against
a table of accepted spellings. Comparison ignores case, accents, spaces,
underscores, hyphens and periods.
"""

from typing import Iterable, Mapping, Optional, Sequence
import structlog

from exceptions import MissingColumnsError, SynonymConflictError
from utils.text_utils import normalize_header_text

logger = structlog.get_logger(__name__)


class HeaderSynonymTable:
    """
    Read-only mapping of field name to accepted header spellings.

    Synonyms are validated on construction: the same normalized spelling
    under two fields raises SynonymConflictError, so a header can never
    match more than one field.

    Usage:
        table = HeaderSynonymTable({
            "code": ["codigo", "cod cliente"],
            "label": ["nome fantasia", "nome"],
        })
        table.match("Código")  # "code"
    """

    def __init__(self, synonyms: Mapping[str, Iterable[str]]):
        self._synonyms: dict[str, tuple[str, ...]] = {
            field: tuple(spellings) for field, spellings in synonyms.items()
        }
        self._lookup: dict[str, str] = {}

        for field, spellings in self._synonyms.items():
            for spelling in spellings:
                normalized = normalize_header_text(spelling)
                if not normalized:
                    continue
                owner = self._lookup.get(normalized)
                if owner is not None and owner != field:
                    raise SynonymConflictError(spelling, owner, field)
                self._lookup[normalized] = field

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names in declaration order."""
        return tuple(self._synonyms)

    def synonyms_for(self, field: str) -> tuple[str, ...]:
        return self._synonyms.get(field, ())

    def match(self, header: Optional[str]) -> Optional[str]:
        """
        Return the field a header refers to, or None.

        Args:
            header: Raw header cell text

        Returns:
            Field name, or None for empty or unknown headers
        """
        normalized = normalize_header_text(header)
        if not normalized:
            return None
        return self._lookup.get(normalized)

    def __contains__(self, field: str) -> bool:
        return field in self._synonyms

    def __repr__(self) -> str:
        return f"HeaderSynonymTable(fields={list(self._synonyms)})"


def build_column_mapping(
    headers: Sequence[Optional[str]],
    table: HeaderSynonymTable,
) -> dict[int, str]:
    """
    Map column positions to field names.

    Unknown headers are left out. When two columns match the same field
    the later column wins.

    Args:
        headers: Header row cells
        table: Synonyms to match against

    Returns:
        Dict of column index -> field name
    """
    mapping: dict[int, str] = {}
    field_column: dict[str, int] = {}

    for index, header in enumerate(headers):
        field = table.match(header)
        if field is None:
            continue

        previous = field_column.get(field)
        if previous is not None:
            logger.debug(
                "header_field_remapped",
                field=field,
                previous_column=previous,
                column=index
            )
            del mapping[previous]

        mapping[index] = field
        field_column[field] = index

    logger.debug(
        "column_mapping_built",
        mapped=len(mapping),
        headers=len(headers)
    )

    return mapping


def require_fields(
    mapping: Mapping[int, str],
    required: Sequence[str],
    headers: Optional[Sequence[Optional[str]]] = None,
) -> None:
    """
    Fail if any required field has no column.

    Raises:
        MissingColumnsError: Listing every missing field
    """
    found = set(mapping.values())
    missing = [field for field in required if field not in found]

    if missing:
        logger.warning("import_missing_columns", missing=missing)
        raise MissingColumnsError(
            missing,
            headers=[str(h) if h is not None else "" for h in (headers or [])]
        )
