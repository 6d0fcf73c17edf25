"""
Parser for legacy MySQL dumps.

Extracts unidades, motoristas and produtos from the INSERT statements of a
dump exported by the previous system. Only INSERT ... VALUES blocks are
read; everything else in the file is ignored.
"""

from dataclasses import dataclass, field
from typing import Optional
import re
import structlog

logger = structlog.get_logger(__name__)


# ===================
# DATA CLASSES
# ===================

@dataclass
class ParsedUnidade:
    id: int
    nome: str
    codigo: str


@dataclass
class ParsedMotorista:
    id: int
    nome: str
    codigo: str
    unidade_id: int
    funcao: str = "motorista"
    setor: str = "sede"
    data_nascimento: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[str] = None


@dataclass
class ParsedProduto:
    codigo: str
    nome: str
    embalagem: str = "UN"


@dataclass
class SqlDumpParseResult:
    """Entities found in a dump."""
    unidades: list[ParsedUnidade] = field(default_factory=list)
    motoristas: list[ParsedMotorista] = field(default_factory=list)
    produtos: list[ParsedProduto] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "unidades": [vars(u) for u in self.unidades],
            "motoristas": [vars(m) for m in self.motoristas],
            "produtos": [vars(p) for p in self.produtos],
            "errors": list(self.errors),
        }


# ===================
# MAIN PARSER
# ===================

def parse_sql_dump(sql: str) -> SqlDumpParseResult:
    """
    Parse a SQL dump into unidades, motoristas and produtos.

    Args:
        sql: Dump file content

    Returns:
        SqlDumpParseResult; rows that cannot be mapped are reported in errors
    """
    result = SqlDumpParseResult()

    for row in extract_insert_values(sql, "unidades"):
        try:
            nome = _at(row, 1)
            result.unidades.append(ParsedUnidade(
                id=_parse_int(_at(row, 0)),
                nome=nome,
                codigo=_at(row, 2) or nome[:3].upper(),
            ))
        except Exception as e:
            result.errors.append(f"unidades: could not map row {row!r}: {e}")

    for row in extract_insert_values(sql, "motorista"):
        try:
            result.motoristas.append(ParsedMotorista(
                id=_parse_int(_at(row, 0)),
                nome=_at(row, 1),
                codigo=_at(row, 2),
                data_nascimento=_at(row, 3) or None,
                unidade_id=_parse_int(_at(row, 4)),
                funcao=map_funcao(_at(row, 5)),
                setor=map_setor(_at(row, 6)),
                whatsapp=_at(row, 7) or None,
                email=_at(row, 8) or None,
            ))
        except Exception as e:
            result.errors.append(f"motorista: could not map row {row!r}: {e}")

    for row in extract_insert_values(sql, "produtos"):
        result.produtos.append(ParsedProduto(
            codigo=_at(row, 1) or _at(row, 0),
            nome=_at(row, 2) or _at(row, 1),
            embalagem=_at(row, 3) or "UN",
        ))

    logger.info(
        "sql_dump_parsed",
        unidades=len(result.unidades),
        motoristas=len(result.motoristas),
        produtos=len(result.produtos),
        error_count=len(result.errors)
    )

    return result


def extract_insert_values(sql: str, table: str) -> list[list[str]]:
    """
    Return the value tuples of every INSERT INTO <table> statement.

    Handles optional backticks, an optional column list and multi-row
    VALUES blocks. A statement ends at the first ";" outside quotes.
    """
    statement_start = re.compile(
        rf"INSERT\s+INTO\s+`?{re.escape(table)}`?\s*(?:\([^)]*\))?\s*VALUES\s*",
        re.IGNORECASE,
    )

    rows: list[list[str]] = []
    for match in statement_start.finditer(sql):
        for tuple_text in split_value_tuples(sql, start=match.end()):
            rows.append(parse_value_row(tuple_text))
    return rows


def split_value_tuples(values_section: str, start: int = 0) -> list[str]:
    """
    Split "(...),(...);" into the inner text of each tuple.

    Scanning begins at `start` and stops at the first ";" outside quotes and
    parentheses. Parentheses and semicolons inside quoted strings do not
    count.
    """
    tuples: list[str] = []
    depth = 0
    quote: Optional[str] = None
    escaped = False
    current: list[str] = []

    for index in range(start, len(values_section)):
        char = values_section[index]
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char == ";" and depth == 0:
            break
        if char in ("'", '"'):
            quote = char
            current.append(char)
        elif char == "(":
            if depth > 0:
                current.append(char)
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                tuples.append("".join(current))
                current = []
            elif depth > 0:
                current.append(char)
        elif depth > 0:
            current.append(char)

    return tuples


def parse_value_row(row: str) -> list[str]:
    """
    Split one tuple body into values.

    Quotes are removed, backslash escapes are honored and NULL becomes "".
    """
    values: list[str] = []
    current: list[str] = []
    quote: Optional[str] = None
    escaped = False

    for char in row:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if char == "\\":
            escaped = True
            continue

        if quote is None and char in ("'", '"'):
            quote = char
            continue

        if quote is not None and char == quote:
            quote = None
            continue

        if quote is None and char == ",":
            values.append("".join(current).strip())
            current = []
            continue

        current.append(char)

    last = "".join(current).strip()
    if last or values:
        values.append(last)

    return ["" if value.upper() == "NULL" else value for value in values]


def map_funcao(funcao: Optional[str]) -> str:
    """Driver role: "ajudante_entrega" for helpers, "motorista" otherwise."""
    normalized = (funcao or "").lower().strip()
    if "ajudante" in normalized or "entrega" in normalized:
        return "ajudante_entrega"
    return "motorista"


def map_setor(setor: Optional[str]) -> str:
    """Driver sector: "interior" or "sede"."""
    normalized = (setor or "").lower().strip()
    if "interior" in normalized:
        return "interior"
    return "sede"


# ===================
# HELPER FUNCTIONS
# ===================

def _at(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def _parse_int(value: str) -> int:
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return 0
