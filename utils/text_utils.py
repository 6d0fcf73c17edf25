"""
Text utilities for handling Portuguese text with accents.

Used for spreadsheet header matching and identifier cleanup.
"""

import re
import unicodedata
from typing import Optional

# Characters ignored when comparing headers ("Código_Cliente" == "codigo cliente")
HEADER_SEPARATORS = re.compile(r"[\s_\-.]")


def strip_accents(text: str) -> str:
    """
    Remove accent marks, keeping the base characters.

    - "Código" → "Codigo"
    - "Endereço" → "Endereco"
    """
    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def normalize_header_text(header: Optional[str]) -> str:
    """
    Normalize a spreadsheet header for comparison.

    Lower-cases, strips accents and drops spaces, underscores, hyphens
    and periods:
    - "Código Cliente" → "codigocliente"
    - "NOME_FANTASIA" → "nomefantasia"
    - "Cod. Produto" → "codproduto"

    Args:
        header: Raw header cell (may be None)

    Returns:
        Normalized string, empty for None/blank input
    """
    if header is None:
        return ""

    text = str(header).lower().strip()
    if not text:
        return ""

    return HEADER_SEPARATORS.sub("", strip_accents(text))


def normalize_code(value: Optional[str]) -> str:
    """
    Normalize a customer/product code.

    Spreadsheets often auto-format numeric codes with thousands separators;
    dots and commas are removed so "12.345" and "12345" are the same code.
    Applying it twice gives the same result.
    """
    if value is None:
        return ""
    return str(value).strip().replace(".", "").replace(",", "")


def digits_only(value: Optional[str]) -> Optional[str]:
    """
    Keep only digits (CNPJ, phone numbers).

    Returns None if nothing is left.
    """
    if not value:
        return None
    digits = re.sub(r"\D", "", str(value))
    return digits or None


def clean_text(value: Optional[str], max_length: int = 255) -> Optional[str]:
    """
    Clean free text for storage (preserves accents).

    - Strips whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only strings

    Args:
        value: Raw value from the spreadsheet
        max_length: Maximum characters to store

    Returns:
        Cleaned text or None
    """
    if not value:
        return None

    value = str(value).strip()

    if not value:
        return None

    if len(value) > max_length:
        value = value[:max_length]

    return value
