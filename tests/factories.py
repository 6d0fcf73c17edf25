"""
Test data factories.

Builds import files, data URIs and protocolo rows with consistent defaults.
"""

import base64
from io import BytesIO
from typing import Optional, Sequence
from uuid import uuid4

import pandas as pd

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def csv_bytes(rows: Sequence[Sequence[str]], separator: str = ";", encoding: str = "utf-8") -> bytes:
    """Build a delimited file from rows (header first)."""
    return "\n".join(separator.join(row) for row in rows).encode(encoding)


def xlsx_bytes(rows: Sequence[Sequence]) -> bytes:
    """Build a single-sheet workbook from rows (header first)."""
    buffer = BytesIO()
    df = pd.DataFrame(list(rows[1:]), columns=list(rows[0]))
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False)
    return buffer.getvalue()


def data_uri(data: bytes = PNG_BYTES, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


class PdvFileFactory:
    """
    Factory for PDV import files.

    Usage:
        content = PdvFileFactory.csv(count=1200)
        content = PdvFileFactory.csv(rows=[["12.345", "Mercado Central", "Centro"]])
    """

    HEADERS = ["Código Cliente", "Nome Fantasia", "Bairro"]

    @classmethod
    def rows(cls, count: int) -> list[list[str]]:
        return [[str(1000 + i), f"PDV {i}", "Centro"] for i in range(count)]

    @classmethod
    def csv(
        cls,
        count: int = 3,
        rows: Optional[Sequence[Sequence[str]]] = None,
        headers: Optional[Sequence[str]] = None,
        separator: str = ";",
    ) -> bytes:
        body = list(rows) if rows is not None else cls.rows(count)
        return csv_bytes([list(headers or cls.HEADERS), *body], separator=separator)


class ProtocoloFactory:
    """
    Factory for protocolos table rows.

    Usage:
        row = ProtocoloFactory.create(data="01/01/2026")
        rows = ProtocoloFactory.create_batch(3)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        numero: Optional[str] = None,
        data: str = "01/01/2026",
        status: str = "aberto",
        **overrides
    ) -> dict:
        counter = cls._next_counter()
        row = {
            "id": id or str(uuid4()),
            "numero": numero or f"PROT-{counter:05d}",
            "data": data,
            "hora": "08:30",
            "status": status,
            "mapa": "M-10",
            "codigo_pdv": "12345",
            "nota_fiscal": "NF-1",
            "motorista_nome": "João Silva",
            "motorista_codigo": "MOT01",
            "motorista_unidade": "BA",
            "produtos": [{"codigo": "P1", "nome": "Refrigerante 2L", "unidade": "UN", "quantidade": 3}],
            "sla_16_enviado": False,
            "oculto": False,
        }
        row.update(overrides)
        return row

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[dict]:
        return [cls.create(**overrides) for _ in range(count)]
