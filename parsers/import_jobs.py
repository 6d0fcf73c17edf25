"""
Import job definitions.

A job describes one kind of bulk import: which headers it accepts, which
fields are required, which table receives the rows and how records become
table rows.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from exceptions import UnknownImportJobError
from parsers.header_mapper import HeaderSynonymTable
from parsers.row_extractor import ImportRecord
from utils.text_utils import clean_text, digits_only, normalize_code


class CommitMode(str, Enum):
    """How a batch is written to the store."""
    REPLACE_PARTITION = "replace_partition"  # delete partition, insert in chunks
    UPSERT = "upsert"                        # insert or update by unique key


@dataclass(frozen=True)
class ImportJob:
    """Static configuration for one import kind."""
    name: str
    table: str
    synonyms: HeaderSynonymTable
    required_fields: tuple[str, ...]
    commit_mode: CommitMode
    to_row: Callable[[ImportRecord, Optional[str]], dict]
    key_column: str = "codigo"              # table column holding the record code
    conflict_key: Optional[str] = None      # upsert mode: unique column
    partition_column: Optional[str] = None  # replace mode: partition column
    code_field: str = "code"


# ===================
# PDVS (points of sale)
# ===================

PDV_SYNONYMS = HeaderSynonymTable({
    "code": [
        "codigo cliente", "cod cliente", "codcli", "codigo", "cod",
        "codigo pdv", "cod pdv", "cliente", "code",
    ],
    "label": [
        "nome fantasia", "fantasia", "nome", "nome cliente",
        "razao social", "pdv", "name",
    ],
    "district": ["bairro", "district"],
    "tax_id": ["cnpj", "cpf cnpj", "cnpj cpf", "cpf", "documento"],
    "address": ["endereço", "endereco", "logradouro", "rua", "address"],
    "city": ["cidade", "municipio", "município", "city"],
})


def pdv_to_row(record: ImportRecord, unidade: Optional[str]) -> dict:
    """Convert a PDV record to a pdvs table row."""
    return {
        "codigo": normalize_code(record.get("code")),
        "nome": clean_text(record.get("label")) or "SEM NOME",
        "bairro": clean_text(record.get("district")),
        "cnpj": digits_only(record.get("tax_id")),
        "endereco": clean_text(record.get("address")),
        "cidade": clean_text(record.get("city")),
        "unidade": (unidade or "").upper(),
    }


PDV_JOB = ImportJob(
    name="pdvs",
    table="pdvs",
    synonyms=PDV_SYNONYMS,
    required_fields=("code", "label"),
    commit_mode=CommitMode.REPLACE_PARTITION,
    to_row=pdv_to_row,
    partition_column="unidade",
)


# ===================
# PRODUTOS
# ===================

PRODUTO_SYNONYMS = HeaderSynonymTable({
    "code": [
        "cod", "icod", "codigo", "código", "code", "sku", "id",
        "codproduto", "coditem", "codigoproduto", "codigoitem",
    ],
    "label": [
        "produto", "nome", "name", "descrição", "descricao", "description",
        "item", "nomeproduto", "descproduto", "desc",
    ],
    "packaging": ["embalagem", "emb", "unidade medida", "un"],
})


def produto_to_row(record: ImportRecord, _partition: Optional[str] = None) -> dict:
    """Convert a product record to a produtos table row."""
    return {
        "cod": normalize_code(record.get("code")),
        "produto": (record.get("label") or "").strip(),
        "embalagem": clean_text(record.get("packaging")) or "UN",
    }


PRODUTO_JOB = ImportJob(
    name="produtos",
    table="produtos",
    synonyms=PRODUTO_SYNONYMS,
    required_fields=("code", "label"),
    commit_mode=CommitMode.UPSERT,
    to_row=produto_to_row,
    key_column="cod",
    conflict_key="cod",
)


IMPORT_JOBS: dict[str, ImportJob] = {
    PDV_JOB.name: PDV_JOB,
    PRODUTO_JOB.name: PRODUTO_JOB,
}


def get_import_job(name: str) -> ImportJob:
    """
    Look up a job by name.

    Raises:
        UnknownImportJobError: If no job has this name
    """
    try:
        return IMPORT_JOBS[name]
    except KeyError:
        raise UnknownImportJobError(name)
