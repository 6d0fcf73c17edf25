"""
Unit tests for ImportService.

Uses InMemoryRecordStore so every delete/insert/upsert call can be checked.
"""

import pytest

from exceptions import MissingColumnsError, ValidationError
from parsers.import_jobs import PDV_JOB, PRODUTO_JOB, pdv_to_row, produto_to_row
from parsers.sql_dump_parser import ParsedMotorista, ParsedProduto, ParsedUnidade, SqlDumpParseResult
from services.import_service import ImportService, chunked, dedupe_keep_first, dedupe_keep_last
from tests.conftest import InMemoryRecordStore
from tests.factories import PdvFileFactory, csv_bytes, xlsx_bytes


@pytest.fixture
def service(record_store):
    return ImportService(record_store, chunk_size=500)


# ===================
# PREVIEW TESTS
# ===================

class TestPreview:
    """Tests for ImportService.preview."""

    def test_preview_does_not_write(self, service, record_store):
        content = PdvFileFactory.csv(rows=[["12.345", "Mercado Central", "Centro"]])

        preview = service.preview(PDV_JOB, content, "pdvs.csv")

        assert preview.extraction.records[0]["code"] == "12345"
        assert preview.column_mapping == {
            "code": "Código Cliente",
            "label": "Nome Fantasia",
            "district": "Bairro",
        }
        assert record_store.calls == []

    def test_missing_required_column(self, service):
        content = csv_bytes([["Bairro", "Cidade"], ["Centro", "Salvador"]])

        with pytest.raises(MissingColumnsError) as exc_info:
            service.preview(PDV_JOB, content, "pdvs.csv")

        assert exc_info.value.missing_fields == ["code", "label"]

    def test_row_with_extra_cell_keeps_whole_file(self, service):
        content = b"Codigo Cliente;Nome Fantasia\n1;A\n2;B;extra\n3;C\n"

        preview = service.preview(PDV_JOB, content, "pdvs.csv")

        assert [r["code"] for r in preview.extraction.records] == ["1", "2", "3"]
        assert preview.extraction.total_rejected == 0

    def test_xlsx_preview(self, service):
        content = xlsx_bytes([
            ["Código", "Descrição", "Embalagem"],
            [1001, "Refrigerante 2L", "FD"],
        ])

        preview = service.preview(PRODUTO_JOB, content, "produtos.xlsx")

        assert preview.extraction.records == [
            {"code": "1001", "label": "Refrigerante 2L", "packaging": "FD"},
        ]


# ===================
# REPLACE PARTITION TESTS
# ===================

class TestReplacePartition:
    """Tests for the delete-then-insert commit."""

    def test_chunks_of_500(self, service, record_store):
        """1200 rows: one delete then inserts of 500, 500 and 200."""
        content = PdvFileFactory.csv(count=1200)

        outcome = service.run(PDV_JOB, content, "pdvs.csv", partition="ba")

        assert outcome.commit.success is True
        assert outcome.commit.total_committed == 1200
        assert record_store.calls == [
            ("delete", "pdvs", "unidade", "BA"),
            ("insert", "pdvs", 500),
            ("insert", "pdvs", 500),
            ("insert", "pdvs", 200),
        ]
        assert outcome.summary == "1200 records imported, 0 rows skipped due to missing fields"

    def test_replaces_only_target_partition(self):
        store = InMemoryRecordStore({
            "pdvs": [
                {"codigo": "OLD", "nome": "Antigo", "unidade": "BA"},
                {"codigo": "KEEP", "nome": "Outro", "unidade": "PE"},
            ]
        })
        service = ImportService(store, chunk_size=500)

        service.run(PDV_JOB, PdvFileFactory.csv(count=2), "pdvs.csv", partition="BA")

        codes = {(row["codigo"], row["unidade"]) for row in store.rows("pdvs")}
        assert codes == {("1000", "BA"), ("1001", "BA"), ("KEEP", "PE")}

    def test_rejected_rows_reported(self, service, record_store):
        content = PdvFileFactory.csv(rows=[["1", "A", ""], ["2", "", ""]])

        outcome = service.run(PDV_JOB, content, "pdvs.csv", partition="BA")

        assert outcome.commit.total_committed == 1
        assert outcome.preview.extraction.errors == ["Row 3: missing required field 'label'"]
        assert outcome.summary == "1 records imported, 1 rows skipped due to missing fields"

    def test_duplicate_codes_keep_first(self, service, record_store):
        content = PdvFileFactory.csv(rows=[
            ["1001", "Mercado Central", "Centro"],
            ["1002", "Padaria", "Barra"],
            ["1.001", "Mercado Repetido", "Pituba"],
        ])

        outcome = service.run(PDV_JOB, content, "pdvs.csv", partition="BA")

        assert outcome.commit.total_committed == 2
        assert outcome.commit.duplicates_dropped == 1
        assert record_store.calls == [
            ("delete", "pdvs", "unidade", "BA"),
            ("insert", "pdvs", 2),
        ]
        by_code = {row["codigo"]: row["nome"] for row in record_store.rows("pdvs")}
        assert by_code == {"1001": "Mercado Central", "1002": "Padaria"}
        assert outcome.summary.endswith(", 1 duplicate codes dropped")

    def test_partition_required(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.run(PDV_JOB, PdvFileFactory.csv(), "pdvs.csv", partition="  ")

        assert exc_info.value.code == "IMPORT_PARTITION_REQUIRED"

    def test_empty_batch_fails_without_writing(self, service, record_store):
        result = service.replace_partition(PDV_JOB, [], "BA")

        assert result.success is False
        assert result.error == "No valid records to import"
        assert record_store.calls == []

    def test_chunk_failure_reports_zero(self, service, record_store):
        """Second chunk fails: result is a failure with nothing counted."""
        record_store.fail_on_insert = 2

        outcome = service.run(PDV_JOB, PdvFileFactory.csv(count=1200), "pdvs.csv", partition="BA")

        assert outcome.commit.success is False
        assert outcome.commit.total_committed == 0
        assert "batch 2" in outcome.commit.error
        assert "connection reset" in outcome.commit.error
        assert outcome.summary.startswith("Import failed:")
        # Third chunk was never attempted
        assert [c[0] for c in record_store.calls] == ["delete", "insert", "insert"]

    def test_delete_failure_skips_inserts(self, service, record_store):
        record_store.fail_on_delete = True

        outcome = service.run(PDV_JOB, PdvFileFactory.csv(count=3), "pdvs.csv", partition="BA")

        assert outcome.commit.success is False
        assert outcome.commit.error.startswith("Failed to clear existing records")
        assert record_store.calls == [("delete", "pdvs", "unidade", "BA")]


# ===================
# UPSERT TESTS
# ===================

class TestUpsert:
    """Tests for the insert-or-update commit."""

    def test_upsert_by_code(self, service, record_store):
        content = csv_bytes([["cod", "produto"], ["1.001", "Agua"], ["1002", "Suco"]])

        outcome = service.run(PRODUTO_JOB, content, "produtos.csv")

        assert outcome.commit.success is True
        assert outcome.commit.total_committed == 2
        assert record_store.calls == [("upsert", "produtos", 2, "cod")]
        assert {row["cod"] for row in record_store.rows("produtos")} == {"1001", "1002"}

    def test_duplicate_codes_keep_last(self, service, record_store):
        content = csv_bytes([
            ["cod", "produto"],
            ["1001", "Agua 500ml"],
            ["1002", "Suco"],
            ["1001", "Agua 1L"],
        ])

        outcome = service.run(PRODUTO_JOB, content, "produtos.csv")

        assert outcome.commit.total_committed == 2
        assert outcome.commit.duplicates_dropped == 1
        by_code = {row["cod"]: row["produto"] for row in record_store.rows("produtos")}
        assert by_code["1001"] == "Agua 1L"

    def test_upsert_updates_existing(self):
        store = InMemoryRecordStore({"produtos": [{"cod": "1001", "produto": "Antigo", "embalagem": "UN"}]})
        service = ImportService(store)

        service.run(PRODUTO_JOB, csv_bytes([["cod", "produto"], ["1001", "Novo"]]), "produtos.csv")

        assert store.rows("produtos") == [{"cod": "1001", "produto": "Novo", "embalagem": "UN"}]

    def test_upsert_failure(self, service, record_store):
        record_store.fail_on_upsert = True

        outcome = service.run(PRODUTO_JOB, csv_bytes([["cod", "produto"], ["1", "A"]]), "produtos.csv")

        assert outcome.commit.success is False
        assert outcome.commit.total_committed == 0
        assert "duplicate key" in outcome.commit.error


# ===================
# HELPER TESTS
# ===================

class TestHelpers:

    def test_chunked(self):
        rows = [{"n": i} for i in range(7)]
        assert [len(c) for c in chunked(rows, 3)] == [3, 3, 1]

    def test_dedupe_keep_last_order(self):
        rows = [{"k": "a", "v": 1}, {"k": "b", "v": 2}, {"k": "a", "v": 3}]
        assert dedupe_keep_last(rows, "k") == [{"k": "b", "v": 2}, {"k": "a", "v": 3}]

    def test_dedupe_keep_first_order(self):
        rows = [{"k": "a", "v": 1}, {"k": "b", "v": 2}, {"k": "a", "v": 3}]
        assert dedupe_keep_first(rows, "k") == [{"k": "a", "v": 1}, {"k": "b", "v": 2}]

    def test_pdv_row_mapping(self):
        row = pdv_to_row(
            {"code": "12.345", "label": "", "tax_id": "12.345.678/0001-90", "district": " Centro "},
            "ba"
        )

        assert row == {
            "codigo": "12345",
            "nome": "SEM NOME",
            "bairro": "Centro",
            "cnpj": "12345678000190",
            "endereco": None,
            "cidade": None,
            "unidade": "BA",
        }

    def test_produto_row_default_packaging(self):
        assert produto_to_row({"code": "1", "label": "Agua "}) == {
            "cod": "1",
            "produto": "Agua",
            "embalagem": "UN",
        }


# ===================
# SQL DUMP TESTS
# ===================

class TestImportSqlDump:
    """Tests for writing a parsed legacy dump."""

    def test_unidades_and_produtos_upserted(self, service, record_store):
        dump = SqlDumpParseResult(
            unidades=[ParsedUnidade(id=1, nome="Salvador", codigo="SSA")],
            motoristas=[ParsedMotorista(id=10, nome="Joao", codigo="MOT01", unidade_id=1)],
            produtos=[ParsedProduto(codigo="1001", nome="Agua"), ParsedProduto(codigo="1001", nome="Agua 1L")],
        )

        result = service.import_sql_dump(dump)

        assert result.success is True
        assert record_store.rows("unidades") == [{"nome": "Salvador", "codigo": "SSA", "cnpj": None}]
        assert record_store.rows("produtos") == [{"cod": "1001", "produto": "Agua 1L", "embalagem": "UN"}]
        assert result.produtos.duplicates_dropped == 1
        assert result.to_dict()["motoristas_skipped"] == 1

    def test_empty_sections_write_nothing(self, service, record_store):
        result = service.import_sql_dump(SqlDumpParseResult())

        assert result.success is True
        assert record_store.calls == []

    def test_unidade_failure_reported(self, service, record_store):
        record_store.fail_on_upsert = "unidades"
        dump = SqlDumpParseResult(
            unidades=[ParsedUnidade(id=1, nome="Salvador", codigo="SSA")],
            produtos=[ParsedProduto(codigo="1001", nome="Agua")],
        )

        result = service.import_sql_dump(dump)

        assert result.success is False
        assert result.unidades.error == "duplicate key value"
        assert result.produtos.success is True
