"""
Import service for bulk PDV and product catalogs.

Runs the whole pipeline for an uploaded file: read the grid, match headers,
extract records, then write them with the job's commit mode.

Commit methods never raise. Store failures come back as an
ImportCommitResult with success=False and the underlying message.

Replacing a partition is not transactional: the delete and the chunked
inserts are separate calls. A failure halfway leaves the chunks already
inserted in place, and two imports of the same unidade running at the same
time can interleave their deletes and inserts.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import structlog

from config import settings, get_supabase_client, get_admin_client
from exceptions import ValidationError
from parsers.header_mapper import build_column_mapping, require_fields
from parsers.import_jobs import PRODUTO_JOB, CommitMode, ImportJob
from parsers.row_extractor import ImportRecord, RowExtractionResult, extract_rows
from parsers.sql_dump_parser import SqlDumpParseResult
from parsers.tabular_reader import read_grid
from services.stores import RecordStore, SupabaseRecordStore

logger = structlog.get_logger(__name__)


@dataclass
class ImportCommitResult:
    """Outcome of writing a batch to the store."""
    success: bool
    total_committed: int = 0
    error: Optional[str] = None
    duplicates_dropped: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "total_committed": self.total_committed,
            "error": self.error,
            "duplicates_dropped": self.duplicates_dropped,
        }


@dataclass
class ImportPreview:
    """Extraction result plus the header each field was matched from."""
    job: ImportJob
    extraction: RowExtractionResult
    column_mapping: dict[str, str]


@dataclass
class ImportJobOutcome:
    """Extraction and commit results of one import."""
    preview: ImportPreview
    commit: ImportCommitResult
    partition: Optional[str] = None

    @property
    def summary(self) -> str:
        extraction = self.preview.extraction
        if not self.commit.success:
            return f"Import failed: {self.commit.error}"
        summary = (
            f"{self.commit.total_committed} records imported, "
            f"{extraction.total_rejected} rows skipped due to missing fields"
        )
        if self.commit.duplicates_dropped:
            summary += f", {self.commit.duplicates_dropped} duplicate codes dropped"
        return summary


@dataclass
class SqlDumpImportResult:
    """Commit results of the unidades and produtos found in a SQL dump."""
    unidades: ImportCommitResult
    produtos: ImportCommitResult
    motoristas_skipped: int = 0

    @property
    def success(self) -> bool:
        return self.unidades.success and self.produtos.success

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "unidades": self.unidades.to_dict(),
            "produtos": self.produtos.to_dict(),
            "motoristas_skipped": self.motoristas_skipped,
        }


def chunked(rows: Sequence[dict], size: int) -> list[Sequence[dict]]:
    """Split rows into consecutive chunks of at most `size`."""
    return [rows[i:i + size] for i in range(0, len(rows), size)]


def dedupe_keep_last(rows: Sequence[dict], key: str) -> list[dict]:
    """Drop rows with a repeated key, keeping the last occurrence."""
    by_key: dict = {}
    for row in rows:
        by_key.pop(row.get(key), None)
        by_key[row.get(key)] = row
    return list(by_key.values())


def dedupe_keep_first(rows: Sequence[dict], key: str) -> list[dict]:
    """Drop rows with a repeated key, keeping the first occurrence."""
    seen: set = set()
    unique: list[dict] = []
    for row in rows:
        if row.get(key) in seen:
            continue
        seen.add(row.get(key))
        unique.append(row)
    return unique


class ImportService:
    """
    Bulk import pipeline.

    Handles:
    - Preview (read + match headers + extract rows)
    - Replace-partition commit (PDVs by unidade)
    - Upsert commit (products by code)
    """

    def __init__(self, record_store: RecordStore, chunk_size: Optional[int] = None):
        self.store = record_store
        self.chunk_size = chunk_size or settings.import_chunk_size

    # ===================
    # EXTRACTION
    # ===================

    def preview(self, job: ImportJob, content: bytes, filename: str) -> ImportPreview:
        """
        Read a file and extract its records without writing anything.

        Raises:
            ImportParseError: Unreadable file or no data rows
            MissingColumnsError: A required field has no matching header
        """
        logger.info("import_preview_started", job=job.name, filename=filename)

        grid = read_grid(content, filename)
        headers = grid[0]

        mapping = build_column_mapping(headers, job.synonyms)
        require_fields(mapping, job.required_fields, headers)

        extraction = extract_rows(
            grid,
            mapping,
            job.required_fields,
            code_field=job.code_field
        )

        return ImportPreview(
            job=job,
            extraction=extraction,
            column_mapping={field: headers[column] for column, field in mapping.items()},
        )

    # ===================
    # FULL PIPELINE
    # ===================

    def run(
        self,
        job: ImportJob,
        content: bytes,
        filename: str,
        partition: Optional[str] = None,
    ) -> ImportJobOutcome:
        """
        Extract records from a file and commit them.

        Args:
            job: Import job definition
            content: Raw file bytes
            filename: Original filename (picks CSV or Excel)
            partition: Partition value for replace-partition jobs (unidade)

        Returns:
            ImportJobOutcome with row errors and commit result

        Raises:
            ValidationError: Replace-partition job without a partition
            ImportParseError: Unreadable file or no data rows
            MissingColumnsError: A required field has no matching header
        """
        if job.commit_mode == CommitMode.REPLACE_PARTITION and not (partition or "").strip():
            raise ValidationError(
                message=f"Import '{job.name}' requires a {job.partition_column}",
                code="IMPORT_PARTITION_REQUIRED",
                details={"job": job.name}
            )

        preview = self.preview(job, content, filename)
        commit = self.commit(job, preview.extraction.records, partition)

        outcome = ImportJobOutcome(preview=preview, commit=commit, partition=partition)

        logger.info(
            "import_finished",
            job=job.name,
            partition=partition,
            success=commit.success,
            committed=commit.total_committed,
            rejected=preview.extraction.total_rejected
        )

        return outcome

    def commit(
        self,
        job: ImportJob,
        records: Sequence[ImportRecord],
        partition: Optional[str] = None,
    ) -> ImportCommitResult:
        """Write records with the job's commit mode."""
        if job.commit_mode == CommitMode.REPLACE_PARTITION:
            return self.replace_partition(job, records, partition or "")
        return self.upsert(job, records)

    # ===================
    # COMMIT MODES
    # ===================

    def replace_partition(
        self,
        job: ImportJob,
        records: Sequence[ImportRecord],
        partition: str,
    ) -> ImportCommitResult:
        """
        Delete every row of the partition, then insert the batch in chunks.

        A code repeated in the file keeps its first row. Chunks already
        inserted stay in place when a later chunk fails.
        """
        partition_value = partition.strip().upper()
        rows = [job.to_row(record, partition_value) for record in records]
        rows = [row for row in rows if row.get(job.key_column)]
        unique_rows = dedupe_keep_first(rows, job.key_column)
        duplicates = len(rows) - len(unique_rows)
        rows = unique_rows

        if not rows:
            return ImportCommitResult(success=False, error="No valid records to import")

        chunks = chunked(rows, self.chunk_size)

        logger.info(
            "replacing_partition",
            table=job.table,
            partition=partition_value,
            rows=len(rows),
            duplicates_dropped=duplicates,
            chunks=len(chunks)
        )

        try:
            self.store.delete_partition(job.table, job.partition_column, partition_value)
        except Exception as e:
            logger.error(
                "partition_delete_failed",
                table=job.table,
                partition=partition_value,
                error=str(e)
            )
            return ImportCommitResult(
                success=False,
                error=f"Failed to clear existing records: {e}"
            )

        inserted = 0
        for number, chunk in enumerate(chunks, start=1):
            try:
                self.store.insert_batch(job.table, chunk)
            except Exception as e:
                logger.error(
                    "chunk_insert_failed",
                    table=job.table,
                    partition=partition_value,
                    chunk=number,
                    inserted_before_failure=inserted,
                    error=str(e)
                )
                return ImportCommitResult(
                    success=False,
                    error=f"Failed to insert batch {number}: {e}"
                )
            inserted += len(chunk)

        logger.info("partition_replaced", table=job.table, partition=partition_value, inserted=inserted)

        return ImportCommitResult(success=True, total_committed=inserted, duplicates_dropped=duplicates)

    def upsert(self, job: ImportJob, records: Sequence[ImportRecord]) -> ImportCommitResult:
        """Insert or update the batch keyed on the job's unique column."""
        key = job.conflict_key or job.key_column
        rows = [job.to_row(record, None) for record in records]
        rows = [row for row in rows if row.get(key)]
        unique_rows = dedupe_keep_last(rows, key)
        duplicates = len(rows) - len(unique_rows)
        rows = unique_rows

        if not rows:
            return ImportCommitResult(success=False, error="No valid records to import")

        logger.info("upserting_records", table=job.table, rows=len(rows), on_conflict=key)

        try:
            self.store.upsert(job.table, rows, on_conflict=key)
        except Exception as e:
            logger.error("upsert_failed", table=job.table, error=str(e))
            return ImportCommitResult(success=False, error=str(e))

        return ImportCommitResult(success=True, total_committed=len(rows), duplicates_dropped=duplicates)

    # ===================
    # SQL DUMP
    # ===================

    def import_sql_dump(self, dump: SqlDumpParseResult) -> SqlDumpImportResult:
        """
        Write the unidades and produtos of a parsed SQL dump.

        Unidades are upserted by codigo, produtos go through the product
        upsert. Motoristas need auth accounts and are only counted. An empty
        section is a success with nothing committed.
        """
        unidades = ImportCommitResult(success=True)
        if dump.unidades:
            unidades = self.upsert_unidades([
                {"nome": u.nome, "codigo": u.codigo, "cnpj": None}
                for u in dump.unidades
            ])

        produtos = ImportCommitResult(success=True)
        if dump.produtos:
            produtos = self.upsert(PRODUTO_JOB, [
                {"code": p.codigo, "label": p.nome, "packaging": p.embalagem}
                for p in dump.produtos
            ])

        result = SqlDumpImportResult(
            unidades=unidades,
            produtos=produtos,
            motoristas_skipped=len(dump.motoristas),
        )

        logger.info(
            "sql_dump_imported",
            success=result.success,
            unidades=unidades.total_committed,
            produtos=produtos.total_committed,
            motoristas_skipped=result.motoristas_skipped
        )

        return result

    def upsert_unidades(self, rows: Sequence[dict]) -> ImportCommitResult:
        """Insert or update unidades by codigo."""
        rows = [row for row in rows if row.get("codigo")]
        unique_rows = dedupe_keep_last(rows, "codigo")
        duplicates = len(rows) - len(unique_rows)

        if not unique_rows:
            return ImportCommitResult(success=False, error="No valid records to import")

        try:
            self.store.upsert("unidades", unique_rows, on_conflict="codigo")
        except Exception as e:
            logger.error("upsert_failed", table="unidades", error=str(e))
            return ImportCommitResult(success=False, error=str(e))

        return ImportCommitResult(
            success=True,
            total_committed=len(unique_rows),
            duplicates_dropped=duplicates
        )


# =============================================================================
# Singleton
# =============================================================================

_import_service: Optional[ImportService] = None


def get_import_service() -> ImportService:
    """Get or create ImportService instance."""
    global _import_service
    if _import_service is None:
        client = get_admin_client() or get_supabase_client()
        _import_service = ImportService(SupabaseRecordStore(client))
    return _import_service
