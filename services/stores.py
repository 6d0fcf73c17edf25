"""
Narrow storage capabilities used by imports and photo uploads.

Services depend on these protocols instead of the Supabase client so tests
can swap in in-memory fakes.
"""

from typing import Optional, Protocol, Sequence
import structlog

from supabase import Client

logger = structlog.get_logger(__name__)


class RecordStore(Protocol):
    """Table writes needed by bulk imports."""

    def delete_partition(self, table: str, column: str, value: str) -> None: ...

    def insert_batch(self, table: str, rows: Sequence[dict]) -> int: ...

    def upsert(self, table: str, rows: Sequence[dict], on_conflict: str) -> int: ...


class BlobStore(Protocol):
    """Object storage needed by photo uploads."""

    def upload(self, path: str, data: bytes, content_type: str) -> str: ...

    def get_public_url(self, path: str) -> str: ...


class SupabaseRecordStore:
    """RecordStore backed by Supabase tables."""

    def __init__(self, client: Client):
        self.db = client

    def delete_partition(self, table: str, column: str, value: str) -> None:
        logger.debug("deleting_partition", table=table, column=column, value=value)
        self.db.table(table).delete().eq(column, value).execute()

    def insert_batch(self, table: str, rows: Sequence[dict]) -> int:
        logger.debug("inserting_batch", table=table, rows=len(rows))
        self.db.table(table).insert(list(rows)).execute()
        return len(rows)

    def upsert(self, table: str, rows: Sequence[dict], on_conflict: str) -> int:
        logger.debug("upserting_rows", table=table, rows=len(rows), on_conflict=on_conflict)
        self.db.table(table).upsert(
            list(rows),
            on_conflict=on_conflict,
            ignore_duplicates=False
        ).execute()
        return len(rows)


class SupabaseBlobStore:
    """BlobStore backed by a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str, cache_control: Optional[str] = "3600"):
        self.db = client
        self.bucket = bucket
        self.cache_control = cache_control

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        file_options = {"content-type": content_type, "upsert": "false"}
        if self.cache_control:
            file_options["cache-control"] = self.cache_control

        self.db.storage.from_(self.bucket).upload(
            path,
            data,
            file_options=file_options
        )

        logger.debug("object_uploaded", bucket=self.bucket, path=path, size_bytes=len(data))
        return path

    def get_public_url(self, path: str) -> str:
        return self.db.storage.from_(self.bucket).get_public_url(path)
