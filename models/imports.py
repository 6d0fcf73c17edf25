"""
Import schemas for API responses.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ImportPreviewResponse(BaseModel):
    """Rows extracted from an uploaded file, before commit."""
    job: str
    column_mapping: dict[str, str] = Field(
        default_factory=dict,
        description="Field name -> header text it was matched from"
    )
    total_accepted: int
    total_rejected: int
    skipped_empty: int = 0
    preview: list[dict[str, str]] = Field(
        default_factory=list,
        description="First accepted records"
    )
    errors: list[str] = Field(default_factory=list)
    summary: str


class ImportCommitResponse(BaseModel):
    """Outcome of a full import (extract + commit)."""
    job: str
    partition: Optional[str] = None
    success: bool
    total_committed: int
    error: Optional[str] = None
    duplicates_dropped: int = 0
    total_rejected: int = 0
    errors: list[str] = Field(default_factory=list)
    summary: str


class SqlDumpPreviewResponse(BaseModel):
    """Entities found in a legacy SQL dump."""
    unidades: list[dict] = Field(default_factory=list)
    motoristas: list[dict] = Field(default_factory=list)
    produtos: list[dict] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class CommitSectionResponse(BaseModel):
    """Commit result of one table."""
    success: bool
    total_committed: int = 0
    error: Optional[str] = None
    duplicates_dropped: int = 0


class SqlDumpImportResponse(BaseModel):
    """Outcome of writing a legacy SQL dump."""
    success: bool
    unidades: CommitSectionResponse
    produtos: CommitSectionResponse
    motoristas_skipped: int = 0
    errors: list[str] = Field(default_factory=list, description="Rows the parser could not map")
