"""
Photo upload schemas.
"""

from typing import Optional
from pydantic import BaseModel, Field


class PhotoUploadRequest(BaseModel):
    """Base64 data URIs for the three protocolo photo slots."""
    foto_motorista_pdv: Optional[str] = None
    foto_lote_produto: Optional[str] = None
    foto_avaria: Optional[str] = None


class UploadProgressEventResponse(BaseModel):
    """One status change of one photo upload."""
    role: str
    status: str
    attempt: Optional[int] = None
    error: Optional[str] = None


class PhotoUploadResponse(BaseModel):
    """Result of uploading a protocolo's photos."""
    protocolo_numero: str
    urls: dict[str, str] = Field(
        default_factory=dict,
        description="Role -> public URL, only for uploads that succeeded"
    )
    statuses: dict[str, str] = Field(default_factory=dict)
    events: list[UploadProgressEventResponse] = Field(default_factory=list)
