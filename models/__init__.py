"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, DateBR, PhoneText
from models.imports import (
    ImportPreviewResponse,
    ImportCommitResponse,
    SqlDumpPreviewResponse,
    CommitSectionResponse,
    SqlDumpImportResponse,
)
from models.protocolo import (
    ProtocoloStatus,
    ProdutoProtocolo,
    FotosProtocolo,
    ProtocoloRecord,
)
from models.photos import (
    PhotoUploadRequest,
    UploadProgressEventResponse,
    PhotoUploadResponse,
)
from models.notification import (
    MessageKind,
    WhatsAppNotificationRequest,
    WhatsAppNotificationResponse,
    SlaCheckResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "DateBR",
    "PhoneText",
    # Imports
    "ImportPreviewResponse",
    "ImportCommitResponse",
    "SqlDumpPreviewResponse",
    "CommitSectionResponse",
    "SqlDumpImportResponse",
    # Protocolo
    "ProtocoloStatus",
    "ProdutoProtocolo",
    "FotosProtocolo",
    "ProtocoloRecord",
    # Photos
    "PhotoUploadRequest",
    "UploadProgressEventResponse",
    "PhotoUploadResponse",
    # Notifications
    "MessageKind",
    "WhatsAppNotificationRequest",
    "WhatsAppNotificationResponse",
    "SlaCheckResponse",
]
