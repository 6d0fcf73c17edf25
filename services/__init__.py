"""
Business logic services.

Each service handles one domain area.
"""

from services.stores import (
    RecordStore,
    BlobStore,
    SupabaseRecordStore,
    SupabaseBlobStore,
)
from services.import_service import (
    ImportService,
    ImportCommitResult,
    ImportPreview,
    ImportJobOutcome,
    get_import_service,
)
from services.photo_upload_service import (
    PhotoUploader,
    PhotoRole,
    UploadStatus,
    UploadTask,
    UploadProgressEvent,
    UploadProgressTracker,
    get_photo_uploader,
)
from services.sla_alert_service import SlaAlertService, get_sla_alert_service

__all__ = [
    "RecordStore",
    "BlobStore",
    "SupabaseRecordStore",
    "SupabaseBlobStore",
    "ImportService",
    "ImportCommitResult",
    "ImportPreview",
    "ImportJobOutcome",
    "get_import_service",
    "PhotoUploader",
    "PhotoRole",
    "UploadStatus",
    "UploadTask",
    "UploadProgressEvent",
    "UploadProgressTracker",
    "get_photo_uploader",
    "SlaAlertService",
    "get_sla_alert_service",
]
