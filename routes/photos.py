"""
Photo API routes.

Upload of the three protocolo photos with retries, and a read-only proxy
for photos already in the bucket.
"""

from fastapi import APIRouter
from fastapi.responses import Response
import structlog

from models.photos import PhotoUploadRequest, PhotoUploadResponse
from routes.errors import handle_error
from services.photo_proxy_service import fetch_public_photo
from services.photo_upload_service import UploadProgressTracker, get_photo_uploader

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/photos", tags=["Photos"])

PROXY_CACHE_CONTROL = "public, max-age=31536000, immutable"


# ===================
# ROUTES
# ===================

@router.post("/{protocolo_numero}", response_model=PhotoUploadResponse)
async def upload_photos(protocolo_numero: str, body: PhotoUploadRequest):
    """
    Upload a protocolo's photos concurrently.

    Each photo is retried with exponential backoff. Photos that still fail
    are reported with status "error" and left out of `urls`.
    """
    try:
        tracker = UploadProgressTracker()
        urls = await get_photo_uploader().upload_protocol_photos(
            body.model_dump(),
            protocolo_numero,
            listener=tracker,
        )

        return PhotoUploadResponse(
            protocolo_numero=protocolo_numero,
            urls=urls,
            statuses={role: status.value for role, status in tracker.statuses.items()},
            events=[event.to_dict() for event in tracker.events],
        )

    except Exception as e:
        return handle_error(e)


@router.get("/proxy/{path:path}")
async def proxy_photo(path: str):
    """
    Serve a photo from the public bucket.

    Raises:
        404: Photo not found
        503: Storage unreachable
    """
    try:
        photo = fetch_public_photo(path)
        return Response(
            content=photo.content,
            media_type=photo.content_type,
            headers={"Cache-Control": PROXY_CACHE_CONTROL},
        )

    except Exception as e:
        return handle_error(e)
