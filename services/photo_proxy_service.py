"""
Photo proxy.

Fetches a protocolo photo from the public bucket so links sent over
WhatsApp can point at the API instead of the storage host.
"""

from dataclasses import dataclass
from typing import Optional
import requests
import structlog

from config import settings
from exceptions import ExternalServiceError, PhotoNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class ProxiedPhoto:
    content: bytes
    content_type: str


def fetch_public_photo(
    path: str,
    base_url: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> ProxiedPhoto:
    """
    Download a photo from the public bucket.

    Args:
        path: Object path inside the bucket ("PROT-1/avaria_1700000000000.jpg")
        base_url: Public bucket URL (defaults to settings)
        session: requests session to use

    Raises:
        PhotoNotFoundError: Empty path or storage answered with an error
        ExternalServiceError: Storage could not be reached
    """
    path = (path or "").lstrip("/")
    if not path or ".." in path.split("/"):
        raise PhotoNotFoundError(path)

    url = f"{(base_url or settings.public_storage_url).rstrip('/')}/{path}"
    http = session or requests

    logger.debug("fetching_photo", url=url)

    try:
        response = http.get(url, timeout=20)
    except requests.exceptions.RequestException as e:
        logger.error("photo_fetch_failed", path=path, error=str(e))
        raise ExternalServiceError(service="storage", message=f"Failed to fetch photo: {e}")

    if not response.ok:
        logger.warning("photo_not_found", path=path, status_code=response.status_code)
        raise PhotoNotFoundError(path)

    return ProxiedPhoto(
        content=response.content,
        content_type=response.headers.get("Content-Type", "image/jpeg"),
    )
