"""
Photo upload service for protocolo pictures.

Uploads base64 data URIs to the photo bucket, retrying failed attempts with
exponential backoff (1s, 2s, 4s, ...). Each photo is tracked by an
UploadTask whose status moves through:

    pending -> uploading -> success
                         -> retrying -> uploading -> ...
                         -> error

success and error are terminal. Status changes are reported to an
UploadProgressListener as UploadProgressEvent objects.

The attempt timeout only stops waiting. The blob store call runs in a worker
thread that cannot be cancelled, so a timed-out attempt may still finish and
leave an unreferenced object under its own timestamped path.
"""

import asyncio
import base64
import binascii
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Mapping, Optional, Protocol
import structlog

from config import settings, get_supabase_client
from exceptions import InvalidUploadTransitionError
from services.stores import BlobStore, SupabaseBlobStore

logger = structlog.get_logger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"
DATA_URI_PATTERN = re.compile(r"^data:([^;,]+)[^,]*,", re.IGNORECASE)


class UploadStatus(str, Enum):
    """Lifecycle of one photo upload."""
    PENDING = "pending"
    UPLOADING = "uploading"
    RETRYING = "retrying"
    SUCCESS = "success"
    ERROR = "error"


ALLOWED_TRANSITIONS: dict[UploadStatus, frozenset] = {
    UploadStatus.PENDING: frozenset({UploadStatus.UPLOADING}),
    UploadStatus.UPLOADING: frozenset({UploadStatus.SUCCESS, UploadStatus.RETRYING, UploadStatus.ERROR}),
    UploadStatus.RETRYING: frozenset({UploadStatus.UPLOADING}),
    UploadStatus.SUCCESS: frozenset(),
    UploadStatus.ERROR: frozenset(),
}


class PhotoRole(str, Enum):
    """The three photo slots of a protocolo."""
    MOTORISTA_PDV = "foto_motorista_pdv"
    LOTE_PRODUTO = "foto_lote_produto"
    AVARIA = "foto_avaria"

    @property
    def storage_label(self) -> str:
        """Prefix used in the object name."""
        return self.value.removeprefix("foto_")

    @property
    def display_name(self) -> str:
        return {
            PhotoRole.MOTORISTA_PDV: "Motorista/PDV",
            PhotoRole.LOTE_PRODUTO: "Lote Produto",
            PhotoRole.AVARIA: "Avaria",
        }[self]


@dataclass(frozen=True)
class UploadProgressEvent:
    """One status change of one upload."""
    role: str
    status: UploadStatus
    attempt: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "status": self.status.value,
            "attempt": self.attempt,
            "error": self.error,
        }


class UploadProgressListener(Protocol):
    """Receives upload status changes."""

    def on_progress(self, event: UploadProgressEvent) -> None: ...


class UploadProgressTracker:
    """
    Listener that keeps the latest status of every role.

    Usage:
        tracker = UploadProgressTracker()
        urls = await uploader.upload_protocol_photos(photos, "PROT-1", listener=tracker)
        tracker.statuses  # {"foto_avaria": UploadStatus.SUCCESS, ...}
    """

    def __init__(self):
        self.statuses: dict[str, UploadStatus] = {}
        self.events: list[UploadProgressEvent] = []
        self.current_retry: Optional[tuple[str, int]] = None

    def on_progress(self, event: UploadProgressEvent) -> None:
        self.events.append(event)
        self.statuses[event.role] = event.status
        if event.status == UploadStatus.RETRYING and event.attempt:
            self.current_retry = (event.role, event.attempt)
        else:
            self.current_retry = None

    @property
    def finished(self) -> bool:
        """True once every tracked role is terminal."""
        return all(
            status in (UploadStatus.SUCCESS, UploadStatus.ERROR)
            for status in self.statuses.values()
        )

    def events_for(self, role: str) -> list[UploadProgressEvent]:
        return [event for event in self.events if event.role == role]


@dataclass
class UploadTask:
    """State of one photo upload."""
    role: str
    payload: Optional[str]
    status: UploadStatus = UploadStatus.PENDING
    attempts: int = 0
    path: Optional[str] = None
    last_error: Optional[str] = None
    history: list[UploadStatus] = field(default_factory=list)

    @classmethod
    def for_payload(cls, role: str, payload: Optional[str]) -> "UploadTask":
        """Pending when there is something to upload, success otherwise."""
        status = UploadStatus.PENDING if payload else UploadStatus.SUCCESS
        return cls(role=role, payload=payload, status=status, history=[status])

    @property
    def is_terminal(self) -> bool:
        return self.status in (UploadStatus.SUCCESS, UploadStatus.ERROR)

    def transition(self, new_status: UploadStatus) -> None:
        """
        Move to a new status.

        Raises:
            InvalidUploadTransitionError: If the lifecycle does not allow it
        """
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidUploadTransitionError(self.role, self.status.value, new_status.value)
        self.status = new_status
        self.history.append(new_status)


# ===================
# HELPER FUNCTIONS
# ===================

def decode_data_uri(payload: str) -> tuple[str, bytes]:
    """
    Split a data URI into MIME type and binary content.

    "data:image/png;base64,iVBOR..." -> ("image/png", b"\\x89PNG...")
    A bare base64 string is treated as JPEG.

    Raises:
        ValueError: If the base64 content is invalid
    """
    match = DATA_URI_PATTERN.match(payload)
    if match:
        mime_type = match.group(1).lower()
        encoded = payload[match.end():]
    else:
        mime_type = DEFAULT_MIME_TYPE
        encoded = payload.split(",", 1)[1] if "," in payload else payload

    try:
        return mime_type, base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e


def extension_for(mime_type: str) -> str:
    """File extension from a MIME type ("image/png" -> "png")."""
    subtype = mime_type.split("/", 1)[1] if "/" in mime_type else ""
    subtype = subtype.split("+", 1)[0].strip()
    return subtype or "jpg"


def build_storage_path(owner_id: str, role_label: str, extension: str, timestamp_ms: int) -> str:
    """Object name: {owner_id}/{role_label}_{timestamp_ms}.{extension}"""
    return f"{owner_id}/{role_label}_{timestamp_ms}.{extension}"


def backoff_seconds(attempt: int) -> int:
    """Wait after failed attempt number `attempt` (1-based): 1, 2, 4, ..."""
    return 2 ** (attempt - 1)


# ===================
# SERVICE
# ===================

class PhotoUploader:
    """
    Uploads protocolo photos with retries.

    Handles:
    - Single photo upload with exponential backoff
    - Concurrent upload of the three photo slots of a protocolo
    """

    def __init__(
        self,
        blob_store: BlobStore,
        max_attempts: Optional[int] = None,
        attempt_timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.blob_store = blob_store
        self.max_attempts = settings.upload_max_attempts if max_attempts is None else max_attempts
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep
        self._clock = clock

    async def upload(
        self,
        payload: str,
        owner_id: str,
        role_label: str,
        max_attempts: Optional[int] = None,
        listener: Optional[UploadProgressListener] = None,
        task: Optional[UploadTask] = None,
    ) -> Optional[str]:
        """
        Upload one photo and return its public URL.

        Args:
            payload: Base64 data URI
            owner_id: Protocolo number (folder in the bucket)
            role_label: Object name prefix (e.g. "avaria")
            max_attempts: Attempts before giving up (default from settings)
            listener: Receives status changes
            task: Existing task to drive (created when omitted)

        Returns:
            Public URL, or None after all attempts failed
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not payload:
            raise ValueError("payload is required")

        task = task or UploadTask.for_payload(role_label, payload)

        for attempt in range(1, attempts + 1):
            task.attempts = attempt
            task.transition(UploadStatus.UPLOADING)
            self._emit(listener, task, attempt=attempt)

            try:
                url = await self._attempt(payload, owner_id, role_label, task)
            except Exception as e:
                task.last_error = str(e) or type(e).__name__
                logger.warning(
                    "photo_upload_attempt_failed",
                    owner_id=owner_id,
                    role=task.role,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=task.last_error
                )

                if attempt < attempts:
                    task.transition(UploadStatus.RETRYING)
                    self._emit(listener, task, attempt=attempt + 1)
                    await self._sleep(backoff_seconds(attempt))
                continue

            task.transition(UploadStatus.SUCCESS)
            self._emit(listener, task, attempt=attempt)

            logger.info(
                "photo_uploaded",
                owner_id=owner_id,
                role=task.role,
                path=task.path,
                attempts=attempt
            )
            return url

        task.transition(UploadStatus.ERROR)
        self._emit(listener, task, attempt=task.attempts, error=task.last_error)

        logger.error(
            "photo_upload_failed",
            owner_id=owner_id,
            role=task.role,
            attempts=task.attempts,
            error=task.last_error
        )
        return None

    async def upload_protocol_photos(
        self,
        photos: Mapping[str, Optional[str]],
        owner_id: str,
        listener: Optional[UploadProgressListener] = None,
    ) -> dict[str, str]:
        """
        Upload the photos of a protocolo concurrently.

        Slots without a payload are not uploaded and count as done.

        Args:
            photos: Role value (e.g. "foto_avaria") -> data URI or None
            owner_id: Protocolo number
            listener: Receives status changes of every slot

        Returns:
            Role value -> public URL for every supplied photo that uploaded
        """
        tasks = {
            role: UploadTask.for_payload(role.value, photos.get(role.value))
            for role in PhotoRole
        }

        for task in tasks.values():
            self._emit(listener, task)

        pending = [(role, task) for role, task in tasks.items() if task.payload]

        logger.info(
            "uploading_protocol_photos",
            owner_id=owner_id,
            photos=[role.value for role, _ in pending]
        )

        urls = await asyncio.gather(*(
            self.upload(
                task.payload,
                owner_id,
                role.storage_label,
                listener=listener,
                task=task,
            )
            for role, task in pending
        ))

        return {
            role.value: url
            for (role, _), url in zip(pending, urls)
            if url
        }

    # ===================
    # INTERNALS
    # ===================

    async def _attempt(self, payload: str, owner_id: str, role_label: str, task: UploadTask) -> str:
        mime_type, data = decode_data_uri(payload)
        path = build_storage_path(
            owner_id,
            role_label,
            extension_for(mime_type),
            int(self._clock() * 1000)
        )

        call = asyncio.to_thread(self.blob_store.upload, path, data, mime_type)
        if self.attempt_timeout:
            stored_path = await asyncio.wait_for(call, timeout=self.attempt_timeout)
        else:
            stored_path = await call

        task.path = stored_path or path
        return self.blob_store.get_public_url(task.path)

    @staticmethod
    def _emit(
        listener: Optional[UploadProgressListener],
        task: UploadTask,
        attempt: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        if listener is not None:
            listener.on_progress(UploadProgressEvent(
                role=task.role,
                status=task.status,
                attempt=attempt,
                error=error,
            ))


# =============================================================================
# Singleton
# =============================================================================

_photo_uploader: Optional[PhotoUploader] = None


def get_photo_uploader() -> PhotoUploader:
    """Get or create PhotoUploader instance."""
    global _photo_uploader
    if _photo_uploader is None:
        _photo_uploader = PhotoUploader(
            SupabaseBlobStore(get_supabase_client(), settings.photo_bucket),
            attempt_timeout=settings.upload_timeout_seconds,
        )
    return _photo_uploader
