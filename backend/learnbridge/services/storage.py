"""
Upload gatekeeper and file storage.

admit_upload: validate one uploaded file (MIME type, size, filename) before anything is written.
save_file / delete_stored_file / resolve_stored_path: files under settings.upload_dir,
named <uuid hex><ext>; records keep file_url = /uploads/<name>.
"""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from fastapi import UploadFile

from learnbridge.config import settings
from learnbridge.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"

ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
})

INVALID_TYPE_MESSAGE = "Invalid file type. Only PDF, DOC, DOCX, PPT, PPTX, TXT, and images are allowed."


@dataclass(frozen=True)
class AdmittedFile:
    """An upload that passed the gatekeeper; contents are held in memory (max_upload_bytes)."""
    original_name: str
    mime_type: str
    contents: bytes

    @property
    def size(self) -> int:
        return len(self.contents)


@dataclass(frozen=True)
class StoredFile:
    file_url: str
    path: Path


def _base_mime(content_type: str | None) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return (content_type or "").split(";", 1)[0].strip().lower()


def check_upload(filename: str | None, content_type: str | None, size: int) -> str:
    """Validate upload metadata; return the normalized MIME type. Raises ValidationError."""
    if not filename or not filename.strip():
        raise ValidationError("No file uploaded", field="file")
    mime = _base_mime(content_type)
    if mime not in ALLOWED_MIME_TYPES:
        raise ValidationError(INVALID_TYPE_MESSAGE, field="file", error={"mime_type": mime or None})
    if size > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
            field="file",
            error={"size": size, "max_size": settings.max_upload_bytes},
        )
    if size == 0:
        raise ValidationError("Uploaded file is empty", field="file")
    return mime


def admit_upload(file: UploadFile | None) -> AdmittedFile:
    """Read and validate an uploaded file. Reads at most max_upload_bytes + 1 bytes."""
    if file is None:
        raise ValidationError("No file uploaded", field="file")
    # Type check first so a disallowed file is never read into memory
    check_upload(file.filename, file.content_type, 1)
    contents = file.file.read(settings.max_upload_bytes + 1)
    mime = check_upload(file.filename, file.content_type, len(contents))
    return AdmittedFile(original_name=Path(file.filename).name, mime_type=mime, contents=contents)


def _upload_dir() -> Path:
    upload_dir = settings.resolved_upload_dir
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def save_file(admitted: AdmittedFile) -> StoredFile:
    """Write contents under a fresh unique name. Raises StorageError on filesystem failure."""
    suffix = PurePosixPath(admitted.original_name).suffix.lower()
    stored_name = f"{uuid.uuid4().hex}{suffix}"
    try:
        path = _upload_dir() / stored_name
        path.write_bytes(admitted.contents)
    except OSError as e:
        logger.error("Failed to save upload %s: %s", admitted.original_name, e)
        raise StorageError("Failed to save file", error=str(e)) from e
    return StoredFile(file_url=f"{URL_PREFIX}{stored_name}", path=path)


def resolve_stored_path(file_url: str | None) -> Path | None:
    """Map a stored file_url to its path inside the upload dir (basename only). None when absent."""
    if not (file_url or "").strip():
        return None
    name = PurePosixPath(file_url).name
    if not name:
        return None
    path = settings.resolved_upload_dir / name
    return path if path.is_file() else None


def delete_stored_file(file_url: str | None) -> bool:
    """Best-effort delete. Returns True if a file was removed; a missing file is not an error."""
    path = resolve_stored_path(file_url)
    if path is None:
        return False
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not delete stored file %s: %s", path, e)
        return False
    return True
