"""
Review workflow: submission, review (approve/reject), guarded edits and deletes, downloads.

Status moves only pending -> approved or pending -> rejected. Review uses a conditional
UPDATE (... WHERE status = 'pending') so concurrent reviewers cannot both win.
Two capability-gated entry points share this module:
  - plain resource entry point: upload_direct, owner_update, owner_delete
  - management entry point: submit_for_review, manager_update, manager_delete, approve, reject
Both submission paths create pending records; direct upload does not bypass review.
Files are written before their record is committed and removed again if the commit fails.
"""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from fastapi import UploadFile
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from learnbridge import metrics
from learnbridge.config import settings
from learnbridge.errors import ConflictError, NotFoundError, StorageError, ValidationError
from learnbridge.models.module import MODULE_NAME_MAX, SEMESTERS, YEARS, Module
from learnbridge.models.resource import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    DESCRIPTION_MAX,
    REVIEW_NOTES_MAX,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUSES,
    TITLE_MAX,
    Resource,
)
from learnbridge.models.types import utcnow
from learnbridge.models.user import User
from learnbridge.services import policy, storage
from learnbridge.services.policy import Action, Context

logger = logging.getLogger(__name__)

# Fields editable after submission (never status or review fields)
MUTABLE_FIELDS = ("title", "description", "category", "tags")

ALREADY_REVIEWED_MESSAGE = "Resource has already been reviewed"


@dataclass
class Submission:
    """Form fields accompanying an uploaded file."""
    title: str | None
    description: str | None
    category: str | None = None
    tags: list[str] | str | None = None
    year: int | None = None
    semester: int | None = None
    module: str | None = None
    module_id: uuid.UUID | None = None


@dataclass(frozen=True)
class DownloadTicket:
    """What the HTTP layer needs to stream a stored file."""
    path: Path
    file_name: str
    mime_type: str


def parse_tags(value: list[str] | str | None) -> list[str] | None:
    """Comma-separated string or list -> trimmed non-empty tags. None stays None (no change)."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    return [t.strip() for t in items if t and t.strip()]


def _check_category(category: str) -> str:
    if category not in CATEGORIES:
        raise ValidationError(
            f"Invalid category '{category}'. Must be one of: {', '.join(CATEGORIES)}", field="category"
        )
    return category


def _check_text(value: str | None, field: str, max_len: int) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field.capitalize()} is required", field=field)
    if len(text) > max_len:
        raise ValidationError(f"{field.capitalize()} must be at most {max_len} characters", field=field)
    return text


def _placement(db: Session, s: Submission) -> dict[str, Any]:
    """Academic placement; a module_id wins over loose year/semester/module values."""
    if s.module_id is not None:
        module = db.get(Module, s.module_id)
        if module is None:
            raise NotFoundError("Module")
        return {"year": module.year, "semester": module.semester, "module": module.name, "module_id": module.id}
    if s.year is not None and s.year not in YEARS:
        raise ValidationError("Year must be an integer between 1 and 4", field="year")
    if s.semester is not None and s.semester not in SEMESTERS:
        raise ValidationError("Semester must be 1 or 2", field="semester")
    module_name = (s.module or "").strip() or None
    if module_name is not None and len(module_name) > MODULE_NAME_MAX:
        raise ValidationError(f"Module must be at most {MODULE_NAME_MAX} characters", field="module")
    return {"year": s.year, "semester": s.semester, "module": module_name, "module_id": None}


def _validated_fields(db: Session, s: Submission) -> dict[str, Any]:
    if not (s.title or "").strip() or not (s.description or "").strip():
        raise ValidationError("Title and description are required")
    fields = {
        "title": _check_text(s.title, "title", TITLE_MAX),
        "description": _check_text(s.description, "description", DESCRIPTION_MAX),
        "category": _check_category(s.category or DEFAULT_CATEGORY),
        "tags": parse_tags(s.tags) or [],
    }
    fields.update(_placement(db, s))
    return fields


def _create_resource(db: Session, actor: User, submission: Submission, file: UploadFile | None) -> Resource:
    admitted = storage.admit_upload(file)
    fields = _validated_fields(db, submission)
    stored = storage.save_file(admitted)
    try:
        resource = Resource(
            **fields,
            file_url=stored.file_url,
            file_name=admitted.original_name,
            file_size=admitted.size,
            mime_type=admitted.mime_type,
            uploaded_by=actor.id,
            status=STATUS_PENDING,
            download_count=0,
        )
        db.add(resource)
        db.commit()
        db.refresh(resource)
    except Exception as e:
        db.rollback()
        if storage.delete_stored_file(stored.file_url):
            metrics.increment("compensating_deletes_total")
        logger.warning("Resource commit failed; removed stored file %s: %s", stored.file_url, e)
        if isinstance(e, SQLAlchemyError):
            raise StorageError("Server error saving resource", error=str(e)) from e
        raise
    return resource


def submit_for_review(db: Session, actor: User, submission: Submission, file: UploadFile | None) -> Resource:
    """Management entry point: a student submits a file; the record starts pending."""
    policy.authorize(actor, Action.SUBMIT, context=Context.MANAGEMENT)
    resource = _create_resource(db, actor, submission, file)
    logger.info("Resource %s submitted for review by %s", resource.id, actor.id)
    return resource


def upload_direct(db: Session, actor: User, submission: Submission, file: UploadFile | None) -> Resource:
    """Plain entry point: any authenticated user uploads; the record still starts pending."""
    policy.authorize(actor, Action.UPLOAD)
    resource = _create_resource(db, actor, submission, file)
    logger.info("Resource %s uploaded by %s (pending review)", resource.id, actor.id)
    return resource


def get_resource(db: Session, resource_id: uuid.UUID) -> Resource:
    resource = (
        db.query(Resource)
        .options(joinedload(Resource.uploader), joinedload(Resource.reviewer))
        .filter(Resource.id == resource_id)
        .first()
    )
    if resource is None:
        raise NotFoundError("Resource")
    return resource


def get_visible_resource(db: Session, actor: User | None, resource_id: uuid.UUID) -> Resource:
    """Pending and rejected resources are hidden (404) from everyone but the uploader and managers."""
    resource = get_resource(db, resource_id)
    if not policy.can_view(actor, resource):
        raise NotFoundError("Resource")
    return resource


def _review(
    db: Session,
    actor: User,
    resource_id: uuid.UUID,
    action: Action,
    build_values: Callable[[], dict[str, Any]],
) -> Resource:
    """Input checks in build_values run only once the resource is known to be pending and reviewable."""
    resource = get_resource(db, resource_id)
    policy.authorize(actor, action, resource, Context.MANAGEMENT)
    if resource.status != STATUS_PENDING:
        raise ConflictError(ALREADY_REVIEWED_MESSAGE)
    now = utcnow()
    values = {
        **build_values(),
        Resource.reviewed_by: actor.id,
        Resource.review_date: now,
        Resource.updated_at: now,
    }
    try:
        updated = (
            db.query(Resource)
            .filter(Resource.id == resource_id, Resource.status == STATUS_PENDING)
            .update(values, synchronize_session=False)
        )
        if updated == 0:
            # another reviewer won between our read and the conditional write
            db.rollback()
            raise ConflictError(ALREADY_REVIEWED_MESSAGE)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Server error reviewing resource", error=str(e)) from e
    db.refresh(resource)
    return resource


def approve(
    db: Session,
    actor: User,
    resource_id: uuid.UUID,
    category: str | None = None,
    review_notes: str | None = None,
) -> Resource:
    def values() -> dict[str, Any]:
        fields: dict[str, Any] = {
            Resource.status: STATUS_APPROVED,
            Resource.review_notes: _review_notes(review_notes),
        }
        if category:
            fields[Resource.category] = _check_category(category)
        return fields

    resource = _review(db, actor, resource_id, Action.APPROVE, values)
    logger.info("Resource %s approved by %s (category=%s)", resource.id, actor.id, resource.category)
    return resource


def reject(db: Session, actor: User, resource_id: uuid.UUID, review_notes: str | None = None) -> Resource:
    def values() -> dict[str, Any]:
        notes = _review_notes(review_notes)
        if settings.require_rejection_notes and not notes:
            raise ValidationError("Review notes are required when rejecting a resource", field="review_notes")
        return {Resource.status: STATUS_REJECTED, Resource.review_notes: notes}

    resource = _review(db, actor, resource_id, Action.REJECT, values)
    logger.info("Resource %s rejected by %s", resource.id, actor.id)
    return resource


def _review_notes(notes: str | None) -> str:
    text = (notes or "").strip()
    if len(text) > REVIEW_NOTES_MAX:
        raise ValidationError(f"Review notes must be at most {REVIEW_NOTES_MAX} characters", field="review_notes")
    return text


def _apply_changes(db: Session, resource: Resource, changes: dict[str, Any]) -> Resource:
    """Set the allowed fields that are present and not None; everything else is ignored."""
    wanted = {k: v for k, v in changes.items() if k in MUTABLE_FIELDS and v is not None}
    if "title" in wanted:
        resource.title = _check_text(wanted["title"], "title", TITLE_MAX)
    if "description" in wanted:
        resource.description = _check_text(wanted["description"], "description", DESCRIPTION_MAX)
    if "category" in wanted:
        resource.category = _check_category(wanted["category"])
    if "tags" in wanted and not (isinstance(wanted["tags"], str) and not wanted["tags"].strip()):
        # a blank tags string keeps the current tags
        resource.tags = parse_tags(wanted["tags"])
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Server error updating resource", error=str(e)) from e
    db.refresh(resource)
    return resource


def owner_update(db: Session, actor: User, resource_id: uuid.UUID, changes: dict[str, Any]) -> Resource:
    resource = get_resource(db, resource_id)
    policy.authorize(actor, Action.UPDATE, resource, Context.RESOURCE)
    return _apply_changes(db, resource, changes)


def manager_update(db: Session, actor: User, resource_id: uuid.UUID, changes: dict[str, Any]) -> Resource:
    resource = get_resource(db, resource_id)
    policy.authorize(actor, Action.UPDATE, resource, Context.MANAGEMENT)
    return _apply_changes(db, resource, changes)


def _delete(db: Session, actor: User, resource: Resource) -> None:
    resource_id, file_url = resource.id, resource.file_url
    try:
        db.delete(resource)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Server error deleting resource", error=str(e)) from e
    # record first, then file: a record never points at a removed file
    storage.delete_stored_file(file_url)
    logger.info("Resource %s deleted by %s", resource_id, actor.id)


def owner_delete(db: Session, actor: User, resource_id: uuid.UUID) -> None:
    resource = get_resource(db, resource_id)
    policy.authorize(actor, Action.DELETE, resource, Context.RESOURCE)
    _delete(db, actor, resource)


def manager_delete(db: Session, actor: User, resource_id: uuid.UUID) -> None:
    resource = get_resource(db, resource_id)
    policy.authorize(actor, Action.DELETE, resource, Context.MANAGEMENT)
    _delete(db, actor, resource)


def record_download(db: Session, resource_id: uuid.UUID) -> DownloadTicket:
    """Count one download and hand back the stored file. Public; no authorization gate."""
    resource = get_resource(db, resource_id)
    path = storage.resolve_stored_path(resource.file_url)
    if path is None:
        raise NotFoundError("File", "File not found on server")
    try:
        db.query(Resource).filter(Resource.id == resource_id).update(
            {Resource.download_count: Resource.download_count + 1}, synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Server error recording download", error=str(e)) from e
    metrics.increment("downloads_total")
    return DownloadTicket(path=path, file_name=resource.file_name, mime_type=resource.mime_type)


def resource_stats(db: Session, actor: User) -> dict[str, int]:
    policy.authorize(actor, Action.VIEW_STATS, context=Context.MANAGEMENT)
    rows = db.query(Resource.status, func.count(Resource.id)).group_by(Resource.status).all()
    counts = {status: 0 for status in STATUSES}
    counts.update({status: n for status, n in rows})
    counts["total"] = sum(counts[s] for s in STATUSES)
    return counts
