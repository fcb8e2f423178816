"""
Resource request/response schemas. Uploads arrive as multipart form fields (see api/resources.py);
JSON bodies are used for edits and reviews.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from learnbridge.models.resource import DESCRIPTION_MAX, REVIEW_NOTES_MAX, TITLE_MAX, Resource
from learnbridge.schemas.auth import UserSummary
from learnbridge.schemas.common import Pagination


class ResourceUpdateRequest(BaseModel):
    """Editable fields only; status and review fields are not accepted here."""
    title: str | None = Field(default=None, max_length=TITLE_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    category: str | None = None
    tags: list[str] | str | None = None  # list or comma-separated string


class ApproveRequest(BaseModel):
    category: str | None = None
    review_notes: str | None = Field(default=None, max_length=REVIEW_NOTES_MAX)


class RejectRequest(BaseModel):
    review_notes: str | None = Field(default=None, max_length=REVIEW_NOTES_MAX)


class ResourceResponse(BaseModel):
    id: str
    title: str
    description: str
    file_url: str
    file_name: str
    file_size: int
    mime_type: str
    year: int | None = None
    semester: int | None = None
    module: str | None = None
    module_id: str | None = None
    category: str
    status: str
    uploaded_by: UserSummary | None = None
    reviewed_by: UserSummary | None = None
    review_date: datetime | None = None
    review_notes: str | None = None
    download_count: int = 0
    tags: list[str] = []
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_resource(cls, r: Resource) -> "ResourceResponse":
        return cls(
            id=str(r.id),
            title=r.title,
            description=r.description,
            file_url=r.file_url,
            file_name=r.file_name,
            file_size=r.file_size,
            mime_type=r.mime_type,
            year=r.year,
            semester=r.semester,
            module=r.module,
            module_id=str(r.module_id) if r.module_id else None,
            category=r.category,
            status=r.status,
            uploaded_by=UserSummary.from_user(r.uploader),
            reviewed_by=UserSummary.from_user(r.reviewer),
            review_date=r.review_date,
            review_notes=r.review_notes,
            download_count=r.download_count or 0,
            tags=list(r.tags or []),
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


class ResourceData(BaseModel):
    resource: ResourceResponse


class ResourceListData(BaseModel):
    resources: list[ResourceResponse]
    pagination: Pagination


class ResourceStats(BaseModel):
    pending: int
    approved: int
    rejected: int
    total: int
