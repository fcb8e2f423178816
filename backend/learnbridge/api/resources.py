"""
Resources API (plain entry point): upload, public listing, my-resources, get, owner/admin update and
delete, public download. Uploads start pending like management submissions.
"""
import logging
import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from learnbridge.database import get_db
from learnbridge.models.resource import STATUS_APPROVED
from learnbridge.models.user import User
from learnbridge.schemas.common import Envelope, Pagination
from learnbridge.schemas.resource import (
    ResourceData,
    ResourceListData,
    ResourceResponse,
    ResourceUpdateRequest,
)
from learnbridge.services import policy, workflow
from learnbridge.services.queries import Page, PageRequest, ResourceFilter, list_resources
from learnbridge.api.deps import get_current_user, get_optional_user, page_params

router = APIRouter(prefix="/resources", tags=["resources"])
logger = logging.getLogger(__name__)


def submission_form(
    title: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    tags: str | None = Form(None),
    year: int | None = Form(None),
    semester: int | None = Form(None),
    module: str | None = Form(None),
    module_id: uuid.UUID | None = Form(None),
) -> workflow.Submission:
    """Multipart form fields sent alongside the file."""
    return workflow.Submission(
        title=title,
        description=description,
        category=category,
        tags=tags,
        year=year,
        semester=semester,
        module=module,
        module_id=module_id,
    )


def resource_list_response(page: Page) -> Envelope[ResourceListData]:
    return Envelope(data=ResourceListData(
        resources=[ResourceResponse.from_resource(r) for r in page.items],
        pagination=Pagination.from_page(page),
    ))


def _content_disposition(file_name: str) -> str:
    name = file_name.replace('"', "").replace("\r", "").replace("\n", "")
    if name.isascii():
        return f'attachment; filename="{name}"'
    return f"attachment; filename=\"download\"; filename*=utf-8''{quote(name)}"


@router.post("/upload", response_model=Envelope[ResourceData], status_code=status.HTTP_201_CREATED)
def upload_resource(
    file: UploadFile | None = File(None),
    submission: workflow.Submission = Depends(submission_form),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upload one file (field "file"); the resource waits for review."""
    resource = workflow.upload_direct(db, current_user, submission, file)
    return Envelope(
        message="Resource uploaded successfully",
        data=ResourceData(resource=ResourceResponse.from_resource(resource)),
    )


@router.get("", response_model=Envelope[ResourceListData])
def get_resources(
    status_filter: str | None = Query(None, alias="status"),
    category: str | None = None,
    search: str | None = None,
    year: int | None = None,
    semester: int | None = None,
    module: str | None = None,
    page_req: PageRequest = Depends(page_params),
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Public listing. Only managers may see non-approved resources; everyone else gets approved ones."""
    if not policy.is_manager(current_user):
        status_filter = STATUS_APPROVED
    f = ResourceFilter(
        status=status_filter,
        category=category,
        search=search,
        year=year,
        semester=semester,
        module=module,
    )
    return resource_list_response(list_resources(db, f, page_req))


@router.get("/my-resources", response_model=Envelope[ResourceListData])
def get_my_resources(
    status_filter: str | None = Query(None, alias="status"),
    page_req: PageRequest = Depends(page_params),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Resources uploaded by the caller, any status."""
    f = ResourceFilter(status=status_filter, uploaded_by=current_user.id)
    return resource_list_response(list_resources(db, f, page_req))


@router.get("/{resource_id}", response_model=Envelope[ResourceData])
def get_resource(
    resource_id: uuid.UUID,
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    resource = workflow.get_visible_resource(db, current_user, resource_id)
    return Envelope(data=ResourceData(resource=ResourceResponse.from_resource(resource)))


@router.put("/{resource_id}", response_model=Envelope[ResourceData])
def update_resource(
    resource_id: uuid.UUID,
    data: ResourceUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Owner or admin edits title/description/category/tags."""
    resource = workflow.owner_update(db, current_user, resource_id, data.model_dump(exclude_unset=True))
    return Envelope(
        message="Resource updated successfully",
        data=ResourceData(resource=ResourceResponse.from_resource(resource)),
    )


@router.delete("/{resource_id}", response_model=Envelope)
def delete_resource(
    resource_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workflow.owner_delete(db, current_user, resource_id)
    return Envelope(message="Resource deleted successfully")


@router.get("/{resource_id}/download", response_class=FileResponse)
def download_resource(resource_id: uuid.UUID, db: Session = Depends(get_db)):
    """Stream the stored file and count the download. Public."""
    ticket = workflow.record_download(db, resource_id)
    logger.debug("Download %s (%s)", resource_id, ticket.file_name)
    return FileResponse(
        ticket.path,
        media_type=ticket.mime_type,
        headers={"Content-Disposition": _content_disposition(ticket.file_name)},
    )
