"""
Resource management API (review entry point): students submit, resource managers review, edit and delete.
Approved listings and module browsing are public.
"""
import uuid

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from learnbridge.database import get_db
from learnbridge.models.resource import STATUS_APPROVED, STATUS_PENDING
from learnbridge.models.user import User
from learnbridge.schemas.common import Envelope
from learnbridge.schemas.resource import (
    ApproveRequest,
    RejectRequest,
    ResourceData,
    ResourceListData,
    ResourceResponse,
    ResourceStats,
    ResourceUpdateRequest,
)
from learnbridge.services import policy, workflow
from learnbridge.services.policy import Action, Context
from learnbridge.services.queries import PageRequest, ResourceFilter, list_resources
from learnbridge.api.deps import get_current_user, page_params
from learnbridge.api.resources import resource_list_response, submission_form

router = APIRouter(prefix="/management", tags=["management"])


def _resource_envelope(resource, message: str | None = None) -> Envelope[ResourceData]:
    return Envelope(message=message, data=ResourceData(resource=ResourceResponse.from_resource(resource)))


@router.post("/submit", response_model=Envelope[ResourceData], status_code=status.HTTP_201_CREATED)
def submit_resource(
    file: UploadFile | None = File(None),
    submission: workflow.Submission = Depends(submission_form),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Student submits a file for review."""
    resource = workflow.submit_for_review(db, current_user, submission, file)
    return _resource_envelope(resource, "Resource submitted for review successfully")


@router.get("/pending", response_model=Envelope[ResourceListData])
def pending_resources(
    category: str | None = None,
    search: str | None = None,
    year: int | None = None,
    semester: int | None = None,
    module: str | None = None,
    page_req: PageRequest = Depends(page_params),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Review queue, newest first."""
    policy.authorize(current_user, Action.LIST_PENDING, context=Context.MANAGEMENT)
    f = ResourceFilter(
        status=STATUS_PENDING,
        category=category,
        search=search,
        year=year,
        semester=semester,
        module=module,
    )
    return resource_list_response(list_resources(db, f, page_req))


@router.get("/approved", response_model=Envelope[ResourceListData])
def approved_resources(
    category: str | None = None,
    search: str | None = None,
    year: int | None = None,
    semester: int | None = None,
    module: str | None = None,
    page_req: PageRequest = Depends(page_params),
    db: Session = Depends(get_db),
):
    f = ResourceFilter(
        status=STATUS_APPROVED,
        category=category,
        search=search,
        year=year,
        semester=semester,
        module=module,
    )
    return resource_list_response(list_resources(db, f, page_req))


@router.get("/stats", response_model=Envelope[ResourceStats])
def stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Resource counts per status."""
    return Envelope(data=ResourceStats(**workflow.resource_stats(db, current_user)))


@router.get("/module/{module}", response_model=Envelope[ResourceListData])
def resources_by_module(
    module: str,
    year: int | None = Query(None),
    semester: int | None = Query(None),
    category: str | None = None,
    page_req: PageRequest = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Approved resources for one module, optionally narrowed to a year and semester."""
    f = ResourceFilter(status=STATUS_APPROVED, module=module, year=year, semester=semester, category=category)
    return resource_list_response(list_resources(db, f, page_req))


@router.put("/{resource_id}/approve", response_model=Envelope[ResourceData])
def approve_resource(
    resource_id: uuid.UUID,
    data: ApproveRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = data or ApproveRequest()
    resource = workflow.approve(db, current_user, resource_id, data.category, data.review_notes)
    return _resource_envelope(resource, "Resource approved successfully")


@router.put("/{resource_id}/reject", response_model=Envelope[ResourceData])
def reject_resource(
    resource_id: uuid.UUID,
    data: RejectRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = data or RejectRequest()
    resource = workflow.reject(db, current_user, resource_id, data.review_notes)
    return _resource_envelope(resource, "Resource rejected successfully")


@router.put("/{resource_id}", response_model=Envelope[ResourceData])
def update_resource(
    resource_id: uuid.UUID,
    data: ResourceUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resource = workflow.manager_update(db, current_user, resource_id, data.model_dump(exclude_unset=True))
    return _resource_envelope(resource, "Resource updated successfully")


@router.delete("/{resource_id}", response_model=Envelope)
def delete_resource(
    resource_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workflow.manager_delete(db, current_user, resource_id)
    return Envelope(message="Resource deleted successfully")
