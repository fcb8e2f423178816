"""
Review workflow engine: submission, one-shot review, guarded edits and deletes, download counting.
Runs the services directly against SQLite.
"""
import io
import uuid

import pytest
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers, UploadFile

from learnbridge import metrics
from learnbridge.config import settings
from learnbridge.database import SessionLocal
from learnbridge.errors import AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError
from learnbridge.models.resource import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Resource
from learnbridge.services import storage, workflow

from conftest import PDF_BYTES


def _upload(name: str = "notes.pdf", content: bytes = PDF_BYTES, mime: str = "application/pdf") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=name, headers=Headers({"content-type": mime}))


def _submission(**fields) -> workflow.Submission:
    fields.setdefault("title", "Notes")
    fields.setdefault("description", "Chapter 1")
    return workflow.Submission(**fields)


def _stored_files() -> set[str]:
    d = settings.resolved_upload_dir
    return {p.name for p in d.iterdir()} if d.exists() else set()


def test_notes_scenario(db, student, manager):
    """Submit, approve with a category, then a second approve conflicts and changes nothing."""
    two_mb = PDF_BYTES + b"0" * (2 * 1024 * 1024 - len(PDF_BYTES))
    resource = workflow.submit_for_review(db, student, _submission(), _upload(content=two_mb))
    assert resource.status == STATUS_PENDING
    assert resource.download_count == 0
    assert resource.file_size == 2 * 1024 * 1024
    assert resource.uploaded_by == student.id

    approved = workflow.approve(db, manager, resource.id, category="lecture")
    assert approved.status == STATUS_APPROVED
    assert approved.category == "lecture"
    assert approved.reviewed_by == manager.id
    assert approved.review_date is not None
    assert approved.review_notes == ""
    first_review = approved.review_date

    with pytest.raises(ConflictError, match="already been reviewed"):
        workflow.approve(db, manager, resource.id, category="tutorial")
    db.expire_all()
    again = db.get(Resource, resource.id)
    assert again.category == "lecture"
    assert again.review_date == first_review


def test_submission_defaults(db, student):
    resource = workflow.submit_for_review(db, student, _submission(tags="exam, week1, ,exam"), _upload())
    assert resource.category == "other"
    assert resource.tags == ["exam", "week1"]
    assert resource.file_name == "notes.pdf"
    assert resource.file_url.startswith("/uploads/")
    assert storage.resolve_stored_path(resource.file_url) is not None


def test_direct_upload_also_starts_pending(db, manager):
    resource = workflow.upload_direct(db, manager, _submission(), _upload())
    assert resource.status == STATUS_PENDING


def test_only_students_submit_for_review(db, manager):
    with pytest.raises(AuthorizationError):
        workflow.submit_for_review(db, manager, _submission(), _upload())


def test_missing_title_or_description(db, student):
    before = _stored_files()
    with pytest.raises(ValidationError, match="Title and description are required"):
        workflow.submit_for_review(db, student, _submission(title="  "), _upload())
    assert _stored_files() == before


def test_disallowed_type_leaves_no_record(db, student):
    before = _stored_files()
    with pytest.raises(ValidationError, match="Invalid file type"):
        workflow.submit_for_review(db, student, _submission(), _upload("bundle.zip", b"PK\x03\x04", "application/zip"))
    assert db.query(Resource).count() == 0
    assert _stored_files() == before


def test_module_id_fills_placement(db, student, make_module):
    module = make_module("Operating Systems", year=3, semester=2)
    resource = workflow.submit_for_review(db, student, _submission(module_id=module.id, year=1), _upload())
    assert (resource.module, resource.year, resource.semester) == ("Operating Systems", 3, 2)
    assert resource.module_id == module.id


def test_unknown_module_id(db, student):
    with pytest.raises(NotFoundError):
        workflow.submit_for_review(db, student, _submission(module_id=uuid.uuid4()), _upload())


def test_bad_year_rejected(db, student):
    with pytest.raises(ValidationError, match="Year"):
        workflow.submit_for_review(db, student, _submission(year=5), _upload())


def test_failed_commit_removes_stored_file(db, student, monkeypatch):
    before_files = _stored_files()
    before_count = metrics.snapshot()["compensating_deletes_total"]

    def failing_commit():
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(StorageError):
        workflow.submit_for_review(db, student, _submission(), _upload())
    monkeypatch.undo()

    assert _stored_files() == before_files
    assert metrics.snapshot()["compensating_deletes_total"] == before_count + 1
    assert db.query(Resource).count() == 0


def test_reject_requires_notes(db, student, manager, make_resource):
    resource = make_resource(student)
    with pytest.raises(ValidationError, match="Review notes are required"):
        workflow.reject(db, manager, resource.id)
    rejected = workflow.reject(db, manager, resource.id, review_notes="Scanned pages are unreadable")
    assert rejected.status == STATUS_REJECTED
    assert rejected.review_notes == "Scanned pages are unreadable"
    assert rejected.category == "lecture"


def test_reject_without_notes_when_not_required(db, student, manager, make_resource, monkeypatch):
    monkeypatch.setattr(settings, "require_rejection_notes", False)
    resource = make_resource(student)
    assert workflow.reject(db, manager, resource.id).status == STATUS_REJECTED


def test_review_notes_length(db, student, manager, make_resource):
    resource = make_resource(student)
    with pytest.raises(ValidationError):
        workflow.approve(db, manager, resource.id, review_notes="x" * 501)


def test_rejected_resource_cannot_be_approved(db, student, manager, make_resource):
    resource = make_resource(student, status=STATUS_REJECTED)
    with pytest.raises(ConflictError):
        workflow.approve(db, manager, resource.id)


def test_student_cannot_review(db, student, make_resource):
    resource = make_resource(student)
    with pytest.raises(AuthorizationError):
        workflow.approve(db, student, resource.id)


def test_review_missing_resource(db, manager):
    with pytest.raises(NotFoundError):
        workflow.approve(db, manager, uuid.uuid4())


def test_review_state_checked_before_review_input(db, student, manager, make_resource):
    reviewed = make_resource(student, status=STATUS_APPROVED)
    pending = make_resource(student)
    with pytest.raises(ConflictError):
        workflow.reject(db, manager, reviewed.id)
    with pytest.raises(ConflictError):
        workflow.approve(db, manager, reviewed.id, category="video")
    with pytest.raises(NotFoundError):
        workflow.reject(db, manager, uuid.uuid4())
    with pytest.raises(AuthorizationError):
        workflow.reject(db, student, pending.id)
    assert db.get(Resource, pending.id).status == STATUS_PENDING


def test_losing_concurrent_review_conflicts(db, student, manager, admin, make_resource, monkeypatch):
    """Another reviewer commits between our read and our conditional write."""
    resource = make_resource(student)
    real_get_resource = workflow.get_resource

    def read_then_lose_race(session, resource_id):
        stale = real_get_resource(session, resource_id)
        other = SessionLocal()
        try:
            other.query(Resource).filter(Resource.id == resource_id).update(
                {Resource.status: STATUS_APPROVED, Resource.reviewed_by: admin.id}, synchronize_session=False
            )
            other.commit()
        finally:
            other.close()
        return stale

    monkeypatch.setattr(workflow, "get_resource", read_then_lose_race)
    with pytest.raises(ConflictError):
        workflow.reject(db, manager, resource.id, review_notes="Duplicate upload")

    db.expire_all()
    stored = db.get(Resource, resource.id)
    assert stored.status == STATUS_APPROVED
    assert stored.reviewed_by == admin.id


def test_update_ignores_status_and_unknown_fields(db, student, make_resource):
    resource = make_resource(student)
    updated = workflow.owner_update(db, student, resource.id, {
        "title": "Revised notes",
        "status": STATUS_APPROVED,
        "download_count": 99,
        "tags": "revision",
        "description": None,
    })
    assert updated.title == "Revised notes"
    assert updated.status == STATUS_PENDING
    assert updated.download_count == 0
    assert updated.tags == ["revision"]
    assert updated.description == "Notes for the first lecture"


def test_blank_tags_string_keeps_tags(db, student, make_resource):
    resource = make_resource(student, tags=["graphs", "exam"])
    updated = workflow.owner_update(db, student, resource.id, {"tags": "  ", "title": "Graphs v2"})
    assert updated.tags == ["graphs", "exam"]
    assert updated.title == "Graphs v2"
    assert workflow.owner_update(db, student, resource.id, {"tags": []}).tags == []


def test_owner_paths_and_manager_paths(db, student, other_student, manager, make_resource):
    resource = make_resource(student)
    with pytest.raises(AuthorizationError):
        workflow.owner_update(db, other_student, resource.id, {"title": "Mine now"})
    with pytest.raises(AuthorizationError):
        workflow.owner_update(db, manager, resource.id, {"title": "Manager via plain route"})
    assert workflow.manager_update(db, manager, resource.id, {"title": "Tidied"}).title == "Tidied"
    with pytest.raises(AuthorizationError):
        workflow.manager_delete(db, student, resource.id)


def test_delete_removes_record_then_file(db, student, make_resource):
    resource = make_resource(student)
    file_url, resource_id = resource.file_url, resource.id
    workflow.owner_delete(db, student, resource_id)
    assert db.get(Resource, resource_id) is None
    assert storage.resolve_stored_path(file_url) is None


def test_downloads_count_exactly(db, student, make_resource):
    resource = make_resource(student, status=STATUS_APPROVED)
    before = metrics.snapshot()["downloads_total"]
    for _ in range(5):
        ticket = workflow.record_download(db, resource.id)
    assert ticket.file_name == "notes.pdf"
    assert ticket.mime_type == "application/pdf"
    assert ticket.path.read_bytes() == PDF_BYTES
    db.expire_all()
    assert db.get(Resource, resource.id).download_count == 5
    assert metrics.snapshot()["downloads_total"] == before + 5


def test_download_missing_file_counts_nothing(db, student, make_resource):
    resource = make_resource(student, status=STATUS_APPROVED)
    storage.delete_stored_file(resource.file_url)
    with pytest.raises(NotFoundError, match="File not found on server"):
        workflow.record_download(db, resource.id)
    db.expire_all()
    assert db.get(Resource, resource.id).download_count == 0


def test_stats(db, student, manager, make_resource):
    make_resource(student)
    make_resource(student, status=STATUS_APPROVED)
    make_resource(student, status=STATUS_APPROVED)
    assert workflow.resource_stats(db, manager) == {"pending": 1, "approved": 2, "rejected": 0, "total": 3}
    with pytest.raises(AuthorizationError):
        workflow.resource_stats(db, student)
