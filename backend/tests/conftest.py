"""
Test configuration and fixtures.

DATABASE_URL, SECRET_KEY and UPLOAD_DIR point at a temporary directory before the
application is imported; the schema is recreated for every test.
"""
import os
import tempfile
import uuid
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="learnbridge-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""
os.environ["REQUIRE_REJECTION_NOTES"] = "true"

from fastapi.testclient import TestClient  # noqa: E402

from learnbridge.config import settings  # noqa: E402
from learnbridge.database import Base, SessionLocal, engine  # noqa: E402
from learnbridge.main import app  # noqa: E402
from learnbridge.models.module import Module  # noqa: E402
from learnbridge.models.resource import STATUS_PENDING, Resource  # noqa: E402
from learnbridge.models.user import (  # noqa: E402
    ROLE_ADMIN,
    ROLE_COORDINATOR,
    ROLE_RESOURCE_MANAGER,
    ROLE_STUDENT,
    User,
)
from learnbridge.services.auth import create_access_token, hash_password  # noqa: E402

PASSWORD = "testpass123"
PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF\n"


def auth_headers(user: User) -> dict:
    """Bearer header with a real token for user."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


def upload_files(name: str = "chapter1.pdf", content: bytes = PDF_BYTES, mime: str = "application/pdf") -> dict:
    return {"file": (name, content, mime)}


@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory: make_user(role) -> committed User with password PASSWORD."""

    def _make(role: str = ROLE_STUDENT, **fields) -> User:
        tag = uuid.uuid4().hex[:8]
        user = User(
            username=fields.pop("username", f"{role.lower()}-{tag}"),
            email=fields.pop("email", f"{role.lower()}-{tag}@tests.example.com"),
            password_hash=hash_password(PASSWORD),
            role=role,
            first_name=fields.pop("first_name", "Test"),
            last_name=fields.pop("last_name", role.capitalize()),
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def student(make_user):
    return make_user(ROLE_STUDENT)


@pytest.fixture
def other_student(make_user):
    return make_user(ROLE_STUDENT)


@pytest.fixture
def manager(make_user):
    return make_user(ROLE_RESOURCE_MANAGER)


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN)


@pytest.fixture
def coordinator(make_user):
    return make_user(ROLE_COORDINATOR)


@pytest.fixture
def make_resource(db):
    """Factory: make_resource(uploader, **fields) -> committed Resource backed by a file in the upload dir."""

    def _make(uploader: User, **fields) -> Resource:
        upload_dir = settings.resolved_upload_dir
        upload_dir.mkdir(parents=True, exist_ok=True)
        stored = f"{uuid.uuid4().hex}.pdf"
        (upload_dir / stored).write_bytes(PDF_BYTES)
        resource = Resource(
            title=fields.pop("title", "Lecture notes"),
            description=fields.pop("description", "Notes for the first lecture"),
            file_url=f"/uploads/{stored}",
            file_name=fields.pop("file_name", "notes.pdf"),
            file_size=len(PDF_BYTES),
            mime_type="application/pdf",
            category=fields.pop("category", "lecture"),
            status=fields.pop("status", STATUS_PENDING),
            uploaded_by=uploader.id,
            download_count=0,
            **fields,
        )
        db.add(resource)
        db.commit()
        db.refresh(resource)
        return resource

    return _make


@pytest.fixture
def make_module(db):
    def _make(name: str = "Data Structures", year: int = 2, semester: int = 1, creator: User | None = None) -> Module:
        module = Module(name=name, year=year, semester=semester, created_by=creator.id if creator else None)
        db.add(module)
        db.commit()
        db.refresh(module)
        return module

    return _make


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
