"""
API tests for /admin: seeded admin login, staff provisioning, user listing and deletion.
"""
from learnbridge.config import settings
from learnbridge.database import SessionLocal
from learnbridge.models.module import Module
from learnbridge.models.resource import Resource
from learnbridge.models.user import User
from learnbridge.services import storage
from learnbridge.services.users import seed_admin_account

from conftest import PASSWORD, auth_headers

STAFF = {
    "username": "rm1",
    "email": "rm1@example.com",
    "password": "secret123",
    "first_name": "Rita",
    "last_name": "Manager",
    "role": "resourceManager",
}


def test_seeded_admin_can_log_in(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_email", "Root@Example.com")
    monkeypatch.setattr(settings, "admin_password", "admin-pass-1")
    db = SessionLocal()
    try:
        admin = seed_admin_account(db)
        assert admin.role == "admin"
        # seeding is idempotent
        assert seed_admin_account(db).id == admin.id
    finally:
        db.close()

    r = client.post("/admin/login", json={"email": "root@example.com", "password": "admin-pass-1"})
    assert r.status_code == 200
    assert r.json()["data"]["user"]["role"] == "admin"

    r = client.post("/admin/login", json={"email": "root@example.com", "password": "wrong"})
    assert r.status_code == 401


def test_seeding_skipped_without_config(db):
    assert seed_admin_account(db) is None
    assert db.query(User).count() == 0


def test_non_admin_cannot_use_admin_login(client, student):
    r = client.post("/admin/login", json={"email": student.email, "password": PASSWORD})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid admin credentials"


def test_create_staff_user(client, admin, student):
    r = client.post("/admin/create-user", json=STAFF, headers=auth_headers(admin))
    assert r.status_code == 201, r.text
    assert r.json()["data"]["user"]["role"] == "resourceManager"

    r = client.post("/admin/create-user", json={**STAFF, "username": "x", "email": "x@example.com", "role": "admin"},
                    headers=auth_headers(admin))
    assert r.status_code == 400

    r = client.post("/admin/create-user", json={**STAFF, "username": "y", "email": "y@example.com"},
                    headers=auth_headers(student))
    assert r.status_code == 403

    r = client.post("/admin/create-user", json=STAFF, headers=auth_headers(admin))
    assert r.status_code == 409


def test_list_users(client, admin, student, manager, coordinator):
    r = client.get("/admin/users", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["data"]["pagination"]["total"] == 4
    r = client.get("/admin/users", params={"role": "resourceManager"}, headers=auth_headers(admin))
    assert [u["id"] for u in r.json()["data"]["users"]] == [str(manager.id)]
    assert client.get("/admin/users", headers=auth_headers(manager)).status_code == 403


def test_delete_user_removes_uploads(client, db, admin, student, manager, make_resource, make_module):
    upload = make_resource(student)
    reviewed = make_resource(manager, status="approved", reviewed_by=student.id)
    module = make_module(creator=student)
    file_url, upload_id = upload.file_url, upload.id
    student_id, reviewed_id, module_id = student.id, reviewed.id, module.id

    r = client.delete(f"/admin/users/{student_id}", headers=auth_headers(admin))
    assert r.status_code == 200

    db.expire_all()
    assert db.get(User, student_id) is None
    assert db.get(Resource, upload_id) is None
    assert storage.resolve_stored_path(file_url) is None
    assert db.get(Resource, reviewed_id).reviewed_by is None
    assert db.get(Module, module_id).created_by is None


def test_admin_cannot_delete_self(client, admin):
    r = client.delete(f"/admin/users/{admin.id}", headers=auth_headers(admin))
    assert r.status_code == 400
