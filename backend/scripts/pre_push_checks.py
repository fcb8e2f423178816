#!/usr/bin/env python3
"""
Pre-push / production readiness checks.
Run from backend dir with project venv active: python scripts/pre_push_checks.py
"""
import sys
from pathlib import Path

BACKEND = Path(__file__).resolve().parent.parent
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))


def check_imports():
    from learnbridge.main import app
    paths = {route.path for route in app.routes}
    for required in ("/resources/upload", "/management/pending", "/modules/structure", "/admin/login"):
        assert required in paths, f"missing route {required}"
    return "imports"


def check_upload_dir():
    from learnbridge.config import settings
    upload_dir = settings.resolved_upload_dir
    upload_dir.mkdir(parents=True, exist_ok=True)
    probe = upload_dir / ".write-probe"
    probe.write_bytes(b"ok")
    probe.unlink()
    return f"upload_dir ({upload_dir})"


def check_init_db():
    from learnbridge.database import init_db
    init_db()
    return "init_db"


def check_seed_admin():
    from learnbridge.database import SessionLocal
    from learnbridge.services.users import seed_admin_account
    db = SessionLocal()
    try:
        admin = seed_admin_account(db)
    finally:
        db.close()
    return "seed_admin_account" if admin else "seed_admin_account (skipped: ADMIN_EMAIL/ADMIN_PASSWORD unset)"


def main():
    checks = [check_imports, check_upload_dir, check_init_db, check_seed_admin]
    for fn in checks:
        try:
            name = fn()
            print(f"OK {name}")
        except Exception as e:
            print(f"FAIL {fn.__name__}: {e}")
            return 1
    print("All pre-push checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
