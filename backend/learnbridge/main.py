"""
FastAPI application entrypoint.
Run with: uvicorn learnbridge.main:app --reload --port 5000 (from backend/), or python -m learnbridge.main

API base path: routes are mounted at root (no /api prefix).
  - Auth:  POST /auth/register, POST /auth/login, GET|PUT /auth/profile, POST /auth/logout
  - Admin: POST /admin/login, POST /admin/create-user, GET /admin/users, DELETE /admin/users/{id}
  - Modules: /modules CRUD, GET /modules/structure
  - Resources: POST /resources/upload, GET /resources, GET /resources/my-resources, /resources/{id}, ...
  - Management: POST /management/submit, GET /management/pending, PUT /management/{id}/approve, ...

Every response uses the envelope {success, message?, data?, error?}; errors are mapped here.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnbridge import metrics
from learnbridge.config import settings
from learnbridge.errors import LearnBridgeError, StorageError, ValidationError
from learnbridge.schemas.common import Envelope
from learnbridge.api.admin import router as admin_router
from learnbridge.api.auth import router as auth_router
from learnbridge.api.management import router as management_router
from learnbridge.api.modules import router as modules_router
from learnbridge.api.resources import router as resources_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="LearnBridge API",
    description="Shared course resources: student submissions, manager review, public catalog and downloads.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(modules_router)
app.include_router(resources_router)
app.include_router(management_router)


@app.exception_handler(LearnBridgeError)
def learnbridge_error_handler(request: Request, exc: LearnBridgeError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    """Body/query/form validation failures: 400 listing each failing field."""
    fields = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")),
         "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    message = "; ".join(f"{f['field']}: {f['message']}" if f["field"] else f["message"] for f in fields)
    err = ValidationError(message or "Invalid request", error=fields)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"success": False, "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    err = StorageError("Database error", error=type(exc).__name__ if settings.debug else None)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = f"Server error: {exc}"
    if settings.debug:
        message = f"{message} ({type(exc).__name__})"
    return JSONResponse(status_code=500, content={"success": False, "message": message})


@app.on_event("startup")
def startup():
    """Init SQLite DB and seed the admin account when ADMIN_EMAIL/ADMIN_PASSWORD are set."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    from learnbridge.database import SessionLocal, init_db
    from learnbridge.services.users import seed_admin_account

    init_db()
    db = SessionLocal()
    try:
        admin = seed_admin_account(db)
        if admin is None:
            logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set; no admin account seeded")
    finally:
        db.close()
    logger.info("Uploads stored in %s", settings.resolved_upload_dir)


@app.get("/health", response_model=Envelope[dict])
def health():
    """Health check with process-local counters."""
    return Envelope(
        message="LearnBridge API is running",
        data={"status": "ok", "metrics": metrics.snapshot()},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("learnbridge.main:app", host="0.0.0.0", port=settings.port)
