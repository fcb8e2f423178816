"""
Admin routes: login against the seeded admin account, provision staff accounts, list and delete users.
Everything except login is gated by require_admin before any store access.
"""
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from learnbridge.database import get_db
from learnbridge.models.user import User
from learnbridge.schemas.auth import (
    CreateStaffUserRequest,
    LoginRequest,
    TokenData,
    UserData,
    UserListData,
    UserResponse,
)
from learnbridge.schemas.common import Envelope, Pagination
from learnbridge.services import users
from learnbridge.services.auth import create_access_token
from learnbridge.services.queries import PageRequest
from learnbridge.api.deps import page_params, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=Envelope[TokenData])
def admin_login(data: LoginRequest, db: Session = Depends(get_db)):
    user = users.authenticate_admin(db, data.email, data.password)
    token = create_access_token(user.id, user.role)
    return Envelope(message="Admin login successful", data=TokenData(user=UserResponse.from_user(user), token=token))


@router.post("/create-user", response_model=Envelope[UserData], status_code=status.HTTP_201_CREATED)
def create_user(
    data: CreateStaffUserRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a resourceManager or coordinator account."""
    fields = data.model_dump(exclude={"role"})
    user = users.create_staff_user(db, admin, users.NewUser(**fields), data.role)
    return Envelope(message=f"{data.role} created successfully", data=UserData(user=UserResponse.from_user(user)))


@router.get("/users", response_model=Envelope[UserListData])
def list_users(
    role: str | None = None,
    page_req: PageRequest = Depends(page_params),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    page = users.list_users(db, admin, role, page_req)
    return Envelope(data=UserListData(
        users=[UserResponse.from_user(u) for u in page.items],
        pagination=Pagination.from_page(page),
    ))


@router.delete("/users/{user_id}", response_model=Envelope)
def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    users.delete_user(db, admin, user_id)
    return Envelope(message="User deleted successfully")
