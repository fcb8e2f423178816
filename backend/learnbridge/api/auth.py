"""
Auth routes: register (role student), login (JWT), profile read/update, logout.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from learnbridge.database import get_db
from learnbridge.models.user import User
from learnbridge.schemas.auth import (
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenData,
    UserData,
    UserResponse,
)
from learnbridge.schemas.common import Envelope
from learnbridge.services import users
from learnbridge.services.auth import create_access_token
from learnbridge.api.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=Envelope[TokenData], status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new student account; returns the user and a token."""
    user = users.register_user(db, users.NewUser(**data.model_dump()))
    token = create_access_token(user.id, user.role)
    return Envelope(
        message="User registered successfully",
        data=TokenData(user=UserResponse.from_user(user), token=token),
    )


@router.post("/login", response_model=Envelope[TokenData])
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Login with email/password; returns JWT."""
    user = users.authenticate(db, data.email, data.password)
    token = create_access_token(user.id, user.role)
    return Envelope(message="Login successful", data=TokenData(user=UserResponse.from_user(user), token=token))


@router.get("/profile", response_model=Envelope[UserData])
def get_profile(current_user: User = Depends(get_current_user)):
    return Envelope(data=UserData(user=UserResponse.from_user(current_user)))


@router.put("/profile", response_model=Envelope[UserData])
def update_profile(
    data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update profile fields; password is rehashed only when a new one is sent."""
    user = users.update_profile(db, current_user, data.model_dump(exclude_unset=True))
    return Envelope(message="Profile updated successfully", data=UserData(user=UserResponse.from_user(user)))


@router.post("/logout", response_model=Envelope)
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    logger.info("User %s logged out", current_user.id)
    return Envelope(message="Logged out successfully")
