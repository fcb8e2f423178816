"""
Auth and user request/response schemas. password_hash is never part of any response model.
"""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from learnbridge.models.user import User
from learnbridge.schemas.common import Pagination


def _bcrypt_limit(v: str | None) -> str | None:
    if v is not None and len(v.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes (bcrypt limit)")
    return v


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=1000)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _bcrypt_limit(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdateRequest(BaseModel):
    username: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=1000)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str | None) -> str | None:
        return _bcrypt_limit(v)


class Profile(BaseModel):
    first_name: str
    last_name: str
    phone: str | None = None
    bio: str | None = None


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    profile: Profile
    created_at: datetime | None = None

    @classmethod
    def from_user(cls, u: User) -> "UserResponse":
        return cls(
            id=str(u.id),
            username=u.username,
            email=u.email,
            role=u.role,
            profile=Profile(first_name=u.first_name, last_name=u.last_name, phone=u.phone, bio=u.bio),
            created_at=u.created_at,
        )


class UserSummary(BaseModel):
    """Uploader/reviewer as embedded in resource and module responses."""
    id: str
    username: str
    first_name: str
    last_name: str

    @classmethod
    def from_user(cls, u: User | None) -> "UserSummary | None":
        if u is None:
            return None
        return cls(id=str(u.id), username=u.username, first_name=u.first_name, last_name=u.last_name)


class UserData(BaseModel):
    user: UserResponse


class TokenData(BaseModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"


class UserListData(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class CreateStaffUserRequest(RegisterRequest):
    role: str

