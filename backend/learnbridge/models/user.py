"""
User model: auth (username/email + password hash), role, and profile.
Roles: student (default) | admin | resourceManager | coordinator.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnbridge.database import Base
from learnbridge.models.types import UuidType, utcnow

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"
ROLE_RESOURCE_MANAGER = "resourceManager"
ROLE_COORDINATOR = "coordinator"
ROLES = (ROLE_STUDENT, ROLE_ADMIN, ROLE_RESOURCE_MANAGER, ROLE_COORDINATOR)

# Accounts the admin may provision through POST /admin/create-user
STAFF_ROLES = (ROLE_RESOURCE_MANAGER, ROLE_COORDINATOR)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)  # stored lowercase
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=ROLE_STUDENT)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('student', 'admin', 'resourceManager', 'coordinator')", name="users_role_check"
        ),
    )

    resources = relationship(
        "Resource",
        back_populates="uploader",
        foreign_keys="Resource.uploaded_by",
        cascade="all, delete-orphan",
    )
