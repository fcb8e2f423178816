"""
Module: named academic container keyed by (name, year, semester).
Resources point at a module by name (denormalized); see services.catalog for the delete guard.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, CheckConstraint, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnbridge.database import Base
from learnbridge.models.types import UuidType, utcnow

MODULE_NAME_MAX = 100
YEARS = (1, 2, 3, 4)
SEMESTERS = (1, 2)


class Module(Base):
    __tablename__ = "modules"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(MODULE_NAME_MAX), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UuidType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("name", "year", "semester", name="modules_name_year_semester_key"),
        CheckConstraint("year BETWEEN 1 AND 4", name="modules_year_check"),
        CheckConstraint("semester IN (1, 2)", name="modules_semester_check"),
        Index("ix_modules_year_semester", "year", "semester"),
    )

    creator = relationship("User", foreign_keys=[created_by])
