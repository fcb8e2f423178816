"""
Resource: an uploaded learning file going through review (pending -> approved | rejected).
Academic placement (year, semester, module) is optional so older flat records stay valid.
download_count only moves through services.workflow.record_download.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, BigInteger, Integer, DateTime, CheckConstraint, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnbridge.database import Base
from learnbridge.models.types import TagList, UuidType, utcnow

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

CATEGORIES = ("lecture", "assignment", "tutorial", "reference", "other")
DEFAULT_CATEGORY = "other"

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
REVIEW_NOTES_MAX = 500


class Resource(Base):
    __tablename__ = "resources"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(TITLE_MAX), nullable=False)
    description: Mapped[str] = mapped_column(String(DESCRIPTION_MAX), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)  # original filename
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True)
    module: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    module_id: Mapped[uuid.UUID | None] = mapped_column(
        UuidType(), ForeignKey("modules.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_CATEGORY, index=True)
    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        UuidType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    review_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(String(REVIEW_NOTES_MAX), nullable=True)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[list[str]] = mapped_column(TagList(), nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="resources_status_check"),
        CheckConstraint(
            "category IN ('lecture', 'assignment', 'tutorial', 'reference', 'other')",
            name="resources_category_check",
        ),
        CheckConstraint("year IS NULL OR year BETWEEN 1 AND 4", name="resources_year_check"),
        CheckConstraint("semester IS NULL OR semester IN (1, 2)", name="resources_semester_check"),
        CheckConstraint("download_count >= 0", name="resources_download_count_check"),
        Index("ix_resources_year_semester_module", "year", "semester", "module"),
    )

    uploader = relationship("User", back_populates="resources", foreign_keys=[uploaded_by])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
