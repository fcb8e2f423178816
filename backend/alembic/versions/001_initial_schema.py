"""Initial schema: users, modules, resources.

Revision ID: 001
Revises:
Create Date: Initial

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(30), nullable=False, server_default="student"),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("bio", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "role IN ('student', 'admin', 'resourceManager', 'coordinator')", name="users_role_check"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "modules",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("year BETWEEN 1 AND 4", name="modules_year_check"),
        sa.CheckConstraint("semester IN (1, 2)", name="modules_semester_check"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "year", "semester", name="modules_name_year_semester_key"),
    )
    op.create_index("ix_modules_name", "modules", ["name"], unique=False)
    op.create_index("ix_modules_created_by", "modules", ["created_by"], unique=False)
    op.create_index("ix_modules_year_semester", "modules", ["year", "semester"], unique=False)

    op.create_table(
        "resources",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False),
        sa.Column("file_url", sa.String(1024), nullable=False),
        sa.Column("file_name", sa.String(512), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("module", sa.String(100), nullable=True),
        sa.Column("module_id", sa.String(36), nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default="other"),
        sa.Column("uploaded_by", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.String(36), nullable=True),
        sa.Column("review_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.String(500), nullable=True),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="resources_status_check"),
        sa.CheckConstraint(
            "category IN ('lecture', 'assignment', 'tutorial', 'reference', 'other')",
            name="resources_category_check",
        ),
        sa.CheckConstraint("year IS NULL OR year BETWEEN 1 AND 4", name="resources_year_check"),
        sa.CheckConstraint("semester IS NULL OR semester IN (1, 2)", name="resources_semester_check"),
        sa.CheckConstraint("download_count >= 0", name="resources_download_count_check"),
        sa.ForeignKeyConstraint(["module_id"], ["modules.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_resources_uploaded_by", "resources", ["uploaded_by"], unique=False)
    op.create_index("ix_resources_reviewed_by", "resources", ["reviewed_by"], unique=False)
    op.create_index("ix_resources_status", "resources", ["status"], unique=False)
    op.create_index("ix_resources_category", "resources", ["category"], unique=False)
    op.create_index("ix_resources_module", "resources", ["module"], unique=False)
    op.create_index("ix_resources_created_at", "resources", ["created_at"], unique=False)
    op.create_index(
        "ix_resources_year_semester_module", "resources", ["year", "semester", "module"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_resources_year_semester_module", table_name="resources")
    op.drop_index("ix_resources_created_at", table_name="resources")
    op.drop_index("ix_resources_module", table_name="resources")
    op.drop_index("ix_resources_category", table_name="resources")
    op.drop_index("ix_resources_status", table_name="resources")
    op.drop_index("ix_resources_reviewed_by", table_name="resources")
    op.drop_index("ix_resources_uploaded_by", table_name="resources")
    op.drop_table("resources")
    op.drop_index("ix_modules_year_semester", table_name="modules")
    op.drop_index("ix_modules_created_by", table_name="modules")
    op.drop_index("ix_modules_name", table_name="modules")
    op.drop_table("modules")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
