"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for NoCarry:
users, projects, project_members, tasks, project_invites,
activity_logs, project_files, peer_reviews.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("preferred_name", sa.String(150), nullable=True),
        sa.Column("global_role", sa.String(30), nullable=False, server_default="STUDENT"),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("school", sa.String(150), nullable=True),
        sa.Column("major", sa.String(150), nullable=True),
        sa.Column("github_url", sa.String(500), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(150), nullable=True),
        sa.Column("status_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- projects ---
    op.create_table(
        "projects",
        sa.Column("project_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("course_code", sa.String(50), nullable=True, index=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- project_members ---
    op.create_table(
        "project_members",
        sa.Column("member_id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("role", sa.String(30), nullable=False, server_default="STUDENT"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )

    # --- tasks ---
    op.create_table(
        "tasks",
        sa.Column("task_id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="TODO"),
        sa.Column("assignee_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
        sa.Column("created_by_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # --- project_invites ---
    op.create_table(
        "project_invites",
        sa.Column("invite_id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, index=True),
        sa.Column("role", sa.String(30), nullable=False, server_default="STUDENT"),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("invited_by_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # --- activity_logs ---
    op.create_table(
        "activity_logs",
        sa.Column("log_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("task_id", sa.String(36), sa.ForeignKey("tasks.task_id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )

    # --- project_files ---
    op.create_table(
        "project_files",
        sa.Column("file_id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
        sa.Column("uploaded_by_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("size", sa.Integer, nullable=True),
        sa.Column("mime_type", sa.String(150), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # --- peer_reviews ---
    op.create_table(
        "peer_reviews",
        sa.Column("review_id", sa.String(36), primary_key=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
        sa.Column("reviewer_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("receiver_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("quality", sa.Integer, nullable=False),
        sa.Column("communication", sa.Integer, nullable=False),
        sa.Column("timeliness", sa.Integer, nullable=False),
        sa.Column("initiative", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("project_id", "reviewer_id", "receiver_id", name="uq_peer_reviews_once"),
        sa.CheckConstraint("reviewer_id <> receiver_id", name="ck_peer_reviews_not_self"),
        sa.CheckConstraint("quality BETWEEN 1 AND 5", name="ck_peer_reviews_quality"),
        sa.CheckConstraint("communication BETWEEN 1 AND 5", name="ck_peer_reviews_communication"),
        sa.CheckConstraint("timeliness BETWEEN 1 AND 5", name="ck_peer_reviews_timeliness"),
        sa.CheckConstraint("initiative BETWEEN 1 AND 5", name="ck_peer_reviews_initiative"),
    )


def downgrade() -> None:
    op.drop_table("peer_reviews")
    op.drop_table("project_files")
    op.drop_table("activity_logs")
    op.drop_table("project_invites")
    op.drop_table("tasks")
    op.drop_table("project_members")
    op.drop_table("projects")
    op.drop_table("users")
