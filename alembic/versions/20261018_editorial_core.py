"""editorial core: users, articles, versions, change log, assignments, verification, audit, jobs

Revision ID: 20261018_editorial_core
Revises:
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261018_editorial_core"
down_revision = None
branch_labels = None
depends_on = None

ARTICLE_STATUSES = (
    "PENDING_VERIFICATION",
    "PENDING_ADMIN_REVIEW",
    "ASSIGNED_TO_EDITOR",
    "EDITOR_IN_PROGRESS",
    "EDITOR_APPROVED",
    "ASSIGNED_TO_REVIEWER",
    "REVIEWER_IN_PROGRESS",
    "REVIEWER_APPROVED",
    "PUBLISHED",
    "REJECTED",
    "DELETED",
)

article_status = postgresql.ENUM(*ARTICLE_STATUSES, name="article_status", create_type=False)
version_role = postgresql.ENUM("ORIGINAL", "EDITOR", "REVIEWER", "ADMIN", name="version_role", create_type=False)
document_format = postgresql.ENUM("PDF", "DOCX", name="document_format", create_type=False)


def _assignment_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("unassigned_at", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_article_id", name, ["article_id"], unique=False)
    op.create_index(f"ix_{name}_user_id", name, ["user_id"], unique=False)


def upgrade() -> None:
    bind = op.get_bind()
    article_status.create(bind, checkfirst=True)
    version_role.create(bind, checkfirst=True)
    document_format.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "articles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("abstract", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("keywords", sa.JSON(), nullable=True),
        sa.Column("author_name", sa.String(length=200), nullable=False),
        sa.Column("author_email", sa.String(length=320), nullable=False),
        sa.Column("author_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("second_author_name", sa.String(length=200), nullable=True),
        sa.Column("second_author_email", sa.String(length=320), nullable=True),
        sa.Column("status", article_status, nullable=False, server_default="PENDING_ADMIN_REVIEW"),
        sa.Column("assigned_editor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("assigned_reviewer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("citation_number", sa.String(length=64), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("original_pdf_url", sa.String(length=2048), nullable=False),
        sa.Column("original_word_url", sa.String(length=2048), nullable=True),
        sa.Column("current_pdf_url", sa.String(length=2048), nullable=True),
        sa.Column("current_word_url", sa.String(length=2048), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("published_by", sa.Integer(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Integer(), nullable=True),
        sa.Column("lock_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("citation_number", name="uq_articles_citation_number"),
    )
    op.create_index("ix_articles_slug", "articles", ["slug"], unique=True)
    op.create_index("ix_articles_author_email", "articles", ["author_email"], unique=False)
    op.create_index("ix_articles_author_user_id", "articles", ["author_user_id"], unique=False)
    op.create_index("ix_articles_status", "articles", ["status"], unique=False)
    op.create_index("ix_articles_assigned_editor_id", "articles", ["assigned_editor_id"], unique=False)
    op.create_index("ix_articles_assigned_reviewer_id", "articles", ["assigned_reviewer_id"], unique=False)
    op.create_index("ix_articles_status_updated", "articles", ["status", "updated_at"], unique=False)

    op.create_table(
        "article_change_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id"), nullable=False),
        sa.Column("role", version_role, nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("edited_at", sa.DateTime(), nullable=False),
        sa.Column("old_file_url", sa.String(length=2048), nullable=True),
        sa.Column("new_file_url", sa.String(length=2048), nullable=False),
        sa.Column("old_version_id", sa.Integer(), nullable=True),
        sa.Column("new_version_id", sa.Integer(), nullable=True),
        sa.Column("status_from", article_status, nullable=True),
        sa.Column("status_to", article_status, nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("diff_summary", sa.JSON(), nullable=True),
        sa.Column("diff_computed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_article_change_logs_article_id", "article_change_logs", ["article_id"], unique=False)
    op.create_index("ix_article_change_logs_actor_id", "article_change_logs", ["actor_id"], unique=False)
    op.create_index(
        "ix_article_change_logs_article_edited", "article_change_logs", ["article_id", "edited_at"], unique=False
    )

    op.create_table(
        "document_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id"), nullable=False),
        sa.Column("role", version_role, nullable=False),
        sa.Column("format", document_format, nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("revision", sa.Integer(), nullable=False),
        sa.Column("produced_by", sa.Integer(), nullable=True),
        sa.Column("change_log_id", sa.Integer(), sa.ForeignKey("article_change_logs.id"), nullable=True),
        sa.Column("derived_from_id", sa.Integer(), sa.ForeignKey("document_versions.id"), nullable=True),
        sa.Column("status_at_upload", article_status, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("article_id", "revision", "format", name="uq_document_versions_revision_format"),
    )
    op.create_index("ix_document_versions_article_id", "document_versions", ["article_id"], unique=False)
    op.create_index("ix_document_versions_change_log_id", "document_versions", ["change_log_id"], unique=False)
    op.create_index("ix_document_versions_article_role", "document_versions", ["article_id", "role"], unique=False)

    _assignment_table("editor_assignment_history")
    _assignment_table("reviewer_assignment_history")
    op.create_index(
        "uq_editor_assignment_open",
        "editor_assignment_history",
        ["article_id"],
        unique=True,
        postgresql_where=sa.text("unassigned_at IS NULL"),
    )
    op.create_index(
        "uq_reviewer_assignment_open",
        "reviewer_assignment_history",
        ["article_id"],
        unique=True,
        postgresql_where=sa.text("unassigned_at IS NULL"),
    )

    op.create_table(
        "submission_verifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("code_hash", sa.String(length=128), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(), nullable=True),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id"), nullable=True),
        sa.Column("resend_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash", name="uq_submission_verifications_token_hash"),
    )
    op.create_index("ix_submission_verifications_email", "submission_verifications", ["email"], unique=False)
    op.create_index(
        "ix_submission_verifications_email_created",
        "submission_verifications",
        ["email", "created_at"],
        unique=False,
    )

    op.create_table(
        "action_audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("from_state", sa.String(length=64), nullable=True),
        sa.Column("to_state", sa.String(length=64), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("details_json", sa.JSON(), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("actor_roles", sa.JSON(), nullable=True),
        sa.Column("correlation_id", sa.String(length=64), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_action_audit_logs_action", "action_audit_logs", ["action"], unique=False)
    op.create_index("ix_action_audit_logs_actor_user_id", "action_audit_logs", ["actor_user_id"], unique=False)
    op.create_index("ix_action_audit_logs_correlation_id", "action_audit_logs", ["correlation_id"], unique=False)
    op.create_index(
        "ix_audit_entity_timeline",
        "action_audit_logs",
        ["entity_type", "entity_id", "created_at", "id"],
        unique=False,
    )

    op.create_table(
        "job_runs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_type", sa.String(length=64), nullable=False),
        sa.Column("queue_name", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="queued"),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("correlation_id", sa.String(length=64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("attempt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("queued_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("error_code", sa.String(length=64), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("result_json", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_runs_job_type", "job_runs", ["job_type"], unique=False)
    op.create_index("ix_job_runs_queue_name", "job_runs", ["queue_name"], unique=False)
    op.create_index("ix_job_runs_entity_id", "job_runs", ["entity_id"], unique=False)
    op.create_index("ix_job_runs_status", "job_runs", ["status"], unique=False)
    op.create_index("ix_job_runs_queued_at", "job_runs", ["queued_at"], unique=False)
    op.create_index("ix_job_runs_type_entity_status", "job_runs", ["job_type", "entity_id", "status"], unique=False)

    op.create_table(
        "dead_letter_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("original_job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_type", sa.String(length=64), nullable=False),
        sa.Column("queue_name", sa.String(length=64), nullable=False),
        sa.Column("failed_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.Column("error", sa.Text(), nullable=False),
        sa.Column("traceback", sa.Text(), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_dead_letter_jobs_original_job_id", "dead_letter_jobs", ["original_job_id"], unique=False)
    op.create_index("ix_dead_letter_jobs_job_type", "dead_letter_jobs", ["job_type"], unique=False)
    op.create_index("ix_dead_letter_jobs_failed_at", "dead_letter_jobs", ["failed_at"], unique=False)


def downgrade() -> None:
    op.drop_table("dead_letter_jobs")
    op.drop_table("job_runs")
    op.drop_table("action_audit_logs")
    op.drop_table("submission_verifications")
    op.drop_index("uq_reviewer_assignment_open", table_name="reviewer_assignment_history")
    op.drop_index("uq_editor_assignment_open", table_name="editor_assignment_history")
    op.drop_table("reviewer_assignment_history")
    op.drop_table("editor_assignment_history")
    op.drop_table("document_versions")
    op.drop_table("article_change_logs")
    op.drop_table("articles")
    op.drop_table("users")

    bind = op.get_bind()
    document_format.drop(bind, checkfirst=True)
    version_role.drop(bind, checkfirst=True)
    article_status.drop(bind, checkfirst=True)
