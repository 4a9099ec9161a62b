"""create activity tables

Revision ID: 3f9a1c7d2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c7d2b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVITY_TYPES = (
    "commit",
    "pull_request",
    "issue",
    "review",
    "repository",
    "fork",
    "star",
    "activity",
)


def upgrade() -> None:
    # --- github_activity ---
    op.create_table(
        "github_activity",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("repository", sa.String(length=512), nullable=False),
        sa.Column("activity_type", sa.String(length=20), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("url", sa.Text(), nullable=False, server_default=""),
        sa.Column("github_id", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "date",
            "repository",
            "activity_type",
            "github_id",
            name="uq_github_activity_natural_key",
        ),
        sa.CheckConstraint("count >= 1", name="ck_github_activity_count"),
        sa.CheckConstraint(
            "activity_type IN ({})".format(", ".join(f"'{t}'" for t in ACTIVITY_TYPES)),
            name="ck_github_activity_type",
        ),
    )
    op.create_index("idx_date", "github_activity", ["date"])
    op.create_index("idx_repo", "github_activity", ["repository"])

    # --- pr_comments ---
    op.create_table(
        "pr_comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("repository", sa.String(length=512), nullable=False),
        sa.Column("pr_number", sa.Integer(), nullable=False),
        sa.Column("pr_title", sa.Text(), nullable=False, server_default=""),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("pr_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("comment_url", sa.Text(), nullable=False),
        sa.UniqueConstraint(
            "repository",
            "pr_number",
            "comment_url",
            name="uq_pr_comments_repo_pr_comment",
        ),
    )
    op.create_index("idx_comments_repo", "pr_comments", ["repository"])
    op.create_index("idx_comments_created", "pr_comments", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_comments_created", table_name="pr_comments")
    op.drop_index("idx_comments_repo", table_name="pr_comments")
    op.drop_table("pr_comments")

    op.drop_index("idx_repo", table_name="github_activity")
    op.drop_index("idx_date", table_name="github_activity")
    op.drop_table("github_activity")
