"""PRComment ORM model."""

from datetime import datetime

from sqlalchemy import TIMESTAMP, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recent_repos.database import Base


class PRComment(Base):
    """Conversation comment on one of the user's pull requests.

    Unlike ``ActivityRecord``, a re-fetched comment replaces the stored
    row (matched on repository, PR number, and comment URL).
    """

    __tablename__ = "pr_comments"
    __table_args__ = (
        UniqueConstraint(
            "repository",
            "pr_number",
            "comment_url",
            name="uq_pr_comments_repo_pr_comment",
        ),
        Index("idx_comments_repo", "repository"),
        Index("idx_comments_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    repository: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    pr_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    pr_title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default="",
    )
    author: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    body: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
    )
    pr_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default="",
    )
    comment_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<PRComment(id={self.id}, repository={self.repository!r}, "
            f"pr_number={self.pr_number})>"
        )
