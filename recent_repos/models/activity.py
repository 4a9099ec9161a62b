"""ActivityRecord ORM model."""

import datetime as dt

from sqlalchemy import (
    TIMESTAMP,
    CheckConstraint,
    Date,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from recent_repos.core.constants import ACTIVITY_TYPES
from recent_repos.database import Base

_ACTIVITY_TYPE_SQL = ", ".join(f"'{t}'" for t in ACTIVITY_TYPES)


class ActivityRecord(Base):
    """One normalized unit of GitHub activity.

    Rows are deduplicated on the natural key
    ``(date, repository, activity_type, github_id)``; the surrogate ``id``
    only orders ties.  Rows are never updated after insertion.
    """

    __tablename__ = "github_activity"
    __table_args__ = (
        UniqueConstraint(
            "date",
            "repository",
            "activity_type",
            "github_id",
            name="uq_github_activity_natural_key",
        ),
        CheckConstraint(
            "count >= 1",
            name="ck_github_activity_count",
        ),
        CheckConstraint(
            f"activity_type IN ({_ACTIVITY_TYPE_SQL})",
            name="ck_github_activity_type",
        ),
        Index("idx_date", "date"),
        Index("idx_repo", "repository"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
    )
    repository: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    activity_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="1",
    )
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default="",
    )
    github_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityRecord(id={self.id}, date={self.date}, "
            f"repository={self.repository!r}, type={self.activity_type!r})>"
        )
