"""ORM models package.

Importing this module ensures every model is registered with the
SQLAlchemy ``Base.metadata`` so that Alembic autogenerate and
``init_db`` can see all tables.
"""

from recent_repos.models.activity import ActivityRecord
from recent_repos.models.pr_comment import PRComment

__all__ = [
    "ActivityRecord",
    "PRComment",
]
