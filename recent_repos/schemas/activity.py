"""アクティビティ関連のPydanticスキーマ。

正規化済みレコード、タイムライン、コミットグループ、
プロジェクト（ブログ）ビュー用のスキーマを定義する。
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from recent_repos.core.constants import ActivityType
from recent_repos.schemas.common import PaginationMeta

NaturalKey = tuple[dt.date, str, str, str]


# ---------------------------------------------------------------------------
# 書き込み用（Normalizer出力）
# ---------------------------------------------------------------------------

class ActivityCreate(BaseModel):
    """Normalizerが生成する1件分のアクティビティ。"""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    repository: str = Field(..., min_length=1)
    activity_type: ActivityType
    count: int = Field(default=1, ge=1)
    url: str = ""
    github_id: str = Field(..., min_length=1)

    @property
    def natural_key(self) -> NaturalKey:
        """重複排除に使う自然キー (date, repository, activity_type, github_id)。"""
        return (self.date, self.repository, self.activity_type, self.github_id)


class PRCommentCreate(BaseModel):
    """保存対象のPRコメント。"""

    repository: str
    pr_number: int
    pr_title: str = ""
    author: str
    body: str | None = None
    created_at: dt.datetime
    pr_url: str = ""
    comment_url: str


# ---------------------------------------------------------------------------
# タイムライン
# ---------------------------------------------------------------------------

class ActivityResponse(BaseModel):
    """タイムラインの1行。"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    repository: str
    activity_type: ActivityType
    count: int
    url: str = ""


# ---------------------------------------------------------------------------
# コミットグループ（6ヶ月）
# ---------------------------------------------------------------------------

class CommitEntry(BaseModel):
    """グループ内の1コミット。"""

    date: dt.date
    url: str = ""
    github_id: str


class CommitGroup(BaseModel):
    """リポジトリ単位のコミットグループ。"""

    repository: str
    latest_date: dt.date
    commits: list[CommitEntry]


class CommitGroupsResponse(BaseModel):
    """コミットグループ一覧レスポンス。"""

    groups: list[CommitGroup]
    pagination: PaginationMeta


# ---------------------------------------------------------------------------
# プロジェクト（ブログ）ビュー
# ---------------------------------------------------------------------------

class PRCommentResponse(BaseModel):
    """プロジェクトに添付するPRコメント。"""

    model_config = ConfigDict(from_attributes=True)

    repository: str
    pr_number: int
    pr_title: str
    author: str
    body: str | None = None
    created_at: dt.datetime
    pr_url: str
    comment_url: str


class ProjectEntry(BaseModel):
    """リポジトリ単位のプロジェクト概要。"""

    repository: str
    latest_date: dt.date
    total_commits: int = Field(..., ge=0, description="commit種別のcount合計")
    activity_types: list[ActivityType]
    url: str
    recent_comments: list[PRCommentResponse] = Field(default_factory=list)


class ProjectBuckets(BaseModel):
    """リポジトリ単位で種別バケットに分割したプロジェクト。"""

    repository: str
    latest_date: dt.date
    url: str
    pull_requests: list[ActivityResponse]
    issues: list[ActivityResponse]
    commits: list[ActivityResponse] = Field(
        ...,
        description="commit / review / repository / fork / star / activity",
    )
