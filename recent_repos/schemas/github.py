"""GitHub REST APIレスポンスのPydanticスキーマ。

GitHubClient がページ単位で取得したJSONを、アイテムごとに
これらの型へデコードする。未使用フィールドは無視する。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _GitHubModel(BaseModel):
    """GitHubレスポンス共通設定（未知フィールドは無視）。"""

    model_config = ConfigDict(extra="ignore")


class GitHubUser(_GitHubModel):
    """ユーザー参照。"""

    login: str


class GitHubRepo(_GitHubModel):
    """リポジトリ（/users/{username}/repos の1要素）。"""

    id: int | None = None
    name: str
    full_name: str
    html_url: str = ""
    fork: bool = False
    pushed_at: datetime | None = None


class GitHubCommitAuthor(_GitHubModel):
    """コミットの author 情報。"""

    name: str | None = None
    email: str | None = None
    date: datetime


class GitHubCommitData(_GitHubModel):
    """コミット本体（``commit`` キー）。"""

    message: str = ""
    author: GitHubCommitAuthor


class GitHubCommit(_GitHubModel):
    """コミット（/repos/{owner}/{repo}/commits の1要素）。"""

    sha: str = Field(..., min_length=1)
    commit: GitHubCommitData
    html_url: str = ""


class GitHubPullRequest(_GitHubModel):
    """プルリクエスト（/repos/{owner}/{repo}/pulls の1要素）。"""

    number: int
    title: str = ""
    user: GitHubUser | None = None
    html_url: str = ""
    created_at: datetime
    updated_at: datetime


class GitHubIssueComment(_GitHubModel):
    """PR会話コメント（/repos/{owner}/{repo}/issues/{number}/comments の1要素）。"""

    id: int
    user: GitHubUser | None = None
    body: str | None = None
    created_at: datetime
    html_url: str


class GitHubEventRepo(_GitHubModel):
    """イベントに付随するリポジトリ参照。``name`` は "owner/repo" 形式。"""

    name: str
    url: str = ""


class GitHubEvent(_GitHubModel):
    """アカウントイベント（/users/{username}/events の1要素）。"""

    id: str
    type: str
    repo: GitHubEventRepo
    created_at: datetime
    payload: dict[str, Any] = Field(default_factory=dict)
