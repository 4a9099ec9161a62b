"""アクティビティ正規化サービス。

GitHubから取得した異種のペイロード（コミット、PR/Issueイベント、
その他のアカウントイベント）を、統一された ``ActivityCreate`` に変換する。

取り込み境界ではアップストリームの種類ごとのタグ付きユニオン
（``CommitItem`` / ``PullRequestEventItem`` / ``IssueEventItem`` /
``GenericEventItem``）として表現し、各バリアントが1つの変換メソッドを持つ。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from recent_repos.core.constants import (
    EVENT_TYPE_MAP,
    FALLBACK_ACTIVITY_TYPE,
    GITHUB_WEB_URL,
    ActivityType,
)
from recent_repos.core.timeutil import to_utc_date
from recent_repos.schemas.activity import ActivityCreate
from recent_repos.schemas.github import GitHubCommit, GitHubEvent

logger = logging.getLogger(__name__)


def classify_event_type(event_type: str) -> ActivityType:
    """GitHubイベント種別をアクティビティ種別に分類する。

    未知の種別は破棄せず ``"activity"`` に分類する。

    Args:
        event_type: GitHub Events API の ``type``（例: "PushEvent"）。

    Returns:
        アクティビティ種別。
    """
    return EVENT_TYPE_MAP.get(event_type, FALLBACK_ACTIVITY_TYPE)


# ---------------------------------------------------------------------------
# アップストリームアイテム（タグ付きユニオン）
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommitItem:
    """リポジトリ単位で取得した個別コミット。"""

    repository: str
    commit: GitHubCommit

    def to_activity(self) -> ActivityCreate:
        """1コミット = 1レコード（count=1、IDはSHA）。"""
        return ActivityCreate(
            date=to_utc_date(self.commit.commit.author.date),
            repository=self.repository,
            activity_type="commit",
            count=1,
            url=self.commit.html_url,
            github_id=self.commit.sha,
        )


@dataclass(frozen=True)
class PullRequestEventItem:
    """番号を抽出できた PullRequestEvent。"""

    event: GitHubEvent
    number: int
    html_url: str

    def to_activity(self) -> ActivityCreate:
        return ActivityCreate(
            date=to_utc_date(self.event.created_at),
            repository=self.event.repo.name,
            activity_type="pull_request",
            count=1,
            url=self.html_url or _repo_url(self.event),
            github_id=f"pr-{self.number}",
        )


@dataclass(frozen=True)
class IssueEventItem:
    """番号を抽出できた IssuesEvent。"""

    event: GitHubEvent
    number: int
    html_url: str

    def to_activity(self) -> ActivityCreate:
        return ActivityCreate(
            date=to_utc_date(self.event.created_at),
            repository=self.event.repo.name,
            activity_type="issue",
            count=1,
            url=self.html_url or _repo_url(self.event),
            github_id=f"issue-{self.number}",
        )


@dataclass(frozen=True)
class GenericEventItem:
    """その他のイベント。IDはイベント自身のIDを使う。"""

    event: GitHubEvent

    def to_activity(self) -> ActivityCreate:
        return ActivityCreate(
            date=to_utc_date(self.event.created_at),
            repository=self.event.repo.name,
            activity_type=classify_event_type(self.event.type),
            count=1,
            url=_repo_url(self.event),
            github_id=self.event.id,
        )


UpstreamItem = Union[CommitItem, PullRequestEventItem, IssueEventItem, GenericEventItem]


def from_event(event: GitHubEvent) -> UpstreamItem | None:
    """アカウントイベントを対応するバリアントに振り分ける。

    PushEvent はコミット単位のレコードと二重計上になるため ``None`` を返す。
    PR/Issue番号をペイロードから抽出できない場合は GenericEventItem となる。

    Args:
        event: GitHubイベント。

    Returns:
        アップストリームアイテム。破棄する場合はNone。
    """
    if event.type == "PushEvent":
        return None

    if event.type == "PullRequestEvent":
        extracted = _extract_numbered(event.payload, "pull_request")
        if extracted is not None:
            number, html_url = extracted
            return PullRequestEventItem(event=event, number=number, html_url=html_url)

    if event.type == "IssuesEvent":
        extracted = _extract_numbered(event.payload, "issue")
        if extracted is not None:
            number, html_url = extracted
            return IssueEventItem(event=event, number=number, html_url=html_url)

    return GenericEventItem(event=event)


# ---------------------------------------------------------------------------
# バッチ変換
# ---------------------------------------------------------------------------

def normalize_commits(
    repository: str,
    commits: Iterable[GitHubCommit],
) -> list[ActivityCreate]:
    """リポジトリのコミット一覧をレコードに変換する。

    変換できないコミットは警告を出してスキップし、残りの処理は続行する。

    Args:
        repository: "owner/repo" 形式のリポジトリ名。
        commits: GitHubClient.get_commits の結果。

    Returns:
        正規化済みレコードのリスト。
    """
    return _convert_all(CommitItem(repository=repository, commit=c) for c in commits)


def normalize_events(events: Iterable[GitHubEvent]) -> list[ActivityCreate]:
    """アカウントイベント一覧をレコードに変換する。

    PushEvent は破棄する。変換できないイベントは警告を出してスキップする。

    Args:
        events: GitHubClient.get_user_events の結果。

    Returns:
        正規化済みレコードのリスト。
    """
    items: list[UpstreamItem] = []
    for event in events:
        item = from_event(event)
        if item is not None:
            items.append(item)
    return _convert_all(items)


def _convert_all(items: Iterable[UpstreamItem]) -> list[ActivityCreate]:
    activities: list[ActivityCreate] = []
    for item in items:
        try:
            activities.append(item.to_activity())
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(
                "Skipping malformed %s: %s",
                type(item).__name__,
                e,
            )
    return activities


def _extract_numbered(payload: dict[str, Any], key: str) -> tuple[int, str] | None:
    """ペイロードの ``payload[key]`` から番号とURLを取り出す。"""
    obj = payload.get(key)
    if not isinstance(obj, dict):
        return None
    number = obj.get("number")
    if isinstance(number, bool) or not isinstance(number, int):
        return None
    html_url = obj.get("html_url")
    return number, html_url if isinstance(html_url, str) else ""


def _repo_url(event: GitHubEvent) -> str:
    return f"{GITHUB_WEB_URL}/{event.repo.name}"
