"""ビュー組み立てサービス。

ストアの行スナップショットを、タイムライン・コミットグループ・
プロジェクト（ブログ）の3種類の読み取りビューに整形する。
アップストリームへのアクセスは行わない。

グルーピングとページネーションはストレージに依存しない純粋関数として実装し、
``ViewService`` はクエリ結果をそれらに渡すだけにとどめる。
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from recent_repos.core.constants import COMMIT_LIKE_TYPES, GITHUB_WEB_URL
from recent_repos.core.exceptions import InvalidRequestError
from recent_repos.core.timeutil import months_ago, utc_today
from recent_repos.models import ActivityRecord, PRComment
from recent_repos.schemas.activity import (
    ActivityResponse,
    CommitEntry,
    CommitGroup,
    CommitGroupsResponse,
    PRCommentResponse,
    ProjectBuckets,
    ProjectEntry,
)
from recent_repos.schemas.common import PaginationMeta
from recent_repos.services.activity_store import ActivityStore

TIMELINE_LIMIT = 100
MAX_PAGE_SIZE = 100
RECENT_COMMENTS_LIMIT = 5


# ---------------------------------------------------------------------------
# 純粋関数
# ---------------------------------------------------------------------------

def group_by_repository(
    records: Sequence[ActivityRecord],
) -> dict[str, list[ActivityRecord]]:
    """レコードをリポジトリごとにまとめ、各グループを日付の新しい順に並べる。

    同日のレコードは入力順を保つ。
    """
    groups: dict[str, list[ActivityRecord]] = {}
    for record in records:
        groups.setdefault(record.repository, []).append(record)
    for items in groups.values():
        items.sort(key=lambda r: r.date, reverse=True)
    return groups


def order_repositories(groups: Mapping[str, Sequence[ActivityRecord]]) -> list[str]:
    """最新日付の新しい順（同日はリポジトリ名順）にリポジトリ名を並べる。"""
    names = sorted(groups)
    names.sort(key=lambda name: groups[name][0].date, reverse=True)
    return names


def build_commit_groups(records: Sequence[ActivityRecord]) -> list[CommitGroup]:
    """コミットレコードをリポジトリ単位のグループに変換する。

    Args:
        records: commit 種別のレコード。

    Returns:
        最新コミット日の新しい順に並んだグループ。
    """
    groups = group_by_repository(records)
    return [
        CommitGroup(
            repository=name,
            latest_date=groups[name][0].date,
            commits=[
                CommitEntry(date=r.date, url=r.url or "", github_id=r.github_id)
                for r in groups[name]
            ],
        )
        for name in order_repositories(groups)
    ]


def paginate(
    items: Sequence[CommitGroup],
    page: int,
    limit: int,
) -> tuple[list[CommitGroup], PaginationMeta]:
    """グループのリストにオフセット/リミットを適用する。

    範囲外のページは空リストを返す（エラーにしない）。

    Args:
        items: 並び替え済みのグループ。
        page: 1始まりのページ番号。
        limit: 1ページあたりの件数（1〜100）。

    Returns:
        (ページ内のグループ, ページネーションメタ情報)。

    Raises:
        InvalidRequestError: page/limit が範囲外の場合。
    """
    if page < 1:
        raise InvalidRequestError(detail="page must be >= 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidRequestError(detail=f"limit must be between 1 and {MAX_PAGE_SIZE}")

    meta = PaginationMeta(page=page, limit=limit, total=len(items))
    return list(items[meta.offset:meta.offset + limit]), meta


def build_project_entries(
    records: Sequence[ActivityRecord],
    comments_by_repo: Mapping[str, Sequence[PRComment]],
) -> list[ProjectEntry]:
    """全種別のレコードからリポジトリ単位のプロジェクト概要を作る。

    Args:
        records: 期間内のレコード（種別問わず）。
        comments_by_repo: リポジトリごとの最近のPRコメント（新しい順）。

    Returns:
        最新アクティビティ日の新しい順に並んだプロジェクト。
    """
    groups = group_by_repository(records)
    entries: list[ProjectEntry] = []
    for name in order_repositories(groups):
        items = groups[name]
        entries.append(
            ProjectEntry(
                repository=name,
                latest_date=items[0].date,
                total_commits=sum(r.count for r in items if r.activity_type == "commit"),
                activity_types=sorted({r.activity_type for r in items}),  # type: ignore[misc]
                url=f"{GITHUB_WEB_URL}/{name}",
                recent_comments=[
                    PRCommentResponse.model_validate(c)
                    for c in comments_by_repo.get(name, [])
                ],
            )
        )
    return entries


def build_project_buckets(records: Sequence[ActivityRecord]) -> list[ProjectBuckets]:
    """プロジェクトのレコードをPR・Issue・コミット系の3バケットに分ける。"""
    groups = group_by_repository(records)
    buckets: list[ProjectBuckets] = []
    for name in order_repositories(groups):
        items = groups[name]
        buckets.append(
            ProjectBuckets(
                repository=name,
                latest_date=items[0].date,
                url=f"{GITHUB_WEB_URL}/{name}",
                pull_requests=[
                    ActivityResponse.model_validate(r)
                    for r in items
                    if r.activity_type == "pull_request"
                ],
                issues=[
                    ActivityResponse.model_validate(r)
                    for r in items
                    if r.activity_type == "issue"
                ],
                commits=[
                    ActivityResponse.model_validate(r)
                    for r in items
                    if r.activity_type in COMMIT_LIKE_TYPES
                ],
            )
        )
    return buckets


# ---------------------------------------------------------------------------
# サービス
# ---------------------------------------------------------------------------

class ViewService:
    """読み取りビューを提供するサービスクラス。"""

    def __init__(self, session: AsyncSession, window_months: int = 6) -> None:
        self.store = ActivityStore(session)
        self.window_months = window_months

    def window_start(self, today: date | None = None) -> date:
        """集計期間の開始日（この日を含む）を返す。"""
        return months_ago(today or utc_today(), self.window_months)

    async def get_recent_activity(
        self,
        limit: int = TIMELINE_LIMIT,
    ) -> list[ActivityResponse]:
        """最新のアクティビティを日付の新しい順に返す。

        Args:
            limit: 最大件数。

        Returns:
            タイムライン行のリスト。0件なら空リスト。
        """
        records = await self.store.list_recent(limit=limit)
        return [ActivityResponse.model_validate(r) for r in records]

    async def get_commit_groups(
        self,
        page: int = 1,
        limit: int = MAX_PAGE_SIZE,
        today: date | None = None,
    ) -> CommitGroupsResponse:
        """直近の期間のコミットをリポジトリ単位でグループ化し、ページングして返す。

        ページングはコミット単位ではなくグループ単位で行う。

        Args:
            page: 1始まりのページ番号。
            limit: 1ページあたりのグループ数。
            today: 基準日（テスト用）。

        Returns:
            コミットグループとページネーション情報。
        """
        records = await self.store.list_since(
            self.window_start(today),
            activity_type="commit",
        )
        groups, meta = paginate(build_commit_groups(records), page, limit)
        return CommitGroupsResponse(groups=groups, pagination=meta)

    async def get_projects(self, today: date | None = None) -> list[ProjectEntry]:
        """直近の期間のプロジェクト概要を、最近のPRコメント付きで返す。"""
        records = await self.store.list_since(self.window_start(today))
        repositories = sorted({r.repository for r in records})
        comments = await self.store.recent_comments_by_repository(
            repositories,
            limit=RECENT_COMMENTS_LIMIT,
        )
        return build_project_entries(records, comments)

    async def get_project_buckets(
        self,
        today: date | None = None,
    ) -> list[ProjectBuckets]:
        """直近の期間のプロジェクトを種別バケットに分けて返す。"""
        records = await self.store.list_since(self.window_start(today))
        return build_project_buckets(records)
