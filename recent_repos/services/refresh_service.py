"""リフレッシュサービス。

GitHubからリポジトリ・コミット・アカウントイベント・PRコメントを
順番に取得し、正規化してローカルストアに保存する。

エラー方針:
- リポジトリ一覧の取得失敗はリフレッシュ全体を中断する。
- 個別リポジトリのコミット取得失敗はログに記録して次のリポジトリへ進む。
- イベントフィードとPRコメントはベストエフォート（失敗してもリフレッシュは成功）。
- ストレージ書き込み失敗は中断し、それまでにコミット済みの行は残る。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from recent_repos.config import Settings, settings as default_settings
from recent_repos.core.exceptions import (
    ExternalAPIError,
    GitHubRateLimitError,
    InvalidRequestError,
)
from recent_repos.core.timeutil import months_ago, utc_now
from recent_repos.external.github_client import GitHubSource
from recent_repos.external.validation import validate_username
from recent_repos.schemas.activity import PRCommentCreate
from recent_repos.schemas.github import GitHubRepo
from recent_repos.services.activity_store import ActivityStore
from recent_repos.services.normalizer import normalize_commits, normalize_events

logger = logging.getLogger(__name__)

# コメントを取得するPRの数（リポジトリあたり、更新日時の新しい順）
PR_COMMENT_PR_LIMIT = 5
PR_FETCH_LIMIT = 10


@dataclass
class RefreshResult:
    """リフレッシュ1回分の結果。"""

    repositories: int = 0
    activities_fetched: int = 0
    activities_inserted: int = 0
    comments_stored: int = 0
    failed_repositories: list[str] = field(default_factory=list)


class RefreshService:
    """GitHubアクティビティのリフレッシュを行うサービス。

    アップストリームへの呼び出しはすべて逐次実行する
    （1リポジトリずつ、1ページずつ）。
    """

    def __init__(
        self,
        session: AsyncSession,
        client: GitHubSource,
        settings: Settings | None = None,
    ) -> None:
        """RefreshServiceを初期化する。

        Args:
            session: 非同期データベースセッション。
            client: GitHubClient または SampleGitHubClient。
            settings: アプリケーション設定。Noneの場合はグローバル設定。
        """
        self.client = client
        self.settings = settings or default_settings
        self.store = ActivityStore(session)

    async def refresh(
        self,
        username: str | None = None,
        now: datetime | None = None,
    ) -> RefreshResult:
        """アクティビティとPRコメントを取得して保存する。

        1. 保持期間を過ぎたPRコメント（と設定時はアクティビティ）を削除
        2. リポジトリ一覧取得（失敗時は中断）
        3. リポジトリごとにコミット取得・正規化・保存
        4. アカウントイベント取得・正規化・保存（PushEventは破棄）
        5. PRコメント取得・保存（ベストエフォート）

        Args:
            username: 対象のGitHubユーザー名。Noneの場合は設定値。
            now: 基準時刻（テスト用）。

        Returns:
            リフレッシュ結果。

        Raises:
            InvalidRequestError: ユーザー名が不正な場合。
            ExternalAPIError: リポジトリ一覧の取得に失敗した場合。
            GitHubRateLimitError: リポジトリ一覧の取得でレート制限に達した場合。
            StorageError: DB書き込みに失敗した場合。
        """
        username = validate_username(username or self.settings.GITHUB_USERNAME)
        now = now or utc_now()
        since = datetime.combine(
            months_ago(now.date(), self.settings.ACTIVITY_WINDOW_MONTHS),
            time.min,
            tzinfo=timezone.utc,
        )
        result = RefreshResult()

        logger.info("Starting refresh for %s (since=%s)", username, since.date())

        # 1. 保持期間外のデータを削除
        await self.store.purge_comments_before(
            now - timedelta(days=self.settings.PR_COMMENT_RETENTION_DAYS)
        )
        if self.settings.ACTIVITY_RETENTION_DAYS is not None:
            await self.store.purge_activities_before(
                now.date() - timedelta(days=self.settings.ACTIVITY_RETENTION_DAYS)
            )

        # 2. リポジトリ一覧（失敗時はリフレッシュ全体を中断）
        try:
            repos = await self.client.get_user_repos(username)
        except GitHubRateLimitError:
            logger.error("Rate limited while fetching repositories for %s", username)
            raise
        except ExternalAPIError as e:
            logger.error("Failed to fetch repositories for %s: %s", username, e.detail)
            raise ExternalAPIError(
                detail=f"Failed to fetch user repos: {e.detail}",
                upstream_status=e.upstream_status,
            ) from e
        result.repositories = len(repos)

        # 3. リポジトリごとのコミット
        for repo in repos:
            try:
                commits = await self.client.get_commits(
                    repo.full_name,
                    author=username,
                    since=since,
                )
            except (ExternalAPIError, InvalidRequestError) as e:
                logger.warning(
                    "Failed to fetch commits for %s: %s",
                    repo.full_name,
                    e.detail,
                )
                result.failed_repositories.append(repo.full_name)
                continue

            activities = normalize_commits(repo.full_name, commits)
            result.activities_fetched += len(activities)
            result.activities_inserted += await self.store.insert_activities(activities)

        # 4. アカウントイベント
        await self._refresh_events(username, since, result)

        # 5. PRコメント
        await self._refresh_comments(repos, since, result)

        logger.info(
            "Refresh for %s completed: %d repositories, %d activities fetched, "
            "%d inserted, %d comments, %d failed repositories",
            username,
            result.repositories,
            result.activities_fetched,
            result.activities_inserted,
            result.comments_stored,
            len(result.failed_repositories),
        )
        return result

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    async def _refresh_events(
        self,
        username: str,
        since: datetime,
        result: RefreshResult,
    ) -> None:
        """アカウントイベントを取り込む。取得失敗はログのみ。"""
        try:
            events = await self.client.get_user_events(username)
        except ExternalAPIError as e:
            logger.warning("Failed to fetch events for %s: %s", username, e.detail)
            return

        recent = [event for event in events if event.created_at >= since]
        activities = normalize_events(recent)
        result.activities_fetched += len(activities)
        result.activities_inserted += await self.store.insert_activities(activities)

    async def _refresh_comments(
        self,
        repos: list[GitHubRepo],
        since: datetime,
        result: RefreshResult,
    ) -> None:
        """最近更新されたPRの会話コメントを取り込む。取得失敗はログのみ。"""
        for repo in repos:
            try:
                prs = await self.client.get_pull_requests(
                    repo.full_name,
                    limit=PR_FETCH_LIMIT,
                )
            except (ExternalAPIError, InvalidRequestError) as e:
                logger.warning(
                    "Failed to fetch PRs for %s: %s",
                    repo.full_name,
                    e.detail,
                )
                continue

            collected: list[PRCommentCreate] = []
            for pr in prs[:PR_COMMENT_PR_LIMIT]:
                if pr.updated_at < since:
                    continue
                try:
                    comments = await self.client.get_issue_comments(
                        repo.full_name,
                        pr.number,
                    )
                except ExternalAPIError as e:
                    logger.warning(
                        "Failed to fetch comments for %s#%d: %s",
                        repo.full_name,
                        pr.number,
                        e.detail,
                    )
                    continue

                collected.extend(
                    PRCommentCreate(
                        repository=repo.full_name,
                        pr_number=pr.number,
                        pr_title=pr.title,
                        author=comment.user.login if comment.user else "ghost",
                        body=comment.body,
                        created_at=comment.created_at,
                        pr_url=pr.html_url,
                        comment_url=comment.html_url,
                    )
                    for comment in comments
                    if comment.created_at >= since
                )

            result.comments_stored += await self.store.upsert_pr_comments(collected)
