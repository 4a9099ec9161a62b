"""アクティビティストア。

``github_activity`` / ``pr_comments`` テーブルへの読み書きを提供する。
アクティビティは自然キーで重複を無視して挿入し（上書きしない）、
PRコメントは同一コメントを置き換える。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import Delete, delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recent_repos.core.exceptions import StorageError
from recent_repos.core.timeutil import to_naive_utc
from recent_repos.models import ActivityRecord, PRComment
from recent_repos.schemas.activity import ActivityCreate, PRCommentCreate

logger = logging.getLogger(__name__)


class ActivityStore:
    """アクティビティとPRコメントの永続化を担うクラス。"""

    def __init__(self, session: AsyncSession) -> None:
        """ActivityStoreを初期化する。

        Args:
            session: 非同期データベースセッション。
        """
        self.session = session

    # ------------------------------------------------------------------
    # 書き込み
    # ------------------------------------------------------------------

    async def insert_activities(self, activities: Sequence[ActivityCreate]) -> int:
        """アクティビティを挿入する。自然キーが既存の行はそのまま残す。

        SQLite ``INSERT ... ON CONFLICT DO NOTHING`` を使用するため、
        同じデータで繰り返し呼んでも行数は変わらない。

        Args:
            activities: 正規化済みレコードのリスト。

        Returns:
            新規に挿入された行数。

        Raises:
            StorageError: 書き込みに失敗した場合。
        """
        if not activities:
            return 0

        # 同一バッチ内の重複も先に除いておく
        unique: dict[tuple[date, str, str, str], ActivityCreate] = {}
        for activity in activities:
            unique.setdefault(activity.natural_key, activity)

        inserted = 0
        try:
            for activity in unique.values():
                stmt = (
                    sqlite_insert(ActivityRecord)
                    .values(
                        date=activity.date,
                        repository=activity.repository,
                        activity_type=activity.activity_type,
                        count=activity.count,
                        url=activity.url,
                        github_id=activity.github_id,
                    )
                    .on_conflict_do_nothing(
                        index_elements=[
                            "date",
                            "repository",
                            "activity_type",
                            "github_id",
                        ],
                    )
                )
                result = await self.session.execute(stmt)
                inserted += result.rowcount or 0
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to insert activity batch: %s", e)
            raise StorageError(detail=f"Failed to insert activity: {e}")

        logger.debug(
            "Inserted %d of %d activities (%d duplicates ignored)",
            inserted,
            len(activities),
            len(activities) - inserted,
        )
        return inserted

    async def upsert_pr_comments(self, comments: Sequence[PRCommentCreate]) -> int:
        """PRコメントを挿入または置換する。

        (repository, pr_number, comment_url) が一致する既存行は置き換える。

        Args:
            comments: 保存対象のコメント。

        Returns:
            処理したコメント数。

        Raises:
            StorageError: 書き込みに失敗した場合。
        """
        if not comments:
            return 0

        try:
            for comment in comments:
                values = {
                    "repository": comment.repository,
                    "pr_number": comment.pr_number,
                    "pr_title": comment.pr_title,
                    "author": comment.author,
                    "body": comment.body,
                    "created_at": to_naive_utc(comment.created_at),
                    "pr_url": comment.pr_url,
                    "comment_url": comment.comment_url,
                }
                stmt = sqlite_insert(PRComment).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["repository", "pr_number", "comment_url"],
                    set_={
                        "pr_title": stmt.excluded.pr_title,
                        "author": stmt.excluded.author,
                        "body": stmt.excluded.body,
                        "created_at": stmt.excluded.created_at,
                        "pr_url": stmt.excluded.pr_url,
                    },
                )
                await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to upsert PR comments: %s", e)
            raise StorageError(detail=f"Failed to store PR comments: {e}")

        return len(comments)

    async def purge_activities_before(self, cutoff: date) -> int:
        """``cutoff`` より古いアクティビティを削除する。

        Returns:
            削除した行数。
        """
        return await self._purge(
            delete(ActivityRecord).where(ActivityRecord.date < cutoff),
            "activities",
        )

    async def purge_comments_before(self, cutoff: datetime) -> int:
        """``cutoff`` より古いPRコメントを削除する。

        Returns:
            削除した行数。
        """
        return await self._purge(
            delete(PRComment).where(PRComment.created_at < to_naive_utc(cutoff)),
            "PR comments",
        )

    # ------------------------------------------------------------------
    # 読み出し
    # ------------------------------------------------------------------

    async def list_recent(self, limit: int = 100) -> list[ActivityRecord]:
        """日付の新しい順に最大 ``limit`` 件を返す。"""
        stmt = (
            select(ActivityRecord)
            .order_by(ActivityRecord.date.desc(), ActivityRecord.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_since(
        self,
        since: date,
        activity_type: str | None = None,
    ) -> list[ActivityRecord]:
        """``since`` 以降のアクティビティを日付の新しい順に返す。

        Args:
            since: この日付以降（当日を含む）。
            activity_type: 指定時はこの種別のみ。
        """
        stmt = select(ActivityRecord).where(ActivityRecord.date >= since)
        if activity_type is not None:
            stmt = stmt.where(ActivityRecord.activity_type == activity_type)
        stmt = stmt.order_by(ActivityRecord.date.desc(), ActivityRecord.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_activities(self) -> int:
        """保存済みアクティビティの総数を返す。"""
        result = await self.session.execute(
            select(func.count()).select_from(ActivityRecord)
        )
        return result.scalar_one()

    async def recent_comments_by_repository(
        self,
        repositories: Sequence[str],
        limit: int = 5,
    ) -> dict[str, list[PRComment]]:
        """リポジトリごとに新しい順で最大 ``limit`` 件のPRコメントを返す。

        Args:
            repositories: 対象リポジトリ名。
            limit: リポジトリあたりの最大件数。

        Returns:
            リポジトリ名をキー、コメントのリストを値とする辞書。
        """
        comments: dict[str, list[PRComment]] = {repo: [] for repo in repositories}
        if not repositories:
            return comments

        stmt = (
            select(PRComment)
            .where(PRComment.repository.in_(list(repositories)))
            .order_by(PRComment.created_at.desc(), PRComment.id.desc())
        )
        result = await self.session.execute(stmt)
        for comment in result.scalars().all():
            bucket = comments[comment.repository]
            if len(bucket) < limit:
                bucket.append(comment)
        return comments

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    async def _purge(self, stmt: Delete, label: str) -> int:
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to purge old %s: %s", label, e)
            raise StorageError(detail=f"Failed to purge old {label}: {e}")

        deleted = result.rowcount or 0
        if deleted:
            logger.info("Purged %d old %s", deleted, label)
        return deleted
