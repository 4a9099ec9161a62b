"""アクティビティ参照エンドポイント。

タイムライン、コミットグループ、プロジェクト（ブログ）ビューのAPIを提供する。
いずれもローカルストアのみを参照し、GitHubにはアクセスしない。
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from recent_repos.api.deps import get_session, get_settings
from recent_repos.config import Settings
from recent_repos.schemas.activity import (
    ActivityResponse,
    CommitGroupsResponse,
    ProjectBuckets,
    ProjectEntry,
)
from recent_repos.services.view_service import MAX_PAGE_SIZE, ViewService

router = APIRouter()


def _view_service(session: AsyncSession, app_settings: Settings) -> ViewService:
    return ViewService(session, window_months=app_settings.ACTIVITY_WINDOW_MONTHS)


@router.get(
    "",
    response_model=list[ActivityResponse],
    summary="最近のアクティビティ",
)
async def list_recent_activity(
    session: AsyncSession = Depends(get_session),
    app_settings: Settings = Depends(get_settings),
) -> list[ActivityResponse]:
    """最新100件のアクティビティを日付の新しい順に返す。

    Args:
        session: データベースセッション。
        app_settings: アプリケーション設定。

    Returns:
        アクティビティのリスト。0件の場合は空リスト。
    """
    return await _view_service(session, app_settings).get_recent_activity()


@router.get(
    "/commits",
    response_model=CommitGroupsResponse,
    summary="リポジトリ別コミットグループ",
)
async def list_commit_groups(
    page: int = Query(default=1, ge=1, description="ページ番号"),
    limit: int = Query(
        default=MAX_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="1ページあたりのグループ数",
    ),
    session: AsyncSession = Depends(get_session),
    app_settings: Settings = Depends(get_settings),
) -> CommitGroupsResponse:
    """直近6ヶ月のコミットをリポジトリ単位でグループ化して返す。

    ページングはグループ単位。範囲外のページは空のグループリストを返す。

    Args:
        page: ページ番号。
        limit: 1ページあたりのグループ数。
        session: データベースセッション。
        app_settings: アプリケーション設定。

    Returns:
        コミットグループとページネーション情報。
    """
    return await _view_service(session, app_settings).get_commit_groups(
        page=page,
        limit=limit,
    )


@router.get(
    "/projects",
    response_model=list[ProjectEntry],
    summary="プロジェクト（ブログ）ビュー",
)
async def list_projects(
    session: AsyncSession = Depends(get_session),
    app_settings: Settings = Depends(get_settings),
) -> list[ProjectEntry]:
    """直近6ヶ月のリポジトリ別概要を、最近のPRコメント付きで返す。"""
    return await _view_service(session, app_settings).get_projects()


@router.get(
    "/projects/buckets",
    response_model=list[ProjectBuckets],
    summary="プロジェクト（種別バケット）",
)
async def list_project_buckets(
    session: AsyncSession = Depends(get_session),
    app_settings: Settings = Depends(get_settings),
) -> list[ProjectBuckets]:
    """直近6ヶ月のリポジトリ別アクティビティを、PR・Issue・コミット系に分けて返す。"""
    return await _view_service(session, app_settings).get_project_buckets()
