"""リフレッシュ・ステータスエンドポイント。

GitHubからの取得トリガーと、サーバー状態確認のAPIを提供する。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recent_repos.api.deps import get_github_client, get_session, get_settings
from recent_repos.config import Settings
from recent_repos.database import check_connection
from recent_repos.external.github_client import GitHubSource
from recent_repos.schemas.refresh import RefreshResponse, StatusResponse
from recent_repos.services.refresh_service import RefreshService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="アクティビティのリフレッシュ",
)
async def refresh_activity(
    session: AsyncSession = Depends(get_session),
    client: GitHubSource = Depends(get_github_client),
    app_settings: Settings = Depends(get_settings),
) -> RefreshResponse:
    """GitHubからアクティビティを取得してローカルストアに保存する。

    リクエスト内で同期的に実行する。失敗時は例外ハンドラが
    ``{"detail": ...}`` 形式のエラーレスポンスを返す。

    Args:
        session: データベースセッション。
        client: GitHubクライアント。
        app_settings: アプリケーション設定。

    Returns:
        リフレッシュ結果。
    """
    service = RefreshService(session=session, client=client, settings=app_settings)
    result = await service.refresh(app_settings.GITHUB_USERNAME)

    message = f"Refreshed {result.repositories} repositories"
    if result.failed_repositories:
        message += f" ({len(result.failed_repositories)} skipped)"

    return RefreshResponse(
        message=message,
        repositories=result.repositories,
        activities_fetched=result.activities_fetched,
        activities_inserted=result.activities_inserted,
        comments_stored=result.comments_stored,
    )


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="サーバー状態",
)
async def get_status(
    session: AsyncSession = Depends(get_session),
    app_settings: Settings = Depends(get_settings),
) -> StatusResponse:
    """トークン設定状況、対象ユーザー、DB接続状態を返す。"""
    return StatusResponse(
        github_token_configured=not app_settings.sample_mode,
        github_username=app_settings.GITHUB_USERNAME,
        database_connected=await check_connection(session),
        sample_mode=app_settings.sample_mode,
    )
