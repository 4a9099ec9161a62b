"""FastAPI依存性注入モジュール。

設定とGitHubクライアントの取得を提供する。
データベースセッションは ``recent_repos.database.get_session`` を再利用する。
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends

from recent_repos.config import Settings, settings
from recent_repos.database import get_session  # noqa: F401
from recent_repos.external.github_client import GitHubSource, create_github_client


def get_settings() -> Settings:
    """アプリケーション設定を返す。テストでは差し替え可能。"""
    return settings


async def get_github_client(
    app_settings: Settings = Depends(get_settings),
) -> AsyncGenerator[GitHubSource, None]:
    """リクエスト単位でGitHubクライアントを生成し、終了時に閉じる。

    Args:
        app_settings: アプリケーション設定。

    Yields:
        GitHubClient（トークン未設定時は SampleGitHubClient）。
    """
    client = create_github_client(app_settings)
    try:
        yield client
    finally:
        await client.close()
