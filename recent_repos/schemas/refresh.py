"""リフレッシュ・ステータス関連のPydanticスキーマ。"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RefreshResponse(BaseModel):
    """リフレッシュ成功レスポンス。"""

    status: Literal["success"] = "success"
    message: str = Field(default="Activity refreshed", description="ステータスメッセージ")
    repositories: int = Field(default=0, description="走査したリポジトリ数")
    activities_fetched: int = 0
    activities_inserted: int = Field(default=0, description="新規に保存された件数")
    comments_stored: int = 0


class StatusResponse(BaseModel):
    """サーバー状態レスポンス。"""

    github_token_configured: bool
    github_username: str
    database_connected: bool
    sample_mode: bool
