"""API v1 ルーター集約モジュール。

各ドメインのルーターを統合し、プレフィックスとタグを設定する。
"""

from __future__ import annotations

from fastapi import APIRouter

from recent_repos.api.v1.activity import router as activity_router
from recent_repos.api.v1.refresh import router as refresh_router

router = APIRouter()

router.include_router(
    activity_router,
    prefix="/activity",
    tags=["activity"],
)

router.include_router(
    refresh_router,
    tags=["refresh"],
)
