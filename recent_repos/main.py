"""FastAPIアプリケーションのエントリポイント。

アプリケーションのライフサイクル管理、ミドルウェア設定、
ルーティング、例外ハンドラ登録を行う。
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recent_repos.api.v1.router import router as api_v1_router
from recent_repos.config import settings
from recent_repos.core.exceptions import register_exception_handlers
from recent_repos.database import engine, init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """アプリケーションのライフサイクルを管理する。

    起動時に不足しているテーブルを作成し、シャットダウン時に
    DBエンジンを破棄する。

    Args:
        app: FastAPIアプリケーションインスタンス。
    """
    # --- 起動処理 ---
    logger.info("Application startup")
    await init_db()
    if settings.sample_mode:
        logger.info("GITHUB_TOKEN is not configured, running in sample mode")
    else:
        logger.info("GitHub mode for user %s", settings.GITHUB_USERNAME)

    yield

    # --- シャットダウン処理 ---
    logger.info("Application shutdown")
    await engine.dispose()


app = FastAPI(
    title="Recent Repos API",
    description="GitHub活動データを取得・キャッシュし、タイムライン表示用に提供するAPI",
    version="1.0.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# ミドルウェア
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# 例外ハンドラ
# ---------------------------------------------------------------------------
register_exception_handlers(app)

# ---------------------------------------------------------------------------
# ルーティング
# ---------------------------------------------------------------------------
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """ヘルスチェックエンドポイント。"""
    return {"status": "ok"}
