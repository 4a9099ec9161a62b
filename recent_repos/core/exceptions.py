"""カスタム例外クラスおよびFastAPI例外ハンドラ登録。

アプリケーション全体で使用するドメイン固有の例外階層と、
FastAPIアプリケーションへのハンドラ登録関数を提供する。
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 基底例外
# ---------------------------------------------------------------------------

class AppException(Exception):
    """アプリケーション基底例外。

    Attributes:
        status_code: HTTPステータスコード。
        detail: エラー詳細メッセージ。
    """

    def __init__(
        self,
        status_code: int = 500,
        detail: str = "Internal server error",
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


# ---------------------------------------------------------------------------
# 入力
# ---------------------------------------------------------------------------

class InvalidRequestError(AppException):
    """入力値エラー (400 Bad Request)。"""

    def __init__(self, detail: str = "Invalid request") -> None:
        super().__init__(status_code=400, detail=detail)


# ---------------------------------------------------------------------------
# 外部API
# ---------------------------------------------------------------------------

class ExternalAPIError(AppException):
    """外部APIエラー (502 Bad Gateway)。

    Attributes:
        upstream_status: GitHubが返したHTTPステータス。通信エラー時はNone。
    """

    def __init__(
        self,
        detail: str = "External API error",
        upstream_status: int | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(status_code=502, detail=detail)


class GitHubRateLimitError(ExternalAPIError):
    """GitHub APIレート制限エラー。"""

    def __init__(self, detail: str = "GitHub API rate limit exceeded") -> None:
        super().__init__(detail=detail, upstream_status=403)


# ---------------------------------------------------------------------------
# ストレージ
# ---------------------------------------------------------------------------

class StorageError(AppException):
    """ローカルDBへの書き込み失敗 (500 Internal Server Error)。"""

    def __init__(self, detail: str = "Failed to write to the activity store") -> None:
        super().__init__(status_code=500, detail=detail)


# ---------------------------------------------------------------------------
# FastAPI例外ハンドラ登録
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """FastAPIアプリケーションにカスタム例外ハンドラを登録する。

    Args:
        app: FastAPIアプリケーションインスタンス。
    """

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request,
        exc: AppException,
    ) -> JSONResponse:
        """AppException系例外をJSON形式でレスポンスする。"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """未処理例外をキャッチし500レスポンスを返す。"""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
