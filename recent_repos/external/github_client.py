"""GitHub REST API 非同期クライアント。

httpx.AsyncClient を使用し、固定ページサイズによる自動ページネーション、
入力検証、レスポンスの型付きデコードを提供する。
トークン未設定時は ``create_github_client`` がサンプルデータ版を返す。
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from recent_repos.config import Settings
from recent_repos.core.exceptions import ExternalAPIError, GitHubRateLimitError
from recent_repos.external.sample_data import SampleGitHubClient
from recent_repos.external.validation import validate_full_name, validate_username
from recent_repos.schemas.github import (
    GitHubCommit,
    GitHubEvent,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubRepo,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

PAGE_SIZE = 100
# /users/{username}/events はこの件数を超えるページを 422 で拒否する
EVENTS_LIMIT = 300


class GitHubClient:
    """GitHub REST API v3 非同期クライアント。

    呼び出し間で状態を持たない（保持するのは認証トークンのみ）。

    Attributes:
        BASE_URL: GitHub API のベースURL。
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """GitHubClientを初期化する。

        Args:
            token: GitHub Personal Access Token。
            timeout: 1リクエストあたりのタイムアウト秒数。
            transport: テスト用に差し替えるhttpxトランスポート。
        """
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API Methods
    # ------------------------------------------------------------------

    async def get_user_repos(self, username: str) -> list[GitHubRepo]:
        """ユーザーが所有・参加するリポジトリ一覧を取得する。

        Args:
            username: GitHubユーザー名。

        Returns:
            リポジトリのリスト（push日時の新しい順）。

        Raises:
            InvalidRequestError: ユーザー名が不正な場合。
            ExternalAPIError: API呼び出しに失敗した場合。
        """
        validate_username(username)
        return await self._paginate(
            f"/users/{username}/repos",
            GitHubRepo,
            params={"type": "all", "sort": "pushed"},
        )

    async def get_commits(
        self,
        full_name: str,
        author: str,
        since: datetime | None = None,
    ) -> list[GitHubCommit]:
        """リポジトリのコミットのうち、指定ユーザーが著者のものを取得する。

        空リポジトリ（HTTP 409）はエラーではなく0件として扱う。

        Args:
            full_name: "owner/repo" 形式のリポジトリ名。
            author: 著者のGitHubログイン名。
            since: この日時以降のコミットを取得。

        Returns:
            コミットのリスト。
        """
        validate_full_name(full_name)
        validate_username(author)
        params: dict[str, str] = {"author": author}
        if since is not None:
            params["since"] = since.isoformat()

        try:
            return await self._paginate(
                f"/repos/{full_name}/commits",
                GitHubCommit,
                params=params,
            )
        except ExternalAPIError as e:
            if e.upstream_status == 409:
                logger.info("Repository %s is empty, no commits to fetch", full_name)
                return []
            raise

    async def get_pull_requests(
        self,
        full_name: str,
        limit: int = 10,
    ) -> list[GitHubPullRequest]:
        """リポジトリの最近更新されたPRを取得する。

        Args:
            full_name: "owner/repo" 形式のリポジトリ名。
            limit: 取得する最大件数。

        Returns:
            PRのリスト（更新日時の新しい順）。
        """
        validate_full_name(full_name)
        return await self._paginate(
            f"/repos/{full_name}/pulls",
            GitHubPullRequest,
            params={"state": "all", "sort": "updated", "direction": "desc"},
            max_items=limit,
        )

    async def get_issue_comments(
        self,
        full_name: str,
        number: int,
    ) -> list[GitHubIssueComment]:
        """PRの会話コメント（issue comments）を取得する。

        Args:
            full_name: "owner/repo" 形式のリポジトリ名。
            number: PR番号。

        Returns:
            コメントのリスト。
        """
        validate_full_name(full_name)
        return await self._paginate(
            f"/repos/{full_name}/issues/{number}/comments",
            GitHubIssueComment,
        )

    async def get_user_events(self, username: str) -> list[GitHubEvent]:
        """ユーザーの最近のアカウントイベントを取得する。

        Args:
            username: GitHubユーザー名。

        Returns:
            イベントのリスト（新しい順、最大 ``EVENTS_LIMIT`` 件）。
        """
        validate_username(username)
        return await self._paginate(
            f"/users/{username}/events",
            GitHubEvent,
            max_items=EVENTS_LIMIT,
        )

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """共通HTTPリクエストメソッド。

        Args:
            method: HTTPメソッド。
            url: リクエストURL（相対パス）。
            **kwargs: httpx.AsyncClient.request に渡す追加引数。

        Returns:
            2xxのHTTPレスポンス。

        Raises:
            GitHubRateLimitError: レート制限超過時。
            ExternalAPIError: 通信エラー、または2xx以外のステータス時。
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("GitHub API request failed: %s %s - %s", method, url, str(e))
            raise ExternalAPIError(detail=f"GitHub API request failed: {e}")

        if response.status_code == 403:
            remaining = response.headers.get("X-RateLimit-Remaining")
            if remaining is not None and remaining.isdigit() and int(remaining) == 0:
                reset_at = response.headers.get("X-RateLimit-Reset", "unknown")
                raise GitHubRateLimitError(
                    detail=f"GitHub API rate limit exceeded. Resets at: {reset_at}"
                )

        if not response.is_success:
            raise ExternalAPIError(
                detail=(
                    f"GitHub API returned status {response.status_code} "
                    f"for {url}: {response.text[:200]}"
                ),
                upstream_status=response.status_code,
            )

        return response

    async def _paginate(
        self,
        url: str,
        model: type[ModelT],
        params: dict[str, str] | None = None,
        max_items: int | None = None,
    ) -> list[ModelT]:
        """固定ページサイズによる自動ページネーション。

        返却件数がページサイズ未満になった時点を終端とみなす
        （Linkヘッダーや総件数ヘッダーには依存しない）。

        Args:
            url: リクエストURL。
            model: 各要素のデコード先モデル。
            params: 追加のクエリパラメータ。
            max_items: 取得件数の上限。Noneなら全件。

        Returns:
            全ページ分をデコードしたリスト。
        """
        per_page = PAGE_SIZE if max_items is None else max(1, min(max_items, PAGE_SIZE))
        items: list[ModelT] = []
        received = 0
        page = 1

        while True:
            query = {**(params or {}), "per_page": str(per_page), "page": str(page)}
            response = await self._request("GET", url, params=query)

            try:
                data = response.json()
            except ValueError as e:
                raise ExternalAPIError(
                    detail=f"GitHub API returned invalid JSON for {url}: {e}",
                    upstream_status=response.status_code,
                )

            if not isinstance(data, list):
                # 一部APIはオブジェクト形式で返す
                logger.warning(
                    "Unexpected non-list response during pagination of %s: %s",
                    url,
                    type(data).__name__,
                )
                break

            items.extend(self._decode_items(data, model, url))
            received += len(data)

            # 上限はデコード前の件数で判定する
            if max_items is not None and received >= max_items:
                return items[:max_items]
            if len(data) < per_page:
                break
            page += 1

        return items

    @staticmethod
    def _decode_items(
        data: list[Any],
        model: type[ModelT],
        url: str,
    ) -> list[ModelT]:
        """1ページ分のJSON配列をモデルにデコードする。

        デコードできない要素は警告を出してスキップする。
        """
        decoded: list[ModelT] = []
        for index, raw in enumerate(data):
            try:
                decoded.append(model.model_validate(raw))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed %s item #%d from %s (%d validation errors)",
                    model.__name__,
                    index,
                    url,
                    e.error_count(),
                )
        return decoded

    async def close(self) -> None:
        """HTTPクライアントセッションを閉じる。"""
        await self._client.aclose()
        logger.debug("GitHubClient session closed")

    async def __aenter__(self) -> GitHubClient:
        """async with 構文のサポート。"""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """async with 構文のサポート。"""
        await self.close()


GitHubSource = GitHubClient | SampleGitHubClient


def create_github_client(settings: Settings) -> GitHubSource:
    """設定に応じてGitHubクライアントを生成する。

    トークン未設定時はネットワークにアクセスしないサンプルクライアントを返す。

    Args:
        settings: アプリケーション設定。

    Returns:
        GitHubClient または SampleGitHubClient。
    """
    if settings.sample_mode:
        logger.info("GITHUB_TOKEN is not set, using sample data")
        return SampleGitHubClient()
    return GitHubClient(
        token=settings.GITHUB_TOKEN or "",
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
