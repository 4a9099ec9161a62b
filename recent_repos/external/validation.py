"""GitHubリクエストパラメータの入力検証。"""

from __future__ import annotations

import re

from recent_repos.core.exceptions import InvalidRequestError

# GitHubログイン名: 英数字とハイフン、先頭はハイフン不可、最大39文字
_USERNAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$")
# "owner/repo" 形式
_FULL_NAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})/[A-Za-z0-9._-]{1,100}$")


def validate_username(username: str) -> str:
    """GitHubユーザー名を検証する。

    Raises:
        InvalidRequestError: 空、または不正な形式の場合。
    """
    if not username or not _USERNAME_RE.match(username):
        raise InvalidRequestError(detail=f"Invalid GitHub username: {username!r}")
    return username


def validate_full_name(full_name: str) -> str:
    """リポジトリ名（"owner/repo" 形式）を検証する。

    Raises:
        InvalidRequestError: 不正な形式の場合。
    """
    if not full_name or not _FULL_NAME_RE.match(full_name):
        raise InvalidRequestError(detail=f"Invalid repository name: {full_name!r}")
    return full_name
