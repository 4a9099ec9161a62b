"""トークン未設定時に使うサンプルGitHubクライアント。

ネットワークにはアクセスせず、基準日から遡る1週間分の
決定的なデータセットを GitHubClient と同じインターフェースで返す。
初回起動時のデモとオフラインテストに使用する。
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from recent_repos.external.validation import validate_full_name, validate_username
from recent_repos.schemas.github import (
    GitHubCommit,
    GitHubEvent,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubRepo,
)

SAMPLE_OWNER = "kristofer"

# (リポジトリ名, 最終push日の何日前か)
_REPOS: list[tuple[str, int]] = [
    ("RecentRepos", 1),
    ("example-project", 2),
    ("another-repo", 3),
    ("web-app", 5),
    ("mobile-app", 6),
]

# (リポジトリ名, SHA, 何日前か, メッセージ)
_COMMITS: list[tuple[str, str, int, str]] = [
    ("RecentRepos", "abc123", 1, "Add timeline grouping"),
    ("RecentRepos", "def456", 1, "Paginate commit groups"),
    ("RecentRepos", "ghi789", 1, "Fix date parsing in activity view"),
    ("another-repo", "jkl012", 3, "Refactor config loader"),
    ("another-repo", "mno345", 3, "Add CLI flags"),
    ("mobile-app", "pqr678", 6, "Initial screen layout"),
]

# (リポジトリ名, PR番号, タイトル, 作成日の何日前か)
_PULL_REQUESTS: list[tuple[str, int, str, int]] = [
    ("RecentRepos", 1, "Add initial timeline feature", 4),
    ("RecentRepos", 2, "Improve database schema", 3),
    ("example-project", 42, "Add dark mode", 2),
    ("example-project", 15, "Fix authentication bug", 6),
    ("another-repo", 8, "Update dependencies", 6),
]

# (リポジトリ名, PR番号, コメントID, 投稿者, 本文, 何日前か)
_COMMENTS: list[tuple[str, int, int, str, str, int]] = [
    (
        "RecentRepos", 1, 1, "kristofer",
        "This looks great! The timeline view is very clean and easy to read.", 1,
    ),
    (
        "RecentRepos", 2, 2, "copilot",
        "Good optimization! The indexes will help with query performance.", 2,
    ),
    (
        "example-project", 15, 15, "kristofer",
        "LGTM! This fixes the issue we were seeing in production.", 3,
    ),
    (
        "another-repo", 8, 8, "dependabot",
        "Bumps version from 1.2.3 to 1.2.4. See release notes for details.", 5,
    ),
]


class SampleGitHubClient:
    """GitHubClient と同じ操作を固定データで提供するクライアント。

    Attributes:
        today: データセットの基準日。
    """

    def __init__(self, today: date | None = None) -> None:
        """SampleGitHubClientを初期化する。

        Args:
            today: 基準日。Noneの場合はUTCの今日。
        """
        self.today = today or datetime.now(timezone.utc).date()

    # ------------------------------------------------------------------
    # Public API Methods
    # ------------------------------------------------------------------

    async def get_user_repos(self, username: str) -> list[GitHubRepo]:
        """サンプルリポジトリ一覧を返す。"""
        validate_username(username)
        return [
            GitHubRepo.model_validate(
                {
                    "id": index + 1,
                    "name": name,
                    "full_name": self._full_name(name),
                    "html_url": self._html_url(name),
                    "fork": False,
                    "pushed_at": self._at(days_ago),
                }
            )
            for index, (name, days_ago) in enumerate(_REPOS)
        ]

    async def get_commits(
        self,
        full_name: str,
        author: str,
        since: datetime | None = None,
    ) -> list[GitHubCommit]:
        """指定リポジトリのサンプルコミットを返す。"""
        validate_full_name(full_name)
        validate_username(author)
        commits: list[GitHubCommit] = []
        for name, sha, days_ago, message in _COMMITS:
            if self._full_name(name) != full_name:
                continue
            authored_at = self._at(days_ago)
            if since is not None and authored_at < since:
                continue
            commits.append(
                GitHubCommit.model_validate(
                    {
                        "sha": sha,
                        "html_url": f"{self._html_url(name)}/commit/{sha}",
                        "commit": {
                            "message": message,
                            "author": {
                                "name": SAMPLE_OWNER,
                                "email": f"{SAMPLE_OWNER}@users.noreply.github.com",
                                "date": authored_at,
                            },
                        },
                    }
                )
            )
        return commits

    async def get_pull_requests(
        self,
        full_name: str,
        limit: int = 10,
    ) -> list[GitHubPullRequest]:
        """指定リポジトリのサンプルPRを返す。"""
        validate_full_name(full_name)
        prs = [
            GitHubPullRequest.model_validate(
                {
                    "number": number,
                    "title": title,
                    "user": {"login": SAMPLE_OWNER},
                    "html_url": f"{self._html_url(name)}/pull/{number}",
                    "created_at": self._at(days_ago),
                    "updated_at": self._at(max(days_ago - 1, 0)),
                }
            )
            for name, number, title, days_ago in _PULL_REQUESTS
            if self._full_name(name) == full_name
        ]
        prs.sort(key=lambda pr: pr.updated_at, reverse=True)
        return prs[:limit]

    async def get_issue_comments(
        self,
        full_name: str,
        number: int,
    ) -> list[GitHubIssueComment]:
        """指定PRのサンプルコメントを返す。"""
        validate_full_name(full_name)
        return [
            GitHubIssueComment.model_validate(
                {
                    "id": comment_id,
                    "user": {"login": author},
                    "body": body,
                    "created_at": self._at(days_ago),
                    "html_url": (
                        f"{self._html_url(name)}/pull/{pr_number}"
                        f"#issuecomment-{comment_id}"
                    ),
                }
            )
            for name, pr_number, comment_id, author, body, days_ago in _COMMENTS
            if self._full_name(name) == full_name and pr_number == number
        ]

    async def get_user_events(self, username: str) -> list[GitHubEvent]:
        """サンプルのアカウントイベントを返す。

        PushEvent は個別コミットと重複するため Normalizer で破棄される。
        """
        validate_username(username)
        raw_events: list[dict[str, Any]] = [
            self._event(
                "push-1", "PushEvent", "RecentRepos", 1,
                {"size": 3, "ref": "refs/heads/main"},
            ),
            self._event(
                "pr-event-1", "PullRequestEvent", "example-project", 2,
                {
                    "action": "opened",
                    "number": 42,
                    "pull_request": {
                        "number": 42,
                        "html_url": f"{self._html_url('example-project')}/pull/42",
                    },
                },
            ),
            self._event(
                "issue-event-1", "IssuesEvent", "web-app", 5,
                {
                    "action": "opened",
                    "issue": {
                        "number": 15,
                        "html_url": f"{self._html_url('web-app')}/issues/15",
                    },
                },
            ),
            self._event(
                "issue-event-2", "IssuesEvent", "web-app", 5,
                {
                    "action": "opened",
                    "issue": {
                        "number": 16,
                        "html_url": f"{self._html_url('web-app')}/issues/16",
                    },
                },
            ),
            self._event(
                "review-1", "PullRequestReviewEvent", "RecentRepos", 6,
                {"action": "created"},
            ),
        ]
        return [GitHubEvent.model_validate(event) for event in raw_events]

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _at(self, days_ago: int) -> datetime:
        """基準日の ``days_ago`` 日前 12:00 UTC を返す。"""
        day = self.today - timedelta(days=days_ago)
        return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)

    @staticmethod
    def _full_name(name: str) -> str:
        return f"{SAMPLE_OWNER}/{name}"

    @staticmethod
    def _html_url(name: str) -> str:
        return f"https://github.com/{SAMPLE_OWNER}/{name}"

    def _event(
        self,
        event_id: str,
        event_type: str,
        repo_name: str,
        days_ago: int,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        full_name = self._full_name(repo_name)
        return {
            "id": event_id,
            "type": event_type,
            "repo": {
                "name": full_name,
                "url": f"https://api.github.com/repos/{full_name}",
            },
            "created_at": self._at(days_ago),
            "payload": payload,
        }

    async def close(self) -> None:
        """互換性のためのno-op。"""

    async def __aenter__(self) -> SampleGitHubClient:
        """async with 構文のサポート。"""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """async with 構文のサポート。"""
        await self.close()
