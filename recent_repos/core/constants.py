"""アクティビティ種別および GitHub イベント種別の定数。"""

from typing import Literal, get_args

ActivityType = Literal[
    "commit",
    "pull_request",
    "issue",
    "review",
    "repository",
    "fork",
    "star",
    "activity",
]

ACTIVITY_TYPES: tuple[str, ...] = get_args(ActivityType)

# 未知のイベント種別はこの値にフォールバックする
FALLBACK_ACTIVITY_TYPE: ActivityType = "activity"

# GitHub Events API の type -> ActivityType
EVENT_TYPE_MAP: dict[str, ActivityType] = {
    "PushEvent": "commit",
    "PullRequestEvent": "pull_request",
    "IssuesEvent": "issue",
    "PullRequestReviewEvent": "review",
    "CreateEvent": "repository",
    "DeleteEvent": "repository",
    "ForkEvent": "fork",
    "WatchEvent": "star",
}

# プロジェクトビューで「コミット系」バケットにまとめる種別
COMMIT_LIKE_TYPES: frozenset[str] = frozenset(
    {"commit", "review", "repository", "fork", "star", "activity"}
)

GITHUB_WEB_URL = "https://github.com"
