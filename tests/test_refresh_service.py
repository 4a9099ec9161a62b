"""Tests for the refresh pipeline.

Uses the sample client for end-to-end runs and ``httpx.MockTransport``
for upstream failure modes.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recent_repos.config import Settings
from recent_repos.core.constants import ACTIVITY_TYPES
from recent_repos.core.exceptions import (
    ExternalAPIError,
    GitHubRateLimitError,
    InvalidRequestError,
    StorageError,
)
from recent_repos.external.github_client import EVENTS_LIMIT, PAGE_SIZE, GitHubClient
from recent_repos.external.sample_data import SampleGitHubClient
from recent_repos.models import ActivityRecord, PRComment
from recent_repos.schemas.activity import ActivityCreate
from recent_repos.services.activity_store import ActivityStore
from recent_repos.services.refresh_service import RefreshService
from tests.factories import commit_json, event_json, repo_json

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)

Routes = dict[str, httpx.Response]


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {"GITHUB_TOKEN": None, "GITHUB_USERNAME": "octo"}
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def _routed_client(routes: Routes) -> GitHubClient:
    """A GitHubClient whose requests are answered by path.

    Paths missing from ``routes`` answer with an empty list.  Each request
    gets a fresh copy of the canned response.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(200, json=[])
        return httpx.Response(
            route.status_code,
            content=route.content,
            headers=route.headers,
        )

    return GitHubClient(token="secret", transport=httpx.MockTransport(handler))


def _three_repos() -> httpx.Response:
    return httpx.Response(
        200,
        json=[
            repo_json("octo/a", 1),
            repo_json("octo/empty", 2),
            repo_json("octo/c", 3),
        ],
    )


async def _all_rows(session: AsyncSession) -> list[ActivityRecord]:
    result = await session.execute(select(ActivityRecord))
    return list(result.scalars().all())


class TestSampleRefresh:
    """End-to-end refresh in sample mode."""

    @pytest.mark.asyncio
    async def test_first_refresh(self, session: AsyncSession) -> None:
        service = RefreshService(
            session,
            SampleGitHubClient(today=TODAY),
            _settings(GITHUB_USERNAME="kristofer"),
        )

        result = await service.refresh(now=NOW)

        assert result.repositories == 5
        # 6 commits + 1 PR + 2 issues + 1 review; the push event is dropped
        assert result.activities_inserted == 10
        assert result.comments_stored == 4
        assert result.failed_repositories == []

        rows = await _all_rows(session)
        assert len(rows) == 10
        assert all(r.count >= 1 and r.activity_type in ACTIVITY_TYPES for r in rows)
        assert {r.github_id for r in rows if r.activity_type != "commit"} == {
            "pr-42",
            "issue-15",
            "issue-16",
            "review-1",
        }

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(self, session: AsyncSession) -> None:
        service = RefreshService(
            session,
            SampleGitHubClient(today=TODAY),
            _settings(GITHUB_USERNAME="kristofer"),
        )

        await service.refresh(now=NOW)
        second = await service.refresh(now=NOW)

        assert second.activities_fetched == 10
        assert second.activities_inserted == 0
        assert len(await _all_rows(session)) == 10

        comments = (await session.execute(select(PRComment))).scalars().all()
        assert len(comments) == 4

    @pytest.mark.asyncio
    async def test_invalid_username(self, session: AsyncSession) -> None:
        service = RefreshService(session, SampleGitHubClient(today=TODAY), _settings())

        with pytest.raises(InvalidRequestError):
            await service.refresh("not a user", now=NOW)


class TestRefreshAgainstGitHub:
    """Refresh through the real client with stubbed responses."""

    @pytest.mark.asyncio
    async def test_empty_repository_is_not_a_failure(self, session: AsyncSession) -> None:
        client = _routed_client(
            {
                "/users/octo/repos": _three_repos(),
                "/repos/octo/a/commits": httpx.Response(
                    200,
                    json=[
                        commit_json("octo/a", "a1", "2026-10-10T10:00:00Z"),
                        commit_json("octo/a", "a2", "2026-10-11T10:00:00Z"),
                    ],
                ),
                "/repos/octo/empty/commits": httpx.Response(
                    409, json={"message": "Git Repository is empty."}
                ),
                "/repos/octo/c/commits": httpx.Response(
                    200, json=[commit_json("octo/c", "c1", "2026-10-12T10:00:00Z")]
                ),
            }
        )

        async with client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.failed_repositories == []
        assert result.activities_inserted == 3
        rows = await _all_rows(session)
        assert {r.repository for r in rows} == {"octo/a", "octo/c"}

    @pytest.mark.asyncio
    async def test_failed_repository_is_skipped(self, session: AsyncSession) -> None:
        client = _routed_client(
            {
                "/users/octo/repos": _three_repos(),
                "/repos/octo/a/commits": httpx.Response(500, text="boom"),
                "/repos/octo/c/commits": httpx.Response(
                    200, json=[commit_json("octo/c", "c1", "2026-10-12T10:00:00Z")]
                ),
            }
        )

        async with client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.failed_repositories == ["octo/a"]
        assert [r.github_id for r in await _all_rows(session)] == ["c1"]

    @pytest.mark.asyncio
    async def test_repository_list_failure_aborts(self, session: AsyncSession) -> None:
        client = _routed_client({"/users/octo/repos": httpx.Response(500, text="down")})

        async with client:
            with pytest.raises(ExternalAPIError) as exc_info:
                await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert exc_info.value.detail.startswith("Failed to fetch user repos")
        assert await _all_rows(session) == []

    @pytest.mark.asyncio
    async def test_events_and_comments_are_best_effort(self, session: AsyncSession) -> None:
        client = _routed_client(
            {
                "/users/octo/repos": httpx.Response(200, json=[repo_json("octo/a")]),
                "/repos/octo/a/commits": httpx.Response(
                    200, json=[commit_json("octo/a", "a1", "2026-10-10T10:00:00Z")]
                ),
                "/users/octo/events": httpx.Response(502, text="bad gateway"),
                "/repos/octo/a/pulls": httpx.Response(500, text="boom"),
            }
        )

        async with client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.activities_inserted == 1
        assert result.comments_stored == 0

    @pytest.mark.asyncio
    async def test_events_outside_window_are_ignored(self, session: AsyncSession) -> None:
        client = _routed_client(
            {
                "/users/octo/repos": httpx.Response(200, json=[]),
                "/users/octo/events": httpx.Response(
                    200,
                    json=[
                        event_json("1", "WatchEvent", "octo/a", "2026-10-01T10:00:00Z"),
                        event_json("2", "ForkEvent", "octo/a", "2026-01-01T10:00:00Z"),
                        event_json("3", "PushEvent", "octo/a", "2026-10-01T10:00:00Z"),
                    ],
                ),
            }
        )

        async with client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.activities_inserted == 1
        [row] = await _all_rows(session)
        assert row.activity_type == "star"

    @pytest.mark.asyncio
    async def test_same_commit_in_two_refreshes(self, session: AsyncSession) -> None:
        commits = httpx.Response(
            200, json=[commit_json("octo/a", "a1", "2026-10-10T10:00:00Z")]
        )
        routes: Routes = {
            "/users/octo/repos": httpx.Response(200, json=[repo_json("octo/a")]),
            "/repos/octo/a/commits": commits,
        }

        for _ in range(2):
            async with _routed_client(routes) as client:
                await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert [r.github_id for r in await _all_rows(session)] == ["a1"]

    @pytest.mark.asyncio
    async def test_pr_comments_collected(self, session: AsyncSession) -> None:
        pulls = [
            {
                "number": n,
                "title": f"PR {n}",
                "user": {"login": "octo"},
                "html_url": f"https://github.com/octo/a/pull/{n}",
                "created_at": "2026-09-01T10:00:00Z",
                "updated_at": updated,
            }
            for n, updated in [(7, "2026-10-15T10:00:00Z"), (3, "2025-01-01T10:00:00Z")]
        ]
        client = _routed_client(
            {
                "/users/octo/repos": httpx.Response(200, json=[repo_json("octo/a")]),
                "/repos/octo/a/pulls": httpx.Response(200, json=pulls),
                "/repos/octo/a/issues/7/comments": httpx.Response(
                    200,
                    json=[
                        {
                            "id": 70,
                            "user": None,
                            "body": "Ship it",
                            "created_at": "2026-10-15T11:00:00Z",
                            "html_url": "https://github.com/octo/a/pull/7#issuecomment-70",
                        },
                        {
                            "id": 71,
                            "user": {"login": "someone"},
                            "body": "Ancient",
                            "created_at": "2025-01-01T11:00:00Z",
                            "html_url": "https://github.com/octo/a/pull/7#issuecomment-71",
                        },
                    ],
                ),
                "/repos/octo/a/issues/3/comments": httpx.Response(500, text="not called"),
            }
        )

        async with client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.comments_stored == 1
        [comment] = (await session.execute(select(PRComment))).scalars().all()
        assert comment.author == "ghost"
        assert comment.pr_number == 7
        assert comment.pr_title == "PR 7"


class TestStorageFailure:
    @pytest.mark.asyncio
    async def test_storage_error_propagates(self, session: AsyncSession) -> None:
        service = RefreshService(
            session,
            SampleGitHubClient(today=TODAY),
            _settings(GITHUB_USERNAME="kristofer"),
        )

        with patch.object(
            ActivityStore,
            "insert_activities",
            AsyncMock(side_effect=StorageError("disk full")),
        ):
            with pytest.raises(StorageError):
                await service.refresh(now=NOW)


class TestRetention:
    @pytest.mark.asyncio
    async def test_activity_retention_purges_old_rows(self, session: AsyncSession) -> None:
        client = _routed_client(
            {
                "/users/octo/repos": httpx.Response(200, json=[repo_json("octo/a")]),
                "/repos/octo/a/commits": httpx.Response(
                    200, json=[commit_json("octo/a", "a1", "2026-10-10T10:00:00Z")]
                ),
            }
        )
        store = ActivityStore(session)
        await store.insert_activities(
            [
                ActivityCreate(
                    date=date(2025, 1, 1),
                    repository="octo/a",
                    activity_type="commit",
                    github_id="ancient",
                )
            ]
        )

        async with client:
            await RefreshService(
                session, client, _settings(ACTIVITY_RETENTION_DAYS=365)
            ).refresh(now=NOW)

        assert [r.github_id for r in await _all_rows(session)] == ["a1"]


class TestUpstreamLimits:
    """Timeouts, rate limits and the events feed cap during a refresh."""

    @pytest.mark.asyncio
    async def test_timeout_fails_only_that_repository(self, session: AsyncSession) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path == "/users/octo/repos":
                return _three_repos()
            if path == "/repos/octo/a/commits":
                raise httpx.ReadTimeout("timed out", request=request)
            if path == "/repos/octo/c/commits":
                return httpx.Response(
                    200, json=[commit_json("octo/c", "c1", "2026-10-12T10:00:00Z")]
                )
            return httpx.Response(200, json=[])

        async with GitHubClient(token="secret", transport=httpx.MockTransport(handler)) as client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.failed_repositories == ["octo/a"]
        assert [r.github_id for r in await _all_rows(session)] == ["c1"]

    @pytest.mark.asyncio
    async def test_rate_limit_on_repository_list_keeps_type(
        self,
        session: AsyncSession,
    ) -> None:
        client = _routed_client(
            {
                "/users/octo/repos": httpx.Response(
                    403,
                    json={"message": "API rate limit exceeded"},
                    headers={"X-RateLimit-Remaining": "0"},
                ),
            }
        )

        async with client:
            with pytest.raises(GitHubRateLimitError):
                await RefreshService(session, client, _settings()).refresh(now=NOW)

    @pytest.mark.asyncio
    async def test_full_event_feed_is_stored(self, session: AsyncSession) -> None:
        """Three full pages of events are kept even though page four is refused."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path != "/users/octo/events":
                return httpx.Response(200, json=[])
            page = int(request.url.params["page"])
            if page > 3:
                return httpx.Response(422, json={"message": "pagination is limited"})
            return httpx.Response(
                200,
                json=[
                    event_json(f"{page}-{i}", "WatchEvent", "octo/app", "2026-10-01T10:00:00Z")
                    for i in range(PAGE_SIZE)
                ],
            )

        async with GitHubClient(token="secret", transport=httpx.MockTransport(handler)) as client:
            result = await RefreshService(session, client, _settings()).refresh(now=NOW)

        assert result.activities_inserted == EVENTS_LIMIT
        rows = await _all_rows(session)
        assert len(rows) == EVENTS_LIMIT
        assert {r.activity_type for r in rows} == {"star"}
