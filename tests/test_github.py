"""
Tests for the GitHub collaborators: PR lookup, check runs and PR comments.

Responses are served by MockGitHubAPI, so gidgethub's own response decoding
and exception mapping are exercised.
"""

import logging

import httpx
import pytest
from gidgethub import BadRequest

from testerarmy.github import (
    create_check,
    fetch_changed_files,
    fetch_pr_context,
    find_existing_comment,
    post_or_update_comment,
    update_check,
    update_check_failure,
)
from testerarmy.report import COMMENT_MARKER
from testerarmy.testing import MockGitHubAPI, create_mock_result

PULLS_PATH = "/repos/acme/shop/commits/abc123/pulls?per_page=100"
COMMENTS_PATH = "/repos/acme/shop/issues/42/comments?per_page=100"

PULL = {
    "number": 42,
    "title": "Add express checkout",
    "body": "Adds a one-click checkout button",
    "head": {"ref": "feature"},
    "base": {"ref": "main"},
}

RATE_LIMIT_HEADERS = {
    "x-ratelimit-limit": "5000",
    "x-ratelimit-remaining": "0",
    "x-ratelimit-reset": "1700000000",
}


def files_path(page: int) -> str:
    return f"/repos/acme/shop/pulls/42/files?per_page=100&page={page}"


def file_page(start: int, count: int) -> list[dict]:
    return [{"filename": f"src/file{i}.ts"} for i in range(start, start + count)]


class TestFetchPRContext:
    """Tests for finding the PR of a deployed commit."""

    @pytest.mark.asyncio
    async def test_builds_context(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("GET", PULLS_PATH, [PULL, {**PULL, "number": 7}])
        mock_github.add_response(
            "GET", files_path(1), [{"filename": "src/checkout.tsx"}, {"filename": "README.md"}]
        )

        pr = await fetch_pr_context(mock_github, "acme", "shop", "abc123")

        assert pr is not None
        assert pr.number == 42
        assert pr.title == "Add express checkout"
        assert pr.description == "Adds a one-click checkout button"
        assert pr.changed_files == ["src/checkout.tsx", "README.md"]
        assert pr.branch == "feature"
        assert pr.base_branch == "main"

    @pytest.mark.asyncio
    async def test_null_body_becomes_empty_description(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("GET", PULLS_PATH, [{**PULL, "body": None}])
        mock_github.add_response("GET", files_path(1), [])

        pr = await fetch_pr_context(mock_github, "acme", "shop", "abc123")

        assert pr is not None
        assert pr.description == ""
        assert pr.changed_files == []

    @pytest.mark.asyncio
    async def test_no_pull_request(self, mock_github: MockGitHubAPI, caplog) -> None:
        mock_github.add_response("GET", PULLS_PATH, [])

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None
        assert "No PR found associated with commit abc123" in caplog.text

    @pytest.mark.asyncio
    async def test_not_found_is_logged_not_raised(self, mock_github: MockGitHubAPI, caplog) -> None:
        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None
        assert "not found or no access" in caplog.text

    @pytest.mark.asyncio
    async def test_rate_limit_is_logged_not_raised(self, mock_github: MockGitHubAPI, caplog) -> None:
        mock_github.add_response(
            "GET",
            PULLS_PATH,
            {"message": "API rate limit exceeded"},
            status=403,
            headers=RATE_LIMIT_HEADERS,
        )

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None
        assert "rate limit exceeded" in caplog.text
        assert "Consider using a PAT" in caplog.text

    @pytest.mark.asyncio
    async def test_secondary_rate_limit_message(self, mock_github: MockGitHubAPI, caplog) -> None:
        mock_github.add_response(
            "GET",
            PULLS_PATH,
            {"message": "You have exceeded a secondary rate limit"},
            status=403,
        )

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None
        assert "Consider using a PAT" in caplog.text

    @pytest.mark.asyncio
    async def test_other_errors_are_logged_not_raised(self, mock_github: MockGitHubAPI, caplog) -> None:
        mock_github.add_response("GET", PULLS_PATH, {"message": "Validation Failed"}, status=422)

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None
        assert "Failed to fetch PR context for abc123" in caplog.text

    @pytest.mark.asyncio
    async def test_file_listing_error_is_not_raised(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("GET", PULLS_PATH, [PULL])
        mock_github.add_response("GET", files_path(1), {"message": "Server Error"}, status=500)

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None

    @pytest.mark.asyncio
    async def test_network_error_is_logged_not_raised(self, mock_github: MockGitHubAPI, caplog) -> None:
        mock_github.add_error("GET", PULLS_PATH, httpx.ConnectError("connection reset"))

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None
        assert "Failed to fetch PR context for abc123: connection reset" in caplog.text

    @pytest.mark.asyncio
    async def test_file_listing_network_error_is_not_raised(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("GET", PULLS_PATH, [PULL])
        mock_github.add_error("GET", files_path(1), httpx.ReadTimeout("read timed out"))

        assert await fetch_pr_context(mock_github, "acme", "shop", "abc123") is None


class TestFetchChangedFiles:
    """Tests for paging through PR files."""

    @pytest.mark.asyncio
    async def test_pages_until_short_page(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("GET", files_path(1), file_page(0, 100))
        mock_github.add_response("GET", files_path(2), file_page(100, 100))
        mock_github.add_response("GET", files_path(3), file_page(200, 5))

        files = await fetch_changed_files(mock_github, "acme", "shop", 42)

        assert files == [f"src/file{i}.ts" for i in range(205)]
        assert len(mock_github.calls) == 3

    @pytest.mark.asyncio
    async def test_full_last_page_requests_an_empty_one(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("GET", files_path(1), file_page(0, 100))
        mock_github.add_response("GET", files_path(2), [])

        files = await fetch_changed_files(mock_github, "acme", "shop", 42)

        assert len(files) == 100
        assert len(mock_github.calls) == 2

    @pytest.mark.asyncio
    async def test_stops_at_page_limit(self, mock_github: MockGitHubAPI, caplog) -> None:
        for page in range(1, 32):
            mock_github.add_response("GET", files_path(page), file_page((page - 1) * 100, 100))

        files = await fetch_changed_files(mock_github, "acme", "shop", 42)

        assert len(files) == 3000
        assert len(mock_github.calls) == 30
        assert mock_github.requests_to("GET", files_path(31)) == []
        assert "more than 3000 files" in caplog.text

    @pytest.mark.asyncio
    async def test_errors_propagate(self, mock_github: MockGitHubAPI) -> None:
        with pytest.raises(BadRequest):
            await fetch_changed_files(mock_github, "acme", "shop", 42)


class TestChecks:
    """Tests for check run creation and completion."""

    @pytest.mark.asyncio
    async def test_create_check(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("POST", "/repos/acme/shop/check-runs", {"id": 99}, status=201)

        check_run_id = await create_check(mock_github, "acme", "shop", "abc123")

        assert check_run_id == 99
        [call] = mock_github.requests_to("POST", "/repos/acme/shop/check-runs")
        data = call.kwargs["data"]
        assert data["name"] == "Tester Army"
        assert data["head_sha"] == "abc123"
        assert data["status"] == "in_progress"
        assert data["started_at"].endswith("Z")
        assert data["output"]["title"] == "Running tests..."

    @pytest.mark.asyncio
    async def test_create_check_error_is_raised(self, mock_github: MockGitHubAPI, caplog) -> None:
        mock_github.add_response(
            "POST",
            "/repos/acme/shop/check-runs",
            {"message": "Resource not accessible by integration"},
            status=403,
        )

        with pytest.raises(BadRequest):
            await create_check(mock_github, "acme", "shop", "abc123")

        assert "Failed to create check" in caplog.text

    @pytest.mark.asyncio
    async def test_update_check_with_passing_result(self, mock_github: MockGitHubAPI, sample_result) -> None:
        mock_github.add_response("PATCH", "/repos/acme/shop/check-runs/99", {"id": 99})

        await update_check(mock_github, "acme", "shop", 99, sample_result)

        [call] = mock_github.requests_to("PATCH", "/repos/acme/shop/check-runs/99")
        data = call.kwargs["data"]
        assert data["status"] == "completed"
        assert data["conclusion"] == "success"
        assert data["completed_at"].endswith("Z")
        assert data["output"]["title"] == "Tester Army: PASS"
        assert "## Screenshots" in data["output"]["text"]

    @pytest.mark.asyncio
    async def test_update_check_with_failing_result(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("PATCH", "/repos/acme/shop/check-runs/99", {"id": 99})

        await update_check(mock_github, "acme", "shop", 99, create_mock_result(result="FAILED"))

        [call] = mock_github.requests_to("PATCH", "/repos/acme/shop/check-runs/99")
        assert call.kwargs["data"]["conclusion"] == "failure"

    @pytest.mark.asyncio
    async def test_update_check_failure(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response("PATCH", "/repos/acme/shop/check-runs/99", {"id": 99})

        await update_check_failure(mock_github, "acme", "shop", 99, "Invalid API key")

        [call] = mock_github.requests_to("PATCH", "/repos/acme/shop/check-runs/99")
        data = call.kwargs["data"]
        assert data["conclusion"] == "failure"
        assert data["output"] == {"title": "Tester Army: Error", "summary": "Invalid API key"}

    @pytest.mark.asyncio
    async def test_update_check_error_is_raised(self, mock_github: MockGitHubAPI, caplog) -> None:
        with pytest.raises(BadRequest):
            await update_check_failure(mock_github, "acme", "shop", 99, "boom")

        assert "Failed to update check" in caplog.text


class TestComments:
    """Tests for the sticky PR comment."""

    @pytest.mark.asyncio
    async def test_finds_marked_comment(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_response(
            "GET",
            COMMENTS_PATH,
            [
                {"id": 1, "body": "Looks good"},
                {"id": 2, "body": None},
                {"id": 3, "body": f"{COMMENT_MARKER}\n## old results"},
            ],
        )

        assert await find_existing_comment(mock_github, "acme", "shop", 42) == 3

    @pytest.mark.asyncio
    async def test_lookup_error_means_no_comment(self, mock_github: MockGitHubAPI) -> None:
        assert await find_existing_comment(mock_github, "acme", "shop", 42) is None

    @pytest.mark.asyncio
    async def test_creates_comment(self, mock_github: MockGitHubAPI, sample_result) -> None:
        mock_github.add_response("GET", COMMENTS_PATH, [{"id": 1, "body": "Looks good"}])
        mock_github.add_response(
            "POST", "/repos/acme/shop/issues/42/comments", {"id": 5}, status=201
        )

        await post_or_update_comment(
            mock_github, "acme", "shop", 42, sample_result, "https://shop.vercel.app"
        )

        [call] = mock_github.requests_to("POST", "/repos/acme/shop/issues/42/comments")
        assert call.kwargs["data"]["body"].startswith(COMMENT_MARKER)
        assert "https://shop.vercel.app" in call.kwargs["data"]["body"]

    @pytest.mark.asyncio
    async def test_updates_existing_comment(self, mock_github: MockGitHubAPI, sample_result) -> None:
        mock_github.add_response("GET", COMMENTS_PATH, [{"id": 3, "body": COMMENT_MARKER}])
        mock_github.add_response("PATCH", "/repos/acme/shop/issues/comments/3", {"id": 3})

        await post_or_update_comment(
            mock_github, "acme", "shop", 42, sample_result, "https://shop.vercel.app"
        )

        assert len(mock_github.requests_to("PATCH", "/repos/acme/shop/issues/comments/3")) == 1
        assert mock_github.requests_to("POST", "/repos/acme/shop/issues/42/comments") == []

    @pytest.mark.asyncio
    async def test_post_error_is_raised(self, mock_github: MockGitHubAPI, sample_result, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="testerarmy")
        mock_github.add_response("GET", COMMENTS_PATH, [])

        with pytest.raises(BadRequest):
            await post_or_update_comment(
                mock_github, "acme", "shop", 42, sample_result, "https://shop.vercel.app"
            )

        assert "Failed to post comment on PR #42" in caplog.text

    @pytest.mark.asyncio
    async def test_post_network_error_is_raised(self, mock_github: MockGitHubAPI, sample_result, caplog) -> None:
        mock_github.add_response("GET", COMMENTS_PATH, [])
        mock_github.add_error(
            "POST", "/repos/acme/shop/issues/42/comments", httpx.ConnectError("connection reset")
        )

        with pytest.raises(httpx.ConnectError):
            await post_or_update_comment(
                mock_github, "acme", "shop", 42, sample_result, "https://shop.vercel.app"
            )

        assert "Failed to post comment on PR #42: connection reset" in caplog.text

    @pytest.mark.asyncio
    async def test_lookup_network_error_means_no_comment(self, mock_github: MockGitHubAPI) -> None:
        mock_github.add_error("GET", COMMENTS_PATH, httpx.ConnectError("connection reset"))

        assert await find_existing_comment(mock_github, "acme", "shop", 42) is None
