"""GitHub check runs reporting the test status on the deployed commit."""

from datetime import datetime, timezone
from typing import Any

import httpx
from gidgethub import GitHubException
from gidgethub.abc import GitHubAPI

from testerarmy.logging import get_logger
from testerarmy.report import (
    format_check_details,
    format_check_summary,
    format_check_title,
)
from testerarmy.types.ci_test import CITestResult

logger = get_logger("github")

CHECK_NAME = "Tester Army"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


async def create_check(
    gh: GitHubAPI, owner: str, repo: str, sha: str, name: str = CHECK_NAME
) -> int:
    """
    Create a check run in the "in_progress" state.

    Returns:
        The check run id
    """
    logger.debug('Creating check "%s" for %s', name, sha)

    try:
        data = await gh.post(
            f"/repos/{owner}/{repo}/check-runs",
            data={
                "name": name,
                "head_sha": sha,
                "status": "in_progress",
                "started_at": _now(),
                "output": {
                    "title": "Running tests...",
                    "summary": "Tester Army is running automated tests on your preview deployment.",
                },
            },
        )
    except (GitHubException, httpx.HTTPError) as e:
        logger.warning("Failed to create check: %s", e)
        raise

    logger.info("Created check run #%d", data["id"])
    return data["id"]


async def _complete_check(
    gh: GitHubAPI,
    owner: str,
    repo: str,
    check_run_id: int,
    conclusion: str,
    output: dict[str, Any],
) -> None:
    try:
        await gh.patch(
            f"/repos/{owner}/{repo}/check-runs/{check_run_id}",
            data={
                "status": "completed",
                "conclusion": conclusion,
                "completed_at": _now(),
                "output": output,
            },
        )
    except (GitHubException, httpx.HTTPError) as e:
        logger.warning("Failed to update check: %s", e)
        raise

    logger.info("Updated check #%d: %s", check_run_id, conclusion)


async def update_check(
    gh: GitHubAPI, owner: str, repo: str, check_run_id: int, result: CITestResult
) -> None:
    """Complete a check run with the test result."""
    logger.debug("Updating check #%d with result: %s", check_run_id, result.result)

    await _complete_check(
        gh,
        owner,
        repo,
        check_run_id,
        "success" if result.passed else "failure",
        {
            "title": format_check_title(result),
            "summary": format_check_summary(result),
            "text": format_check_details(result),
        },
    )


async def update_check_failure(
    gh: GitHubAPI, owner: str, repo: str, check_run_id: int, message: str
) -> None:
    """Complete a check run as failed with an error message."""
    logger.debug("Updating check #%d with failure", check_run_id)

    await _complete_check(
        gh,
        owner,
        repo,
        check_run_id,
        "failure",
        {"title": "Tester Army: Error", "summary": message},
    )
