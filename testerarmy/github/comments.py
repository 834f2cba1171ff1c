"""Sticky pull request comment with the latest test result."""

import httpx
from gidgethub import GitHubException
from gidgethub.abc import GitHubAPI

from testerarmy.logging import get_logger
from testerarmy.report import COMMENT_MARKER, format_comment
from testerarmy.types.ci_test import CITestResult

logger = get_logger("github")


async def find_existing_comment(
    gh: GitHubAPI, owner: str, repo: str, pr_number: int
) -> int | None:
    """
    Find the id of a previous Tester Army comment on a PR.

    Only the first 100 comments are searched. Lookup errors are treated as
    "no comment found".
    """
    try:
        comments = await gh.getitem(
            f"/repos/{owner}/{repo}/issues/{pr_number}/comments?per_page=100"
        )
    except (GitHubException, httpx.HTTPError) as e:
        logger.debug("Error finding existing comment: %s", e)
        return None

    for comment in comments:
        if COMMENT_MARKER in (comment.get("body") or ""):
            return comment["id"]

    return None


async def post_or_update_comment(
    gh: GitHubAPI,
    owner: str,
    repo: str,
    pr_number: int,
    result: CITestResult,
    deployment_url: str,
) -> None:
    """Post the result as a PR comment, replacing the previous one if present."""
    logger.debug("Posting comment for PR #%d", pr_number)

    body = format_comment(result, deployment_url)

    try:
        comment_id = await find_existing_comment(gh, owner, repo, pr_number)

        if comment_id is not None:
            await gh.patch(
                f"/repos/{owner}/{repo}/issues/comments/{comment_id}",
                data={"body": body},
            )
            logger.info(
                "Updated existing comment #%d on PR #%d", comment_id, pr_number
            )
        else:
            data = await gh.post(
                f"/repos/{owner}/{repo}/issues/{pr_number}/comments",
                data={"body": body},
            )
            logger.info("Created comment #%d on PR #%d", data["id"], pr_number)
    except (GitHubException, httpx.HTTPError) as e:
        logger.warning("Failed to post comment on PR #%d: %s", pr_number, e)
        raise
