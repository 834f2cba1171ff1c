"""Pull request context lookup for a deployed commit."""

import httpx
from gidgethub import BadRequest, GitHubException, RateLimitExceeded
from gidgethub.abc import GitHubAPI

from testerarmy.logging import get_logger
from testerarmy.types.pulls import PRContext

logger = get_logger("github")

PER_PAGE = 100
# GitHub lists at most 3000 files for a pull request
MAX_FILE_PAGES = 30


async def fetch_pr_context(
    gh: GitHubAPI, owner: str, repo: str, sha: str
) -> PRContext | None:
    """
    Fetch the pull request associated with a commit.

    GitHub errors are logged as warnings and never raised, since a missing
    PR only means there is nothing to test.

    Args:
        gh: Authenticated GitHub API client
        owner: Repository owner
        repo: Repository name
        sha: Commit SHA to find the associated PR for

    Returns:
        PRContext if a PR is found, None otherwise
    """
    logger.debug("Fetching PR context for commit %s in %s/%s", sha, owner, repo)

    try:
        pulls = await gh.getitem(
            f"/repos/{owner}/{repo}/commits/{sha}/pulls?per_page={PER_PAGE}"
        )

        if not pulls:
            logger.warning("No PR found associated with commit %s", sha)
            return None

        # The first entry is the most recent PR for the commit
        pr = pulls[0]
        logger.info("Found PR #%d: %s", pr["number"], pr["title"])

        changed_files = await fetch_changed_files(gh, owner, repo, pr["number"])
        logger.debug(
            "Found %d changed files in PR #%d", len(changed_files), pr["number"]
        )

        return PRContext(
            number=pr["number"],
            title=pr["title"],
            description=pr.get("body") or "",
            changed_files=changed_files,
            branch=pr["head"]["ref"],
            base_branch=pr["base"]["ref"],
        )
    except GitHubException as e:
        _log_api_error(e, sha)
        return None
    except httpx.HTTPError as e:
        logger.warning("Failed to fetch PR context for %s: %s", sha, e)
        return None


async def fetch_changed_files(
    gh: GitHubAPI, owner: str, repo: str, pull_number: int
) -> list[str]:
    """
    Fetch the names of all files changed in a PR, page by page.

    Args:
        gh: Authenticated GitHub API client
        owner: Repository owner
        repo: Repository name
        pull_number: PR number

    Returns:
        File names in the order GitHub lists them
    """
    changed_files: list[str] = []

    for page in range(1, MAX_FILE_PAGES + 1):
        logger.debug("Fetching changed files page %d for PR #%d", page, pull_number)
        files = await gh.getitem(
            f"/repos/{owner}/{repo}/pulls/{pull_number}/files"
            f"?per_page={PER_PAGE}&page={page}"
        )

        changed_files.extend(f["filename"] for f in files)

        if len(files) < PER_PAGE:
            return changed_files

    logger.warning(
        "PR #%d has more than %d files, truncating",
        pull_number,
        MAX_FILE_PAGES * PER_PAGE,
    )
    return changed_files


def _is_rate_limit_error(error: GitHubException) -> bool:
    if isinstance(error, RateLimitExceeded):
        return True
    return (
        isinstance(error, BadRequest)
        and error.status_code == 403
        and "rate limit" in str(error).lower()
    )


def _log_api_error(error: GitHubException, sha: str) -> None:
    if _is_rate_limit_error(error):
        logger.warning(
            "GitHub API rate limit exceeded while fetching PR context for %s", sha
        )
        logger.warning(
            "Consider using a PAT with higher rate limits or reducing API calls"
        )
        return

    if isinstance(error, BadRequest) and error.status_code == 404:
        logger.warning("Commit %s not found or no access to repository", sha)
        return

    logger.warning("Failed to fetch PR context for %s: %s", sha, error)
