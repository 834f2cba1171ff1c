"""
Action entry point.

Classifies the triggering deployment event, looks up the pull request for the
deployed commit, runs the CI test and reports the outcome.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Awaitable
from contextlib import AsyncExitStack, asynccontextmanager

import httpx
import typer
from gidgethub import GitHubException
from gidgethub.abc import GitHubAPI
from gidgethub.httpx import GitHubAPI as HttpxGitHubAPI

from testerarmy.actions import append_summary, mask_secret, set_output
from testerarmy.client import TesterArmyClient
from testerarmy.deployment import extract_deployment_info
from testerarmy.exceptions import (
    ConfigurationError,
    RateLimitedError,
    TesterArmyError,
)
from testerarmy.github import (
    create_check,
    fetch_pr_context,
    post_or_update_comment,
    update_check,
    update_check_failure,
)
from testerarmy.inputs import DEFAULT_TIMEOUT_MS, ActionInputs
from testerarmy.logging import WorkflowCommandHandler, configure_logging, get_logger
from testerarmy.report import format_duration, format_job_summary
from testerarmy.transport import USER_AGENT
from testerarmy.types.ci_test import CITestRequest, TestContext
from testerarmy.types.deployment import DeploymentEvent, DeploymentInfo

logger = get_logger()

DEFAULT_GITHUB_API_URL = "https://api.github.com"


@asynccontextmanager
async def github_client(token: str) -> AsyncIterator[GitHubAPI]:
    async with httpx.AsyncClient() as http:
        yield HttpxGitHubAPI(
            http,
            USER_AGENT,
            oauth_token=token,
            base_url=os.environ.get("GITHUB_API_URL", DEFAULT_GITHUB_API_URL),
        )


def split_repository(repository: str) -> tuple[str, str]:
    owner, _, repo = repository.partition("/")
    if not owner or not repo or "/" in repo:
        raise ConfigurationError(f"Invalid repository: {repository!r}, expected owner/repo")
    return owner, repo


def describe_error(error: TesterArmyError) -> str:
    if isinstance(error, RateLimitedError) and error.retry_after is not None:
        return f"{error.message} (retry after {error.retry_after:g}s)"
    return error.message


async def _report(step: Awaitable[object]) -> bool:
    """Run a reporting step whose failure must not fail the run."""
    try:
        await step
    except (GitHubException, httpx.HTTPError):
        # The collaborator has already logged a warning
        return False
    return True


async def run(
    inputs: ActionInputs,
    event: DeploymentEvent,
    repository: str,
    client: TesterArmyClient | None = None,
    gh: GitHubAPI | None = None,
) -> int:
    """
    Run the action for one event.

    Args:
        inputs: Validated action inputs
        event: The triggering webhook event
        repository: "owner/repo" the workflow runs in
        client: Tester Army client (default: one built from inputs)
        gh: GitHub API client (default: one authenticated with inputs.github_token)

    Returns:
        Process exit code
    """
    info = extract_deployment_info(event)
    if info is None:
        logger.info("No deployment to test, skipping")
        return 0

    owner, repo = split_repository(repository)

    async with AsyncExitStack() as stack:
        if gh is None:
            gh = await stack.enter_async_context(github_client(inputs.github_token))

        if client is None:
            client = await stack.enter_async_context(
                TesterArmyClient(
                    api_key=inputs.api_key,
                    base_url=inputs.base_url,
                    timeout=inputs.timeout,
                )
            )

        return await evaluate_deployment(inputs, info, owner, repo, client, gh)


async def evaluate_deployment(
    inputs: ActionInputs,
    info: DeploymentInfo,
    owner: str,
    repo: str,
    client: TesterArmyClient,
    gh: GitHubAPI,
) -> int:
    pr = await fetch_pr_context(gh, owner, repo, info.sha)
    if pr is None:
        logger.warning("No pull request context for %s, skipping test", info.sha)
        return 0

    check_run_id: int | None = None
    try:
        check_run_id = await create_check(gh, owner, repo, info.sha)
    except (GitHubException, httpx.HTTPError):
        logger.warning("Continuing without a check run")

    request = CITestRequest(
        url=info.url,
        context=TestContext(
            title=pr.title,
            description=pr.description or None,
            changed_files=pr.changed_files,
        ),
        credentials=inputs.credentials(),
        bypass_token=inputs.bypass_token if info.is_vercel else None,
    )

    logger.info("🧪 Starting Tester Army test run")
    logger.info("Deployment: %s (%s)", info.url, info.environment)
    logger.info("PR #%d: %s (%d changed files)", pr.number, pr.title, len(pr.changed_files))

    try:
        result = await client.run_ci_test(request)
    except TesterArmyError as e:
        message = describe_error(e)
        if check_run_id is not None:
            await _report(update_check_failure(gh, owner, repo, check_run_id, message))

        set_output("result", "error")
        set_output("summary", message)

        if inputs.fail_on_error:
            logger.error("Tester Army run failed: %s", message)
            return 1
        logger.warning("Tester Army run failed: %s", message)
        return 0

    logger.info("📊 Test result: %s", result.result)
    logger.info("Feature: %s", result.feature_name)
    logger.info("Duration: %s", format_duration(result.duration))

    if check_run_id is not None:
        await _report(update_check(gh, owner, repo, check_run_id, result))
    await _report(post_or_update_comment(gh, owner, repo, pr.number, result, info.url))

    set_output("result", "pass" if result.passed else "fail")
    set_output("summary", result.description)
    set_output("duration", result.duration)
    set_output("deployment-url", info.url)
    append_summary(format_job_summary(result, info.url))

    if not result.passed and inputs.fail_on_error:
        logger.error("Tests failed: %s", result.description)
        return 1

    return 0


app = typer.Typer(add_completion=False)


@app.command()
def main(
    api_key: str = typer.Option(..., envvar="INPUT_API-KEY", help="Tester Army API key"),
    github_token: str = typer.Option(
        ..., envvar=["INPUT_GITHUB-TOKEN", "GITHUB_TOKEN"], help="GitHub token"
    ),
    credentials_email: str | None = typer.Option(None, envvar="INPUT_CREDENTIALS-EMAIL"),
    credentials_password: str | None = typer.Option(None, envvar="INPUT_CREDENTIALS-PASSWORD"),
    bypass_token: str | None = typer.Option(
        None,
        envvar="INPUT_VERCEL-BYPASS-TOKEN",
        help="Vercel protection bypass token",
    ),
    timeout: int = typer.Option(
        DEFAULT_TIMEOUT_MS, envvar="INPUT_TIMEOUT", help="Per-attempt timeout in milliseconds"
    ),
    fail_on_error: bool = typer.Option(True, envvar="INPUT_FAIL-ON-ERROR"),
    base_url: str = typer.Option(TesterArmyClient.DEFAULT_BASE_URL, envvar="INPUT_BASE-URL"),
    repository: str = typer.Option(..., envvar="GITHUB_REPOSITORY"),
    debug: bool = typer.Option(False, "--debug", envvar="RUNNER_DEBUG"),
) -> None:
    """Test a preview deployment with Tester Army."""
    configure_logging(
        level=logging.DEBUG if debug else logging.INFO,
        handler=WorkflowCommandHandler(),
    )

    for secret in (api_key, github_token, credentials_password, bypass_token):
        if secret:
            mask_secret(secret)

    try:
        inputs = ActionInputs(
            api_key=api_key,
            github_token=github_token,
            credentials_email=credentials_email,
            credentials_password=credentials_password,
            bypass_token=bypass_token,
            timeout_ms=timeout,
            fail_on_error=fail_on_error,
            base_url=base_url,
        )
        event = DeploymentEvent.from_env()
        exit_code = asyncio.run(run(inputs, event, repository))
    except ConfigurationError as e:
        logger.error(e.message)
        raise typer.Exit(code=1) from e

    raise typer.Exit(code=exit_code)
