"""
Markdown rendering of test results for check runs, PR comments and the job
summary.
"""

from testerarmy.types.ci_test import CITestResult

COMMENT_MARKER = "<!-- tester-army-comment -->"
PRODUCT_URL = "https://tester.army"


def format_duration(ms: int) -> str:
    """
    Format a duration as a short human-readable string.

    Examples: ``850ms``, ``45s``, ``2m``, ``2m 5s``.
    """
    if ms < 1000:
        return f"{ms}ms"

    seconds = ms // 1000
    if seconds < 60:
        return f"{seconds}s"

    minutes, remaining_seconds = divmod(seconds, 60)
    if remaining_seconds == 0:
        return f"{minutes}m"
    return f"{minutes}m {remaining_seconds}s"


def _status_emoji(result: CITestResult) -> str:
    return "✅" if result.passed else "❌"


def format_screenshots(screenshots: list[str]) -> str:
    return "\n\n".join(
        f"![Screenshot {i}]({url})" for i, url in enumerate(screenshots, start=1)
    )


def format_playwright_code(code: str) -> str:
    return "\n".join(
        [
            "<details>",
            "<summary>📝 Generated Playwright Code</summary>",
            "",
            "```typescript",
            code,
            "```",
            "",
            "</details>",
        ]
    )


def format_check_title(result: CITestResult) -> str:
    return f"Tester Army: {result.result}"


def format_check_summary(result: CITestResult) -> str:
    duration = format_duration(result.duration)
    return (
        f"{_status_emoji(result)} {result.description}\n\n"
        f"**Feature:** {result.feature_name} | **Duration:** {duration}"
    )


def format_check_details(result: CITestResult) -> str:
    """Build the detailed check run text: results, screenshots and code."""
    sections: list[str] = []

    if result.description:
        sections.append("## Test Results\n\n" + result.description)

    if result.screenshots:
        sections.append("## Screenshots\n\n" + format_screenshots(result.screenshots))

    if result.playwright_code:
        sections.append(format_playwright_code(result.playwright_code))

    return "\n\n---\n\n".join(sections)


def format_comment(result: CITestResult, deployment_url: str) -> str:
    """
    Build the PR comment body.

    The body starts with COMMENT_MARKER so later runs can find and update
    the same comment.
    """
    status_text = "Passed" if result.passed else "Failed"

    lines = [
        COMMENT_MARKER,
        "## 🧪 Tester Army Results",
        "",
        f"**Status:** {_status_emoji(result)} {status_text}",
        f"**Feature:** {result.feature_name}",
        f"**Duration:** {format_duration(result.duration)}",
        f"**Tested URL:** {deployment_url}",
        "",
    ]

    if result.description:
        lines += ["### Results", result.description, ""]

    if result.screenshots:
        lines.append("### Screenshots")
        lines += [
            f"![Screenshot {i}]({url})"
            for i, url in enumerate(result.screenshots, start=1)
        ]
        lines.append("")

    if result.playwright_code:
        lines += [format_playwright_code(result.playwright_code), ""]

    lines += ["---", f"*Tested by [Tester Army]({PRODUCT_URL})*"]

    return "\n".join(lines)


def format_job_summary(result: CITestResult, deployment_url: str) -> str:
    return f"""{_status_emoji(result)} **Tester Army Results**

| Metric | Value |
|--------|-------|
| Result | {result.result} |
| Feature | {result.feature_name} |
| Duration | {format_duration(result.duration)} |
| URL | {deployment_url} |

{result.description}
"""
