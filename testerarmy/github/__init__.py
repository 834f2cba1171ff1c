"""GitHub API collaborators: PR lookup, check runs and PR comments."""

from testerarmy.github.checks import (
    CHECK_NAME,
    create_check,
    update_check,
    update_check_failure,
)
from testerarmy.github.comments import find_existing_comment, post_or_update_comment
from testerarmy.github.pr_context import fetch_changed_files, fetch_pr_context

__all__ = [
    "CHECK_NAME",
    "create_check",
    "update_check",
    "update_check_failure",
    "find_existing_comment",
    "post_or_update_comment",
    "fetch_changed_files",
    "fetch_pr_context",
]
