"""
GitHub Actions runner integration: step outputs, job summary and secret
masking.
"""

import os
import sys
import uuid

from testerarmy.logging import get_logger

logger = get_logger("actions")


def _append_to_env_file(variable: str, text: str) -> bool:
    path = os.environ.get(variable)
    if not path:
        return False

    with open(path, "a", encoding="utf-8") as fh:
        fh.write(text)
    return True


def set_output(name: str, value: object) -> None:
    """
    Set a step output.

    Values are written in the multiline form so they may contain newlines.
    """
    value = "" if value is None else str(value)
    delimiter = f"ghadelimiter_{uuid.uuid4()}"

    if not _append_to_env_file(
        "GITHUB_OUTPUT", f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    ):
        logger.debug("GITHUB_OUTPUT not set, skipping output %s=%s", name, value)


def append_summary(markdown: str) -> None:
    """Append Markdown to the job summary."""
    if not _append_to_env_file("GITHUB_STEP_SUMMARY", markdown + "\n"):
        logger.debug("GITHUB_STEP_SUMMARY not set, skipping job summary")


def mask_secret(value: str) -> None:
    """Ask the runner to redact a value from all further log output."""
    if value:
        sys.stdout.write(f"::add-mask::{value}\n")
        sys.stdout.flush()
