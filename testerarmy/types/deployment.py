"""Deployment-related data models."""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from testerarmy.exceptions import ConfigurationError


@dataclass(frozen=True)
class DeploymentEvent:
    """
    A webhook event as delivered to the workflow run.

    The payload is kept as the raw decoded JSON body; nothing about its
    shape is assumed until it is classified.
    """

    event_name: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    sha: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DeploymentEvent":
        """
        Load the triggering event from the GitHub Actions runner environment.

        Environment variables:
            GITHUB_EVENT_NAME: Name of the triggering event (required)
            GITHUB_EVENT_PATH: Path to the JSON event payload (required)
            GITHUB_SHA: Commit SHA of the workflow run (optional)

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            DeploymentEvent for the current run

        Raises:
            ConfigurationError: If the variables are missing or the payload
                cannot be read
        """
        env = os.environ if environ is None else environ

        event_name = env.get("GITHUB_EVENT_NAME")
        event_path = env.get("GITHUB_EVENT_PATH")

        if not event_name:
            raise ConfigurationError("GITHUB_EVENT_NAME environment variable not set")

        if not event_path:
            raise ConfigurationError("GITHUB_EVENT_PATH environment variable not set")

        try:
            with open(event_path, encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Could not read event payload from {event_path}: {e}"
            ) from e

        if not isinstance(payload, dict):
            raise ConfigurationError(f"Event payload in {event_path} is not an object")

        return cls(event_name=event_name, payload=payload, sha=env.get("GITHUB_SHA", ""))


@dataclass(frozen=True)
class DeploymentInfo:
    """Normalized description of a deployment that should be tested."""

    url: str
    environment: str
    sha: str
    is_vercel: bool
