"""
Deployment event classification.

Turns a ``deployment_status`` webhook payload into a DeploymentInfo when the
deployment is a successful, non-production deployment with a usable URL.
"""

import ipaddress
import re
from collections.abc import Mapping
from typing import Any

import httpx

from testerarmy.logging import get_logger
from testerarmy.types.deployment import DeploymentEvent, DeploymentInfo

logger = get_logger("deployment")

DEPLOYMENT_STATUS_EVENT = "deployment_status"
DEFAULT_ENVIRONMENT = "unknown"

VERCEL_HOST_SUFFIXES = (
    ".vercel.app",
    ".vercel.dev",
    ".now.sh",
    ".vercel.sh",
)

_ALLOWED_SCHEMES = ("http", "https")

_HOSTNAME_RE = re.compile(r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*\.?$")
MAX_PORT = 65535


def _get_str(data: Mapping[str, Any] | None, key: str) -> str | None:
    """Return a non-empty string field, or None if absent or of another type."""
    if data is None:
        return None
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _get_mapping(data: Mapping[str, Any] | None, key: str) -> Mapping[str, Any] | None:
    """Return a nested object field, or None if absent or of another type."""
    if data is None:
        return None
    value = data.get(key)
    if isinstance(value, Mapping):
        return value
    return None


def _is_valid_host(host: str) -> bool:
    """Check for an IP address or a hostname made of dot-separated labels."""
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return _HOSTNAME_RE.match(host) is not None
    return True


def _parse_url(url: str) -> httpx.URL | None:
    """Parse an absolute URL with a valid host and port, or return None."""
    try:
        parsed = httpx.URL(url)
        if not parsed.scheme or not parsed.host:
            return None
        # raw_host is the ASCII (punycode) form of the host
        if not _is_valid_host(parsed.raw_host.decode("ascii")):
            return None
        if parsed.port is not None and not 0 <= parsed.port <= MAX_PORT:
            return None
    except (httpx.InvalidURL, ValueError):
        # ValueError covers IDNA and ASCII decoding failures of the host
        return None

    return parsed


def _is_vercel_host(parsed: httpx.URL) -> bool:
    return parsed.host.lower().endswith(VERCEL_HOST_SUFFIXES)


def is_vercel_deployment(url: str) -> bool:
    """
    Check whether a URL points at a Vercel-hosted deployment.

    Args:
        url: Deployment URL

    Returns:
        True if the hostname ends with a known Vercel suffix
    """
    parsed = _parse_url(url)
    return parsed is not None and _is_vercel_host(parsed)


def extract_deployment_info(event: DeploymentEvent) -> DeploymentInfo | None:
    """
    Extract deployment information from a deployment_status event.

    The ``environment_url`` of the status is preferred over ``target_url``
    since hosting platforms put the stable preview alias there.

    Args:
        event: The triggering webhook event

    Returns:
        DeploymentInfo if the deployment should be tested, None otherwise
    """
    if event.event_name != DEPLOYMENT_STATUS_EVENT:
        logger.debug("Event is not deployment_status (got: %s)", event.event_name)
        return None

    status = _get_mapping(event.payload, "deployment_status")
    if status is None:
        logger.warning("Missing deployment_status in event payload")
        return None

    state = _get_str(status, "state")
    if state is None or state.lower() != "success":
        logger.debug("Deployment state is not success (got: %s)", state)
        return None

    environment = _get_str(status, "environment") or DEFAULT_ENVIRONMENT
    if environment.lower() == "production":
        logger.info("Skipping production deployment")
        return None

    url = _get_str(status, "environment_url") or _get_str(status, "target_url")
    if url is None:
        logger.warning("Missing or invalid target_url in deployment_status")
        return None

    parsed = _parse_url(url)
    if parsed is None:
        logger.warning("Invalid deployment URL format: %s", url)
        return None

    if parsed.scheme not in _ALLOWED_SCHEMES:
        logger.warning("Unsupported deployment URL scheme: %s", parsed.scheme)
        return None

    sha = _get_str(_get_mapping(event.payload, "deployment"), "sha")
    if sha is None:
        logger.debug("Using event sha as deployment.sha was not available")
        sha = event.sha

    is_vercel = _is_vercel_host(parsed)

    logger.info("Extracted deployment info: %s (%s)", url, environment)
    logger.debug("SHA: %s, Vercel: %s", sha, is_vercel)

    return DeploymentInfo(
        url=url,
        environment=environment,
        sha=sha,
        is_vercel=is_vercel,
    )
