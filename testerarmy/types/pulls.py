"""Pull request-related data models."""

from dataclasses import dataclass, field


@dataclass
class PRContext:
    """The pull request associated with a deployed commit."""

    number: int
    title: str
    description: str
    changed_files: list[str] = field(default_factory=list)
    branch: str = ""
    base_branch: str = ""
