"""
Project and issue key generation.

Project keys are derived from the project name: non-alphanumeric characters
are dropped, the rest upper-cased and cut to the configured prefix length.
Collisions are resolved by appending 1, 2, ... and the first free key wins.
Issue keys are ``<PROJECT_KEY>-<n>`` where n is one past the highest
sequence already used in the project.
"""
from __future__ import annotations

import re
import uuid

from issuetracker.core.config import settings
from issuetracker.repositories.issue import IssueRepository
from issuetracker.repositories.project import ProjectRepository

MAX_KEY_LENGTH = 10
MIN_KEY_LENGTH = 2

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def base_key_from_name(name: str, prefix_length: int | None = None) -> str:
    """Upper-cased alphanumeric prefix of ``name``, right-padded with X to two chars."""
    length = min(prefix_length or settings.PROJECT_KEY_PREFIX_LENGTH, MAX_KEY_LENGTH)
    base = _NON_ALNUM.sub("", name).upper()[:length]
    return base.ljust(MIN_KEY_LENGTH, "X")


def candidate_key(base: str, counter: int) -> str:
    """``base`` with ``counter`` appended, shortened so the whole key fits."""
    if counter == 0:
        return base
    suffix = str(counter)
    return f"{base[: MAX_KEY_LENGTH - len(suffix)]}{suffix}"


async def generate_project_key(
    projects: ProjectRepository,
    name: str,
    prefix_length: int | None = None,
) -> str:
    base = base_key_from_name(name, prefix_length)
    counter = 0
    key = base
    while await projects.key_exists(key):
        counter += 1
        key = candidate_key(base, counter)
    return key


def format_issue_key(project_key: str, sequence: int) -> str:
    return f"{project_key}-{sequence}"


async def next_issue_key(
    issues: IssueRepository,
    project_id: uuid.UUID,
    project_key: str,
) -> tuple[str, int]:
    """Return (key, sequence) for the next issue of the project."""
    sequence = await issues.max_sequence(project_id) + 1
    return format_issue_key(project_key, sequence), sequence
