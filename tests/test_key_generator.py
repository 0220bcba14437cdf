"""
Project and issue key generation tests.
"""
from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import create_user
from issuetracker.repositories.issue import IssueRepository
from issuetracker.repositories.project import ProjectRepository
from issuetracker.services.key_generator import (
    MAX_KEY_LENGTH,
    base_key_from_name,
    candidate_key,
    format_issue_key,
    generate_project_key,
    next_issue_key,
)


class TestBaseKey:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Test Project", "TES"),
            ("web-app 2", "WEB"),
            ("a", "AX"),
            ("!!", "XX"),
            ("42 Things", "42T"),
        ],
    )
    def test_base_key(self, name: str, expected: str) -> None:
        assert base_key_from_name(name) == expected

    def test_custom_prefix_length(self) -> None:
        assert base_key_from_name("Platform Services", prefix_length=5) == "PLATF"
        assert base_key_from_name("Platform Services", prefix_length=50) == "PLATFORMSE"


class TestCandidateKey:
    def test_counter_zero_is_base(self) -> None:
        assert candidate_key("TES", 0) == "TES"

    def test_counter_appended(self) -> None:
        assert candidate_key("TES", 1) == "TES1"
        assert candidate_key("TES", 12) == "TES12"

    def test_long_base_is_truncated_to_fit(self) -> None:
        key = candidate_key("ABCDEFGHIJ", 12)
        assert key == "ABCDEFGH12"
        assert len(key) == MAX_KEY_LENGTH


def test_format_issue_key() -> None:
    assert format_issue_key("CORE", 7) == "CORE-7"


@pytest.mark.asyncio
async def test_generate_project_key_skips_taken(db: AsyncSession) -> None:
    owner = await create_user(db, email="owner@example.com", role="project_manager")
    projects = ProjectRepository(db)

    for expected in ("TES", "TES1", "TES2"):
        key = await generate_project_key(projects, "Test Project")
        assert key == expected
        await projects.create({"name": "Test Project", "key": key, "owner_id": owner.id})


@pytest.mark.asyncio
async def test_next_issue_key_follows_highest_sequence(db: AsyncSession) -> None:
    owner = await create_user(db, email="owner@example.com", role="project_manager")
    project = await ProjectRepository(db).create(
        {"name": "Keys", "key": "K", "owner_id": owner.id}
    )
    issues = IssueRepository(db)

    assert await next_issue_key(issues, project.id, project.key) == ("K-1", 1)

    await issues.create(
        {
            "project_id": project.id,
            "key": "K-9",
            "sequence": 9,
            "title": "Ninth",
            "reporter_id": owner.id,
        }
    )
    key, sequence = await next_issue_key(issues, project.id, project.key)
    assert (key, sequence) == ("K-10", 10)
