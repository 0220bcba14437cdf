"""
Authorization predicate tests on unsaved model instances.
"""
from __future__ import annotations

import uuid

import pytest

from issuetracker.core.exceptions import ForbiddenException
from issuetracker.core.permissions import (
    assert_can_modify_comment,
    assert_project_access,
    can_access_project,
    can_modify_comment,
    has_role,
    is_admin,
    is_member,
    require_role,
)
from issuetracker.models.comment import Comment
from issuetracker.models.project import Project, ProjectMember
from issuetracker.models.user import User, UserRole


def _user(role: str = "developer") -> User:
    return User(id=uuid.uuid4(), email=f"{uuid.uuid4().hex}@example.com", role=role)


def _project(owner: User, *members: User) -> Project:
    project = Project(id=uuid.uuid4(), name="P", key="P", owner_id=owner.id)
    project.memberships = [ProjectMember(user_id=owner.id)] + [
        ProjectMember(user_id=m.id) for m in members
    ]
    return project


class TestMembership:
    def test_is_member(self) -> None:
        owner, member, stranger = _user(), _user(), _user()
        project = _project(owner, member)
        assert is_member(project, owner.id)
        assert is_member(project, member.id)
        assert not is_member(project, stranger.id)

    def test_owner_counts_without_member_row(self) -> None:
        owner = _user()
        project = Project(id=uuid.uuid4(), name="P", key="P", owner_id=owner.id)
        project.memberships = []
        assert is_member(project, owner.id)

    def test_admin_accesses_any_project(self) -> None:
        project = _project(_user())
        admin = _user("admin")
        assert is_admin(admin)
        assert can_access_project(project, admin)
        assert_project_access(project, admin)

    def test_stranger_is_forbidden(self) -> None:
        project = _project(_user())
        with pytest.raises(ForbiddenException):
            assert_project_access(project, _user())


class TestRoles:
    def test_has_role_accepts_enums_and_strings(self) -> None:
        manager = _user("project_manager")
        assert has_role(manager, (UserRole.ADMIN, UserRole.PROJECT_MANAGER))
        assert has_role(manager, ["project_manager"])
        assert not has_role(manager, (UserRole.ADMIN,))

    def test_require_role_raises(self) -> None:
        with pytest.raises(ForbiddenException):
            require_role(_user("viewer"), (UserRole.ADMIN,), "delete projects")


class TestCommentPermissions:
    def test_author_and_admin_may_modify(self) -> None:
        author, other, admin = _user(), _user(), _user("admin")
        comment = Comment(id=uuid.uuid4(), content="x", issue_id=uuid.uuid4(), author_id=author.id)

        assert can_modify_comment(comment, author)
        assert can_modify_comment(comment, admin)
        assert not can_modify_comment(comment, other)
        with pytest.raises(ForbiddenException):
            assert_can_modify_comment(comment, other)
