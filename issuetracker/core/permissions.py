"""
Authorization rules for projects, issues and comments.

Predicates answer a yes/no question; the ``assert_*`` helpers raise
ForbiddenException. Callers resolve the resource first so that a missing
resource is reported as 404 before any permission check runs.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable

from issuetracker.core.exceptions import ForbiddenException
from issuetracker.models.comment import Comment
from issuetracker.models.project import Project
from issuetracker.models.user import User, UserRole


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


def is_member(project: Project, user_id: uuid.UUID) -> bool:
    """True when the user owns the project or is in its member set."""
    return project.owner_id == user_id or user_id in project.member_ids


def is_owner(project: Project, user_id: uuid.UUID) -> bool:
    return project.owner_id == user_id


def has_role(user: User, allowed: Iterable[str]) -> bool:
    return user.role in {str(getattr(role, "value", role)) for role in allowed}


def can_access_project(project: Project, user: User) -> bool:
    return is_admin(user) or is_member(project, user.id)


def can_modify_comment(comment: Comment, user: User) -> bool:
    return is_admin(user) or comment.author_id == user.id


# ── Enforcement ───────────────────────────────────────────────────────────────

def require_role(user: User, allowed: Iterable[str], action: str = "perform this action") -> None:
    if not has_role(user, allowed):
        raise ForbiddenException(f"Insufficient role to {action}")


def assert_project_access(project: Project, user: User) -> None:
    if not can_access_project(project, user):
        raise ForbiddenException("Access denied to this project")


def assert_can_modify_comment(comment: Comment, user: User) -> None:
    if not can_modify_comment(comment, user):
        raise ForbiddenException("Only the comment author or an admin can modify this comment")
