"""
ORM model package. Import all models here so Alembic autogenerate
can discover every table through the shared Base metadata.
"""
from issuetracker.models.user import User, UserRole  # noqa: F401
from issuetracker.models.project import Project, ProjectMember  # noqa: F401
from issuetracker.models.issue import Issue, IssueWatcher  # noqa: F401
from issuetracker.models.comment import Comment  # noqa: F401
from issuetracker.models.attachment import Attachment  # noqa: F401
