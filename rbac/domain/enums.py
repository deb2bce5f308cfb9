"""Domain enumerations for the RBAC service."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class SubjectType(_ValuesMixin, str, Enum):
    """Kind of identity a subject represents."""

    USER = "user"
    SERVICE_ACCOUNT = "service_account"
    GROUP = "group"


class TeamMembershipRole(_ValuesMixin, str, Enum):
    """Role of a subject inside a team. Not an RBAC role; grants nothing."""

    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"


class MutationOutcome(_ValuesMixin, str, Enum):
    """Kind of result returned by every assignment or role-graph mutation."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
