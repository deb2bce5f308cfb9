"""DTOs for permission resolution (no dependency on ORM)."""

from dataclasses import dataclass, field
from datetime import datetime

from rbac.core.constants import REASON_SUBJECT_INACTIVE, REASON_SUBJECT_NOT_FOUND


@dataclass(frozen=True)
class PermissionCheckResult:
    """Outcome of a permission check. reason is None when allowed."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "PermissionCheckResult":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "PermissionCheckResult":
        return cls(allowed=False, reason=reason)


@dataclass(frozen=True)
class EffectiveAccess:
    """Unscoped, unfiltered permissions and roles of one subject.

    subject_found=False means no subject has the external id; the sets are
    then empty. This is the unit the resolution cache stores.
    """

    subject_id: str
    subject_found: bool
    is_active: bool
    permissions: frozenset[str] = field(default_factory=frozenset)
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def denial_reason(self) -> str | None:
        """Subject-level reason every check for this subject is denied, if any."""
        if not self.subject_found:
            return REASON_SUBJECT_NOT_FOUND
        if not self.is_active:
            return REASON_SUBJECT_INACTIVE
        return None


@dataclass(frozen=True)
class CachedAccess:
    """Cached permission and role sets for one subject."""

    permissions: frozenset[str]
    roles: frozenset[str]


@dataclass(frozen=True)
class SubjectRef:
    """Minimal subject read-model used by resolution."""

    id: str
    external_id: str
    is_active: bool


@dataclass(frozen=True)
class RoleNode:
    """One role in the role graph with its directly attached permission codes.

    application_code is None for global roles.
    """

    id: str
    code: str
    application_code: str | None
    parent_role_id: str | None
    permission_codes: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RoleGrant:
    """A role reaching a subject, directly or through a team.

    resource_instance_id is None for unscoped grants.
    """

    role_id: str
    resource_instance_id: str | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class InstanceGrant:
    """A direct per-instance permission grant (permission in wire format)."""

    permission_code: str
    expires_at: datetime | None = None
