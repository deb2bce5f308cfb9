"""Assignment service: grant and revoke roles, team membership, instance permissions and ownership.

Every operation returns a MutationResult instead of raising for expected
failures (unknown subject, duplicate grant, past expiry). Changes are
committed and the affected subjects' cached access is dropped before the
result is returned, so the next read on this process sees the change.
Team mutations drop the cache entry of every team member.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Iterable
from datetime import datetime

from rbac.application.dtos.catalog import ResourceTypeResult, RoleResult, SubjectResult
from rbac.application.dtos.mutation import MutationResult
from rbac.application.interfaces.repositories import (
    IAssignmentRepository,
    ICatalogRepository,
    IRoleRepository,
    ISubjectRepository,
    ITeamRepository,
    IUnitOfWork,
)
from rbac.application.interfaces.services import IAccessInvalidator
from rbac.application.services.role_lookup import find_role
from rbac.domain.enums import TeamMembershipRole
from rbac.domain.exceptions import DuplicateAssignmentException
from rbac.shared.utils.datetime import ensure_utc, is_expired, utc_now

logger = logging.getLogger(__name__)


class AssignmentService:
    """Mutations of the assignment store with synchronous cache invalidation."""

    def __init__(
        self,
        uow: IUnitOfWork,
        subjects: ISubjectRepository,
        roles: IRoleRepository,
        teams: ITeamRepository,
        catalog: ICatalogRepository,
        assignments: IAssignmentRepository,
        invalidator: IAccessInvalidator,
        default_application_code: str | None = None,
    ) -> None:
        self._uow = uow
        self._subjects = subjects
        self._roles = roles
        self._teams = teams
        self._catalog = catalog
        self._assignments = assignments
        self._invalidator = invalidator
        self._default_application_code = default_application_code

    # Subject roles

    async def assign_role(
        self,
        subject_id: str,
        role_code: str,
        application_code: str | None = None,
        resource_instance_id: str | None = None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> MutationResult:
        """Assign a role to a subject, optionally scoped to one resource instance.

        An expired assignment with the same scope is renewed; an active one
        is a conflict.
        """
        invalid = self._check_expiry(expires_at)
        if invalid is not None:
            return invalid
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)

        scope = resource_instance_id or None
        existing = await self._assignments.get_subject_role(subject.id, role.id, scope)
        if existing is not None and not is_expired(existing.expires_at):
            return MutationResult.conflict(
                "Role already assigned",
                subject_id=subject_id,
                role_code=role_code,
                resource_instance_id=scope,
            )
        conflict = await self._write_or_conflict(
            self._assignments.upsert_subject_role(
                subject.id, role.id, scope, ensure_utc(expires_at), granted_by
            ),
            "Role already assigned",
            subject_id=subject_id,
            role_code=role_code,
            resource_instance_id=scope,
        )
        if conflict is not None:
            return conflict
        await self._commit_and_invalidate([subject.external_id])
        logger.info(
            "Assigned role %s to subject %s (instance=%s, expires_at=%s)",
            role.code,
            subject_id,
            scope,
            expires_at,
        )
        return MutationResult.success(
            "Role assigned", subject_id=subject_id, role_code=role.code, resource_instance_id=scope
        )

    async def revoke_role(
        self,
        subject_id: str,
        role_code: str,
        application_code: str | None = None,
        resource_instance_id: str | None = None,
    ) -> MutationResult:
        """Remove the subject's assignment of role_code in exactly that scope."""
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)
        scope = resource_instance_id or None
        if not await self._assignments.delete_subject_role(subject.id, role.id, scope):
            return MutationResult.not_found(
                "Role assignment not found", subject_id=subject_id, role_code=role_code
            )
        await self._commit_and_invalidate([subject.external_id])
        logger.info("Revoked role %s from subject %s (instance=%s)", role.code, subject_id, scope)
        return MutationResult.success("Role revoked", subject_id=subject_id, role_code=role.code)

    # Team roles

    async def assign_team_role(
        self,
        team_code: str,
        role_code: str,
        application_code: str | None = None,
        resource_instance_id: str | None = None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> MutationResult:
        """Assign a role to a team; every member inherits it."""
        invalid = self._check_expiry(expires_at)
        if invalid is not None:
            return invalid
        team = await self._teams.get_by_code(team_code)
        if team is None:
            return _team_not_found(team_code)
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)

        scope = resource_instance_id or None
        existing = await self._assignments.get_team_role(team.id, role.id, scope)
        if existing is not None and not is_expired(existing.expires_at):
            return MutationResult.conflict(
                "Role already assigned to team", team_code=team_code, role_code=role_code
            )
        conflict = await self._write_or_conflict(
            self._assignments.upsert_team_role(
                team.id, role.id, scope, ensure_utc(expires_at), granted_by
            ),
            "Role already assigned to team",
            team_code=team_code,
            role_code=role_code,
        )
        if conflict is not None:
            return conflict
        members = await self._teams.list_member_external_ids(team.id)
        await self._commit_and_invalidate(members)
        logger.info(
            "Assigned role %s to team %s (instance=%s, %s members invalidated)",
            role.code,
            team_code,
            scope,
            len(members),
        )
        return MutationResult.success("Role assigned to team", team_code=team_code, role_code=role.code)

    async def revoke_team_role(
        self,
        team_code: str,
        role_code: str,
        application_code: str | None = None,
        resource_instance_id: str | None = None,
    ) -> MutationResult:
        team = await self._teams.get_by_code(team_code)
        if team is None:
            return _team_not_found(team_code)
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)
        scope = resource_instance_id or None
        if not await self._assignments.delete_team_role(team.id, role.id, scope):
            return MutationResult.not_found(
                "Team role assignment not found", team_code=team_code, role_code=role_code
            )
        members = await self._teams.list_member_external_ids(team.id)
        await self._commit_and_invalidate(members)
        logger.info("Revoked role %s from team %s (instance=%s)", role.code, team_code, scope)
        return MutationResult.success("Role revoked from team", team_code=team_code, role_code=role.code)

    # Team membership

    async def add_team_member(
        self,
        team_code: str,
        subject_id: str,
        membership_role: str = TeamMembershipRole.MEMBER.value,
    ) -> MutationResult:
        if membership_role not in TeamMembershipRole.values():
            return MutationResult.invalid(
                f"Invalid membership role '{membership_role}'. "
                f"Must be one of: {', '.join(TeamMembershipRole.values())}",
                membership_role=membership_role,
            )
        team = await self._teams.get_by_code(team_code)
        if team is None:
            return _team_not_found(team_code)
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        if await self._teams.is_member(team.id, subject.id):
            return MutationResult.conflict(
                "Subject is already a member of team", team_code=team_code, subject_id=subject_id
            )
        conflict = await self._write_or_conflict(
            self._teams.add_member(team.id, subject.id, membership_role),
            "Subject is already a member of team",
            team_code=team_code,
            subject_id=subject_id,
        )
        if conflict is not None:
            return conflict
        await self._commit_and_invalidate([subject.external_id])
        logger.info("Added subject %s to team %s as %s", subject_id, team_code, membership_role)
        return MutationResult.success("Member added", team_code=team_code, subject_id=subject_id)

    async def remove_team_member(self, team_code: str, subject_id: str) -> MutationResult:
        team = await self._teams.get_by_code(team_code)
        if team is None:
            return _team_not_found(team_code)
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        if not await self._teams.remove_member(team.id, subject.id):
            return MutationResult.not_found(
                "Subject is not a member of team", team_code=team_code, subject_id=subject_id
            )
        await self._commit_and_invalidate([subject.external_id])
        logger.info("Removed subject %s from team %s", subject_id, team_code)
        return MutationResult.success("Member removed", team_code=team_code, subject_id=subject_id)

    # Instance permissions and ownership

    async def grant_instance_permission(
        self,
        subject_id: str,
        resource_type_code: str,
        resource_external_id: str,
        action_code: str,
        application_code: str | None = None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> MutationResult:
        """Grant one permission on one resource instance, registering the instance if unknown."""
        invalid = self._check_expiry(expires_at)
        if invalid is not None:
            return invalid
        if not resource_external_id:
            return MutationResult.invalid("Resource instance id is required")
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        resource_type, failure = await self._instance_resource_type(
            resource_type_code, application_code
        )
        if failure is not None:
            return failure
        permission = await self._catalog.get_permission(
            resource_type.application_code, resource_type.code, action_code
        )
        if permission is None:
            return MutationResult.not_found(
                "Permission not found",
                permission=f"{resource_type.application_code}:{resource_type.code}:{action_code}",
            )

        instance = await self._catalog.get_resource_instance(resource_type.id, resource_external_id)
        if instance is None:
            instance = await self._catalog.create_resource_instance(
                resource_type.id, resource_external_id
            )
            logger.info(
                "Registered resource instance %s:%s", resource_type.code, resource_external_id
            )
        existing = await self._assignments.get_instance_permission(
            instance.id, subject.id, permission
        )
        if existing is not None and not is_expired(existing.expires_at):
            return MutationResult.conflict(
                "Permission already granted on instance",
                subject_id=subject_id,
                permission=permission.code,
                resource_instance_id=resource_external_id,
            )
        conflict = await self._write_or_conflict(
            self._assignments.upsert_instance_permission(
                instance.id, subject.id, permission.id, ensure_utc(expires_at), granted_by
            ),
            "Permission already granted on instance",
            subject_id=subject_id,
            permission=permission.code,
            resource_instance_id=resource_external_id,
        )
        if conflict is not None:
            return conflict
        await self._commit_and_invalidate([subject.external_id])
        logger.info(
            "Granted %s on %s to subject %s", permission.code, resource_external_id, subject_id
        )
        return MutationResult.success(
            "Instance permission granted",
            subject_id=subject_id,
            permission=permission.code,
            resource_instance_id=resource_external_id,
        )

    async def revoke_instance_permission(
        self,
        subject_id: str,
        resource_type_code: str,
        resource_external_id: str,
        action_code: str,
        application_code: str | None = None,
    ) -> MutationResult:
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        resource_type = await self._catalog.get_resource_type(
            self._application(application_code), resource_type_code
        )
        if resource_type is None:
            return _resource_type_not_found(resource_type_code)
        permission = await self._catalog.get_permission(
            resource_type.application_code, resource_type.code, action_code
        )
        instance = await self._catalog.get_resource_instance(resource_type.id, resource_external_id)
        if (
            permission is None
            or instance is None
            or not await self._assignments.delete_instance_permission(
                instance.id, subject.id, permission.id
            )
        ):
            return MutationResult.not_found(
                "Instance permission not found",
                subject_id=subject_id,
                resource_instance_id=resource_external_id,
            )
        await self._commit_and_invalidate([subject.external_id])
        logger.info(
            "Revoked %s on %s from subject %s", permission.code, resource_external_id, subject_id
        )
        return MutationResult.success(
            "Instance permission revoked",
            subject_id=subject_id,
            permission=permission.code,
            resource_instance_id=resource_external_id,
        )

    async def set_resource_owner(
        self,
        resource_type_code: str,
        resource_external_id: str,
        owner_subject_id: str | None,
        application_code: str | None = None,
    ) -> MutationResult:
        """Set (or clear, with None) the owner of a resource instance.

        An unknown instance is registered when an owner is given.
        """
        if not resource_external_id:
            return MutationResult.invalid("Resource instance id is required")
        resource_type, failure = await self._instance_resource_type(
            resource_type_code, application_code
        )
        if failure is not None:
            return failure
        owner: SubjectResult | None = None
        if owner_subject_id:
            owner = await self._subjects.get_by_external_id(owner_subject_id)
            if owner is None:
                return _subject_not_found(owner_subject_id)

        instance = await self._catalog.get_resource_instance(resource_type.id, resource_external_id)
        affected: list[str] = []
        if instance is None:
            if owner is None:
                return MutationResult.not_found(
                    "Resource instance not found", resource_instance_id=resource_external_id
                )
            await self._catalog.create_resource_instance(
                resource_type.id, resource_external_id, owner_subject_id=owner.id
            )
        else:
            if instance.owner_subject_id:
                previous = await self._subjects.get_by_id(instance.owner_subject_id)
                if previous is not None:
                    affected.append(previous.external_id)
            await self._catalog.set_resource_owner(instance.id, owner.id if owner else None)
        if owner is not None:
            affected.append(owner.external_id)
        await self._commit_and_invalidate(affected)
        logger.info(
            "Owner of %s:%s set to %s", resource_type.code, resource_external_id, owner_subject_id
        )
        return MutationResult.success(
            "Resource owner updated",
            resource_instance_id=resource_external_id,
            owner_subject_id=owner_subject_id,
        )

    # Subjects

    async def set_subject_active(self, subject_id: str, is_active: bool) -> MutationResult:
        """Activate or deactivate a subject; inactive subjects are denied everything."""
        subject = await self._subjects.get_by_external_id(subject_id)
        if subject is None:
            return _subject_not_found(subject_id)
        await self._subjects.set_active(subject.id, is_active)
        await self._commit_and_invalidate([subject.external_id])
        logger.info("Subject %s is_active=%s", subject_id, is_active)
        return MutationResult.success(
            "Subject activated" if is_active else "Subject deactivated",
            subject_id=subject_id,
            is_active=is_active,
        )

    # Helpers

    def _application(self, application_code: str | None) -> str | None:
        return application_code or self._default_application_code

    async def _find_role(self, role_code: str, application_code: str | None) -> RoleResult | None:
        return await find_role(
            self._catalog, self._roles, role_code, self._application(application_code)
        )

    async def _instance_resource_type(
        self, resource_type_code: str, application_code: str | None
    ) -> tuple[ResourceTypeResult | None, MutationResult | None]:
        """Return the resource type if it exists and supports instances, else a failure."""
        resource_type = await self._catalog.get_resource_type(
            self._application(application_code), resource_type_code
        )
        if resource_type is None:
            return None, _resource_type_not_found(resource_type_code)
        if not resource_type.supports_instances:
            return None, MutationResult.invalid(
                f"Resource type '{resource_type_code}' does not support instances",
                resource_type=resource_type_code,
            )
        return resource_type, None

    @staticmethod
    def _check_expiry(expires_at: datetime | None) -> MutationResult | None:
        if expires_at is not None and ensure_utc(expires_at) <= utc_now():
            return MutationResult.invalid(
                "expires_at must be in the future", expires_at=ensure_utc(expires_at).isoformat()
            )
        return None

    async def _write_or_conflict(
        self, write: Awaitable[object], message: str, **details: object
    ) -> MutationResult | None:
        """Await a repository insert. A concurrent duplicate rolls back and becomes a conflict."""
        try:
            await write
        except DuplicateAssignmentException as exc:
            await self._uow.rollback()
            logger.info("Concurrent duplicate rolled back: %s", exc.message)
            return MutationResult.conflict(message, **details)
        return None

    async def _commit_and_invalidate(self, subject_external_ids: Iterable[str]) -> None:
        await self._uow.commit()
        ids = list(subject_external_ids)
        if len(ids) == 1:
            await self._invalidator.invalidate_subject(ids[0])
        elif ids:
            await self._invalidator.invalidate_subjects(ids)


def _subject_not_found(subject_id: str) -> MutationResult:
    return MutationResult.not_found(f"Subject '{subject_id}' not found", subject_id=subject_id)


def _role_not_found(role_code: str) -> MutationResult:
    return MutationResult.not_found(f"Role '{role_code}' not found", role_code=role_code)


def _team_not_found(team_code: str) -> MutationResult:
    return MutationResult.not_found(f"Team '{team_code}' not found", team_code=team_code)


def _resource_type_not_found(resource_type_code: str) -> MutationResult:
    return MutationResult.not_found(
        f"Resource type '{resource_type_code}' not found", resource_type=resource_type_code
    )
