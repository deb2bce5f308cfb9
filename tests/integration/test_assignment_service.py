"""AssignmentService against SQLite: mutations, outcomes and their effect on checks."""

from datetime import timedelta

from sqlalchemy import update

from rbac.application.services import AuthorizationService, PermissionResolver
from rbac.domain.enums import MutationOutcome
from rbac.infrastructure.cache import MemoryCacheService, ResolutionCache
from rbac.infrastructure.persistence.models import SubjectRole, TeamRole
from rbac.infrastructure.persistence.repositories import (
    SqlPermissionStore,
    SubjectRepository,
    TeamRepository,
)
from rbac.shared.utils.datetime import utc_now


async def test_assign_role_then_check(seed, assignment_service, auth_service) -> None:
    result = await assignment_service.assign_role("alice", "editor", application_code="docs")
    assert result.outcome is MutationOutcome.SUCCESS
    assert (await auth_service.check_permission("alice", "docs:document:write")).allowed
    # Inherited from viewer through the parent chain
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed
    assert await auth_service.get_roles("alice") == {"editor", "viewer"}


async def test_assign_unknown_subject_or_role_is_not_found(seed, assignment_service) -> None:
    missing_subject = await assignment_service.assign_role("nobody", "viewer", "docs")
    missing_role = await assignment_service.assign_role("alice", "nope", "docs")
    assert missing_subject.outcome is MutationOutcome.NOT_FOUND
    assert missing_role.outcome is MutationOutcome.NOT_FOUND
    assert missing_role.details == {"role_code": "nope"}


async def test_duplicate_assignment_is_conflict(seed, assignment_service) -> None:
    await assignment_service.assign_role("alice", "viewer", "docs")
    again = await assignment_service.assign_role("alice", "viewer", "docs")
    assert again.outcome is MutationOutcome.CONFLICT


async def test_past_expiry_is_invalid(seed, assignment_service) -> None:
    result = await assignment_service.assign_role(
        "alice", "viewer", "docs", expires_at=utc_now() - timedelta(minutes=1)
    )
    assert result.outcome is MutationOutcome.INVALID


async def test_global_role_found_without_application(seed, assignment_service, auth_service) -> None:
    result = await assignment_service.assign_role("bob", "admin")
    assert result.succeeded
    assert "admin" in await auth_service.get_roles("bob")


async def test_revoke_invalidates_cached_access(seed, assignment_service, auth_service, resolution_cache) -> None:
    await assignment_service.assign_role("alice", "viewer", "docs")
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed
    assert await resolution_cache.get("alice") is not None

    result = await assignment_service.revoke_role("alice", "viewer", "docs")
    assert result.succeeded
    assert await resolution_cache.get("alice") is None
    assert not (await auth_service.check_permission("alice", "docs:document:read")).allowed


async def test_revoke_missing_assignment_is_not_found(seed, assignment_service) -> None:
    result = await assignment_service.revoke_role("alice", "viewer", "docs")
    assert result.outcome is MutationOutcome.NOT_FOUND


async def test_scoped_assignment_is_isolated_from_unscoped(seed, assignment_service, auth_service) -> None:
    await assignment_service.assign_role("alice", "editor", "docs", resource_instance_id="doc-1")
    assert (await auth_service.check_permission("alice", "docs:document:write", "doc-1")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:write", "doc-2")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:write")).allowed
    assert await auth_service.get_permissions("alice") == frozenset()

    # Unscoped revoke does not touch the scoped assignment
    unscoped = await assignment_service.revoke_role("alice", "editor", "docs")
    assert unscoped.outcome is MutationOutcome.NOT_FOUND
    scoped = await assignment_service.revoke_role("alice", "editor", "docs", "doc-1")
    assert scoped.succeeded


async def test_expired_assignment_is_renewed(seed, db_session, assignment_service, auth_service) -> None:
    await assignment_service.assign_role("alice", "viewer", "docs")
    await db_session.execute(update(SubjectRole).values(expires_at=utc_now() - timedelta(days=1)))
    await db_session.commit()
    await auth_service.invalidate_subject("alice")
    assert not (await auth_service.check_permission("alice", "docs:document:read")).allowed

    renewed = await assignment_service.assign_role("alice", "viewer", "docs")
    assert renewed.succeeded
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed


async def test_team_role_reaches_members_and_invalidates_them(
    seed, assignment_service, auth_service, resolution_cache
) -> None:
    assert (await assignment_service.add_team_member("writers", "alice")).succeeded
    assert (await assignment_service.add_team_member("writers", "bob", "admin")).succeeded
    assert await auth_service.get_permissions("alice") == frozenset()
    assert await resolution_cache.get("alice") is not None

    result = await assignment_service.assign_team_role("writers", "editor", "docs")
    assert result.succeeded
    assert await resolution_cache.get("alice") is None
    for member in ("alice", "bob"):
        assert (await auth_service.check_permission(member, "docs:document:write")).allowed

    await assignment_service.remove_team_member("writers", "bob")
    assert not (await auth_service.check_permission("bob", "docs:document:write")).allowed

    await assignment_service.revoke_team_role("writers", "editor", "docs")
    assert not (await auth_service.check_permission("alice", "docs:document:write")).allowed


async def test_team_membership_outcomes(seed, assignment_service) -> None:
    invalid_role = await assignment_service.add_team_member("writers", "alice", "boss")
    unknown_team = await assignment_service.add_team_member("nope", "alice")
    assert invalid_role.outcome is MutationOutcome.INVALID
    assert unknown_team.outcome is MutationOutcome.NOT_FOUND

    await assignment_service.add_team_member("writers", "alice")
    duplicate = await assignment_service.add_team_member("writers", "alice")
    not_member = await assignment_service.remove_team_member("writers", "bob")
    assert duplicate.outcome is MutationOutcome.CONFLICT
    assert not_member.outcome is MutationOutcome.NOT_FOUND


async def test_instance_permission_registers_instance(seed, assignment_service, auth_service) -> None:
    result = await assignment_service.grant_instance_permission(
        "bob", "document", "doc-9", "delete", application_code="docs", granted_by="root"
    )
    assert result.succeeded
    assert result.details["permission"] == "docs:document:delete"
    assert (await auth_service.check_permission("bob", "docs:document:delete", "doc-9")).allowed
    assert not (await auth_service.check_permission("bob", "docs:document:delete", "doc-8")).allowed
    assert not (await auth_service.check_permission("bob", "docs:document:delete")).allowed

    again = await assignment_service.grant_instance_permission(
        "bob", "document", "doc-9", "delete", application_code="docs"
    )
    assert again.outcome is MutationOutcome.CONFLICT

    revoked = await assignment_service.revoke_instance_permission(
        "bob", "document", "doc-9", "delete", application_code="docs"
    )
    assert revoked.succeeded
    assert not (await auth_service.check_permission("bob", "docs:document:delete", "doc-9")).allowed


async def test_instance_permission_validation(seed, assignment_service) -> None:
    no_instances = await assignment_service.grant_instance_permission(
        "bob", "report", "r-1", "read", application_code="docs"
    )
    assert no_instances.outcome is MutationOutcome.INVALID
    unknown_action = await assignment_service.grant_instance_permission(
        "bob", "document", "doc-1", "publish", application_code="docs"
    )
    assert unknown_action.outcome is MutationOutcome.NOT_FOUND
    unknown_type = await assignment_service.grant_instance_permission(
        "bob", "folder", "f-1", "read", application_code="docs"
    )
    assert unknown_type.outcome is MutationOutcome.NOT_FOUND
    revoke_missing = await assignment_service.revoke_instance_permission(
        "bob", "document", "doc-1", "read", application_code="docs"
    )
    assert revoke_missing.outcome is MutationOutcome.NOT_FOUND


async def test_owner_gets_every_action_on_instance(seed, assignment_service, auth_service) -> None:
    result = await assignment_service.set_resource_owner("document", "doc-1", "alice", "docs")
    assert result.succeeded
    for action in ("read", "write", "delete"):
        assert (await auth_service.check_permission("alice", f"docs:document:{action}", "doc-1")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:read", "doc-2")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:read")).allowed

    # Transfer ownership
    await assignment_service.set_resource_owner("document", "doc-1", "bob", "docs")
    assert not (await auth_service.check_permission("alice", "docs:document:read", "doc-1")).allowed
    assert (await auth_service.check_permission("bob", "docs:document:read", "doc-1")).allowed

    cleared = await assignment_service.set_resource_owner("document", "doc-1", None, "docs")
    assert cleared.succeeded
    assert not (await auth_service.check_permission("bob", "docs:document:read", "doc-1")).allowed


async def test_clearing_owner_of_unknown_instance_is_not_found(seed, assignment_service) -> None:
    result = await assignment_service.set_resource_owner("document", "doc-404", None, "docs")
    assert result.outcome is MutationOutcome.NOT_FOUND


async def test_deactivation_denies_everything(seed, assignment_service, auth_service) -> None:
    await assignment_service.assign_role("alice", "editor", "docs")
    await assignment_service.set_resource_owner("document", "doc-1", "alice", "docs")
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed

    result = await assignment_service.set_subject_active("alice", False)
    assert result.succeeded
    denied = await auth_service.check_permission("alice", "docs:document:read", "doc-1")
    assert denied.reason == "Subject is inactive"
    assert await auth_service.get_permissions("alice") == frozenset()

    await assignment_service.set_subject_active("alice", True)
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed


async def test_inactive_seeded_subject(seed, auth_service) -> None:
    result = await auth_service.check_permission("carol", "docs:document:read")
    assert result.reason == "Subject is inactive"


async def test_other_process_cache_is_not_invalidated(
    seed, db_session, assignment_service, auth_service
) -> None:
    """A second cache (another process) keeps its stale entry until TTL; ours is fresh."""
    other = AuthorizationService(
        PermissionResolver(SqlPermissionStore(db_session), "rbac"),
        cache=ResolutionCache(MemoryCacheService()),
    )
    await assignment_service.assign_role("alice", "viewer", "docs")
    assert (await other.check_permission("alice", "docs:document:read")).allowed
    await assignment_service.revoke_role("alice", "viewer", "docs")
    assert (await other.check_permission("alice", "docs:document:read")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:read")).allowed


async def test_scoped_team_role_applies_only_to_its_instance(
    seed, assignment_service, auth_service
) -> None:
    await assignment_service.add_team_member("writers", "alice")
    result = await assignment_service.assign_team_role(
        "writers", "editor", "docs", resource_instance_id="doc-123"
    )
    assert result.succeeded
    assert (await auth_service.check_permission("alice", "docs:document:write", "doc-123")).allowed
    # Parent chain of the scoped role also applies on that instance
    assert (await auth_service.check_permission("alice", "docs:document:read", "doc-123")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:write", "doc-999")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:write")).allowed
    assert await auth_service.get_roles("alice") == frozenset()
    assert await auth_service.get_roles("alice", "docs") == frozenset()
    assert await auth_service.get_permissions("alice") == frozenset()

    unscoped = await assignment_service.revoke_team_role("writers", "editor", "docs")
    assert unscoped.outcome is MutationOutcome.NOT_FOUND
    scoped = await assignment_service.revoke_team_role("writers", "editor", "docs", "doc-123")
    assert scoped.succeeded
    assert not (await auth_service.check_permission("alice", "docs:document:write", "doc-123")).allowed


async def test_expired_rows_grant_nothing(seed, db_session, auth_service) -> None:
    subjects = SubjectRepository(db_session)
    alice = await subjects.get_by_external_id("alice")
    bob = await subjects.get_by_external_id("bob")
    past = utc_now() - timedelta(hours=1)
    await TeamRepository(db_session).add_member(seed.writers_team_id, alice.id)
    db_session.add(SubjectRole(subject_id=alice.id, role_id=seed.editor_role_id, expires_at=past))
    db_session.add(
        TeamRole(team_id=seed.writers_team_id, role_id=seed.viewer_role_id, expires_at=past)
    )
    db_session.add(SubjectRole(subject_id=bob.id, role_id=seed.viewer_role_id, expires_at=None))
    await db_session.commit()

    assert not (await auth_service.check_permission("alice", "docs:document:write")).allowed
    assert not (await auth_service.check_permission("alice", "docs:document:read")).allowed
    assert await auth_service.get_permissions("alice") == frozenset()
    assert await auth_service.get_permissions("alice", "docs") == frozenset()
    assert await auth_service.get_roles("alice") == frozenset()
    assert await auth_service.get_roles("alice", "docs") == frozenset()

    # A row without expiry never expires
    assert (await auth_service.check_permission("bob", "docs:document:read")).allowed
    assert await auth_service.get_roles("bob") == {"viewer"}
    assert await auth_service.get_permissions("bob") == {"docs:document:read"}


async def test_joining_team_drops_cached_access(
    seed, assignment_service, auth_service, resolution_cache
) -> None:
    await assignment_service.assign_team_role("writers", "editor", "docs")
    assert not (await auth_service.check_permission("alice", "docs:document:write")).allowed
    assert await resolution_cache.get("alice") is not None

    result = await assignment_service.add_team_member("writers", "alice")
    assert result.succeeded
    assert await resolution_cache.get("alice") is None
    assert (await auth_service.check_permission("alice", "docs:document:write")).allowed
