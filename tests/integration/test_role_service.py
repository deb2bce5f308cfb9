"""RoleService against SQLite: role graph maintenance and its effect on checks."""

from rbac.core.constants import PERMISSION_CODE_SEP
from rbac.domain.enums import MutationOutcome


async def test_create_role_with_permissions_and_parent(
    seed, role_service, assignment_service, auth_service
) -> None:
    result = await role_service.create_role(
        "publisher",
        "Publisher",
        application_code="docs",
        parent_role_code="editor",
        permission_codes=["docs:document:delete", "document:delete"],
    )
    assert result.succeeded
    # Short code is qualified with the role's application
    assert result.details["permissions"] == ["docs:document:delete"]

    await assignment_service.assign_role("alice", "publisher", "docs")
    assert await auth_service.get_permissions("alice") == {
        "docs:document:read",
        "docs:document:write",
        "docs:document:delete",
    }


async def test_create_role_validation(seed, role_service) -> None:
    duplicate = await role_service.create_role("viewer", "Viewer", application_code="docs")
    unknown_app = await role_service.create_role("x", "X", application_code="crm")
    unknown_parent = await role_service.create_role("x", "X", parent_role_code="nope")
    bad_code = await role_service.create_role("bad:code", "Bad")
    bad_permission = await role_service.create_role("x", "X", permission_codes=["a:b:c:d"])
    unknown_permission = await role_service.create_role(
        "x", "X", application_code="docs", permission_codes=["document:publish"]
    )
    assert duplicate.outcome is MutationOutcome.CONFLICT
    assert unknown_app.outcome is MutationOutcome.NOT_FOUND
    assert unknown_parent.outcome is MutationOutcome.NOT_FOUND
    assert bad_code.outcome is MutationOutcome.INVALID
    assert bad_permission.outcome is MutationOutcome.INVALID
    assert unknown_permission.outcome is MutationOutcome.NOT_FOUND


async def test_same_code_allowed_in_different_scopes(seed, role_service) -> None:
    result = await role_service.create_role("viewer", "Global viewer")
    assert result.succeeded


async def test_set_parent_rejects_self_and_cycles(seed, role_service) -> None:
    itself = await role_service.set_parent_role("viewer", "viewer", "docs")
    cycle = await role_service.set_parent_role("viewer", "editor", "docs")
    assert itself.outcome is MutationOutcome.INVALID
    assert cycle.outcome is MutationOutcome.INVALID
    assert "cycle" in cycle.message


async def test_reparenting_changes_inherited_permissions(
    seed, role_service, assignment_service, auth_service
) -> None:
    await assignment_service.assign_role("alice", "editor", "docs")
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed

    cleared = await role_service.set_parent_role("editor", None, "docs")
    assert cleared.succeeded
    assert not (await auth_service.check_permission("alice", "docs:document:read")).allowed

    await role_service.set_parent_role("editor", "viewer", "docs")
    assert (await auth_service.check_permission("alice", "docs:document:read")).allowed


async def test_role_permission_changes_invalidate_all_subjects(
    seed, role_service, assignment_service, auth_service, resolution_cache
) -> None:
    await assignment_service.assign_role("alice", "viewer", "docs")
    await assignment_service.assign_role("bob", "viewer", "docs")
    await auth_service.get_permissions("alice")
    await auth_service.get_permissions("bob")

    added = await role_service.add_permission("viewer", "document:delete", "docs")
    assert added.succeeded
    assert await resolution_cache.get("alice") is None
    assert await resolution_cache.get("bob") is None
    assert (await auth_service.check_permission("bob", "docs:document:delete")).allowed

    again = await role_service.add_permission("viewer", "document:delete", "docs")
    assert again.outcome is MutationOutcome.CONFLICT

    removed = await role_service.remove_permission("viewer", "docs:document:delete", "docs")
    assert removed.succeeded
    assert not (await auth_service.check_permission("bob", "docs:document:delete")).allowed
    missing = await role_service.remove_permission("viewer", "docs:document:delete", "docs")
    assert missing.outcome is MutationOutcome.NOT_FOUND


async def test_delete_role_removes_assignments(
    seed, role_service, assignment_service, auth_service
) -> None:
    await assignment_service.assign_role("alice", "editor", "docs")
    result = await role_service.delete_role("viewer", "docs")
    assert result.succeeded
    # editor survives, detached from its deleted parent
    assert await auth_service.get_permissions("alice") == {"docs:document:write"}
    assert await auth_service.get_roles("alice") == {"editor"}
    assert (await role_service.delete_role("viewer", "docs")).outcome is MutationOutcome.NOT_FOUND


async def test_system_role_cannot_be_deleted(seed, role_service) -> None:
    result = await role_service.delete_role("admin")
    assert result.outcome is MutationOutcome.CONFLICT


async def test_role_code_must_not_contain_permission_separator(seed, role_service) -> None:
    result = await role_service.create_role(f"docs{PERMISSION_CODE_SEP}viewer", "Docs viewer")
    padded = await role_service.create_role(" viewer2 ", "Viewer 2")
    assert result.outcome is MutationOutcome.INVALID
    assert padded.outcome is MutationOutcome.INVALID
