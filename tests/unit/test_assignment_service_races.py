"""AssignmentService: a unique-constraint clash at flush time is a conflict outcome."""

from unittest.mock import AsyncMock

import pytest

from rbac.application.dtos.catalog import RoleResult, SubjectResult, TeamResult
from rbac.application.services.assignment_service import AssignmentService
from rbac.domain.enums import MutationOutcome
from rbac.domain.exceptions import DuplicateAssignmentException

_ALICE = SubjectResult(
    id="s-1",
    provider="default",
    external_id="alice",
    subject_type="user",
    email=None,
    display_name=None,
    is_active=True,
)
_VIEWER = RoleResult(
    id="r-1",
    code="viewer",
    name="Viewer",
    application_id=None,
    application_code=None,
    parent_role_id=None,
    is_system=False,
)
_WRITERS = TeamResult(id="t-1", code="writers", name="Writers", is_active=True)


def _duplicate(kind: str) -> DuplicateAssignmentException:
    return DuplicateAssignmentException(f"{kind} already exists", assignment_type=kind)


@pytest.fixture
def uow() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def invalidator() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def repos() -> dict[str, AsyncMock]:
    subjects = AsyncMock()
    subjects.get_by_external_id.return_value = _ALICE
    roles = AsyncMock()
    roles.get_by_code.return_value = _VIEWER
    catalog = AsyncMock()
    catalog.get_application_by_code.return_value = None
    teams = AsyncMock()
    teams.get_by_code.return_value = _WRITERS
    teams.is_member.return_value = False
    teams.list_member_external_ids.return_value = ["alice"]
    assignments = AsyncMock()
    assignments.get_subject_role.return_value = None
    assignments.get_team_role.return_value = None
    return {
        "subjects": subjects,
        "roles": roles,
        "catalog": catalog,
        "teams": teams,
        "assignments": assignments,
    }


@pytest.fixture
def service(uow, invalidator, repos) -> AssignmentService:
    return AssignmentService(uow=uow, invalidator=invalidator, **repos)


async def test_concurrent_duplicate_role_assignment_is_conflict(
    service, uow, invalidator, repos
) -> None:
    repos["assignments"].upsert_subject_role.side_effect = _duplicate("subject_role")
    result = await service.assign_role("alice", "viewer", resource_instance_id="doc-1")
    assert result.outcome is MutationOutcome.CONFLICT
    assert result.details["resource_instance_id"] == "doc-1"
    uow.rollback.assert_awaited_once()
    uow.commit.assert_not_awaited()
    invalidator.invalidate_subject.assert_not_awaited()


async def test_concurrent_duplicate_team_role_is_conflict(service, uow, repos) -> None:
    repos["assignments"].upsert_team_role.side_effect = _duplicate("team_role")
    result = await service.assign_team_role("writers", "viewer")
    assert result.outcome is MutationOutcome.CONFLICT
    uow.rollback.assert_awaited_once()
    uow.commit.assert_not_awaited()


async def test_concurrent_duplicate_membership_is_conflict(service, uow, repos) -> None:
    repos["teams"].add_member.side_effect = _duplicate("team_member")
    result = await service.add_team_member("writers", "alice")
    assert result.outcome is MutationOutcome.CONFLICT
    assert result.details == {"team_code": "writers", "subject_id": "alice"}
    uow.rollback.assert_awaited_once()


async def test_successful_assignment_commits_without_rollback(
    service, uow, invalidator
) -> None:
    result = await service.assign_role("alice", "viewer")
    assert result.succeeded
    uow.commit.assert_awaited_once()
    uow.rollback.assert_not_awaited()
    invalidator.invalidate_subject.assert_awaited_once_with("alice")
