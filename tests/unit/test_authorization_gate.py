"""AuthorizationGate: requirement evaluation and resource id resolution."""

from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request

from rbac.api.v1.dependencies import (
    AnyPermissionRequirement,
    AuthorizationGate,
    PermissionRequirement,
    RoleRequirement,
    resolve_resource_id,
)
from rbac.application.dtos.authorization import PermissionCheckResult
from rbac.domain.exceptions import AuthorizationException


def _request(path_params: dict | None = None, query: str = "") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/documents/doc-1",
            "query_string": query.encode(),
            "headers": [],
            "path_params": path_params or {},
        }
    )


@pytest.fixture
def service() -> AsyncMock:
    service = AsyncMock()
    service.check_permission = AsyncMock(return_value=PermissionCheckResult.allow())
    service.check_any_permission = AsyncMock(return_value=PermissionCheckResult.allow())
    service.get_roles = AsyncMock(return_value=frozenset({"Admin", "viewer"}))
    return service


def test_resource_id_prefers_path_then_query() -> None:
    assert resolve_resource_id(_request({"id": "doc-1"}, "id=doc-2"), "id") == "doc-1"
    assert resolve_resource_id(_request({}, "id=doc-2"), "id") == "doc-2"
    assert resolve_resource_id(_request({}), "id") is None
    assert resolve_resource_id(_request({"id": "doc-1"}), None) is None


async def test_permission_requirement_passes_resource_id(service) -> None:
    gate = AuthorizationGate(service)
    await gate.enforce(
        "alice", PermissionRequirement("document:read", resource_id_param="id"), _request({"id": "doc-1"})
    )
    service.check_permission.assert_awaited_once_with("alice", "document:read", "doc-1")


async def test_any_permission_requirement(service) -> None:
    gate = AuthorizationGate(service)
    await gate.enforce(
        "alice", AnyPermissionRequirement(("a:b:c", "d:e:f")), _request()
    )
    service.check_any_permission.assert_awaited_once_with("alice", ["a:b:c", "d:e:f"], None)


async def test_role_requirement_is_case_insensitive(service) -> None:
    gate = AuthorizationGate(service)
    result = await gate.authorize("alice", RoleRequirement("ADMIN"))
    assert result.allowed
    denied = await gate.authorize("alice", RoleRequirement("owner"))
    assert denied.reason == "Role 'owner' required"
    service.get_roles.assert_awaited_with("alice")


async def test_denied_requirement_raises_with_reason(service) -> None:
    service.check_permission.return_value = PermissionCheckResult.deny("Subject is inactive")
    gate = AuthorizationGate(service)
    with pytest.raises(AuthorizationException) as exc_info:
        await gate.enforce("carol", PermissionRequirement("document:read"), _request())
    assert exc_info.value.error_code == "PERMISSION_DENIED"
    assert exc_info.value.details["reason"] == "Subject is inactive"


async def test_denied_role_names_the_role(service) -> None:
    gate = AuthorizationGate(service)
    with pytest.raises(AuthorizationException) as exc_info:
        await gate.enforce("alice", RoleRequirement("owner"), _request())
    assert exc_info.value.details["permission"] == "role:owner"
