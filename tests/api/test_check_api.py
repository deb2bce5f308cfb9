"""Check endpoints: authentication and decisions over HTTP."""

from httpx import AsyncClient


async def test_check_requires_bearer_token(client: AsyncClient, api_seed) -> None:
    response = await client.post(
        "/api/v1/check", json={"subject_id": "root", "permission": "assignment:write"}
    )
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


async def test_invalid_token_is_rejected(client: AsyncClient, api_seed) -> None:
    response = await client.post(
        "/api/v1/check",
        json={"subject_id": "root", "permission": "assignment:write"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


async def test_check_allows_held_permission(client: AsyncClient, api_seed, bearer) -> None:
    response = await client.post(
        "/api/v1/check",
        json={"subject_id": "root", "permission": "assignment:write"},
        headers=bearer("alice"),
    )
    assert response.status_code == 200
    assert response.json() == {"allowed": True, "reason": None}


async def test_check_denial_carries_reason(client: AsyncClient, api_seed, bearer) -> None:
    headers = bearer("alice")
    denied = await client.post(
        "/api/v1/check",
        json={"subject_id": "alice", "permission": "docs:document:read"},
        headers=headers,
    )
    inactive = await client.post(
        "/api/v1/check",
        json={"subject_id": "carol", "permission": "docs:document:read"},
        headers=headers,
    )
    unknown = await client.post(
        "/api/v1/check",
        json={"subject_id": "ghost", "permission": "docs:document:read"},
        headers=headers,
    )
    invalid = await client.post(
        "/api/v1/check",
        json={"subject_id": "alice", "permission": "a:b:c:d"},
        headers=headers,
    )
    assert denied.json() == {"allowed": False, "reason": "Permission denied"}
    assert inactive.json()["reason"] == "Subject is inactive"
    assert unknown.json()["reason"] == "Subject not found"
    assert invalid.json()["reason"] == "Invalid permission code: 'a:b:c:d'"


async def test_check_any(client: AsyncClient, api_seed, bearer) -> None:
    headers = bearer("root")
    allowed = await client.post(
        "/api/v1/check/any",
        json={"subject_id": "root", "permissions": ["docs:document:read", "team:update"]},
        headers=headers,
    )
    empty = await client.post(
        "/api/v1/check/any", json={"subject_id": "root", "permissions": []}, headers=headers
    )
    assert allowed.json()["allowed"] is True
    assert empty.json() == {"allowed": False, "reason": "No permissions specified"}


async def test_effective_permissions_and_roles(client: AsyncClient, api_seed, bearer) -> None:
    headers = bearer("alice")
    permissions = await client.get("/api/v1/check/permissions/root", headers=headers)
    filtered = await client.get(
        "/api/v1/check/permissions/root", params={"application_code": "docs"}, headers=headers
    )
    roles = await client.get("/api/v1/check/roles/root", headers=headers)
    assert permissions.status_code == 200
    assert "rbac:assignment:write" in permissions.json()["permissions"]
    assert permissions.json()["permissions"] == sorted(permissions.json()["permissions"])
    assert filtered.json() == {"subject_id": "root", "permissions": []}
    assert roles.json() == {"subject_id": "root", "roles": ["admin"]}


async def test_request_validation_returns_422(client: AsyncClient, api_seed, bearer) -> None:
    response = await client.post("/api/v1/check", json={"subject_id": "alice"}, headers=bearer("alice"))
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"
