"""Pytest configuration and fixtures for the RBAC service.

HTTP tests use rbac.main:app through httpx ASGITransport. Database tests use
an in-memory SQLite database (aiosqlite) created per test, so no external
services are needed. Environment is set before rbac is imported because
rbac.main builds the app (and reads settings) at import time.
"""

import os

os.environ["SECRET_KEY"] = "test-secret-key-for-rbac"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DATABASE_CREATE_TABLES"] = "false"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["DEFAULT_APPLICATION_CODE"] = "rbac"

from collections.abc import AsyncIterator  # noqa: E402
from dataclasses import dataclass  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from rbac.application.services import (  # noqa: E402
    AssignmentService,
    AuthorizationService,
    PermissionResolver,
    RoleService,
)
from rbac.core.config import get_settings  # noqa: E402
from rbac.core.limiter import limiter  # noqa: E402
from rbac.infrastructure.cache import MemoryCacheService, ResolutionCache  # noqa: E402
import rbac.infrastructure.persistence.models  # noqa: E402, F401
from rbac.infrastructure.persistence.database import Base, get_db  # noqa: E402
from rbac.infrastructure.persistence.repositories import (  # noqa: E402
    AssignmentRepository,
    CatalogRepository,
    RoleRepository,
    SqlPermissionStore,
    SubjectRepository,
    TeamRepository,
)
from rbac.infrastructure.security import create_access_token  # noqa: E402

get_settings.cache_clear()


@dataclass
class SeedData:
    """Ids created by seed_catalog (internal ids; external ids are fixed strings)."""

    docs_app_id: str
    document_type_id: str
    report_type_id: str
    viewer_role_id: str
    editor_role_id: str
    admin_role_id: str
    writers_team_id: str


async def seed_catalog(db: AsyncSession) -> SeedData:
    """Create a small catalog, role graph, subjects and a team, then commit.

    Applications: "docs" (document with instances, report without) and the
    default "rbac" application holding the service's own admin permissions.
    Roles: docs viewer (document:read), docs editor (document:write, parent
    viewer), global admin (every rbac permission).
    Subjects: alice, bob, carol (inactive), root (admin).
    Team: writers (no members).
    """
    catalog = CatalogRepository(db)
    roles = RoleRepository(db)
    subjects = SubjectRepository(db)
    teams = TeamRepository(db)

    docs = await catalog.create_application("docs", "Documents")
    document = await catalog.create_resource_type(docs.id, "document", "Document")
    report = await catalog.create_resource_type(
        docs.id, "report", "Report", supports_instances=False
    )
    read = await catalog.create_permission(document.id, "read")
    write = await catalog.create_permission(document.id, "write")
    await catalog.create_permission(document.id, "delete")
    await catalog.create_permission(report.id, "read")

    rbac_app = await catalog.create_application("rbac", "RBAC service")
    admin_permissions = []
    for resource_type, action in (
        ("assignment", "write"),
        ("subject", "update"),
        ("team", "update"),
        ("resource", "update"),
        ("instance_permission", "grant"),
    ):
        rt = await catalog.create_resource_type(rbac_app.id, resource_type)
        admin_permissions.append(await catalog.create_permission(rt.id, action))

    viewer = await roles.create_role("viewer", "Viewer", application_id=docs.id)
    await roles.add_permission(viewer.id, read.id)
    editor = await roles.create_role(
        "editor", "Editor", application_id=docs.id, parent_role_id=viewer.id
    )
    await roles.add_permission(editor.id, write.id)
    admin = await roles.create_role("admin", "Administrator", is_system=True)
    for permission in admin_permissions:
        await roles.add_permission(admin.id, permission.id)

    await subjects.create_subject("alice", email="alice@example.com")
    await subjects.create_subject("bob")
    await subjects.create_subject("carol", is_active=False)
    root = await subjects.create_subject("root")
    writers = await teams.create_team("writers", "Writers")

    assignments = AssignmentRepository(db)
    await assignments.upsert_subject_role(root.id, admin.id, None, None, "bootstrap")

    await db.commit()
    return SeedData(
        docs_app_id=docs.id,
        document_type_id=document.id,
        report_type_id=report.id,
        viewer_role_id=viewer.id,
        editor_role_id=editor.id,
        admin_role_id=admin.id,
        writers_team_id=writers.id,
    )


@pytest.fixture
async def engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncIterator[AsyncSession]:
    """Database session for repository/integration tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(db_session: AsyncSession) -> SeedData:
    return await seed_catalog(db_session)


@pytest.fixture
def resolution_cache() -> ResolutionCache:
    return ResolutionCache(MemoryCacheService(), ttl_seconds=300)


@pytest.fixture
def auth_service(db_session: AsyncSession, resolution_cache: ResolutionCache) -> AuthorizationService:
    """Cache-fronted AuthorizationService over the SQL store."""
    resolver = PermissionResolver(SqlPermissionStore(db_session), default_application_code="rbac")
    return AuthorizationService(resolver, cache=resolution_cache, default_application_code="rbac")


@pytest.fixture
def assignment_service(
    db_session: AsyncSession, auth_service: AuthorizationService
) -> AssignmentService:
    return AssignmentService(
        uow=db_session,
        subjects=SubjectRepository(db_session),
        roles=RoleRepository(db_session),
        teams=TeamRepository(db_session),
        catalog=CatalogRepository(db_session),
        assignments=AssignmentRepository(db_session),
        invalidator=auth_service,
        default_application_code="rbac",
    )


@pytest.fixture
def role_service(db_session: AsyncSession, auth_service: AuthorizationService) -> RoleService:
    return RoleService(
        uow=db_session,
        roles=RoleRepository(db_session),
        catalog=CatalogRepository(db_session),
        invalidator=auth_service,
        default_application_code="rbac",
    )


@pytest.fixture
async def app(session_factory):
    """The FastAPI app bound to the test database with a fresh memory cache."""
    from rbac.main import app as fastapi_app

    async def _get_test_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    fastapi_app.state.cache = ResolutionCache(MemoryCacheService(), ttl_seconds=300)
    limiter.enabled = False
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.cache = None
    limiter.enabled = True


@pytest.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def api_seed(session_factory) -> SeedData:
    """Seed through a separate, closed session so request sessions see committed data."""
    async with session_factory() as session:
        return await seed_catalog(session)


@pytest.fixture
def bearer():
    """Return a function building the Authorization header for a subject external id."""

    def _headers(subject_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(subject_id)}"}

    return _headers
