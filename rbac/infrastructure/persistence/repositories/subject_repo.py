"""Subject repository. Read methods return SubjectResult (DTO)."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.dtos.catalog import SubjectResult
from rbac.domain.enums import SubjectType
from rbac.infrastructure.persistence.models.subject import Subject
from rbac.infrastructure.persistence.repositories.base import BaseRepository


def _subject_to_result(s: Subject) -> SubjectResult:
    """Map ORM Subject to application SubjectResult."""
    return SubjectResult(
        id=s.id,
        provider=s.provider,
        external_id=s.external_id,
        subject_type=s.subject_type,
        email=s.email,
        display_name=s.display_name,
        is_active=s.is_active,
    )


class SubjectRepository(BaseRepository[Subject]):
    """Subjects keyed by (provider, external_id); lookups by external id ignore the provider."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Subject)

    async def get_by_id(self, subject_id: str) -> SubjectResult | None:
        orm = await self.get_entity_by_id(subject_id)
        return _subject_to_result(orm) if orm else None

    async def get_by_external_id(self, external_id: str) -> SubjectResult | None:
        result = await self.db.execute(
            select(Subject)
            .where(Subject.external_id == external_id)
            .order_by(Subject.created_at, Subject.id)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _subject_to_result(row) if row else None

    async def get_by_ids(self, subject_ids: Iterable[str]) -> list[SubjectResult]:
        ids = list(set(subject_ids))
        if not ids:
            return []
        result = await self.db.execute(select(Subject).where(Subject.id.in_(ids)))
        return [_subject_to_result(s) for s in result.scalars().all()]

    async def create_subject(
        self,
        external_id: str,
        provider: str = "local",
        subject_type: str = SubjectType.USER.value,
        email: str | None = None,
        display_name: str | None = None,
        is_active: bool = True,
    ) -> SubjectResult:
        """Create a subject; raises DuplicateAssignmentException on (provider, external_id) clash."""
        subject = Subject(
            provider=provider,
            external_id=external_id,
            subject_type=subject_type,
            email=email,
            display_name=display_name,
            is_active=is_active,
        )
        created = await self.create(
            subject,
            assignment_type="subject",
            details={"provider": provider, "external_id": external_id},
        )
        return _subject_to_result(created)

    async def set_active(self, subject_id: str, is_active: bool) -> SubjectResult | None:
        orm = await self.get_entity_by_id(subject_id)
        if orm is None:
            return None
        orm.is_active = is_active
        await self.db.flush()
        return _subject_to_result(orm)
