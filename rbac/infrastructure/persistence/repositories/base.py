"""Base repository: primary-key lookup and inserts with duplicate translation."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.domain.exceptions import DuplicateAssignmentException
from rbac.infrastructure.persistence.database import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get_entity_by_id, create and flush_unique.

    Unique constraint violations surface as DuplicateAssignmentException.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_entity_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single ORM record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        obj: ModelType,
        *,
        assignment_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ModelType:
        """Persist a new record; flush and refresh it."""
        kind = assignment_type or self.model.__tablename__
        self.db.add(obj)
        await self.flush_unique(f"{kind} already exists", kind, details)
        await self.db.refresh(obj)
        return obj

    async def flush_unique(
        self,
        message: str,
        assignment_type: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Flush pending inserts; raise DuplicateAssignmentException on a unique clash."""
        try:
            await self.db.flush()
        except IntegrityError:
            raise DuplicateAssignmentException(
                message,
                assignment_type=assignment_type,
                details_extra=details,
            ) from None
