"""Permission catalog ORM models: application, resource type, action, permission."""

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rbac.infrastructure.persistence.database import Base
from rbac.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin, TimestampMixin


class Application(CuidMixin, TimestampMixin, Base):
    """Client application sharing the authorization backend. Table: application."""

    __tablename__ = "application"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class ResourceType(CuidMixin, CreatedAtMixin, Base):
    """Kind of resource within an application. Unique (application_id, code)."""

    __tablename__ = "resource_type"

    application_id: Mapped[str] = mapped_column(
        String, ForeignKey("application.id", ondelete="CASCADE"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    supports_instances: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("application_id", "code", name="uq_resource_type_application_code"),
    )


class Action(CuidMixin, CreatedAtMixin, Base):
    """Verb applicable to resource types (read, write, delete...). Table: action."""

    __tablename__ = "action"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class Permission(CuidMixin, CreatedAtMixin, Base):
    """(resource type, action) pair. Wire code "{application}:{resource_type}:{action}"."""

    __tablename__ = "permission"

    resource_type_id: Mapped[str] = mapped_column(
        String, ForeignKey("resource_type.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action_id: Mapped[str] = mapped_column(
        String, ForeignKey("action.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("resource_type_id", "action_id", name="uq_permission_resource_type_action"),
    )
