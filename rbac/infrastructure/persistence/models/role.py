"""Role graph ORM models: role (optional application scope, optional parent) and role_permission."""

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rbac.infrastructure.persistence.database import Base
from rbac.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin, TimestampMixin


class Role(CuidMixin, TimestampMixin, Base):
    """Role. Table: role. application_id NULL means a global role.

    Code is unique within its application; global role codes are kept
    unique by RoleService since NULLs never collide in a unique constraint.
    """

    __tablename__ = "role"

    application_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("application.id", ondelete="CASCADE"), nullable=True, index=True
    )
    code: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    parent_role_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("role.id", ondelete="SET NULL"), nullable=True, index=True
    )

    __table_args__ = (UniqueConstraint("application_id", "code", name="uq_role_application_code"),)


class RolePermission(CuidMixin, CreatedAtMixin, Base):
    """Role-permission link. Unique (role_id, permission_id)."""

    __tablename__ = "role_permission"

    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), nullable=False, index=True
    )

    __table_args__ = (UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),)
