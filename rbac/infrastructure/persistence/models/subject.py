"""Subject ORM models: subject (user, service account, group) and subject_role."""

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rbac.domain.enums import SubjectType
from rbac.infrastructure.persistence.database import Base
from rbac.infrastructure.persistence.models.mixins import CuidMixin, GrantMixin, TimestampMixin


class Subject(CuidMixin, TimestampMixin, Base):
    """Identity from an external provider. Unique (provider, external_id)."""

    __tablename__ = "subject"

    provider: Mapped[str] = mapped_column(String, nullable=False, default="local")
    external_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    subject_type: Mapped[str] = mapped_column(
        String, nullable=False, default=SubjectType.USER.value
    )
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("provider", "external_id", name="uq_subject_provider_external_id"),
    )


class SubjectRole(CuidMixin, GrantMixin, Base):
    """Subject-role assignment, optionally scoped to one resource instance.

    resource_instance_id holds the instance external id (e.g. "doc-123");
    NULL means the assignment is unscoped.
    """

    __tablename__ = "subject_role"

    subject_id: Mapped[str] = mapped_column(
        String, ForeignKey("subject.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_instance_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint(
            "subject_id", "role_id", "resource_instance_id", name="uq_subject_role_scope"
        ),
    )
