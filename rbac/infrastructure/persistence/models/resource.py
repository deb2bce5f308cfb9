"""Resource instance ORM models: resource_instance and instance_permission."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rbac.infrastructure.persistence.database import Base
from rbac.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin, GrantMixin


class ResourceInstance(CuidMixin, CreatedAtMixin, Base):
    """Concrete addressable resource. Unique (resource_type_id, external_id)."""

    __tablename__ = "resource_instance"

    resource_type_id: Mapped[str] = mapped_column(
        String, ForeignKey("resource_type.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    owner_subject_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("subject.id", ondelete="SET NULL"), nullable=True, index=True
    )

    __table_args__ = (
        UniqueConstraint("resource_type_id", "external_id", name="uq_resource_instance_external_id"),
    )


class InstancePermission(CuidMixin, GrantMixin, Base):
    """Direct permission grant to a subject on one resource instance."""

    __tablename__ = "instance_permission"

    resource_instance_id: Mapped[str] = mapped_column(
        String, ForeignKey("resource_instance.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[str] = mapped_column(
        String, ForeignKey("subject.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint(
            "resource_instance_id", "subject_id", "permission_id", name="uq_instance_permission"
        ),
    )
