"""Team ORM models: team, team_member and team_role."""

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rbac.domain.enums import TeamMembershipRole
from rbac.infrastructure.persistence.database import Base
from rbac.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    GrantMixin,
    TimestampMixin,
)


class Team(CuidMixin, TimestampMixin, Base):
    """Group of subjects whose role assignments are inherited by every member.

    parent_team_id is informational; membership and roles do not flow
    between parent and child teams.
    """

    __tablename__ = "team"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_team_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("team.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TeamMember(CuidMixin, CreatedAtMixin, Base):
    """Team membership. Unique (team_id, subject_id)."""

    __tablename__ = "team_member"

    team_id: Mapped[str] = mapped_column(
        String, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[str] = mapped_column(
        String, ForeignKey("subject.id", ondelete="CASCADE"), nullable=False, index=True
    )
    membership_role: Mapped[str] = mapped_column(
        String, nullable=False, default=TeamMembershipRole.MEMBER.value
    )

    __table_args__ = (UniqueConstraint("team_id", "subject_id", name="uq_team_member"),)


class TeamRole(CuidMixin, GrantMixin, Base):
    """Team-role assignment, same shape as SubjectRole."""

    __tablename__ = "team_role"

    team_id: Mapped[str] = mapped_column(
        String, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_instance_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("team_id", "role_id", "resource_instance_id", name="uq_team_role_scope"),
    )
