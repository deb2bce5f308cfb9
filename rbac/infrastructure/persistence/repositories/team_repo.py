"""Team repository: teams and membership (single entity responsibility)."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.dtos.catalog import TeamResult
from rbac.domain.enums import TeamMembershipRole
from rbac.infrastructure.persistence.models.subject import Subject
from rbac.infrastructure.persistence.models.team import Team, TeamMember
from rbac.infrastructure.persistence.repositories.base import BaseRepository


def _team_to_result(t: Team) -> TeamResult:
    return TeamResult(id=t.id, code=t.code, name=t.name, is_active=t.is_active)


class TeamRepository(BaseRepository[Team]):
    """Teams by code and their members."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Team)

    async def get_by_code(self, code: str) -> TeamResult | None:
        result = await self.db.execute(select(Team).where(Team.code == code))
        row = result.scalar_one_or_none()
        return _team_to_result(row) if row else None

    async def create_team(
        self,
        code: str,
        name: str,
        description: str | None = None,
        parent_team_id: str | None = None,
    ) -> TeamResult:
        team = await self.create(
            Team(code=code, name=name, description=description, parent_team_id=parent_team_id),
            assignment_type="team",
            details={"code": code},
        )
        return _team_to_result(team)

    async def list_member_external_ids(self, team_id: str) -> list[str]:
        result = await self.db.execute(
            select(Subject.external_id)
            .join(TeamMember, TeamMember.subject_id == Subject.id)
            .where(TeamMember.team_id == team_id)
        )
        return list(result.scalars().all())

    async def is_member(self, team_id: str, subject_id: str) -> bool:
        result = await self.db.execute(
            select(TeamMember.id).where(
                TeamMember.team_id == team_id, TeamMember.subject_id == subject_id
            )
        )
        return result.first() is not None

    async def add_member(
        self,
        team_id: str,
        subject_id: str,
        membership_role: str = TeamMembershipRole.MEMBER.value,
    ) -> None:
        member = TeamMember(team_id=team_id, subject_id=subject_id, membership_role=membership_role)
        self.db.add(member)
        await self.flush_unique(
            "Subject is already a member of team",
            "team_member",
            {"team_id": team_id, "subject_id": subject_id},
        )

    async def remove_member(self, team_id: str, subject_id: str) -> bool:
        result = await self.db.execute(
            delete(TeamMember).where(
                TeamMember.team_id == team_id, TeamMember.subject_id == subject_id
            )
        )
        return (result.rowcount or 0) > 0
