"""Organization membership resolvers.

PgOrgResolver queries org_members; InMemoryOrgResolver backs local runs
without a database. Both return the first active membership, ordered by
creation time so a user in several organizations always lands in the same
one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID

import sqlalchemy as sa

from src.infra.models import OrgMember
from src.ports.org_resolver import OrgFound, OrgLookup, OrgNotFound, OrgResolver

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


def _membership_query(user_id: UUID) -> sa.Select[tuple[UUID]]:
    return (
        sa.select(OrgMember.org_id)
        .where(OrgMember.user_id == user_id, OrgMember.is_active.is_(True))
        .order_by(OrgMember.created_at, OrgMember.id)
        .limit(1)
    )


class PgOrgResolver(OrgResolver):
    """Resolve memberships from the org_members table."""

    def __init__(self, *, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def resolve(self, user_id: str) -> OrgLookup:
        try:
            uid = UUID(user_id)
        except ValueError:
            logger.warning("Membership lookup skipped for non-UUID user id")
            return OrgNotFound()

        async with self._session_factory() as session:
            result = await session.execute(_membership_query(uid))
            org_id = result.scalar_one_or_none()

        if org_id is None:
            return OrgNotFound()
        return OrgFound(org_id=str(org_id))


class InMemoryOrgResolver(OrgResolver):
    """Dict-backed resolver; memberships are kept in insertion order."""

    def __init__(self, memberships: dict[str, list[str]] | None = None) -> None:
        self._memberships: dict[str, list[str]] = {
            user: list(orgs) for user, orgs in (memberships or {}).items()
        }

    def add_membership(self, user_id: str, org_id: str) -> None:
        orgs = self._memberships.setdefault(user_id, [])
        if org_id not in orgs:
            orgs.append(org_id)

    def remove_membership(self, user_id: str, org_id: str) -> None:
        orgs = self._memberships.get(user_id, [])
        if org_id in orgs:
            orgs.remove(org_id)

    async def resolve(self, user_id: str) -> OrgLookup:
        orgs = self._memberships.get(user_id)
        if not orgs:
            return OrgNotFound()
        return OrgFound(org_id=orgs[0])
