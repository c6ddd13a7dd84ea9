"""Journalist identity graph: org-scoped journalist profiles.

In-memory store. Every read and write is keyed by org_id, so a profile
owned by another organization behaves exactly like a missing one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.shared.errors import NotFoundError

if TYPE_CHECKING:
    from src.gateway.schemas.journalist_graph import ListJournalistProfilesQuery

logger = logging.getLogger(__name__)

PROFILE_NOT_FOUND = "Journalist profile not found"


@dataclass
class JournalistProfile:
    """A journalist known to one organization."""

    id: UUID
    org_id: str
    full_name: str
    primary_email: str
    secondary_emails: list[str] = field(default_factory=list)
    primary_outlet: str | None = None
    outlet_id: UUID | None = None
    beat: str | None = None
    twitter_handle: str | None = None
    linkedin_url: str | None = None
    website_url: str | None = None
    engagement_score: float = 0.0
    relevance_score: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def _matches_text(profile: JournalistProfile, needle: str) -> bool:
    needle = needle.lower()
    haystack = (profile.full_name, profile.primary_email, profile.primary_outlet or "")
    return any(needle in value.lower() for value in haystack)


class JournalistGraphService:
    """CRUD over journalist profiles, scoped per organization."""

    def __init__(self) -> None:
        self._profiles: dict[UUID, JournalistProfile] = {}

    def _owned(self, org_id: str, profile_id: UUID) -> JournalistProfile:
        profile = self._profiles.get(profile_id)
        if profile is None or profile.org_id != org_id:
            raise NotFoundError(PROFILE_NOT_FOUND)
        return profile

    async def create_profile(self, org_id: str, data: dict[str, Any]) -> JournalistProfile:
        profile = JournalistProfile(id=uuid4(), org_id=org_id, **data)
        self._profiles[profile.id] = profile
        logger.info("journalist profile created id=%s org_id=%s", profile.id, org_id)
        return profile

    async def get_profile(self, org_id: str, profile_id: UUID) -> JournalistProfile:
        return self._owned(org_id, profile_id)

    async def profiles_for_org(self, org_id: str) -> list[JournalistProfile]:
        """All of the org's profiles, oldest first."""
        return [p for p in self._profiles.values() if p.org_id == org_id]

    async def list_profiles(
        self,
        org_id: str,
        query: ListJournalistProfilesQuery,
    ) -> tuple[list[JournalistProfile], int]:
        """Filter, sort and page the org's profiles. Returns (page, total)."""
        rows = [p for p in self._profiles.values() if p.org_id == org_id]
        if query.q:
            rows = [p for p in rows if _matches_text(p, query.q)]
        if query.outlet:
            rows = [p for p in rows if p.primary_outlet == query.outlet]
        if query.beat:
            rows = [p for p in rows if p.beat == query.beat]
        if query.min_engagement_score is not None:
            rows = [p for p in rows if p.engagement_score >= query.min_engagement_score]
        if query.min_relevance_score is not None:
            rows = [p for p in rows if p.relevance_score >= query.min_relevance_score]

        rows.sort(
            key=lambda p: getattr(p, query.sort_by),
            reverse=query.sort_order == "desc",
        )
        return rows[query.offset : query.offset + query.limit], len(rows)

    async def update_profile(
        self,
        org_id: str,
        profile_id: UUID,
        changes: dict[str, Any],
    ) -> JournalistProfile:
        profile = self._owned(org_id, profile_id)
        for name, value in changes.items():
            setattr(profile, name, value)
        profile.updated_at = datetime.now(UTC)
        return profile

    async def delete_profile(self, org_id: str, profile_id: UUID) -> None:
        self._owned(org_id, profile_id)
        del self._profiles[profile_id]
        logger.info("journalist profile deleted id=%s org_id=%s", profile_id, org_id)
