"""OrgResolverPort - maps an authenticated user to exactly one organization.

The lookup is fallible, so the result is a closed union the caller has to
branch on: OrgFound carries the org id, OrgNotFound carries nothing.
Implementations live in src/infra/org/membership.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OrgFound:
    org_id: str


@dataclass(frozen=True)
class OrgNotFound:
    pass


OrgLookup = OrgFound | OrgNotFound


class OrgResolver(ABC):
    """Port: organization membership lookup."""

    @abstractmethod
    async def resolve(self, user_id: str) -> OrgLookup:
        """Resolve the organization a user acts within.

        Args:
            user_id: Authenticated user id (non-empty).

        Returns:
            OrgFound with the selected org id, or OrgNotFound when the user
            has no active membership. Never raises for a missing membership.
        """
