"""OrgContext guard - resolves the caller's organization per request.

- Runs after require_user has authenticated the caller
- Looks up the user's org through the app's OrgResolver
- Rejects users with no membership before any validation or service call
- Provides OrgContext to downstream request handlers

Route groups differ only in how "no organization" is reported, so the guard
is built by require_org() with the group's code, message and status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Depends, Request

from src.gateway.middleware.auth import AuthenticatedUser, require_user
from src.ports.org_resolver import OrgFound
from src.shared.errors import NoOrgError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrgContext:
    """Organization context for one request.

    Every service call in a handler is scoped to org_id; nothing the client
    sends can override it.
    """

    user_id: str
    org_id: str


@dataclass(frozen=True)
class NoOrgResponse:
    """How a route group reports a caller without an organization."""

    code: str
    message: str
    status: int


NO_ORG = NoOrgResponse("NO_ORG", "User has no organization", 403)
ORG_NOT_FOUND = NoOrgResponse("ORG_NOT_FOUND", "Organization not found", 404)
NO_ORG_ACCESS = NoOrgResponse("NO_ORG_ACCESS", "User is not a member of any organization", 403)


def require_org(
    response: NoOrgResponse = NO_ORG,
) -> Callable[..., Awaitable[OrgContext]]:
    """Build a FastAPI dependency yielding the caller's OrgContext.

    Raises NoOrgError (rendered with response's code/message/status) when the
    user has no organization. Lookup failures propagate as 500s.
    """

    async def _dependency(
        request: Request,
        user: AuthenticatedUser = Depends(require_user),  # noqa: B008
    ) -> OrgContext:
        lookup = await request.app.state.org_resolver.resolve(user.id)
        if not isinstance(lookup, OrgFound):
            logger.info("org resolution failed for user %s", user.id)
            raise NoOrgError(response.message, response.code, http_status=response.status)

        request.state.org_id = lookup.org_id
        return OrgContext(user_id=user.id, org_id=lookup.org_id)

    return _dependency
