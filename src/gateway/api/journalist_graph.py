"""Journalist graph REST API endpoints.

- GET    /api/v1/journalist-graph/profiles       -> paged, filtered list
- GET    /api/v1/journalist-graph/profiles/{id}  -> one profile
- POST   /api/v1/journalist-graph/profiles       -> create (201)
- PATCH  /api/v1/journalist-graph/profiles/{id}  -> partial update
- DELETE /api/v1/journalist-graph/profiles/{id}  -> delete (204)

Input is validated in throwing mode: a bad body or query raises
ValidationError and the error mapper answers 400.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response  # noqa: TC002 -- used at runtime

from src.gateway.envelope import created, no_content, ok
from src.gateway.middleware.org_context import NO_ORG, OrgContext, require_org
from src.gateway.schemas.base import IdParams
from src.gateway.schemas.journalist_graph import (
    CreateJournalistProfile,
    JournalistProfileOut,
    ListJournalistProfilesQuery,
    UpdateJournalistProfile,
)
from src.gateway.validation import parse, read_json_body, read_query, strip_nulls

if TYPE_CHECKING:
    from src.journalist_graph.service import JournalistGraphService

Org = Annotated[OrgContext, Depends(require_org(NO_ORG))]


def create_journalist_graph_router(*, service: JournalistGraphService) -> APIRouter:
    """Create journalist graph router with injected service."""
    router = APIRouter(prefix="/api/v1/journalist-graph", tags=["journalist-graph"])

    @router.get("/profiles")
    async def list_profiles(request: Request, org: Org) -> JSONResponse:
        query = parse(ListJournalistProfilesQuery, read_query(request))
        profiles, total = await service.list_profiles(org.org_id, query)
        return ok(
            {
                "profiles": [JournalistProfileOut.model_validate(p) for p in profiles],
                "total": total,
                "limit": query.limit,
                "offset": query.offset,
            }
        )

    @router.get("/profiles/{profile_id}")
    async def get_profile(profile_id: str, org: Org) -> JSONResponse:
        params = parse(IdParams, {"id": profile_id})
        profile = await service.get_profile(org.org_id, params.id)
        return ok(JournalistProfileOut.model_validate(profile))

    @router.post("/profiles")
    async def create_profile(request: Request, org: Org) -> JSONResponse:
        body = parse(CreateJournalistProfile, await read_json_body(request))
        profile = await service.create_profile(org.org_id, body.model_dump())
        return created(JournalistProfileOut.model_validate(profile))

    @router.patch("/profiles/{profile_id}")
    async def update_profile(profile_id: str, request: Request, org: Org) -> JSONResponse:
        params = parse(IdParams, {"id": profile_id})
        body = parse(UpdateJournalistProfile, await read_json_body(request))
        profile = await service.update_profile(org.org_id, params.id, strip_nulls(body))
        return ok(JournalistProfileOut.model_validate(profile))

    @router.delete("/profiles/{profile_id}", status_code=204)
    async def delete_profile(profile_id: str, org: Org) -> Response:
        params = parse(IdParams, {"id": profile_id})
        await service.delete_profile(org.org_id, params.id)
        return no_content()

    return router
