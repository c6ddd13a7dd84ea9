"""Governance policy REST API endpoints.

- GET    /api/v1/governance/policies                -> filtered list
- POST   /api/v1/governance/policies                -> create (201)
- GET    /api/v1/governance/policies/{id}           -> one policy
- PATCH  /api/v1/governance/policies/{id}           -> partial update
- DELETE /api/v1/governance/policies/{id}           -> delete (204)
- GET    /api/v1/governance/policies/{id}/versions  -> version history

Handlers validate with safe_parse and choose their own messages
("Invalid policy ID", "Invalid request body", "Invalid query parameters").
A caller without an organization gets 404 ORG_NOT_FOUND.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response  # noqa: TC002 -- used at runtime

from src.gateway.envelope import created, no_content, ok
from src.gateway.middleware.auth import AuthenticatedUser, require_user
from src.gateway.middleware.org_context import ORG_NOT_FOUND, OrgContext, require_org
from src.gateway.schemas.base import IdParams
from src.gateway.schemas.governance import (
    CreatePolicy,
    ListPoliciesQuery,
    PolicyOut,
    PolicyVersionOut,
    UpdatePolicy,
)
from src.gateway.validation import (
    ValidationFailure,
    read_json_body,
    read_query,
    safe_parse,
    strip_nulls,
)
from src.shared.errors import FeatureDisabledError, ValidationError

if TYPE_CHECKING:
    from uuid import UUID

    from src.governance.service import GovernanceService

Org = Annotated[OrgContext, Depends(require_org(ORG_NOT_FOUND))]

PREFIX = "/api/v1/governance"


def _policy_id(raw: str) -> UUID:
    result = safe_parse(IdParams, {"id": raw})
    if isinstance(result, ValidationFailure):
        raise ValidationError("Invalid policy ID")
    return result.data.id


def create_governance_router(*, service: GovernanceService) -> APIRouter:
    """Create governance router with injected service."""
    router = APIRouter(prefix=PREFIX, tags=["governance"])

    @router.get("/policies")
    async def list_policies(request: Request, org: Org) -> JSONResponse:
        result = safe_parse(ListPoliciesQuery, read_query(request))
        if isinstance(result, ValidationFailure):
            raise result.to_error("Invalid query parameters")
        query = result.data
        policies, total = await service.list_policies(org.org_id, query)
        return ok(
            {
                "policies": [PolicyOut.model_validate(p) for p in policies],
                "total": total,
                "limit": query.limit,
                "offset": query.offset,
                "hasMore": query.offset + len(policies) < total,
            }
        )

    @router.post("/policies")
    async def create_policy(request: Request, org: Org) -> JSONResponse:
        result = safe_parse(CreatePolicy, await read_json_body(request))
        if isinstance(result, ValidationFailure):
            raise result.to_error("Invalid request body")
        policy = await service.create_policy(org.org_id, result.data.model_dump(), org.user_id)
        return created(PolicyOut.model_validate(policy))

    @router.get("/policies/{policy_id}")
    async def get_policy(policy_id: str, org: Org) -> JSONResponse:
        policy = await service.get_policy(org.org_id, _policy_id(policy_id))
        return ok(PolicyOut.model_validate(policy))

    @router.patch("/policies/{policy_id}")
    async def update_policy(policy_id: str, request: Request, org: Org) -> JSONResponse:
        target = _policy_id(policy_id)
        result = safe_parse(UpdatePolicy, await read_json_body(request))
        if isinstance(result, ValidationFailure):
            raise result.to_error("Invalid request body")
        changes = strip_nulls(result.data)
        policy = await service.update_policy(org.org_id, target, changes, org.user_id)
        return ok(PolicyOut.model_validate(policy))

    @router.delete("/policies/{policy_id}", status_code=204)
    async def delete_policy(policy_id: str, org: Org) -> Response:
        await service.delete_policy(org.org_id, _policy_id(policy_id))
        return no_content()

    @router.get("/policies/{policy_id}/versions")
    async def list_versions(policy_id: str, org: Org) -> JSONResponse:
        versions = await service.list_versions(org.org_id, _policy_id(policy_id))
        return ok(
            {
                "versions": [PolicyVersionOut.model_validate(v) for v in versions],
                "total": len(versions),
            }
        )

    return router


def create_governance_disabled_router() -> APIRouter:
    """Stand-in mounted when governance is switched off.

    Only the group root exists; everything else under the prefix is 404.
    """
    router = APIRouter(prefix=PREFIX, tags=["governance"])

    @router.get("/")
    async def governance_disabled(
        user: Annotated[AuthenticatedUser, Depends(require_user)],  # noqa: ARG001
    ) -> JSONResponse:
        raise FeatureDisabledError("Governance")

    return router
