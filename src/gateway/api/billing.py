"""Billing REST API endpoints.

- GET  /api/v1/billing/plans               -> active plan catalog
- GET  /api/v1/billing/plans/{slug}        -> one plan (404 PLAN_NOT_FOUND)
- GET  /api/v1/billing/org/summary         -> caller's org plan, usage, period
- POST /api/v1/billing/org/switch-plan     -> change plan; blocked downgrades
                                              answer 422 UPGRADE_REQUIRED
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse  # noqa: TC002 -- FastAPI reads return annotations

from src.gateway.envelope import ok
from src.gateway.middleware.auth import AuthenticatedUser, require_user
from src.gateway.middleware.org_context import NO_ORG_ACCESS, OrgContext, require_org
from src.gateway.schemas.billing import (
    OrgBillingSummaryOut,
    PlanOut,
    PlanSlugParams,
    SwitchPlanOut,
    SwitchPlanRequest,
)
from src.gateway.validation import ValidationFailure, read_json_body, safe_parse

if TYPE_CHECKING:
    from src.billing.service import BillingService

Org = Annotated[OrgContext, Depends(require_org(NO_ORG_ACCESS))]
User = Annotated[AuthenticatedUser, Depends(require_user)]


def create_billing_router(*, service: BillingService) -> APIRouter:
    """Create billing router with injected service."""
    router = APIRouter(prefix="/api/v1/billing", tags=["billing"])

    @router.get("/plans")
    async def list_plans(_: User) -> JSONResponse:
        plans = await service.list_plans()
        return ok([PlanOut.model_validate(p) for p in plans])

    @router.get("/plans/{slug}")
    async def get_plan(slug: str, _: User) -> JSONResponse:
        result = safe_parse(PlanSlugParams, {"slug": slug})
        if isinstance(result, ValidationFailure):
            raise result.to_error("Invalid plan slug")
        plan = await service.get_plan(result.data.slug)
        return ok(PlanOut.model_validate(plan))

    @router.get("/org/summary")
    async def get_org_summary(org: Org) -> JSONResponse:
        summary = await service.build_summary(org.org_id)
        return ok(OrgBillingSummaryOut.model_validate(summary))

    @router.post("/org/switch-plan")
    async def switch_plan(request: Request, org: Org) -> JSONResponse:
        result = safe_parse(SwitchPlanRequest, await read_json_body(request))
        if isinstance(result, ValidationFailure):
            raise result.to_error("Invalid request")
        target = result.data.target_plan_slug
        state = await service.switch_plan(org.org_id, target)
        return ok(
            SwitchPlanOut(
                plan_id=state.plan_id,
                billing_status=state.billing_status,
                message=f"Successfully switched to {target}",
            )
        )

    return router
