"""Billing request/response schemas."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 -- pydantic resolves field annotations at runtime
from typing import Literal

from pydantic import Field

from src.gateway.schemas.base import CamelModel

BillingStatus = Literal["trial", "active", "past_due", "canceled"]

_SLUG = r"^[a-z0-9][a-z0-9-]*$"


class PlanSlugParams(CamelModel):
    slug: str = Field(min_length=1, max_length=64, pattern=_SLUG)


class SwitchPlanRequest(CamelModel):
    target_plan_slug: str = Field(min_length=1, max_length=64, pattern=_SLUG)


class PlanOut(CamelModel):
    id: str
    slug: str
    name: str
    description: str | None
    monthly_price_cents: int
    included_tokens_monthly: int
    included_playbook_runs_monthly: int
    included_seats: int
    is_active: bool


class SoftLimitsOut(CamelModel):
    tokens: int | None = None
    playbook_runs: int | None = None
    seats: int | None = None


class OrgBillingSummaryOut(CamelModel):
    plan: PlanOut | None
    billing_status: BillingStatus
    current_period_start: datetime | None
    current_period_end: datetime | None
    tokens_used: int
    playbook_runs: int
    seats: int
    soft_limits: SoftLimitsOut


class SwitchPlanOut(CamelModel):
    plan_id: str
    billing_status: BillingStatus
    message: str
