"""Plan catalog and per-org billing state.

Plan switching rules:
- Same plan: no-op.
- Upgrade (target monthly price is higher): always allowed.
- Downgrade: blocked with BillingQuotaError when the org's current tokens,
  playbook runs or seats already exceed the target plan's allowance.
  The first exceeded quota, in that order, is reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import NAMESPACE_URL, uuid5

from src.shared.errors import BillingQuotaError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


def _plan_id(slug: str) -> str:
    return str(uuid5(NAMESPACE_URL, f"pravado:billing-plan:{slug}"))


@dataclass(frozen=True)
class BillingPlan:
    slug: str
    name: str
    monthly_price_cents: int
    included_tokens_monthly: int
    included_playbook_runs_monthly: int
    included_seats: int
    description: str | None = None
    is_active: bool = True

    @property
    def id(self) -> str:
        return _plan_id(self.slug)


DEFAULT_PLANS: tuple[BillingPlan, ...] = (
    BillingPlan(
        slug="internal-dev",
        name="Internal Dev",
        description="Unmetered plan for internal organizations",
        monthly_price_cents=0,
        included_tokens_monthly=100_000_000,
        included_playbook_runs_monthly=10_000,
        included_seats=100,
    ),
    BillingPlan(
        slug="starter",
        name="Starter",
        description="For individual communicators",
        monthly_price_cents=4_900,
        included_tokens_monthly=1_000_000,
        included_playbook_runs_monthly=50,
        included_seats=1,
    ),
    BillingPlan(
        slug="growth",
        name="Growth",
        description="For small PR teams",
        monthly_price_cents=14_900,
        included_tokens_monthly=5_000_000,
        included_playbook_runs_monthly=250,
        included_seats=5,
    ),
    BillingPlan(
        slug="enterprise",
        name="Enterprise",
        description="For agencies and large communications teams",
        monthly_price_cents=49_900,
        included_tokens_monthly=25_000_000,
        included_playbook_runs_monthly=1_000,
        included_seats=25,
    ),
)


def current_period(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Calendar-month billing period containing now."""
    now = now or datetime.now(UTC)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


@dataclass
class OrgBillingState:
    org_id: str
    plan_slug: str
    billing_status: str = "active"
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    tokens_used: int = 0
    playbook_runs: int = 0
    seats: int = 1

    @property
    def plan_id(self) -> str:
        return _plan_id(self.plan_slug)


@dataclass(frozen=True)
class OrgBillingSummary:
    plan: BillingPlan | None
    billing_status: str
    current_period_start: datetime | None
    current_period_end: datetime | None
    tokens_used: int
    playbook_runs: int
    seats: int
    soft_limits: dict[str, Any] = field(default_factory=dict)


class BillingService:
    """In-memory billing: a fixed plan catalog plus usage per org.

    Args:
        plans: Plan catalog.
        default_plan_slug: Plan assigned to an org the first time it is seen.
        seats: Seat counts for orgs whose membership is known up front. Other
            orgs start with one seat.
    """

    def __init__(
        self,
        *,
        plans: tuple[BillingPlan, ...] = DEFAULT_PLANS,
        default_plan_slug: str = "internal-dev",
        seats: Mapping[str, int] | None = None,
    ) -> None:
        self._plans = {plan.slug: plan for plan in plans}
        if default_plan_slug not in self._plans:
            msg = f"Default plan '{default_plan_slug}' is not in the plan catalog"
            raise ValueError(msg)
        self._default_plan_slug = default_plan_slug
        self._states: dict[str, OrgBillingState] = {}
        self._initial_seats = dict(seats or {})

    async def list_plans(self) -> list[BillingPlan]:
        """Active plans, cheapest first."""
        active = [p for p in self._plans.values() if p.is_active]
        return sorted(active, key=lambda p: p.monthly_price_cents)

    async def get_plan(self, slug: str) -> BillingPlan:
        plan = self._plans.get(slug)
        if plan is None or not plan.is_active:
            raise NotFoundError(f"Plan '{slug}' not found", code="PLAN_NOT_FOUND")
        return plan

    def _state(self, org_id: str) -> OrgBillingState:
        state = self._states.get(org_id)
        if state is None:
            start, end = current_period()
            state = OrgBillingState(
                org_id=org_id,
                plan_slug=self._default_plan_slug,
                current_period_start=start,
                current_period_end=end,
                seats=self._initial_seats.get(org_id, 1),
            )
            self._states[org_id] = state
        return state

    async def get_org_state(self, org_id: str) -> OrgBillingState:
        return self._state(org_id)

    async def record_usage(
        self,
        org_id: str,
        *,
        tokens: int = 0,
        playbook_runs: int = 0,
    ) -> OrgBillingState:
        if tokens < 0 or playbook_runs < 0:
            msg = "usage increments must be non-negative"
            raise ValueError(msg)
        state = self._state(org_id)
        state.tokens_used += tokens
        state.playbook_runs += playbook_runs
        return state

    async def set_seats(self, org_id: str, seats: int) -> OrgBillingState:
        if seats < 0:
            msg = f"seats must be non-negative, got {seats}"
            raise ValueError(msg)
        state = self._state(org_id)
        state.seats = seats
        return state

    async def build_summary(self, org_id: str) -> OrgBillingSummary:
        state = self._state(org_id)
        plan = self._plans.get(state.plan_slug)
        soft_limits: dict[str, Any] = {}
        if plan is not None:
            soft_limits = {
                "tokens": plan.included_tokens_monthly,
                "playbook_runs": plan.included_playbook_runs_monthly,
                "seats": plan.included_seats,
            }
        return OrgBillingSummary(
            plan=plan,
            billing_status=state.billing_status,
            current_period_start=state.current_period_start,
            current_period_end=state.current_period_end,
            tokens_used=state.tokens_used,
            playbook_runs=state.playbook_runs,
            seats=state.seats,
            soft_limits=soft_limits,
        )

    async def switch_plan(self, org_id: str, target_plan_slug: str) -> OrgBillingState:
        """Move the org to another plan.

        Raises:
            NotFoundError: PLAN_NOT_FOUND for an unknown target.
            BillingQuotaError: downgrade blocked by current usage.
        """
        target = await self.get_plan(target_plan_slug)
        state = self._state(org_id)
        current = self._plans[state.plan_slug]
        if target.slug == current.slug:
            return state

        if target.monthly_price_cents <= current.monthly_price_cents:
            self._check_downgrade(state, current, target)

        logger.info("org %s switching plan %s -> %s", org_id, current.slug, target.slug)
        state.plan_slug = target.slug
        state.billing_status = "active"
        return state

    @staticmethod
    def _check_downgrade(state: OrgBillingState, current: BillingPlan, target: BillingPlan) -> None:
        checks = (
            ("tokens", state.tokens_used, target.included_tokens_monthly),
            ("playbook_runs", state.playbook_runs, target.included_playbook_runs_monthly),
            ("seats", state.seats, target.included_seats),
        )
        for quota_type, usage, limit in checks:
            if usage > limit:
                logger.warning(
                    "downgrade blocked org_id=%s %s -> %s: %s usage %d exceeds %d",
                    state.org_id,
                    current.slug,
                    target.slug,
                    quota_type,
                    usage,
                    limit,
                )
                raise BillingQuotaError(
                    quota_type=quota_type,
                    current_usage=usage,
                    limit=limit,
                    requested=0,
                    billing_status=state.billing_status,
                    plan_slug=current.slug,
                    period_start=_iso(state.current_period_start),
                    period_end=_iso(state.current_period_end),
                )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
