"""Governance policy request/response schemas."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 -- pydantic resolves field annotations at runtime
from typing import Any, Literal
from uuid import UUID  # noqa: TC003

from pydantic import Field

from src.gateway.schemas.base import CamelModel, SortOrder

PolicyCategory = Literal[
    "content",
    "crisis",
    "reputation",
    "journalist",
    "legal",
    "data_privacy",
    "media_relations",
    "executive_comms",
    "competitive_intel",
    "brand_safety",
]
PolicyScope = Literal["global", "brand", "campaign", "journalist", "region", "channel", "team"]
Severity = Literal["low", "medium", "high", "critical"]


class CreatePolicy(CamelModel):
    key: str = Field(
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9_]+$",
        description="Key must be lowercase alphanumeric with underscores",
    )
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: PolicyCategory
    scope: PolicyScope = "global"
    severity: Severity = "medium"
    rule_config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    owner_user_id: UUID | None = None
    department: str | None = Field(default=None, max_length=100)
    regulatory_reference: str | None = Field(default=None, max_length=255)
    effective_date: datetime | None = None
    review_date: datetime | None = None


class UpdatePolicy(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: PolicyCategory | None = None
    scope: PolicyScope | None = None
    severity: Severity | None = None
    rule_config: dict[str, Any] | None = None
    is_active: bool | None = None
    is_archived: bool | None = None
    owner_user_id: UUID | None = None
    department: str | None = Field(default=None, max_length=100)
    regulatory_reference: str | None = Field(default=None, max_length=255)
    effective_date: datetime | None = None
    review_date: datetime | None = None


class ListPoliciesQuery(CamelModel):
    category: PolicyCategory | None = None
    scope: PolicyScope | None = None
    severity: Severity | None = None
    is_active: bool | None = None
    is_archived: bool | None = None
    owner_user_id: UUID | None = None
    department: str | None = None
    search_query: str | None = Field(default=None, max_length=200)
    sort_by: Literal["created_at", "updated_at", "name", "severity"] = "created_at"
    sort_order: SortOrder = "desc"
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class PolicyOut(CamelModel):
    id: UUID
    org_id: str
    key: str
    name: str
    description: str | None
    category: PolicyCategory
    scope: PolicyScope
    severity: Severity
    rule_config: dict[str, Any]
    is_active: bool
    is_archived: bool
    owner_user_id: UUID | None
    department: str | None
    regulatory_reference: str | None
    effective_date: datetime | None
    review_date: datetime | None
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime


class PolicyVersionOut(CamelModel):
    id: UUID
    policy_id: UUID
    version_number: int
    snapshot: dict[str, Any]
    change_summary: str
    changed_fields: list[str]
    created_by: str | None
    created_at: datetime
