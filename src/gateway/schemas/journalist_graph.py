"""Journalist graph request/response schemas."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 -- pydantic resolves field annotations at runtime
from typing import Any, Literal
from uuid import UUID  # noqa: TC003

from pydantic import Field

from src.gateway.schemas.base import CamelModel, PageQuery, SortOrder

_EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateJournalistProfile(CamelModel):
    full_name: str = Field(min_length=1, max_length=255)
    primary_email: str = Field(pattern=_EMAIL, max_length=320)
    secondary_emails: list[str] = Field(default_factory=list)
    primary_outlet: str | None = Field(default=None, max_length=255)
    outlet_id: UUID | None = None
    beat: str | None = Field(default=None, max_length=255)
    twitter_handle: str | None = Field(default=None, max_length=100)
    linkedin_url: str | None = Field(default=None, max_length=500)
    website_url: str | None = Field(default=None, max_length=500)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateJournalistProfile(CamelModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    primary_email: str | None = Field(default=None, pattern=_EMAIL, max_length=320)
    secondary_emails: list[str] | None = None
    primary_outlet: str | None = Field(default=None, max_length=255)
    outlet_id: UUID | None = None
    beat: str | None = Field(default=None, max_length=255)
    twitter_handle: str | None = Field(default=None, max_length=100)
    linkedin_url: str | None = Field(default=None, max_length=500)
    website_url: str | None = Field(default=None, max_length=500)
    metadata: dict[str, Any] | None = None


class ListJournalistProfilesQuery(PageQuery):
    q: str | None = Field(default=None, max_length=200)
    outlet: str | None = None
    beat: str | None = None
    min_engagement_score: float | None = Field(default=None, ge=0)
    min_relevance_score: float | None = Field(default=None, ge=0)
    sort_by: Literal["engagement_score", "relevance_score", "full_name", "created_at"] = (
        "engagement_score"
    )
    sort_order: SortOrder = "desc"


class JournalistProfileOut(CamelModel):
    id: UUID
    org_id: str
    full_name: str
    primary_email: str
    secondary_emails: list[str]
    primary_outlet: str | None
    outlet_id: UUID | None
    beat: str | None
    twitter_handle: str | None
    linkedin_url: str | None
    website_url: str | None
    engagement_score: float
    relevance_score: float
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime
