"""PR outreach request/response schemas."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 -- pydantic resolves field annotations at runtime
from typing import Any, Literal
from uuid import UUID  # noqa: TC003

from pydantic import Field

from src.gateway.schemas.base import CamelModel, PageQuery

RunStatus = Literal["running", "completed", "failed", "stopped"]
EventType = Literal["sent", "opened", "clicked", "replied", "bounced", "failed"]
StopReason = Literal["manual_stop", "journalist_replied", "error", "sequence_deleted"]

EVENT_TYPES: frozenset[str] = frozenset(
    {"sent", "opened", "clicked", "replied", "bounced", "failed"},
)


# -- Sequences --


class CreateSequence(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    journalist_ids: list[UUID] = Field(default_factory=list)
    outlet_ids: list[UUID] = Field(default_factory=list)
    beat_filter: list[str] | None = None
    tier_filter: list[str] | None = None
    max_runs_per_day: int = Field(default=50, ge=1, le=1000)
    stop_on_reply: bool = True
    pitch_id: UUID | None = None
    press_release_id: UUID | None = None


class UpdateSequence(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    journalist_ids: list[UUID] | None = None
    outlet_ids: list[UUID] | None = None
    beat_filter: list[str] | None = None
    tier_filter: list[str] | None = None
    is_active: bool | None = None
    max_runs_per_day: int | None = Field(default=None, ge=1, le=1000)
    stop_on_reply: bool | None = None
    pitch_id: UUID | None = None
    press_release_id: UUID | None = None


class ListSequencesQuery(PageQuery):
    is_active: bool | None = None
    pitch_id: UUID | None = None
    press_release_id: UUID | None = None


# -- Steps --


class CreateStep(CamelModel):
    step_number: int = Field(ge=1, le=20)
    delay_hours: int = Field(ge=0, le=8760)
    subject_template: str = Field(min_length=1, max_length=500)
    body_template: str = Field(min_length=1, max_length=50000)
    template_variables: dict[str, Any] = Field(default_factory=dict)


class UpdateStep(CamelModel):
    step_number: int | None = Field(default=None, ge=1, le=20)
    delay_hours: int | None = Field(default=None, ge=0, le=8760)
    subject_template: str | None = Field(default=None, min_length=1, max_length=500)
    body_template: str | None = Field(default=None, min_length=1, max_length=50000)
    template_variables: dict[str, Any] | None = None


# -- Runs --


class StartRuns(CamelModel):
    journalist_ids: list[UUID] | None = None
    dry_run: bool = False


class StopRun(CamelModel):
    reason: StopReason = "manual_stop"


class AdvanceRun(CamelModel):
    force_advance: bool = False


class ListRunsQuery(PageQuery):
    sequence_id: UUID | None = None
    journalist_id: UUID | None = None
    status: RunStatus | None = None


# -- Events --


class CreateEvent(CamelModel):
    run_id: UUID
    event_type: EventType
    step_number: int = Field(ge=1)
    recipient_email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    email_subject: str | None = None
    email_body: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: str | None = None


class ListEventsQuery(PageQuery):
    run_id: UUID | None = None
    sequence_id: UUID | None = None
    event_type: EventType | None = None


class TrackEvent(CamelModel):
    event_id: UUID
    event_type: EventType
    metadata: dict[str, Any] | None = None


class StatsQuery(CamelModel):
    sequence_id: UUID | None = None


# -- Responses --


class StepOut(CamelModel):
    id: UUID
    sequence_id: UUID
    step_number: int
    delay_hours: int
    subject_template: str
    body_template: str
    template_variables: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class SequenceOut(CamelModel):
    id: UUID
    org_id: str
    name: str
    description: str | None
    journalist_ids: list[UUID]
    outlet_ids: list[UUID]
    beat_filter: list[str] | None
    tier_filter: list[str] | None
    is_active: bool
    max_runs_per_day: int
    stop_on_reply: bool
    pitch_id: UUID | None
    press_release_id: UUID | None
    total_runs: int
    completed_runs: int
    active_runs: int
    created_at: datetime
    updated_at: datetime


class SequenceWithStepsOut(SequenceOut):
    steps: list[StepOut]


class RunOut(CamelModel):
    id: UUID
    org_id: str
    sequence_id: UUID
    journalist_id: UUID
    status: RunStatus
    current_step_number: int
    next_step_at: datetime | None
    completed_at: datetime | None
    stopped_at: datetime | None
    stop_reason: StopReason | None
    total_steps_sent: int
    last_sent_at: datetime | None
    replied_at: datetime | None
    reply_step_number: int | None
    last_error: str | None
    created_at: datetime
    updated_at: datetime


class EventOut(CamelModel):
    id: UUID
    org_id: str
    run_id: UUID
    sequence_id: UUID
    step_number: int
    event_type: EventType
    recipient_email: str | None
    email_subject: str | None
    email_body: str | None
    metadata: dict[str, Any]
    error_message: str | None
    sent_at: datetime | None
    opened_at: datetime | None
    clicked_at: datetime | None
    replied_at: datetime | None
    bounced_at: datetime | None
    failed_at: datetime | None
    created_at: datetime


class StartRunsOut(CamelModel):
    runs_created: int
    runs: list[RunOut]
    skipped_journalists: list[UUID]


class OutreachStatsOut(CamelModel):
    total_sequences: int
    active_sequences: int
    total_runs: int
    active_runs: int
    completed_runs: int
    stopped_runs: int
    total_emails_sent: int
    total_opens: int
    total_clicks: int
    total_replies: int
