"""PR outreach: sequences of templated emails sent to journalists.

A sequence owns ordered steps. Starting a sequence creates one run per
target journalist; each advance sends the run's current step and schedules
the next one.

Run lifecycle:
    running -> completed   (last step sent, or no step left to send)
    running -> stopped     (manual stop, reply, sequence deleted)
    running -> failed      (send error)
Terminal states never change again.

In-memory store; every lookup by id is filtered by org_id except webhook
tracking, which is addressed by event id alone.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.shared.errors import ConflictError, NotFoundError

if TYPE_CHECKING:
    from src.gateway.schemas.outreach import (
        CreateEvent,
        ListEventsQuery,
        ListRunsQuery,
        ListSequencesQuery,
    )
    from src.journalist_graph.service import JournalistGraphService, JournalistProfile

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({"completed", "stopped", "failed"})

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# event type -> timestamp attribute set when a provider reports it
_TRACKED_TIMESTAMPS = {
    "opened": "opened_at",
    "clicked": "clicked_at",
    "replied": "replied_at",
    "bounced": "bounced_at",
}


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class OutreachSequence:
    id: UUID
    org_id: str
    name: str
    description: str | None = None
    journalist_ids: list[UUID] = field(default_factory=list)
    outlet_ids: list[UUID] = field(default_factory=list)
    beat_filter: list[str] | None = None
    tier_filter: list[str] | None = None
    is_active: bool = True
    max_runs_per_day: int = 50
    stop_on_reply: bool = True
    pitch_id: UUID | None = None
    press_release_id: UUID | None = None
    total_runs: int = 0
    completed_runs: int = 0
    active_runs: int = 0
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class OutreachStep:
    id: UUID
    sequence_id: UUID
    step_number: int
    delay_hours: int
    subject_template: str
    body_template: str
    template_variables: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class OutreachRun:
    id: UUID
    org_id: str
    sequence_id: UUID
    journalist_id: UUID
    status: str = "running"
    current_step_number: int = 1
    next_step_at: datetime | None = None
    completed_at: datetime | None = None
    stopped_at: datetime | None = None
    stop_reason: str | None = None
    total_steps_sent: int = 0
    last_sent_at: datetime | None = None
    replied_at: datetime | None = None
    reply_step_number: int | None = None
    last_error: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class OutreachEvent:
    id: UUID
    org_id: str
    run_id: UUID
    sequence_id: UUID
    step_number: int
    event_type: str
    recipient_email: str | None = None
    email_subject: str | None = None
    email_body: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    sent_at: datetime | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    replied_at: datetime | None = None
    bounced_at: datetime | None = None
    failed_at: datetime | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class StartRunsResult:
    runs_created: int
    runs: list[OutreachRun]
    skipped_journalists: list[UUID]


def render_template(template: str, variables: dict[str, Any]) -> str:
    """Substitute {{name}} placeholders; unknown names are left as-is."""

    def _sub(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, template)


def _matches_targeting(profile: JournalistProfile, sequence: OutreachSequence) -> bool:
    if sequence.outlet_ids and profile.outlet_id not in sequence.outlet_ids:
        return False
    return not sequence.beat_filter or profile.beat in sequence.beat_filter

class OutreachService:
    """Sequences, steps, runs and events for one deployment.

    Args:
        journalists: Optional profile directory used to address emails and
            fill journalist template variables.
        clock: Current-time source; injectable so scheduling can be tested.
    """

    def __init__(
        self,
        *,
        journalists: JournalistGraphService | None = None,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._journalists = journalists
        self._clock = clock
        self._sequences: dict[UUID, OutreachSequence] = {}
        self._steps: dict[UUID, OutreachStep] = {}
        self._runs: dict[UUID, OutreachRun] = {}
        self._events: dict[UUID, OutreachEvent] = {}

    # -- Sequences --

    def _sequence(self, org_id: str, sequence_id: UUID) -> OutreachSequence:
        sequence = self._sequences.get(sequence_id)
        if sequence is None or sequence.org_id != org_id:
            raise NotFoundError("Sequence not found")
        return sequence

    def _steps_of(self, sequence_id: UUID) -> list[OutreachStep]:
        steps = [s for s in self._steps.values() if s.sequence_id == sequence_id]
        return sorted(steps, key=lambda s: s.step_number)

    async def create_sequence(self, org_id: str, data: dict[str, Any]) -> OutreachSequence:
        sequence = OutreachSequence(id=uuid4(), org_id=org_id, **data)
        self._sequences[sequence.id] = sequence
        logger.info("outreach sequence created id=%s org_id=%s", sequence.id, org_id)
        return sequence

    async def list_sequences(
        self,
        org_id: str,
        query: ListSequencesQuery,
    ) -> tuple[list[OutreachSequence], int]:
        rows = [s for s in self._sequences.values() if s.org_id == org_id]
        if query.is_active is not None:
            rows = [s for s in rows if s.is_active == query.is_active]
        if query.pitch_id is not None:
            rows = [s for s in rows if s.pitch_id == query.pitch_id]
        if query.press_release_id is not None:
            rows = [s for s in rows if s.press_release_id == query.press_release_id]
        rows.sort(key=lambda s: s.created_at, reverse=True)
        return rows[query.offset : query.offset + query.limit], len(rows)

    async def get_sequence(self, org_id: str, sequence_id: UUID) -> OutreachSequence:
        return self._sequence(org_id, sequence_id)

    async def get_sequence_with_steps(
        self,
        org_id: str,
        sequence_id: UUID,
    ) -> tuple[OutreachSequence, list[OutreachStep]]:
        sequence = self._sequence(org_id, sequence_id)
        return sequence, self._steps_of(sequence_id)

    async def update_sequence(
        self,
        org_id: str,
        sequence_id: UUID,
        changes: dict[str, Any],
    ) -> OutreachSequence:
        sequence = self._sequence(org_id, sequence_id)
        for name, value in changes.items():
            setattr(sequence, name, value)
        sequence.updated_at = self._clock()
        return sequence

    async def delete_sequence(self, org_id: str, sequence_id: UUID) -> None:
        """Delete a sequence and its steps; its running runs are stopped."""
        self._sequence(org_id, sequence_id)
        for run in self._runs.values():
            if run.sequence_id == sequence_id and run.status == "running":
                self._stop(run, "sequence_deleted")
        for step in self._steps_of(sequence_id):
            del self._steps[step.id]
        del self._sequences[sequence_id]
        logger.info("outreach sequence deleted id=%s org_id=%s", sequence_id, org_id)

    async def _org_profiles(self, org_id: str) -> list[JournalistProfile]:
        if self._journalists is None:
            return []
        return await self._journalists.profiles_for_org(org_id)

    async def _targets(self, org_id: str, sequence: OutreachSequence) -> list[UUID]:
        """Explicit journalist ids, narrowed by the outlet and beat filters.

        Without explicit ids every profile of the org is a candidate. A
        journalist with no profile cannot match an outlet or beat filter.
        """
        if not (sequence.outlet_ids or sequence.beat_filter):
            if sequence.journalist_ids:
                return list(sequence.journalist_ids)
            return [p.id for p in await self._org_profiles(org_id)]

        profiles = {p.id: p for p in await self._org_profiles(org_id)}
        candidates = sequence.journalist_ids or list(profiles)
        return [
            jid
            for jid in candidates
            if jid in profiles and _matches_targeting(profiles[jid], sequence)
        ]

    async def preview_targeting(self, org_id: str, sequence_id: UUID) -> list[UUID]:
        """Journalists a start without explicit ids would target."""
        return await self._targets(org_id, self._sequence(org_id, sequence_id))

    # -- Steps --

    def _step(self, org_id: str, step_id: UUID) -> OutreachStep:
        step = self._steps.get(step_id)
        if step is None:
            raise NotFoundError("Step not found")
        sequence = self._sequences.get(step.sequence_id)
        if sequence is None or sequence.org_id != org_id:
            raise NotFoundError("Step not found")
        return step

    def _ensure_step_number_free(
        self,
        sequence_id: UUID,
        step_number: int,
        *,
        ignore: UUID | None = None,
    ) -> None:
        for step in self._steps_of(sequence_id):
            if step.step_number == step_number and step.id != ignore:
                raise ConflictError(
                    f"Step {step_number} already exists in this sequence",
                    code="STEP_NUMBER_EXISTS",
                )

    async def create_step(
        self,
        org_id: str,
        sequence_id: UUID,
        data: dict[str, Any],
    ) -> OutreachStep:
        self._sequence(org_id, sequence_id)
        self._ensure_step_number_free(sequence_id, data["step_number"])
        step = OutreachStep(id=uuid4(), sequence_id=sequence_id, **data)
        self._steps[step.id] = step
        return step

    async def update_step(
        self,
        org_id: str,
        step_id: UUID,
        changes: dict[str, Any],
    ) -> OutreachStep:
        step = self._step(org_id, step_id)
        if "step_number" in changes:
            self._ensure_step_number_free(step.sequence_id, changes["step_number"], ignore=step.id)
        for name, value in changes.items():
            setattr(step, name, value)
        step.updated_at = self._clock()
        return step

    async def delete_step(self, org_id: str, step_id: UUID) -> None:
        self._step(org_id, step_id)
        del self._steps[step_id]

    # -- Runs --

    def _run(self, org_id: str, run_id: UUID) -> OutreachRun:
        run = self._runs.get(run_id)
        if run is None or run.org_id != org_id:
            raise NotFoundError("Run not found")
        return run

    def _stop(self, run: OutreachRun, reason: str) -> None:
        now = self._clock()
        run.status = "stopped"
        run.stop_reason = reason
        run.stopped_at = now
        run.next_step_at = None
        run.updated_at = now
        self._adjust_stats(run.sequence_id, active=-1)

    def _complete(self, run: OutreachRun) -> None:
        now = self._clock()
        run.status = "completed"
        run.completed_at = now
        run.next_step_at = None
        run.updated_at = now
        self._adjust_stats(run.sequence_id, active=-1, completed=1)

    def _adjust_stats(
        self,
        sequence_id: UUID,
        *,
        total: int = 0,
        active: int = 0,
        completed: int = 0,
    ) -> None:
        sequence = self._sequences.get(sequence_id)
        if sequence is None:
            return
        sequence.total_runs += total
        sequence.active_runs = max(0, sequence.active_runs + active)
        sequence.completed_runs += completed

    async def start_runs(
        self,
        org_id: str,
        sequence_id: UUID,
        *,
        journalist_ids: list[UUID] | None = None,
        dry_run: bool = False,
    ) -> StartRunsResult:
        """Create one run per target journalist and send each first step.

        Journalists that already have a run in this sequence are skipped.
        A dry run reports what would be created without creating anything.

        Raises:
            NotFoundError: sequence unknown to the org.
            ConflictError: SEQUENCE_INACTIVE or SEQUENCE_HAS_NO_STEPS.
        """
        sequence = self._sequence(org_id, sequence_id)
        if not sequence.is_active:
            raise ConflictError(
                "Cannot start runs for inactive sequence",
                code="SEQUENCE_INACTIVE",
            )
        if not self._steps_of(sequence_id):
            raise ConflictError(
                "Sequence must have at least one step",
                code="SEQUENCE_HAS_NO_STEPS",
            )

        targets = journalist_ids or await self._targets(org_id, sequence)
        # de-duplicate, keep caller order
        targets = list(dict.fromkeys(targets))
        existing = {
            run.journalist_id
            for run in self._runs.values()
            if run.sequence_id == sequence_id and run.journalist_id in targets
        }
        skipped = [jid for jid in targets if jid in existing]
        fresh = [jid for jid in targets if jid not in existing]

        if dry_run:
            return StartRunsResult(runs_created=len(fresh), runs=[], skipped_journalists=skipped)

        runs: list[OutreachRun] = []
        for journalist_id in fresh:
            run = OutreachRun(
                id=uuid4(),
                org_id=org_id,
                sequence_id=sequence_id,
                journalist_id=journalist_id,
            )
            self._runs[run.id] = run
            self._adjust_stats(sequence_id, total=1, active=1)
            await self.advance_run(org_id, run.id, force_advance=True)
            runs.append(run)

        logger.info(
            "outreach runs started sequence_id=%s created=%d skipped=%d",
            sequence_id,
            len(runs),
            len(skipped),
        )
        return StartRunsResult(runs_created=len(runs), runs=runs, skipped_journalists=skipped)

    async def list_runs(self, org_id: str, query: ListRunsQuery) -> tuple[list[OutreachRun], int]:
        rows = [r for r in self._runs.values() if r.org_id == org_id]
        if query.sequence_id is not None:
            rows = [r for r in rows if r.sequence_id == query.sequence_id]
        if query.journalist_id is not None:
            rows = [r for r in rows if r.journalist_id == query.journalist_id]
        if query.status is not None:
            rows = [r for r in rows if r.status == query.status]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows[query.offset : query.offset + query.limit], len(rows)

    async def get_run(self, org_id: str, run_id: UUID) -> OutreachRun:
        return self._run(org_id, run_id)

    async def stop_run(self, org_id: str, run_id: UUID, reason: str) -> OutreachRun:
        run = self._run(org_id, run_id)
        if run.status in TERMINAL_STATES:
            raise ConflictError(
                f"Run is not in running state: {run.status}",
                code="INVALID_RUN_STATE",
            )
        self._stop(run, reason)
        return run

    async def advance_run(
        self,
        org_id: str,
        run_id: UUID,
        *,
        force_advance: bool = False,
    ) -> OutreachRun:
        """Send the run's current step and schedule the next one.

        Raises:
            ConflictError: INVALID_RUN_STATE when the run is terminal,
                RUN_NOT_DUE when the next step is scheduled in the future and
                force_advance is false.
        """
        run = self._run(org_id, run_id)
        if run.status in TERMINAL_STATES:
            raise ConflictError(
                f"Run is not in running state: {run.status}",
                code="INVALID_RUN_STATE",
            )
        now = self._clock()
        if not force_advance and run.next_step_at is not None and run.next_step_at > now:
            raise ConflictError("Not yet time to advance run", code="RUN_NOT_DUE")

        steps = {s.step_number: s for s in self._steps_of(run.sequence_id)}
        step = steps.get(run.current_step_number)
        if step is None:
            self._complete(run)
            return run

        recipient, variables = await self._recipient(org_id, run.journalist_id)
        variables.update(step.template_variables)
        event = OutreachEvent(
            id=uuid4(),
            org_id=org_id,
            run_id=run.id,
            sequence_id=run.sequence_id,
            step_number=step.step_number,
            event_type="sent",
            recipient_email=recipient,
            email_subject=render_template(step.subject_template, variables),
            email_body=render_template(step.body_template, variables),
            sent_at=now,
            created_at=now,
        )
        self._events[event.id] = event

        run.total_steps_sent += 1
        run.last_sent_at = now
        run.updated_at = now
        following = steps.get(run.current_step_number + 1)
        if following is None:
            self._complete(run)
        else:
            run.current_step_number = following.step_number
            run.next_step_at = now + timedelta(hours=following.delay_hours)
        return run

    async def _recipient(
        self,
        org_id: str,
        journalist_id: UUID,
    ) -> tuple[str | None, dict[str, Any]]:
        if self._journalists is None:
            return None, {}
        try:
            profile = await self._journalists.get_profile(org_id, journalist_id)
        except NotFoundError:
            logger.warning("outreach target %s has no journalist profile", journalist_id)
            return None, {}
        variables = {
            "journalist_name": profile.full_name,
            "outlet": profile.primary_outlet or "",
            "beat": profile.beat or "",
        }
        return profile.primary_email, variables

    # -- Events --

    async def create_event(self, org_id: str, data: CreateEvent) -> OutreachEvent:
        run = self._run(org_id, data.run_id)
        now = self._clock()
        event = OutreachEvent(
            id=uuid4(),
            org_id=org_id,
            run_id=run.id,
            sequence_id=run.sequence_id,
            step_number=data.step_number,
            event_type=data.event_type,
            recipient_email=data.recipient_email,
            email_subject=data.email_subject,
            email_body=data.email_body,
            metadata=dict(data.metadata),
            error_message=data.error_message,
            created_at=now,
        )
        if data.event_type == "sent":
            event.sent_at = now
        elif data.event_type == "failed":
            event.failed_at = now
        else:
            setattr(event, _TRACKED_TIMESTAMPS[data.event_type], now)
        self._events[event.id] = event
        return event

    async def list_events(
        self,
        org_id: str,
        query: ListEventsQuery,
    ) -> tuple[list[OutreachEvent], int]:
        rows = [e for e in self._events.values() if e.org_id == org_id]
        if query.run_id is not None:
            rows = [e for e in rows if e.run_id == query.run_id]
        if query.sequence_id is not None:
            rows = [e for e in rows if e.sequence_id == query.sequence_id]
        if query.event_type is not None:
            rows = [e for e in rows if e.event_type == query.event_type]
        rows.sort(key=lambda e: e.created_at, reverse=True)
        return rows[query.offset : query.offset + query.limit], len(rows)

    async def track_event(
        self,
        event_id: UUID,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> OutreachEvent:
        """Record a provider callback (open, click, reply, bounce).

        A reply stops the run with journalist_replied when its sequence has
        stop_on_reply set and the run is still running.
        """
        event = self._events.get(event_id)
        if event is None:
            raise NotFoundError("Event not found")

        now = self._clock()
        attr = _TRACKED_TIMESTAMPS.get(event_type)
        if attr is not None:
            setattr(event, attr, now)
        if metadata is not None:
            event.metadata = dict(metadata)

        if event_type == "replied":
            run = self._runs.get(event.run_id)
            sequence = self._sequences.get(event.sequence_id)
            stops = sequence is not None and sequence.stop_on_reply
            if run is not None and run.status == "running" and stops:
                self._stop(run, "journalist_replied")
                run.replied_at = now
                run.reply_step_number = event.step_number
                logger.info("outreach run %s stopped on reply", run.id)
        return event

    # -- Stats --

    async def get_stats(self, org_id: str, sequence_id: UUID | None = None) -> dict[str, int]:
        sequences = [s for s in self._sequences.values() if s.org_id == org_id]
        runs = [r for r in self._runs.values() if r.org_id == org_id]
        events = [e for e in self._events.values() if e.org_id == org_id]
        if sequence_id is not None:
            sequences = [s for s in sequences if s.id == sequence_id]
            runs = [r for r in runs if r.sequence_id == sequence_id]
            events = [e for e in events if e.sequence_id == sequence_id]

        return {
            "total_sequences": len(sequences),
            "active_sequences": sum(1 for s in sequences if s.is_active),
            "total_runs": len(runs),
            "active_runs": sum(1 for r in runs if r.status == "running"),
            "completed_runs": sum(1 for r in runs if r.status == "completed"),
            "stopped_runs": sum(1 for r in runs if r.status == "stopped"),
            "total_emails_sent": sum(1 for e in events if e.sent_at is not None),
            "total_opens": sum(1 for e in events if e.opened_at is not None),
            "total_clicks": sum(1 for e in events if e.clicked_at is not None),
            "total_replies": sum(1 for e in events if e.replied_at is not None),
        }
