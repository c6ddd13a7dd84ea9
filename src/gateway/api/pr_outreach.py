"""PR outreach REST API endpoints.

Sequences:
- POST/GET        /api/v1/pr-outreach/sequences
- GET/PATCH/DELETE /api/v1/pr-outreach/sequences/{id}
- GET             /api/v1/pr-outreach/sequences/{id}/with-steps
- GET             /api/v1/pr-outreach/sequences/{id}/preview-targeting
Steps:
- POST            /api/v1/pr-outreach/sequences/{id}/steps
- PATCH/DELETE    /api/v1/pr-outreach/steps/{id}
Runs:
- POST            /api/v1/pr-outreach/sequences/{id}/start
- GET             /api/v1/pr-outreach/runs, /runs/{id}
- POST            /api/v1/pr-outreach/runs/{id}/stop, /runs/{id}/advance
Events:
- GET/POST        /api/v1/pr-outreach/events
- POST            /api/v1/pr-outreach/webhooks/track  (no auth, provider callback)
Stats:
- GET             /api/v1/pr-outreach/stats
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response  # noqa: TC002 -- used at runtime

from src.gateway.envelope import created, no_content, ok
from src.gateway.middleware.org_context import NO_ORG, OrgContext, require_org
from src.gateway.schemas.base import IdParams
from src.gateway.schemas.outreach import (
    AdvanceRun,
    CreateEvent,
    CreateSequence,
    CreateStep,
    EventOut,
    ListEventsQuery,
    ListRunsQuery,
    ListSequencesQuery,
    OutreachStatsOut,
    RunOut,
    SequenceOut,
    SequenceWithStepsOut,
    StartRuns,
    StartRunsOut,
    StatsQuery,
    StepOut,
    StopRun,
    TrackEvent,
    UpdateSequence,
    UpdateStep,
)
from src.gateway.validation import (
    ValidationFailure,
    parse,
    read_json_body,
    read_query,
    safe_parse,
    strip_nulls,
)
from src.shared.errors import InvalidInputError

if TYPE_CHECKING:
    from uuid import UUID

    from src.outreach.service import OutreachService

logger = logging.getLogger(__name__)

Org = Annotated[OrgContext, Depends(require_org(NO_ORG))]


def _id(raw: str) -> UUID:
    return parse(IdParams, {"id": raw}).id


def create_pr_outreach_router(*, service: OutreachService) -> APIRouter:
    """Create PR outreach router with injected service."""
    router = APIRouter(prefix="/api/v1/pr-outreach", tags=["pr-outreach"])

    # -- Sequences --

    @router.post("/sequences")
    async def create_sequence(request: Request, org: Org) -> JSONResponse:
        body = parse(CreateSequence, await read_json_body(request))
        sequence = await service.create_sequence(org.org_id, body.model_dump())
        return created(SequenceOut.model_validate(sequence))

    @router.get("/sequences")
    async def list_sequences(request: Request, org: Org) -> JSONResponse:
        query = parse(ListSequencesQuery, read_query(request))
        sequences, total = await service.list_sequences(org.org_id, query)
        return ok(
            {
                "sequences": [SequenceOut.model_validate(s) for s in sequences],
                "total": total,
                "limit": query.limit,
                "offset": query.offset,
            }
        )

    @router.get("/sequences/{sequence_id}")
    async def get_sequence(sequence_id: str, org: Org) -> JSONResponse:
        sequence = await service.get_sequence(org.org_id, _id(sequence_id))
        return ok(SequenceOut.model_validate(sequence))

    @router.get("/sequences/{sequence_id}/with-steps")
    async def get_sequence_with_steps(sequence_id: str, org: Org) -> JSONResponse:
        sequence, steps = await service.get_sequence_with_steps(org.org_id, _id(sequence_id))
        out = SequenceWithStepsOut(
            **SequenceOut.model_validate(sequence).model_dump(),
            steps=[StepOut.model_validate(s) for s in steps],
        )
        return ok(out)

    @router.get("/sequences/{sequence_id}/preview-targeting")
    async def preview_targeting(sequence_id: str, org: Org) -> JSONResponse:
        journalist_ids = await service.preview_targeting(org.org_id, _id(sequence_id))
        return ok({"journalistIds": journalist_ids, "total": len(journalist_ids)})

    @router.patch("/sequences/{sequence_id}")
    async def update_sequence(sequence_id: str, request: Request, org: Org) -> JSONResponse:
        target = _id(sequence_id)
        body = parse(UpdateSequence, await read_json_body(request))
        sequence = await service.update_sequence(org.org_id, target, strip_nulls(body))
        return ok(SequenceOut.model_validate(sequence))

    @router.delete("/sequences/{sequence_id}", status_code=204)
    async def delete_sequence(sequence_id: str, org: Org) -> Response:
        await service.delete_sequence(org.org_id, _id(sequence_id))
        return no_content()

    # -- Steps --

    @router.post("/sequences/{sequence_id}/steps")
    async def create_step(sequence_id: str, request: Request, org: Org) -> JSONResponse:
        target = _id(sequence_id)
        body = parse(CreateStep, await read_json_body(request))
        step = await service.create_step(org.org_id, target, body.model_dump())
        return created(StepOut.model_validate(step))

    @router.patch("/steps/{step_id}")
    async def update_step(step_id: str, request: Request, org: Org) -> JSONResponse:
        target = _id(step_id)
        body = parse(UpdateStep, await read_json_body(request))
        step = await service.update_step(org.org_id, target, strip_nulls(body))
        return ok(StepOut.model_validate(step))

    @router.delete("/steps/{step_id}", status_code=204)
    async def delete_step(step_id: str, org: Org) -> Response:
        await service.delete_step(org.org_id, _id(step_id))
        return no_content()

    # -- Runs --

    @router.post("/sequences/{sequence_id}/start")
    async def start_sequence(sequence_id: str, request: Request, org: Org) -> JSONResponse:
        target = _id(sequence_id)
        body = parse(StartRuns, await read_json_body(request))
        result = await service.start_runs(
            org.org_id,
            target,
            journalist_ids=body.journalist_ids,
            dry_run=body.dry_run,
        )
        return ok(StartRunsOut.model_validate(result))

    @router.get("/runs")
    async def list_runs(request: Request, org: Org) -> JSONResponse:
        query = parse(ListRunsQuery, read_query(request))
        runs, total = await service.list_runs(org.org_id, query)
        return ok(
            {
                "runs": [RunOut.model_validate(r) for r in runs],
                "total": total,
                "limit": query.limit,
                "offset": query.offset,
            }
        )

    @router.get("/runs/{run_id}")
    async def get_run(run_id: str, org: Org) -> JSONResponse:
        run = await service.get_run(org.org_id, _id(run_id))
        return ok(RunOut.model_validate(run))

    @router.post("/runs/{run_id}/stop")
    async def stop_run(run_id: str, request: Request, org: Org) -> JSONResponse:
        target = _id(run_id)
        body = parse(StopRun, await read_json_body(request))
        run = await service.stop_run(org.org_id, target, body.reason)
        return ok(RunOut.model_validate(run))

    @router.post("/runs/{run_id}/advance")
    async def advance_run(run_id: str, request: Request, org: Org) -> JSONResponse:
        target = _id(run_id)
        body = parse(AdvanceRun, await read_json_body(request))
        run = await service.advance_run(org.org_id, target, force_advance=body.force_advance)
        return ok(RunOut.model_validate(run))

    # -- Events --

    @router.get("/events")
    async def list_events(request: Request, org: Org) -> JSONResponse:
        query = parse(ListEventsQuery, read_query(request))
        events, total = await service.list_events(org.org_id, query)
        return ok(
            {
                "events": [EventOut.model_validate(e) for e in events],
                "total": total,
                "limit": query.limit,
                "offset": query.offset,
            }
        )

    @router.post("/events")
    async def create_event(request: Request, org: Org) -> JSONResponse:
        body = parse(CreateEvent, await read_json_body(request))
        event = await service.create_event(org.org_id, body)
        return created(EventOut.model_validate(event))

    @router.post("/webhooks/track")
    async def track_event(request: Request) -> JSONResponse:
        """Email provider callback. Unauthenticated; addressed by event id."""
        payload = await read_json_body(request)
        required = ("eventId", "eventType")
        if not isinstance(payload, dict) or not all(payload.get(key) for key in required):
            raise InvalidInputError("eventId and eventType are required")

        result = safe_parse(TrackEvent, payload)
        if isinstance(result, ValidationFailure):
            logger.info("rejected webhook payload: %s", result.details())
            raise InvalidInputError("Invalid eventId or eventType")

        event = result.data
        await service.track_event(event.event_id, event.event_type, event.metadata)
        return ok(None)

    # -- Stats --

    @router.get("/stats")
    async def get_stats(request: Request, org: Org) -> JSONResponse:
        query = parse(StatsQuery, read_query(request))
        stats = await service.get_stats(org.org_id, query.sequence_id)
        return ok(OutreachStatsOut.model_validate(stats))

    return router
