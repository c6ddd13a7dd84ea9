"""FastAPI application factory.

- Route groups: /api/v1/{journalist-graph,pr-outreach,governance,billing}
  each registered only when its feature flag is on
- healthz, metrics: unauthenticated
- Every response body is an envelope; see error_mapper.py

Per request: request id -> metrics -> route -> require_user -> require_org
-> validation -> service -> envelope. An exception nobody mapped is turned
into 500 INTERNAL_ERROR by the request middleware.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.gateway.api.billing import create_billing_router
from src.gateway.api.governance import create_governance_disabled_router, create_governance_router
from src.gateway.api.journalist_graph import create_journalist_graph_router
from src.gateway.api.pr_outreach import create_pr_outreach_router
from src.gateway.error_mapper import install_error_handlers, unhandled_error_response
from src.gateway.feature_flags import register_route_group
from src.gateway.metrics.golden_signals import golden_signals_middleware
from src.shared.trace_context import REQUEST_ID_HEADER, request_context

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from src.billing.service import BillingService
    from src.governance.service import GovernanceService
    from src.journalist_graph.service import JournalistGraphService
    from src.outreach.service import OutreachService
    from src.ports.org_resolver import OrgResolver
    from src.shared.config import AppConfig

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig,
    *,
    org_resolver: OrgResolver,
    journalist_graph: JournalistGraphService,
    outreach: OutreachService,
    governance: GovernanceService,
    billing: BillingService,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Boot-time configuration; flags are read from it once, here.
        org_resolver: Membership lookup used by every org-scoped route.
        journalist_graph: Journalist profile service.
        outreach: PR outreach service.
        governance: Governance policy service.
        billing: Billing service.
        lifespan: Async context manager factory for startup/shutdown lifecycle.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Pravado API",
        description="PR, journalist intelligence and governance API",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.org_resolver = org_resolver

    install_error_handlers(app)

    # -- Middleware: last added runs first --

    @app.middleware("http")
    async def catch_unhandled(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001 -- outermost handler boundary
            return unhandled_error_response(request, exc)

    app.middleware("http")(golden_signals_middleware)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        with request_context(request.headers.get(REQUEST_ID_HEADER)) as request_id:
            start = time.monotonic()
            response: Response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "%s %s -> %d (%.1f ms) request_id=%s",
                request.method,
                request.url.path,
                response.status_code,
                (time.monotonic() - start) * 1000,
                request_id,
            )
            return response

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
            allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
            expose_headers=[REQUEST_ID_HEADER],
        )

    # -- Unauthenticated routes --

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["system"], include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # -- Route groups (feature-flagged at boot) --

    flags = config.flags
    groups = (
        (
            "journalist-graph",
            flags.enable_journalist_graph,
            create_journalist_graph_router(service=journalist_graph),
            None,
        ),
        (
            "pr-outreach",
            flags.enable_pr_outreach,
            create_pr_outreach_router(service=outreach),
            None,
        ),
        (
            "governance",
            flags.enable_governance,
            create_governance_router(service=governance),
            create_governance_disabled_router(),
        ),
        ("billing", flags.enable_billing, create_billing_router(service=billing), None),
    )
    app.state.route_groups = tuple(
        name
        for name, enabled, router, disabled_router in groups
        if register_route_group(
            app,
            name=name,
            enabled=enabled,
            router=router,
            disabled_router=disabled_router,
        )
    )

    return app
