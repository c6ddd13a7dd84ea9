"""Application composition root -- wires all layers into a runnable FastAPI app.

- Reads configuration from environment variables (AppConfig.from_env)
- Configures logging
- Picks the org membership resolver: PostgreSQL when DATABASE_URL is set,
  otherwise an in-memory resolver seeded from DEV_ORG_MEMBERSHIPS
- Instantiates the domain services and hands everything to create_app

Entry point: uvicorn --factory src.main:build_app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from src.billing.service import BillingService
from src.gateway.app import create_app
from src.governance.service import GovernanceService
from src.infra.db import create_db_engine, create_session_factory
from src.infra.org.membership import InMemoryOrgResolver, PgOrgResolver
from src.journalist_graph.service import JournalistGraphService
from src.outreach.service import OutreachService
from src.shared.config import AppConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from src.ports.org_resolver import OrgResolver

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def build_app(config: AppConfig | None = None) -> FastAPI:
    """Build the application: instantiate adapters, wire dependencies, mount routers.

    This function is the single composition root. All DI wiring happens here.
    No other module reads the environment or instantiates adapters.
    """
    config = config or AppConfig.from_env()
    configure_logging(config.log_level)

    # -- Org membership --
    org_resolver: OrgResolver
    db_engine = None
    seats: dict[str, int] = {}
    if config.database_url:
        db_engine = create_db_engine(config.database_url)
        org_resolver = PgOrgResolver(session_factory=create_session_factory(db_engine))
    else:
        logger.warning(
            "DATABASE_URL not set: using in-memory org memberships (%d seeded)",
            len(config.dev_memberships),
        )
        org_resolver = InMemoryOrgResolver()
        for user_id, org_id in config.dev_memberships:
            org_resolver.add_membership(user_id, org_id)
        seats = dict(Counter(org_id for _, org_id in set(config.dev_memberships)))

    # -- Domain services --
    journalist_graph = JournalistGraphService()
    outreach = OutreachService(journalists=journalist_graph)
    governance = GovernanceService()
    billing = BillingService(default_plan_slug=config.default_plan_slug, seats=seats)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if db_engine is not None:
            await db_engine.dispose()

    application = create_app(
        config,
        org_resolver=org_resolver,
        journalist_graph=journalist_graph,
        outreach=outreach,
        governance=governance,
        billing=billing,
        lifespan=lifespan,
    )
    application.state.db_engine = db_engine

    logger.info(
        "Pravado API assembled: groups=%s (flags=%s)",
        ",".join(application.state.route_groups) or "none",
        config.flags,
    )
    return application
