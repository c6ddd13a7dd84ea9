"""Root conftest - shared fixtures for all test layers.

Markers:
    @pytest.mark.unit        - No external deps
    @pytest.mark.integration - Needs a running PostgreSQL

The `app` fixture wires real in-memory services behind create_app; two
users in two organizations are seeded so cross-org behaviour can be
exercised without a database.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from src.billing.service import BillingService
from src.gateway.app import create_app
from src.gateway.middleware.auth import encode_token
from src.governance.service import GovernanceService
from src.infra.org.membership import InMemoryOrgResolver
from src.journalist_graph.service import JournalistGraphService
from src.outreach.service import OutreachService
from src.shared.config import AppConfig

JWT_SECRET = "test-secret-key-for-unit-tests-only"  # noqa: S105


def bearer(user_id: str, *, secret: str = JWT_SECRET) -> dict[str, str]:
    """Authorization header for user_id."""
    return {"Authorization": f"Bearer {encode_token(user_id=user_id, secret=secret)}"}


@pytest.fixture
def user_id() -> str:
    return str(uuid4())


@pytest.fixture
def org_id() -> str:
    return str(uuid4())


@pytest.fixture
def other_user_id() -> str:
    return str(uuid4())


@pytest.fixture
def other_org_id() -> str:
    return str(uuid4())


@pytest.fixture
def orgless_user_id() -> str:
    """A user with a valid token and no membership."""
    return str(uuid4())


@pytest.fixture
def org_resolver(
    user_id: str,
    org_id: str,
    other_user_id: str,
    other_org_id: str,
) -> InMemoryOrgResolver:
    return InMemoryOrgResolver({user_id: [org_id], other_user_id: [other_org_id]})


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(jwt_secret=JWT_SECRET)


@pytest.fixture
def journalist_graph() -> JournalistGraphService:
    return JournalistGraphService()


@pytest.fixture
def outreach(journalist_graph: JournalistGraphService) -> OutreachService:
    return OutreachService(journalists=journalist_graph)


@pytest.fixture
def governance() -> GovernanceService:
    return GovernanceService()


@pytest.fixture
def billing() -> BillingService:
    return BillingService()


@pytest.fixture
def app(
    app_config: AppConfig,
    org_resolver: InMemoryOrgResolver,
    journalist_graph: JournalistGraphService,
    outreach: OutreachService,
    governance: GovernanceService,
    billing: BillingService,
):
    return create_app(
        app_config,
        org_resolver=org_resolver,
        journalist_graph=journalist_graph,
        outreach=outreach,
        governance=governance,
        billing=billing,
    )


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers(user_id: str) -> dict[str, str]:
    return bearer(user_id)


@pytest.fixture
def other_auth_headers(other_user_id: str) -> dict[str, str]:
    return bearer(other_user_id)


@pytest.fixture
def orgless_auth_headers(orgless_user_id: str) -> dict[str, str]:
    return bearer(orgless_user_id)
