"""Feature flag gate for route groups.

Flags are read once at boot (AppConfig.flags) and decide whether a route
group is registered at all. A group that is off is simply absent, so every
path under it falls through to the router's 404. Changing the environment
afterwards has no effect until the process restarts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import APIRouter, FastAPI

logger = logging.getLogger(__name__)


def register_route_group(
    app: FastAPI,
    *,
    name: str,
    enabled: bool,
    router: APIRouter,
    disabled_router: APIRouter | None = None,
) -> bool:
    """Mount router on app when enabled.

    Args:
        app: Application to mount on.
        name: Group name, used for logging only.
        enabled: Boot-time flag value.
        router: Router holding the group's routes (prefix already set).
        disabled_router: Optional stand-in mounted instead when the group is
            off (e.g. a single route answering FEATURE_DISABLED).

    Returns:
        Whether the group's real routes were registered.
    """
    if not enabled:
        logger.info("route group %s disabled by feature flag", name)
        if disabled_router is not None:
            app.include_router(disabled_router)
        return False

    app.include_router(router)
    logger.info("route group %s registered", name)
    return True
