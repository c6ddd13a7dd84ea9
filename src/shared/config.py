"""Process-wide configuration, read once at boot.

AppConfig is built by the composition root and passed explicitly into
create_app(); nothing below the composition root reads os.environ.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def parse_flag(raw: str | None, *, default: bool = True) -> bool:
    """Interpret an environment string as a boolean flag."""
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return default



def parse_memberships(raw: str) -> tuple[tuple[str, str], ...]:
    """Parse `user:org` pairs separated by commas.

    Raises:
        ValueError: An entry lacks a user or org part.
    """
    pairs: list[tuple[str, str]] = []
    for item in raw.split(","):
        entry = item.strip()
        if not entry:
            continue
        user_id, sep, org_id = entry.partition(":")
        if not sep or not user_id.strip() or not org_id.strip():
            msg = f"invalid DEV_ORG_MEMBERSHIPS entry: {entry!r} (expected user:org)"
            raise ValueError(msg)
        pairs.append((user_id.strip(), org_id.strip()))
    return tuple(pairs)


@dataclass(frozen=True)
class FeatureFlags:
    """Boot-time switches for whole route groups."""

    enable_pr_outreach: bool = True
    enable_journalist_graph: bool = True
    enable_governance: bool = True
    enable_billing: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> FeatureFlags:
        return cls(
            enable_pr_outreach=parse_flag(environ.get("ENABLE_PR_OUTREACH")),
            enable_journalist_graph=parse_flag(environ.get("ENABLE_JOURNALIST_GRAPH")),
            enable_governance=parse_flag(environ.get("ENABLE_GOVERNANCE")),
            enable_billing=parse_flag(environ.get("ENABLE_BILLING")),
        )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration.

    Attributes:
        jwt_secret: HS256 secret used to verify bearer tokens.
        database_url: asyncpg URL for the membership lookup. When empty the
            in-memory resolver is used.
        cors_origins: Allowed CORS origins.
        log_level: Root log level name.
        default_plan_slug: Plan assigned to organizations with no billing state.
        flags: Route-group feature flags.
        dev_memberships: (user id, org id) pairs seeded into the in-memory
            resolver. Ignored when database_url is set.
    """

    jwt_secret: str
    database_url: str = ""
    cors_origins: tuple[str, ...] = ()
    log_level: str = "INFO"
    default_plan_slug: str = "internal-dev"
    flags: FeatureFlags = field(default_factory=FeatureFlags)
    dev_memberships: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        env = os.environ if environ is None else environ

        jwt_secret = env.get("JWT_SECRET_KEY", "")
        if not jwt_secret:
            msg = "JWT_SECRET_KEY environment variable is required"
            raise RuntimeError(msg)

        origins = tuple(o.strip() for o in env.get("CORS_ORIGINS", "").split(",") if o.strip())
        return cls(
            jwt_secret=jwt_secret,
            database_url=env.get("DATABASE_URL", ""),
            cors_origins=origins,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            default_plan_slug=env.get("BILLING_DEFAULT_PLAN_SLUG", "internal-dev"),
            flags=FeatureFlags.from_env(env),
            dev_memberships=parse_memberships(env.get("DEV_ORG_MEMBERSHIPS", "")),
        )
