"""Governance policies with version history.

Every create and every effective update appends an immutable version
snapshot. Policies are keyed by a slug-like `key` unique within the org.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from pydantic.alias_generators import to_camel

from src.shared.errors import ConflictError, NotFoundError

if TYPE_CHECKING:
    from src.gateway.schemas.governance import ListPoliciesQuery

logger = logging.getLogger(__name__)

POLICY_NOT_FOUND = "Policy not found"

_SEVERITY_RANK = {"low": 0, "medium": 1, "high": 2, "critical": 3}


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class GovernancePolicy:
    id: UUID
    org_id: str
    key: str
    name: str
    category: str
    description: str | None = None
    scope: str = "global"
    severity: str = "medium"
    rule_config: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    is_archived: bool = False
    owner_user_id: UUID | None = None
    department: str | None = None
    regulatory_reference: str | None = None
    effective_date: datetime | None = None
    review_date: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class PolicyVersion:
    id: UUID
    policy_id: UUID
    org_id: str
    version_number: int
    snapshot: dict[str, Any]
    change_summary: str
    changed_fields: list[str]
    created_by: str | None
    created_at: datetime


def _snapshot(policy: GovernancePolicy) -> dict[str, Any]:
    return {to_camel(name): value for name, value in asdict(policy).items()}


_EXACT_FILTERS = (
    "category",
    "scope",
    "severity",
    "is_active",
    "is_archived",
    "owner_user_id",
    "department",
)


def _matches_search(policy: GovernancePolicy, needle: str) -> bool:
    needle = needle.lower()
    fields = (policy.name, policy.description, policy.key)
    return any(needle in (value or "").lower() for value in fields)


class GovernanceService:
    """Policy CRUD scoped per organization."""

    def __init__(self) -> None:
        self._policies: dict[UUID, GovernancePolicy] = {}
        self._versions: dict[UUID, list[PolicyVersion]] = {}

    def _owned(self, org_id: str, policy_id: UUID) -> GovernancePolicy:
        policy = self._policies.get(policy_id)
        if policy is None or policy.org_id != org_id:
            raise NotFoundError(POLICY_NOT_FOUND)
        return policy

    def _record_version(
        self,
        policy: GovernancePolicy,
        summary: str,
        user_id: str | None,
        changed_fields: list[str],
    ) -> None:
        history = self._versions.setdefault(policy.id, [])
        history.append(
            PolicyVersion(
                id=uuid4(),
                policy_id=policy.id,
                org_id=policy.org_id,
                version_number=len(history) + 1,
                snapshot=_snapshot(policy),
                change_summary=summary,
                changed_fields=changed_fields,
                created_by=user_id,
                created_at=_now(),
            )
        )

    async def create_policy(
        self,
        org_id: str,
        data: dict[str, Any],
        user_id: str | None = None,
    ) -> GovernancePolicy:
        """Create a policy and its first version.

        Raises:
            ConflictError: POLICY_KEY_EXISTS if the org already uses the key.
        """
        key = data["key"]
        if any(p.org_id == org_id and p.key == key for p in self._policies.values()):
            raise ConflictError(f"Policy with key '{key}' already exists", code="POLICY_KEY_EXISTS")

        policy = GovernancePolicy(
            id=uuid4(),
            org_id=org_id,
            created_by=user_id,
            updated_by=user_id,
            **data,
        )
        self._policies[policy.id] = policy
        self._record_version(policy, "Initial creation", user_id, [])
        logger.info("policy created id=%s org_id=%s key=%s", policy.id, org_id, key)
        return policy

    async def get_policy(self, org_id: str, policy_id: UUID) -> GovernancePolicy:
        return self._owned(org_id, policy_id)

    async def list_policies(
        self,
        org_id: str,
        query: ListPoliciesQuery,
    ) -> tuple[list[GovernancePolicy], int]:
        rows = [p for p in self._policies.values() if p.org_id == org_id]
        for attr in _EXACT_FILTERS:
            wanted = getattr(query, attr)
            if wanted is not None:
                rows = [p for p in rows if getattr(p, attr) == wanted]
        if query.search_query:
            rows = [p for p in rows if _matches_search(p, query.search_query)]

        if query.sort_by == "severity":
            rows.sort(key=lambda p: _SEVERITY_RANK[p.severity], reverse=query.sort_order == "desc")
        else:
            rows.sort(key=lambda p: getattr(p, query.sort_by), reverse=query.sort_order == "desc")
        return rows[query.offset : query.offset + query.limit], len(rows)

    async def update_policy(
        self,
        org_id: str,
        policy_id: UUID,
        changes: dict[str, Any],
        user_id: str | None = None,
    ) -> GovernancePolicy:
        """Apply changes; a version is recorded when at least one field changed."""
        policy = self._owned(org_id, policy_id)
        changed = [name for name, value in changes.items() if getattr(policy, name) != value]
        for name in changed:
            setattr(policy, name, changes[name])
        policy.updated_by = user_id
        policy.updated_at = _now()

        if changed:
            summary = "Updated: " + ", ".join(to_camel(name) for name in changed)
            self._record_version(policy, summary, user_id, [to_camel(name) for name in changed])
        logger.info("policy updated id=%s org_id=%s fields=%s", policy_id, org_id, changed)
        return policy

    async def delete_policy(self, org_id: str, policy_id: UUID) -> None:
        self._owned(org_id, policy_id)
        del self._policies[policy_id]
        self._versions.pop(policy_id, None)
        logger.info("policy deleted id=%s org_id=%s", policy_id, org_id)

    async def list_versions(self, org_id: str, policy_id: UUID) -> list[PolicyVersion]:
        """Version history, newest first."""
        self._owned(org_id, policy_id)
        return list(reversed(self._versions.get(policy_id, [])))
