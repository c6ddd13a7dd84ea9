"""Unified error hierarchy for the Pravado API.

Every failure a handler can surface to a client is a PravadoError subclass.
Each carries its wire code, HTTP status and optional details, so the error
mapper never has to inspect exception names or messages.
"""

from __future__ import annotations

from typing import Any


class PravadoError(Exception):
    """Base error for all Pravado API exceptions."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        *,
        http_status: int | None = None,
        details: Any = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        if http_status is not None:
            self.http_status = http_status
        super().__init__(message)


# -- Auth / Org errors --


class AuthenticationError(PravadoError):
    """Authentication failed (missing, invalid or expired token)."""

    http_status = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="UNAUTHORIZED")


class NoOrgError(PravadoError):
    """Authenticated user has no resolvable organization."""

    http_status = 403

    def __init__(
        self,
        message: str = "User has no organization",
        code: str = "NO_ORG",
        *,
        http_status: int = 403,
    ) -> None:
        super().__init__(message, code=code, http_status=http_status)


# -- Input errors --


class ValidationError(PravadoError):
    """Input failed schema validation."""

    http_status = 400

    def __init__(self, message: str = "Validation failed", details: Any = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidInputError(PravadoError):
    """Input rejected by a hand-written precondition rather than a schema."""

    http_status = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_INPUT")


# -- Domain errors --


class NotFoundError(PravadoError):
    """Requested resource does not exist within the caller's organization."""

    http_status = 404

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND") -> None:
        super().__init__(message, code=code)


class ConflictError(PravadoError):
    """Resource is in a state that forbids the requested transition."""

    http_status = 409

    def __init__(self, message: str, code: str = "CONFLICT") -> None:
        super().__init__(message, code=code)


class FeatureDisabledError(PravadoError):
    """Feature is switched off for this deployment."""

    http_status = 503

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"{feature} feature is not enabled", code="FEATURE_DISABLED")


class BillingQuotaError(PravadoError):
    """Usage exceeds what a plan allows (raised on blocked downgrades)."""

    http_status = 422

    def __init__(
        self,
        *,
        quota_type: str,
        current_usage: int,
        limit: int,
        requested: int,
        billing_status: str,
        plan_slug: str,
        period_start: str | None = None,
        period_end: str | None = None,
    ) -> None:
        label = {"tokens": "tokens", "playbook_runs": "playbook runs"}.get(quota_type, "seats")
        self.quota_type = quota_type
        super().__init__(
            f"Quota exceeded: Would consume {requested} {label}, "
            f"but current usage ({current_usage}) + requested ({requested}) "
            f"exceeds limit ({limit}) for plan '{plan_slug}'",
            code="UPGRADE_REQUIRED",
            details={
                "type": "quota_exceeded",
                "quotaType": quota_type,
                "currentUsage": current_usage,
                "limit": limit,
                "requested": requested,
                "billingStatus": billing_status,
                "planSlug": plan_slug,
                "periodStart": period_start,
                "periodEnd": period_end,
            },
        )


__all__ = [
    "AuthenticationError",
    "BillingQuotaError",
    "ConflictError",
    "FeatureDisabledError",
    "InvalidInputError",
    "NoOrgError",
    "NotFoundError",
    "PravadoError",
    "ValidationError",
]
