"""Bearer-token authentication.

- No token -> 401
- Invalid/expired token -> 401
- Valid token -> AuthenticatedUser(id=<sub>) on request.state.user

Uses PyJWT (HS256). The token only identifies the user; the organization is
resolved per request from memberships (see org_context.py).
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import jwt
from fastapi import Request  # noqa: TC002 -- FastAPI inspects dependency signatures at runtime

from src.shared.errors import AuthenticationError

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity attached to a request by require_user."""

    id: str


def encode_token(*, user_id: str, secret: str, ttl_seconds: int = 3600) -> str:
    """Create a signed JWT whose subject is the user id."""
    now = int(time.time())
    payload = {"sub": user_id, "iat": now, "exp": now + ttl_seconds}
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_token(token: str, *, secret: str) -> AuthenticatedUser:
    """Decode and validate a JWT. Raises AuthenticationError on failure."""
    try:
        data = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from exc

    subject = data.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthenticationError("Invalid token: missing subject")
    return AuthenticatedUser(id=subject)


def extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def require_user(request: Request) -> AuthenticatedUser:
    """FastAPI dependency: authenticate the caller or raise 401."""
    token = extract_bearer_token(request)
    if not token:
        raise AuthenticationError("Missing or malformed Authorization header")

    user = decode_token(token, secret=request.app.state.config.jwt_secret)
    request.state.user = user
    return user
