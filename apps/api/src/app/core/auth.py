"""
Authentication and Authorization Module

Resolves the acting user from a bearer JWT and exposes role checks as
FastAPI dependencies. Every lifecycle operation receives the actor id
explicitly; nothing downstream reads ambient session state.

SECURITY NOTE:
- Development test tokens are ONLY accepted when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production
"""

import enum
import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


class Role(str, enum.Enum):
    """Account roles."""

    ADMIN = "admin"
    PROGRAM_ADMIN = "program_admin"
    STUDENT = "student"


REVIEWER_ROLES = {Role.ADMIN, Role.PROGRAM_ADMIN}


@dataclass
class Actor:
    """
    The authenticated user performing a request.

    Attributes:
        id: User's unique identifier
        role: User's role
        email: User's email address (optional claim)
    """

    id: UUID
    role: Role
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES

    def __str__(self) -> str:
        return f"Actor(id={self.id}, role={self.role.value})"


def _is_dev_mode_safe() -> bool:
    """Development tokens require PYTHON_ENV=development in both settings and environment."""
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = settings.is_development and not settings.is_production and env_var == "development"

    if is_safe:
        logger.warning("SECURITY: Development auth mode is ENABLED. Do not use in production!")

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _actor_from_claims(payload: dict) -> Actor:
    """
    Build an Actor from token claims.

    Raises:
        HTTPException 401: If claims are missing or malformed
    """
    if payload.get("type", "access") != "access":
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id = UUID(payload["sub"])
        role = Role(payload.get("role", Role.STUDENT.value))
    except (KeyError, ValueError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e

    return Actor(id=user_id, role=role, email=payload.get("email"))


def resolve_actor(token: str) -> Actor:
    """
    Validate a bearer token and return the actor it represents.

    In development mode a token of the form "<role>:<uuid>" is accepted
    for local testing.
    """
    if _DEVELOPMENT_MODE and ":" in token:
        role_part, _, id_part = token.partition(":")
        try:
            return Actor(id=UUID(id_part), role=Role(role_part))
        except ValueError:
            logger.debug("Token is not a development token, validating as JWT")

    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    return _actor_from_claims(payload)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """FastAPI dependency returning the authenticated actor."""
    actor = resolve_actor(credentials.credentials)
    logger.debug(f"Authenticated {actor}")
    return actor


async def get_current_reviewer(
    actor: Actor = Depends(get_current_actor),
) -> Actor:
    """
    FastAPI dependency requiring an admin or program admin.

    Program ownership is checked per application by the admin router.

    Raises:
        HTTPException 403: If the actor is not a reviewer
    """
    if not actor.is_reviewer:
        logger.warning(f"Access denied: {actor} is not a reviewer")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )
    return actor


__all__ = [
    "Actor",
    "Role",
    "get_current_actor",
    "get_current_reviewer",
    "resolve_actor",
]
