"""
Actor Identity and Role Checks

Authentication happens upstream: the gateway validates the caller's session
and forwards the resolved identity as ``X-Actor-Id`` and ``X-Actor-Role``
headers. This module turns those headers into an ``Actor`` and offers the
FastAPI dependencies routers use to require a role.

Roles:
- HOST: owns applications and certifications
- ADMIN: reviews applications assigned to them
- SUPER_ADMIN: unrestricted, manages certificate templates
"""

import enum
import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from rentalcert.core.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


class UserRole(str, enum.Enum):
    HOST = "HOST"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


REVIEWER_ROLES: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation."""

    id: UUID
    role: UserRole

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    def __str__(self) -> str:
        return f"Actor(id={self.id}, role={self.role.value})"


def require_reviewer(actor: Actor) -> None:
    """Raise ForbiddenError unless the actor is ADMIN or SUPER_ADMIN."""
    if not actor.is_reviewer:
        raise ForbiddenError(
            "Only administrators can perform this action",
            error_code="REVIEWER_ROLE_REQUIRED",
        )


def require_super_admin(actor: Actor) -> None:
    if not actor.is_super_admin:
        raise ForbiddenError(
            "Only super administrators can perform this action",
            error_code="SUPER_ADMIN_ROLE_REQUIRED",
        )


async def get_current_actor(
    x_actor_id: str = Header(..., alias="X-Actor-Id"),
    x_actor_role: str = Header(..., alias="X-Actor-Role"),
) -> Actor:
    """
    FastAPI dependency returning the caller forwarded by the gateway.

    Raises:
        HTTPException 401: If the identity headers are missing or malformed
    """
    try:
        actor = Actor(id=UUID(x_actor_id), role=UserRole(x_actor_role.upper()))
    except ValueError as e:
        logger.warning(f"Rejected malformed actor headers: id={x_actor_id!r} role={x_actor_role!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_ACTOR",
                "message": "Missing or invalid caller identity.",
            },
        ) from e

    logger.debug(f"Resolved caller {actor}")
    return actor


async def get_current_reviewer(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency for admin endpoints: ADMIN or SUPER_ADMIN only."""
    if not actor.is_reviewer:
        logger.warning(f"Access denied: {actor} is not a reviewer")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Administrator access is required for this endpoint.",
            },
        )
    return actor


__all__ = [
    "Actor",
    "REVIEWER_ROLES",
    "UserRole",
    "get_current_actor",
    "get_current_reviewer",
    "require_reviewer",
    "require_super_admin",
]
