"""
FastAPI Authentication Dependencies for Microservices

Every mutating endpoint resolves its actor from a verified bearer token;
the actor is then passed explicitly into the service layer.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Header, HTTPException, status

from .jwt_manager import get_jwt_manager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Verified identity of the caller"""
    email: str
    user_id: Optional[str] = None
    name: Optional[str] = None


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def actor_from_token(token: str) -> Actor:
    """
    Verify a bearer token and build the Actor.

    Raises:
        HTTPException 401: token invalid, expired, or missing an email claim
    """
    result = get_jwt_manager().verify_token(token)
    if not result.get("valid"):
        logger.warning(f"Rejected bearer token: {result.get('error')}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.get("error", "Invalid token"),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Actor(
        email=result["email"],
        user_id=result.get("user_id"),
        name=result.get("name"),
    )


async def require_actor(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Actor:
    """
    Authentication dependency for mutating endpoints

    Usage:
        @app.post("/api/v1/resource")
        async def create_resource(actor: Actor = Depends(require_actor)):
            ...
    """
    token = _extract_bearer(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor_from_token(token)


__all__ = [
    "Actor",
    "require_actor",
    "actor_from_token",
]
