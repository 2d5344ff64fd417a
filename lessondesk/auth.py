import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import JWT_ALGORITHM, SECRET_KEY

logger = logging.getLogger(__name__)

security = HTTPBearer()

ROLES = ("instructor", "admin", "human")


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as issued by the session layer"""

    id: str
    role: str
    instructor_id: Optional[str] = None

    @property
    def audit_actor_type(self) -> str:
        """audit_log actor_type for this caller"""
        return "admin" if self.role == "admin" else "instructor"

    @property
    def ai_state_actor_type(self) -> str:
        """Actor recorded on ai_state changes made by this caller"""
        return "admin" if self.role == "admin" else "human"


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry of a session token"""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"❌ Token verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """Resolve the calling actor from the bearer token"""
    claims = decode_access_token(credentials.credentials)

    actor_id = claims.get("sub")
    role = claims.get("role", "instructor")
    if not actor_id or role not in ROLES:
        logger.warning(f"❌ Token rejected: sub={actor_id!r} role={role!r}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    instructor_id = claims.get("instructor_id")
    if role == "instructor" and not instructor_id:
        # Instructors act on their own bookings
        instructor_id = actor_id

    return Actor(id=actor_id, role=role, instructor_id=instructor_id)


async def get_current_instructor_id(actor: Actor = Depends(get_current_actor)) -> str:
    """Instructor scope for booking endpoints"""
    if not actor.instructor_id:
        raise HTTPException(status_code=403, detail="Instructor access required")
    return actor.instructor_id


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != "admin":
        logger.warning(f"⚠️ Non-admin {actor.id} attempted admin access")
        raise HTTPException(status_code=403, detail="Admin access required")
    return actor
