"""Actor resolution from the bearer token. Token issuance lives outside this service."""

from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.database import get_db
from lawnation.core.security import decode_access_token
from lawnation.domain.workflow.capabilities import Actor, Capability, require_capability
from lawnation.repositories import user_repository

security = HTTPBearer(auto_error=False)


async def _resolve_actor(credentials: HTTPAuthorizationCredentials | None, db: AsyncSession) -> Actor | None:
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from None

    user = await user_repository.get(db, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found or disabled")
    # Roles come from the user row so a revoked role takes effect before the token expires.
    return Actor.build(user.id, user.roles or [], email=user.email)


async def get_optional_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Actor | None:
    return await _resolve_actor(credentials, db)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    actor = await _resolve_actor(credentials, db)
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    require_capability(actor, Capability.MANAGE_WORKFLOW)
    return actor
