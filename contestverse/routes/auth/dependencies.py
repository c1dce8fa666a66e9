from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from contestverse.database import Database
from contestverse.services.auth.identity import Identity, IdentityService, identity_service
from contestverse.services.errors import ForbiddenError

# Bearer scheme (Firebase ID token)
bearer_scheme = HTTPBearer(auto_error=False)


async def get_database():
    """Database dependency"""
    return Database.get_db()


async def get_identity_service() -> IdentityService:
    """Identity provider dependency"""
    return identity_service


async def get_current_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    identity: IdentityService = Depends(get_identity_service)
) -> Identity:
    """Verified caller; raises 401 without a token and 403 for a rejected one"""
    token = credentials.credentials if credentials else None
    return await identity.verify(token)


async def require_admin(
    current: Identity = Depends(get_current_identity),
    identity: IdentityService = Depends(get_identity_service),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> Identity:
    """Verified caller holding the admin capability"""
    if not await identity.has_capability(db, current.email, "admin"):
        raise ForbiddenError("forbidden access")
    return current
