import os
from dataclasses import dataclass
from google.oauth2 import id_token
from google.auth.transport import requests
from google.auth import exceptions as google_exceptions
from fastapi.concurrency import run_in_threadpool
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
from dotenv import load_dotenv

from contestverse.models.states import UserRole
from contestverse.services.errors import InvalidTokenError, UnauthorizedError

# Load environment variables
load_dotenv()

CAPABILITY_ROLES = {
    "admin": UserRole.ADMIN,
    "creator": UserRole.CREATOR,
}


@dataclass(frozen=True)
class Identity:
    """A caller whose token the identity provider has verified"""
    email: str
    uid: Optional[str] = None


class IdentityService:
    """Verifies Firebase ID tokens and checks role capabilities"""

    def __init__(self, project_id: Optional[str] = None):
        self.project_id = project_id or os.getenv("FIREBASE_PROJECT_ID")
        self.request = requests.Request()

    def _decode(self, token: str) -> dict:
        return id_token.verify_firebase_token(token, self.request, audience=self.project_id)

    async def verify(self, raw_token: Optional[str]) -> Identity:
        """
        Verify a bearer token and return the caller's identity.

        Raises:
            UnauthorizedError: no token supplied
            InvalidTokenError: token rejected or carries no email
        """
        if not raw_token:
            raise UnauthorizedError()

        try:
            # Certificate fetch and signature check are blocking
            claims = await run_in_threadpool(self._decode, raw_token)
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            print(f"[SECURITY] Firebase token verification failed: {e}")
            raise InvalidTokenError()

        email = (claims or {}).get("email")
        if not email:
            raise InvalidTokenError()

        return Identity(email=email, uid=claims.get("user_id") or claims.get("sub"))

    async def has_capability(self, db: AsyncIOMotorDatabase, email: str, capability: str) -> bool:
        """Whether the user's stored role grants the named capability"""
        role = CAPABILITY_ROLES.get(capability)
        if role is None:
            return False

        user = await db.users.find_one({"email": email})
        return bool(user) and user.get("role") == role.value


identity_service = IdentityService()
