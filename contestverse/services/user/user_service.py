from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, Dict, List, Tuple
from datetime import datetime, timezone
from pymongo.errors import DuplicateKeyError

from contestverse.models.user import UserCreate, UserInDB, ProfileUpdate
from contestverse.models.states import UserRole
from contestverse.services.errors import NotFoundError
from contestverse.utils.mongo import parse_object_id


class UserService:
    """Service for user accounts and roles"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users_collection = db.users

    async def get_user_by_email(self, email: str) -> Optional[Dict]:
        """Get user by email"""
        return await self.users_collection.find_one({"email": email})

    async def register_user(self, user_data: UserCreate) -> Tuple[bool, Dict]:
        """
        Register a user on first sign-in.

        Returns:
            (created, user) - created is False when the email already exists
        """
        existing = await self.get_user_by_email(user_data.email)
        if existing:
            return False, existing

        user = UserInDB(
            email=user_data.email,
            display_name=user_data.display_name,
            photo_url=user_data.photo_url,
            bio=user_data.bio
        ).model_dump(by_alias=True)

        try:
            result = await self.users_collection.insert_one(user)
        except DuplicateKeyError:
            return False, await self.get_user_by_email(user_data.email)

        user["_id"] = result.inserted_id
        return True, user

    async def get_users(self) -> List[Dict]:
        cursor = self.users_collection.find({})
        return await cursor.to_list(length=None)

    async def get_role(self, email: str) -> str:
        """Role of a user, "user" for unknown emails"""
        user = await self.get_user_by_email(email)
        return (user or {}).get("role") or UserRole.USER.value

    async def has_role(self, email: str, role: UserRole) -> bool:
        return await self.get_role(email) == role.value

    async def update_role(self, user_id: str, role: UserRole) -> Dict:
        """Admin role change"""
        object_id = parse_object_id(user_id)
        if object_id is None:
            raise NotFoundError("User not found")

        result = await self.users_collection.update_one(
            {"_id": object_id},
            {"$set": {"role": role.value, "updatedAt": datetime.now(timezone.utc)}}
        )

        if result.matched_count == 0:
            raise NotFoundError("User not found")

        print(f"[INFO] User {user_id} role set to {role.value}")

        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count
        }

    async def set_role_by_email(self, email: str, role: UserRole) -> bool:
        result = await self.users_collection.update_one(
            {"email": email},
            {"$set": {"role": role.value, "updatedAt": datetime.now(timezone.utc)}}
        )
        return result.matched_count > 0

    async def get_profile(self, email: str) -> Dict:
        user = await self.get_user_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, email: str, profile: ProfileUpdate) -> Dict:
        """Update display name, photo and bio of the caller's own profile"""
        update_dict = profile.model_dump(by_alias=True, exclude_none=True)
        update_dict["updatedAt"] = datetime.now(timezone.utc)

        result = await self.users_collection.update_one(
            {"email": email},
            {"$set": update_dict}
        )

        if result.matched_count == 0:
            raise NotFoundError("User not found")

        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count
        }
