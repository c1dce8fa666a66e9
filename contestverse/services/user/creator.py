from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, Dict, List
from datetime import datetime, timezone

from contestverse.models.creator import CreatorApply
from contestverse.models.states import CreatorStatus, UserRole, ensure_transition
from contestverse.services.errors import ConflictError, NotFoundError
from contestverse.services.user.user_service import UserService
from contestverse.utils.mongo import parse_object_id


class CreatorService:
    """Service for creator applications; approval grants the creator role"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.creators = db.creators
        self.user_service = UserService(db)

    async def get_applications(self, status: Optional[CreatorStatus] = None) -> List[Dict]:
        query = {}
        if status:
            query["status"] = status.value

        cursor = self.creators.find(query).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def apply(self, email: str, application: CreatorApply) -> Dict:
        """File a creator application; one open application per email"""
        pending = await self.creators.find_one({
            "email": email,
            "status": CreatorStatus.PENDING.value
        })
        if pending:
            raise ConflictError("You already have a pending creator application")

        creator = application.model_dump(by_alias=True, exclude_none=True)
        creator.update({
            "email": email,
            "status": CreatorStatus.PENDING.value,
            "createdAt": datetime.now(timezone.utc),
        })

        result = await self.creators.insert_one(creator)
        creator["_id"] = result.inserted_id
        return creator

    async def review(self, application_id: str, status: CreatorStatus) -> Dict:
        """
        Admin decision on an application.
        Approval promotes the applicant's user record to the creator role.
        """
        object_id = parse_object_id(application_id)
        application = None
        if object_id is not None:
            application = await self.creators.find_one({"_id": object_id})

        if not application:
            raise NotFoundError("Creator application not found")

        current, target = ensure_transition(CreatorStatus, application.get("status"), status)

        result = await self.creators.update_one(
            {"_id": object_id, "status": current.value},
            {"$set": {"status": target.value, "reviewedAt": datetime.now(timezone.utc)}}
        )

        if result.matched_count == 0:
            raise ConflictError("Creator application already reviewed")

        role_updated = False
        if target == CreatorStatus.APPROVED:
            role_updated = await self.user_service.set_role_by_email(application["email"], UserRole.CREATOR)
            if not role_updated:
                print(f"[WARN] Approved creator {application['email']} has no user record")

        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
            "role_updated": role_updated
        }
