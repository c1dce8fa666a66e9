from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, List, Dict
from datetime import datetime, timezone

from contestverse.models.contest import ContestCreate, ContestUpdate
from contestverse.models.states import ApprovalStatus, ContestStatus, ensure_transition
from contestverse.services.errors import ConflictError, ForbiddenError, NotFoundError
from contestverse.utils.mongo import parse_object_id


class ContestService:
    """Service for contest lifecycle: proposal, moderation, creator edits and entry counts"""

    POPULAR_LIMIT = 5

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.contests = db.contests
        self.payments = db.payments

    async def create_contest(self, contest_data: ContestCreate, creator_email: str) -> Dict:
        """Create a new contest awaiting admin approval"""
        now = datetime.now(timezone.utc)

        contest = contest_data.model_dump(by_alias=True, exclude_none=True)
        contest.update({
            "creatorEmail": creator_email,
            "approvalStatus": ApprovalStatus.PENDING.value,
            "participants": 0,
            "status": ContestStatus.OPEN.value,
            "createdAt": now,
            "updatedAt": now,
        })

        result = await self.contests.insert_one(contest)
        contest["_id"] = result.inserted_id
        return contest

    async def get_contests(self, creator_email: Optional[str] = None) -> List[Dict]:
        """List contests, optionally only those proposed by one creator"""
        query = {}
        if creator_email:
            query["creatorEmail"] = creator_email

        cursor = self.contests.find(query)
        return await cursor.to_list(length=None)

    async def get_popular_contests(self, limit: int = POPULAR_LIMIT) -> List[Dict]:
        """Top contests by participant count"""
        cursor = self.contests.find({}).sort("participants", -1).limit(limit)
        return await cursor.to_list(length=limit)

    async def get_contest_by_id(self, contest_id: str) -> Optional[Dict]:
        """Get contest by ID; malformed IDs resolve to None"""
        object_id = parse_object_id(contest_id)
        if object_id is None:
            return None
        return await self.contests.find_one({"_id": object_id})

    async def set_approval_status(self, contest_id: str, status: ApprovalStatus) -> Dict:
        """
        Admin decision on a pending contest.

        Only approvalStatus changes. The update is conditional on the status
        that was read, so two admins racing cannot both apply a decision.
        """
        contest = await self.get_contest_by_id(contest_id)
        if not contest:
            raise NotFoundError("Contest not found")

        current, target = ensure_transition(
            ApprovalStatus,
            contest.get("approvalStatus", ApprovalStatus.PENDING.value),
            status
        )

        query = {"_id": contest["_id"]}
        if "approvalStatus" in contest:
            query["approvalStatus"] = contest["approvalStatus"]

        result = await self.contests.update_one(
            query,
            {"$set": {
                "approvalStatus": target.value,
                "updatedAt": datetime.now(timezone.utc)
            }}
        )

        if result.matched_count == 0:
            raise ConflictError("Contest approval status changed, please retry")

        print(f"[INFO] Contest {contest_id} approval: {current.value} -> {target.value}")

        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count
        }

    async def update_by_creator(
        self,
        contest_id: str,
        creator_email: str,
        update_data: ContestUpdate
    ) -> Dict:
        """
        Creator edit, allowed only on their own pending contest.

        One filtered update does the ownership and state checks; matching
        nothing is the rejection.
        """
        object_id = parse_object_id(contest_id)
        if object_id is None:
            raise ForbiddenError("You cannot edit this contest")

        update_dict = update_data.model_dump(by_alias=True, exclude_none=True)
        update_dict["updatedAt"] = datetime.now(timezone.utc)

        result = await self.contests.update_one(
            {
                "_id": object_id,
                "creatorEmail": creator_email,
                "approvalStatus": ApprovalStatus.PENDING.value,
            },
            {"$set": update_dict}
        )

        if result.matched_count == 0:
            raise ForbiddenError("You cannot edit this contest")

        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count
        }

    async def delete_contest(self, contest_id: str, creator_email: str) -> Dict:
        """Delete a contest (only creator, only while pending)"""
        contest = await self.get_contest_by_id(contest_id)

        if not contest:
            raise NotFoundError("Contest not found")

        if contest.get("creatorEmail") != creator_email:
            raise ForbiddenError("Forbidden")

        if contest.get("approvalStatus") != ApprovalStatus.PENDING.value:
            raise ConflictError("Only pending contests can be deleted")

        # Re-assert ownership and state so an approval landing in between wins
        result = await self.contests.delete_one({
            "_id": contest["_id"],
            "creatorEmail": creator_email,
            "approvalStatus": ApprovalStatus.PENDING.value,
        })

        if result.deleted_count == 0:
            raise ConflictError("Only pending contests can be deleted")

        return {"deleted_count": result.deleted_count}

    async def increment_participants(self, contest_id: str) -> bool:
        """
        Add one participant after a reconciled payment.

        Best effort: a missing contest or store error is logged and reported
        as False, never raised.
        """
        object_id = parse_object_id(contest_id)
        if object_id is None:
            print(f"[WARN] Cannot count participant, invalid contest id: {contest_id}")
            return False

        try:
            result = await self.contests.update_one(
                {"_id": object_id},
                {"$inc": {"participants": 1}}
            )
        except Exception as e:
            print(f"[ERROR] Participant increment failed for contest {contest_id}: {str(e)}")
            return False

        if result.matched_count == 0:
            print(f"[WARN] Participant increment matched no contest: {contest_id}")
            return False

        return True

    async def sync_participant_count(self, contest_id: str) -> int:
        """
        Recompute participants from stored payments.
        Repairs drift left when an increment failed after its payment was saved.
        """
        contest = await self.get_contest_by_id(contest_id)
        if not contest:
            raise NotFoundError("Contest not found")

        count = await self.payments.count_documents({
            "contestId": str(contest["_id"]),
            "paymentStatus": "paid"
        })

        await self.contests.update_one(
            {"_id": contest["_id"]},
            {"$set": {"participants": count}}
        )

        if count != contest.get("participants", 0):
            print(f"[INFO] Contest {contest_id} participants corrected: {contest.get('participants', 0)} -> {count}")

        return count
