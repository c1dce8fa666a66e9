from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List, Dict
from datetime import datetime, timezone
from pymongo.errors import DuplicateKeyError

from contestverse.models.submission import SubmissionCreate
from contestverse.models.states import ContestStatus, SubmissionStatus, ensure_transition
from contestverse.services.errors import ConflictError, NotFoundError
from contestverse.utils.mongo import parse_object_id

ALREADY_SUBMITTED = "You have already submitted this contest"
WINNER_ALREADY_DECLARED = "Winner already declared for this contest"


class SubmissionService:
    """Service for contest entries and winner declaration"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.submissions = db.submissions
        self.contests = db.contests
        self.users = db.users

    async def create_submission(self, submission_data: SubmissionCreate, user_email: str) -> Dict:
        """
        Enter a contest, once per user.

        The existence pre-check gives the usual answer; the unique index on
        (contestId, userEmail) settles two requests that both pass it.
        """
        if not submission_data.contest_id or not submission_data.submission_text:
            raise ConflictError("Missing required fields")

        user = await self.users.find_one({"email": user_email})
        if not user:
            raise NotFoundError("User not found")

        already_submitted = await self.submissions.find_one({
            "contestId": submission_data.contest_id,
            "userEmail": user_email
        })
        if already_submitted:
            raise ConflictError(ALREADY_SUBMITTED)

        submission = {
            "contestId": submission_data.contest_id,
            "contestName": submission_data.contest_name,
            "userId": user["_id"],
            "userName": user.get("displayName"),
            "userEmail": user_email,
            "userImage": user.get("photoURL") or "",
            "submissionText": submission_data.submission_text,
            "submittedAt": datetime.now(timezone.utc),
            "status": SubmissionStatus.PENDING.value,
        }

        try:
            result = await self.submissions.insert_one(submission)
        except DuplicateKeyError:
            raise ConflictError(ALREADY_SUBMITTED)

        submission["_id"] = result.inserted_id
        return submission

    async def get_contest_submissions(self, contest_id: str, creator_email: str) -> List[Dict]:
        """
        Submissions for a contest, visible to its creator only.
        The contest lookup is scoped to the creator, so non-owners get the
        same 404 as a missing contest.
        """
        object_id = parse_object_id(contest_id)
        contest = None
        if object_id is not None:
            contest = await self.contests.find_one({
                "_id": object_id,
                "creatorEmail": creator_email
            })

        if not contest:
            raise NotFoundError("Contest not found")

        cursor = self.submissions.find({"contestId": contest_id}).sort("submittedAt", -1)
        return await cursor.to_list(length=None)

    async def declare_winner(self, submission_id: str, creator_email: str) -> Dict:
        """
        Mark a submission as the contest winner and complete the contest.

        The contest write is conditional on winnerEmail being unset, so a
        second declaration matches nothing and is rejected. The submission is
        updated after the contest; a failure between the two writes leaves
        the contest completed with its entry still pending and is not retried.
        """
        submission_oid = parse_object_id(submission_id)
        submission = None
        if submission_oid is not None:
            submission = await self.submissions.find_one({"_id": submission_oid})

        if not submission:
            raise NotFoundError("Submission not found")

        contest_oid = parse_object_id(submission.get("contestId"))
        contest = None
        if contest_oid is not None:
            contest = await self.contests.find_one({
                "_id": contest_oid,
                "creatorEmail": creator_email
            })

        if not contest:
            raise NotFoundError("Contest not found or unauthorized")

        if contest.get("winnerEmail"):
            raise ConflictError(WINNER_ALREADY_DECLARED)

        ensure_transition(
            ContestStatus,
            contest.get("status", ContestStatus.OPEN.value),
            ContestStatus.COMPLETED
        )
        ensure_transition(
            SubmissionStatus,
            submission.get("status", SubmissionStatus.PENDING.value),
            SubmissionStatus.WINNER
        )

        now = datetime.now(timezone.utc)
        contest_result = await self.contests.update_one(
            {
                "_id": contest_oid,
                "creatorEmail": creator_email,
                "winnerEmail": {"$in": [None, ""]},
            },
            {"$set": {
                "winnerName": submission.get("userName"),
                "winnerEmail": submission.get("userEmail"),
                "winnerImage": submission.get("userImage") or "",
                "status": ContestStatus.COMPLETED.value,
                "updatedAt": now,
            }}
        )

        if contest_result.matched_count == 0:
            raise ConflictError(WINNER_ALREADY_DECLARED)

        submission_result = await self.submissions.update_one(
            {"_id": submission_oid, "status": {"$ne": SubmissionStatus.WINNER.value}},
            {"$set": {"status": SubmissionStatus.WINNER.value}}
        )

        if submission_result.matched_count == 0:
            print(f"[WARN] Contest {contest_oid} completed but submission {submission_id} was not marked winner")

        print(f"[OK] Winner declared for contest {contest_oid}: {submission.get('userEmail')}")

        return {
            "matched_count": contest_result.matched_count,
            "modified_count": contest_result.modified_count
        }

    async def get_user_wins(self, user_email: str) -> List[Dict]:
        """Submissions that won their contest"""
        cursor = self.submissions.find({
            "userEmail": user_email,
            "status": SubmissionStatus.WINNER.value
        })
        return await cursor.to_list(length=None)
