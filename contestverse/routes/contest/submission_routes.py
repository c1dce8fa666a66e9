from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contestverse.models.submission import SubmissionCreate
from contestverse.routes.auth.dependencies import get_current_identity, get_database
from contestverse.services.auth.identity import Identity
from contestverse.services.contest.submission import SubmissionService
from contestverse.services.errors import ServiceError
from contestverse.utils.mongo import serialize_document
from contestverse.utils.response import success_response, error_response

router = APIRouter(prefix="/submissions", tags=["Submissions"])


@router.post("")
async def submit_entry(
    submission_data: SubmissionCreate,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Submit an entry to a contest.

    - contestId and submissionText are required
    - One submission per user per contest
    """
    try:
        submission = await SubmissionService(db).create_submission(submission_data, current.email)
    except ServiceError:
        raise
    except Exception as e:
        print(f"[ERROR] Submission failed: {str(e)}")
        return error_response(message="Submission failed", status_code=500)

    return success_response(
        message="Submission successful",
        data={"inserted_id": submission["_id"]},
        status_code=201
    )


@router.get("/contest/{contest_id}")
async def get_contest_submissions(
    contest_id: str,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """All submissions for a contest, newest first (contest creator only)"""
    submissions = await SubmissionService(db).get_contest_submissions(contest_id, current.email)
    return success_response(
        message="Submissions retrieved successfully",
        data=[serialize_document(s) for s in submissions]
    )


@router.patch("/declare-winner/{submission_id}")
async def declare_winner(
    submission_id: str,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Declare a submission the winner of its contest (contest creator only).

    - Completes the contest
    - A contest can have one winner
    """
    try:
        result = await SubmissionService(db).declare_winner(submission_id, current.email)
    except ServiceError:
        raise
    except Exception as e:
        print(f"[ERROR] declare_winner failed: {str(e)}")
        return error_response(message="Server error", status_code=500)

    return success_response(message="Winner declared successfully", data=result)


@router.get("/my-wins/{email}")
async def get_my_wins(
    email: str,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests won by a user"""
    wins = await SubmissionService(db).get_user_wins(email)
    return success_response(
        message="Winning submissions retrieved successfully",
        data=[serialize_document(s) for s in wins]
    )
