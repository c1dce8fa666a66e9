from fastapi import APIRouter, Depends, Query
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from contestverse.models.contest import ContestCreate, ContestUpdate, ContestApproval
from contestverse.routes.auth.dependencies import get_current_identity, get_database, require_admin
from contestverse.services.auth.identity import Identity
from contestverse.services.contest.contest import ContestService
from contestverse.utils.mongo import serialize_document
from contestverse.utils.response import success_response, error_response

# Contest paths live under /contests, /contest-details and /creator/contests
router = APIRouter(tags=["Contests"])


@router.get("/contests")
async def get_contests(
    email: Optional[str] = Query(None, description="Only contests created by this email"),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """List contests, optionally filtered by creator"""
    try:
        contests = await ContestService(db).get_contests(creator_email=email)
    except Exception as e:
        print(f"[ERROR] get_contests failed: {str(e)}")
        return error_response(message="Failed to fetch contests", status_code=500)

    return success_response(
        message="Contests retrieved successfully",
        data=[serialize_document(c) for c in contests]
    )


@router.get("/contests/popular")
async def get_popular_contests(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Top 5 contests by participants"""
    try:
        contests = await ContestService(db).get_popular_contests()
    except Exception as e:
        print(f"[ERROR] get_popular_contests failed: {str(e)}")
        return error_response(message="Failed to fetch popular contests", status_code=500)

    return success_response(
        message="Popular contests retrieved successfully",
        data=[serialize_document(c) for c in contests]
    )


@router.get("/contest-details/{contest_id}")
async def get_contest_details(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contest details by ID"""
    return await get_contest(contest_id, db)


@router.get("/contests/{contest_id}")
async def get_contest(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get a single contest"""
    contest = await ContestService(db).get_contest_by_id(contest_id)

    if not contest:
        return error_response(message="Contest not found", status_code=404)

    return success_response(
        message="Contest retrieved successfully",
        data=serialize_document(contest)
    )


@router.post("/contests")
async def create_contest(
    contest_data: ContestCreate,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Propose a contest.

    - Creator is the authenticated caller
    - Starts pending admin approval with no participants
    """
    contest = await ContestService(db).create_contest(contest_data, creator_email=current.email)

    return success_response(
        message="Contest created successfully",
        data={"inserted_id": contest["_id"], "contest": serialize_document(contest)},
        status_code=201
    )


@router.patch("/contests/{contest_id}")
async def update_contest_approval(
    contest_id: str,
    approval: ContestApproval,
    admin: Identity = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Approve or reject a pending contest (admin only)"""
    result = await ContestService(db).set_approval_status(contest_id, approval.status)
    return success_response(message=f"Contest {approval.status.value}", data=result)


@router.post("/contests/{contest_id}/recount-participants")
async def recount_participants(
    contest_id: str,
    admin: Identity = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Recompute the participant count from stored payments (admin only)"""
    count = await ContestService(db).sync_participant_count(contest_id)
    return success_response(message="Participants recounted", data={"participants": count})


@router.patch("/creator/contests/{contest_id}")
async def update_contest_by_creator(
    contest_id: str,
    update_data: ContestUpdate,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Edit an own contest while it is still pending approval"""
    result = await ContestService(db).update_by_creator(contest_id, current.email, update_data)
    return success_response(message="Contest updated successfully", data=result)


@router.delete("/contests/{contest_id}")
async def delete_contest(
    contest_id: str,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Delete a contest.

    - 404 when it does not exist
    - 403 for anyone but its creator
    - 400 once it has left pending approval
    """
    result = await ContestService(db).delete_contest(contest_id, current.email)
    return success_response(message="Contest deleted successfully", data=result)
