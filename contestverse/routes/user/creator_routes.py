from fastapi import APIRouter, Depends, Query
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from contestverse.models.creator import CreatorApply, CreatorReview
from contestverse.models.states import CreatorStatus
from contestverse.routes.auth.dependencies import get_current_identity, get_database, require_admin
from contestverse.services.auth.identity import Identity
from contestverse.services.user.creator import CreatorService
from contestverse.utils.mongo import serialize_document
from contestverse.utils.response import success_response

router = APIRouter(prefix="/creators", tags=["Creators"])


@router.get("")
async def get_creator_applications(
    status: Optional[CreatorStatus] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """List creator applications, optionally by status"""
    applications = await CreatorService(db).get_applications(status)
    return success_response(
        message="Creator applications retrieved successfully",
        data=[serialize_document(a) for a in applications]
    )


@router.post("")
async def apply_as_creator(
    application: CreatorApply,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Apply to become a contest creator"""
    creator = await CreatorService(db).apply(current.email, application)
    return success_response(
        message="Creator application submitted",
        data={"inserted_id": creator["_id"]},
        status_code=201
    )


@router.patch("/{application_id}")
async def review_creator_application(
    application_id: str,
    review: CreatorReview,
    admin: Identity = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Approve or reject a creator application (admin only)"""
    result = await CreatorService(db).review(application_id, review.status)
    return success_response(message=f"Creator application {review.status.value}", data=result)
