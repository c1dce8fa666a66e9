from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contestverse.models.user import UserCreate, ProfileUpdate, RoleUpdate
from contestverse.routes.auth.dependencies import get_current_identity, get_database, require_admin
from contestverse.services.auth.identity import Identity
from contestverse.services.user.user_service import UserService
from contestverse.utils.mongo import serialize_document
from contestverse.utils.response import success_response

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("")
async def register_user(
    user_data: UserCreate,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Register a user on first sign-in.

    - Role is always "user"
    - Registering an existing email succeeds without changes
    """
    user_service = UserService(db)
    created, user = await user_service.register_user(user_data)

    if not created:
        return success_response(message="user already exist")

    return success_response(
        message="User registered successfully",
        data={"inserted_id": user["_id"]},
        status_code=201
    )


@router.get("")
async def get_users(
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """List all users"""
    users = await UserService(db).get_users()
    return success_response(
        message="Users retrieved successfully",
        data=[serialize_document(u) for u in users]
    )


@router.get("/profile")
async def get_profile(
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get the caller's own profile"""
    user = await UserService(db).get_profile(current.email)
    return success_response(
        message="Profile retrieved successfully",
        data=serialize_document(user)
    )


@router.patch("/profile")
async def update_profile(
    profile: ProfileUpdate,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Update display name, photo and bio"""
    result = await UserService(db).update_profile(current.email, profile)
    return success_response(message="Profile updated successfully", data=result)


@router.get("/{email}/role")
async def get_user_role(
    email: str,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get a user's role ("user" when unknown)"""
    role = await UserService(db).get_role(email)
    return success_response(message="Role retrieved successfully", data={"role": role})


@router.patch("/{user_id}/role")
async def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    admin: Identity = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Change a user's role (admin only)"""
    result = await UserService(db).update_role(user_id, role_update.role)
    return success_response(message="Role updated successfully", data=result)
