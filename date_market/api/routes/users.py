"""
User profile endpoints.
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends

from date_market.api.dependencies import get_user_service
from date_market.api.schemas import UserSyncRequest, UserUpdateRequest
from date_market.api.schemas.serializers import profile_summary, profile_to_dict
from date_market.services.user_service import UserService


router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/sync")
async def sync_user(
    request: UserSyncRequest,
    user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """
    Create or refresh a profile from identity provider data.

    Args:
        request: User id, email and optional embedded wallet address

    Returns:
        Synced profile
    """
    profile = user_service.sync_user(
        request.user_id,
        email=request.email,
        wallet_address=request.wallet_address,
    )
    return {"user": profile_to_dict(profile)}


@router.get("/search/{query}")
async def search_users(
    query: str,
    exclude: Optional[str] = None,
    user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """Search users by email or display name."""
    users = user_service.search_users(query, exclude_user_id=exclude)
    return {"users": [profile_summary(u) for u in users]}


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    profile = user_service.get_profile_or_raise(user_id)
    return {"user": profile_to_dict(profile)}


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """Update editable profile fields; omitted fields are left unchanged."""
    profile = user_service.update_profile(user_id, **request.model_dump(exclude_none=True))
    return {"user": profile_to_dict(profile)}
