"""
Friend graph endpoints.
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, status

from date_market.api.dependencies import get_friend_service
from date_market.api.schemas import FriendRequestCreate, FriendResponseRequest
from date_market.api.schemas.serializers import friendship_to_dict, profile_summary
from date_market.services.friend_service import FriendService


router = APIRouter(prefix="/api/friends", tags=["friends"])


@router.get("/{user_id}")
async def list_friends(
    user_id: str,
    friend_service: FriendService = Depends(get_friend_service)
) -> Dict[str, Any]:
    """Accepted friends of a user."""
    friends = friend_service.get_friends(user_id)
    return {"friends": [profile_summary(f) for f in friends]}


@router.get("/{user_id}/pending")
async def list_pending_requests(
    user_id: str,
    friend_service: FriendService = Depends(get_friend_service)
) -> Dict[str, Any]:
    """Pending requests addressed to a user, with the requester profile."""
    pending = friend_service.get_pending_requests(user_id)
    return {
        "pendingRequests": [
            dict(friendship_to_dict(f), requester=profile_summary(f.requester))
            for f in pending
        ]
    }


@router.post("/request", status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    request: FriendRequestCreate,
    friend_service: FriendService = Depends(get_friend_service)
) -> Dict[str, Any]:
    friendship = friend_service.send_request(request.requester_id, request.addressee_id)
    return {"friendship": friendship_to_dict(friendship)}


@router.post("/{friendship_id}/accept")
async def accept_friend_request(
    friendship_id: int,
    request: Optional[FriendResponseRequest] = None,
    friend_service: FriendService = Depends(get_friend_service)
) -> Dict[str, Any]:
    """Accept a pending request; both users gain vouch capacity."""
    user_id = request.user_id if request else None
    friendship = friend_service.accept_request(friendship_id, user_id=user_id)
    return {"friendship": friendship_to_dict(friendship)}


@router.post("/{friendship_id}/reject")
async def reject_friend_request(
    friendship_id: int,
    request: Optional[FriendResponseRequest] = None,
    friend_service: FriendService = Depends(get_friend_service)
) -> Dict[str, Any]:
    user_id = request.user_id if request else None
    friendship = friend_service.reject_request(friendship_id, user_id=user_id)
    return {"friendship": friendship_to_dict(friendship)}


@router.delete("/{friendship_id}")
async def remove_friend(
    friendship_id: int,
    user_id: str,
    friend_service: FriendService = Depends(get_friend_service)
) -> Dict[str, Any]:
    """Remove a friendship; user_id must be one of its two participants."""
    friend_service.remove_friend(friendship_id, user_id)
    return {"success": True}
