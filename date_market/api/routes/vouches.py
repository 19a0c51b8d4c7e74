"""
Vouch reputation endpoints.
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends

from date_market.api.dependencies import get_vouch_service
from date_market.api.schemas import DateOutcomeRequest, VouchRequest
from date_market.api.schemas.serializers import (
    history_to_dict,
    profile_summary,
    stats_to_dict,
    vouch_to_dict,
)
from date_market.services.vouch_service import VouchResult, VouchService


router = APIRouter(prefix="/api/vouches", tags=["vouches"])


def _vouch_result(result: VouchResult) -> Dict[str, Any]:
    return {
        "vouch": vouch_to_dict(result.vouch) if result.vouch is not None else None,
        "budget": float(result.budget),
        "allocated": float(result.allocated),
        "delta": float(result.delta),
    }


@router.post("")
async def set_vouch(
    request: VouchRequest,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    """
    Set or update the points a user puts behind a friend.

    Returns:
        Stored vouch with the voucher's remaining budget and allocation
    """
    result = vouch_service.set_vouch(request.user_id, request.vouched_for_id, request.points)
    return _vouch_result(result)


@router.delete("/{voucher_id}/{vouchee_id}")
async def remove_vouch(
    voucher_id: str,
    vouchee_id: str,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    """Remove a vouch and refund its points."""
    result = vouch_service.remove_vouch(voucher_id, vouchee_id)
    return _vouch_result(result)


@router.post("/outcomes")
async def report_date_outcome(
    request: DateOutcomeRequest,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    """Reward or penalize everyone who vouched for either participant."""
    records = vouch_service.process_outcome(
        request.user_a, request.user_b, request.success, market_id=request.market_id
    )
    return {
        "adjustments": [
            {
                "voucher_id": r.voucher_id,
                "vouchee_id": r.vouchee_id,
                "points": float(r.points),
                "change": float(r.change),
                "budget_after": float(r.budget_after),
            }
            for r in records
        ]
    }


@router.get("/{user_id}/stats")
async def get_stats(
    user_id: str,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    stats = vouch_service.get_stats(user_id)
    return {"stats": stats_to_dict(stats)}


@router.get("/{user_id}/given")
async def get_vouches_given(
    user_id: str,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    vouches = vouch_service.get_vouches_given(user_id)
    return {"vouches": [vouch_to_dict(v, counterpart=v.vouchee) for v in vouches]}


@router.get("/{user_id}/received")
async def get_vouches_received(
    user_id: str,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    vouches = vouch_service.get_vouches_received(user_id)
    return {"vouches": [vouch_to_dict(v, counterpart=v.voucher) for v in vouches]}


@router.get("/{user_id}/friends")
async def get_friend_vouches(
    user_id: str,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    """Friends of a user with the points the user gave each of them."""
    friends = vouch_service.get_friend_vouches(user_id)
    return {
        "friends": [
            {
                "friend": profile_summary(item["friend"]),
                "vouch_points": float(item["vouch_points"]),
                "vouch_score": float(item["vouch_score"]),
                "vouch_id": item["vouch_id"],
            }
            for item in friends
        ]
    }


@router.get("/{user_id}/history")
async def get_history(
    user_id: str,
    limit: int = 50,
    vouch_service: VouchService = Depends(get_vouch_service)
) -> Dict[str, Any]:
    entries = vouch_service.get_history(user_id, limit=limit)
    return {"history": [history_to_dict(e) for e in entries]}
