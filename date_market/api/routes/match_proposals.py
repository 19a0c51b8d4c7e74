"""
Match proposal endpoints.
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends, status

from date_market.api.dependencies import get_proposal_service
from date_market.api.schemas import (
    ProposalAcceptRequest,
    ProposalCreateRequest,
    ProposalRejectRequest,
)
from date_market.api.schemas.serializers import market_to_dict, proposal_to_dict
from date_market.services.match_proposal_service import ROLE_ALL, MatchProposalService


router = APIRouter(prefix="/api/match-proposals", tags=["match-proposals"])


@router.get("/{user_id}")
async def list_proposals(
    user_id: str,
    role: str = ROLE_ALL,
    proposal_service: MatchProposalService = Depends(get_proposal_service)
) -> Dict[str, Any]:
    """
    Proposals a user takes part in.

    Args:
        user_id: User id
        role: all, matchmaker, friend or partner
    """
    proposals = proposal_service.list_proposals(user_id, role=role)
    return {"proposals": [proposal_to_dict(p) for p in proposals]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_proposal(
    request: ProposalCreateRequest,
    proposal_service: MatchProposalService = Depends(get_proposal_service)
) -> Dict[str, Any]:
    proposal = proposal_service.create_proposal(
        request.matchmaker_id,
        request.friend_id,
        request.partner_id,
        request.title,
        deadline=request.deadline,
    )
    return {"proposal": proposal_to_dict(proposal)}


@router.post("/{proposal_id}/accept")
async def accept_proposal(
    proposal_id: int,
    request: ProposalAcceptRequest,
    proposal_service: MatchProposalService = Depends(get_proposal_service)
) -> Dict[str, Any]:
    """Accept as the partner; opens the market for the date."""
    accepted = proposal_service.accept_proposal(proposal_id, request.user_id, request.date_time)
    return {
        "proposal": proposal_to_dict(accepted.proposal),
        "market": market_to_dict(accepted.market),
        "eligibleBettors": accepted.eligible_bettors,
    }


@router.post("/{proposal_id}/reject")
async def reject_proposal(
    proposal_id: int,
    request: ProposalRejectRequest,
    proposal_service: MatchProposalService = Depends(get_proposal_service)
) -> Dict[str, Any]:
    proposal = proposal_service.reject_proposal(proposal_id, request.user_id)
    return {"proposal": proposal_to_dict(proposal)}
