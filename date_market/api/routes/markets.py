"""
Prediction market endpoints.
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends, status

from date_market.api.dependencies import get_market_service
from date_market.api.schemas import MarketCreateRequest, ResolveMarketRequest
from date_market.api.schemas.serializers import (
    bet_to_dict,
    chain_state_to_dict,
    market_to_dict,
    profile_summary,
)
from date_market.services.market_service import MarketService


router = APIRouter(prefix="/api/markets", tags=["markets"])


@router.get("")
async def list_markets(
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """Active markets, newest first."""
    markets = market_service.list_active_markets()
    return {"markets": [market_to_dict(m) for m in markets]}


@router.get("/user/{user_id}")
async def list_user_markets(
    user_id: str,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """Markets created by or involving a user."""
    markets = market_service.list_user_markets(user_id)
    return {"markets": [market_to_dict(m) for m in markets]}


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """
    Get a market with its participants, bets and current odds.

    Returns:
        Market with odds as percentage strings ("66.67")
    """
    market, bets, (yes_odds, no_odds) = market_service.get_market_detail(market_id)

    data = market_to_dict(market)
    data.update({
        "matchmaker": profile_summary(market.matchmaker),
        "friend_1": profile_summary(market.friend_1),
        "friend_2": profile_summary(market.friend_2),
        "bets": [bet_to_dict(b) for b in bets],
        "odds": {"yes": f"{yes_odds:.2f}", "no": f"{no_odds:.2f}"},
    })
    return {"market": data}


@router.get("/{market_id}/chain")
async def get_market_chain_state(
    market_id: int,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """On-chain pool state of a contract-backed market."""
    state = market_service.get_chain_state(market_id)
    return {"chain": chain_state_to_dict(state)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    request: MarketCreateRequest,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    market = market_service.create_market(
        matchmaker_id=request.matchmaker_id,
        friend_1_id=request.friend_1_id,
        friend_2_id=request.friend_2_id,
        title=request.title,
        description=request.description,
        resolution_date=request.resolution_date,
        contract_address=request.contract_address,
    )
    return {"market": market_to_dict(market)}


@router.post("/{market_id}/resolve")
async def resolve_market(
    market_id: int,
    request: ResolveMarketRequest,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """
    Resolve a market and pay out winning bets.

    Returns:
        Outcome, pool totals, per-bet payouts and any vouch adjustments
    """
    result = market_service.resolve_market(
        market_id,
        request.outcome,
        resolver_id=request.resolver_id,
        evidence=request.evidence,
    )
    settlement = result.settlement

    return {
        "message": "Market resolved successfully",
        "outcome": "YES" if settlement.outcome else "NO",
        "totalPool": float(settlement.total_pool),
        "winningPool": float(settlement.winning_pool),
        "losingPool": float(settlement.losing_pool),
        "remainder": float(settlement.remainder),
        "payouts": [
            {
                "bet_id": p.bet_id,
                "user_id": p.bettor_id,
                "won": p.won,
                "payout": float(p.amount),
            }
            for p in settlement.payouts
        ],
        "vouchAdjustments": [
            {
                "voucher_id": a.voucher_id,
                "vouchee_id": a.vouchee_id,
                "points": float(a.points),
                "change": float(a.change),
                "budget_after": float(a.budget_after),
            }
            for a in result.vouch_adjustments
        ],
        "txHash": result.tx_hash,
    }
