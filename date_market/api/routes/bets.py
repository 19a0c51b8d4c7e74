"""
Betting endpoints.
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends, status

from date_market.api.dependencies import get_market_service
from date_market.api.schemas import PlaceBetRequest
from date_market.api.schemas.serializers import bet_to_dict, market_to_dict
from date_market.services.market_service import MarketService


router = APIRouter(prefix="/api/bets", tags=["bets"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_bet(
    request: PlaceBetRequest,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """
    Place a bet on an active market.

    Args:
        request: Market, user, position (true = YES) and amount

    Returns:
        Created bet
    """
    bet = market_service.place_bet(request.market_id, request.user_id, request.position, request.amount)
    return {"bet": bet_to_dict(bet)}


@router.get("/market/{market_id}")
async def list_market_bets(
    market_id: int,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    bets = market_service.list_market_bets(market_id)
    return {"bets": [bet_to_dict(b) for b in bets]}


@router.get("/user/{user_id}")
async def list_user_bets(
    user_id: str,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    """Bets placed by a user, each with its market."""
    bets = market_service.list_user_bets(user_id)
    return {"bets": [dict(bet_to_dict(b), market=market_to_dict(b.market)) for b in bets]}


@router.get("/{bet_id}")
async def get_bet(
    bet_id: int,
    market_service: MarketService = Depends(get_market_service)
) -> Dict[str, Any]:
    bet = market_service.get_bet(bet_id)
    return {"bet": bet_to_dict(bet)}
