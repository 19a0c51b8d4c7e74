"""
Response builders.

Convert peewee rows and service results into JSON-ready dicts. Token
amounts and points are exposed as floats.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from date_market.core.blockchain.chain_client import ChainMarketState
from date_market.models import (
    Bet,
    Friendship,
    Market,
    MatchProposal,
    Notification,
    Profile,
    Vouch,
    VouchHistory,
    VouchStats,
)


def _num(value) -> Optional[float]:
    if value is None:
        return None
    return float(Decimal(value))


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def profile_summary(profile: Profile) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "email": profile.email,
        "full_name": profile.full_name,
        "display_name": profile.display_name,
        "avatar_url": profile.avatar_url,
    }


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    data = profile_summary(profile)
    data.update({
        "wallet_address": profile.wallet_address,
        "total_bets_placed": profile.total_bets_placed,
        "total_markets_created": profile.total_markets_created,
        "total_winnings": _num(profile.total_winnings),
        "created_at": _iso(profile.created_at),
        "updated_at": _iso(profile.updated_at),
    })
    return data


def friendship_to_dict(friendship: Friendship) -> Dict[str, Any]:
    return {
        "id": friendship.id,
        "requester_id": friendship.requester_id,
        "addressee_id": friendship.addressee_id,
        "status": friendship.status,
        "created_at": _iso(friendship.created_at),
        "updated_at": _iso(friendship.updated_at),
    }


def market_to_dict(market: Market) -> Dict[str, Any]:
    return {
        "id": market.id,
        "matchmaker_id": market.matchmaker_id,
        "friend_1_id": market.friend_1_id,
        "friend_2_id": market.friend_2_id,
        "title": market.title,
        "description": market.description,
        "resolution_date": _iso(market.resolution_date),
        "total_yes_pool": _num(market.total_yes_pool),
        "total_no_pool": _num(market.total_no_pool),
        "status": market.status,
        "outcome": market.outcome,
        "resolved_at": _iso(market.resolved_at),
        "contract_address": market.contract_address,
        "created_at": _iso(market.created_at),
    }


def bet_to_dict(bet: Bet) -> Dict[str, Any]:
    return {
        "id": bet.id,
        "market_id": bet.market_id,
        "user_id": bet.user_id,
        "position": bet.position,
        "amount": _num(bet.amount),
        "status": bet.status,
        "actual_payout": _num(bet.actual_payout),
        "created_at": _iso(bet.created_at),
    }


def chain_state_to_dict(state: ChainMarketState) -> Dict[str, Any]:
    return {
        "contract_address": state.address,
        "total_yes_pool": _num(state.total_yes_pool),
        "total_no_pool": _num(state.total_no_pool),
        "resolved": state.resolved,
        "outcome": state.outcome,
    }


def stats_to_dict(stats: VouchStats) -> Dict[str, Any]:
    return {
        "user_id": stats.user_id,
        "budget": _num(stats.budget),
        "base_budget": _num(stats.base_budget),
        "points_per_friend": _num(stats.points_per_friend),
        "total_allocated": _num(stats.total_allocated),
        "vouch_score": _num(stats.vouch_score),
        "total_vouches_received": stats.total_vouches_received,
    }


def vouch_to_dict(vouch: Vouch, counterpart: Optional[Profile] = None) -> Dict[str, Any]:
    data = {
        "id": vouch.id,
        "voucher_id": vouch.voucher_id,
        "vouchee_id": vouch.vouchee_id,
        "points": _num(vouch.points),
        "created_at": _iso(vouch.created_at),
        "updated_at": _iso(vouch.updated_at),
    }
    if counterpart is not None:
        data["user"] = profile_summary(counterpart)
    return data


def history_to_dict(entry: VouchHistory) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "event_type": entry.event_type,
        "points_change": _num(entry.points_change),
        "budget_after": _num(entry.budget_after),
        "related_user_id": entry.related_user_id,
        "related_market_id": entry.related_market_id,
        "details": entry.details_dict,
        "created_at": _iso(entry.created_at),
    }


def proposal_to_dict(proposal: MatchProposal) -> Dict[str, Any]:
    return {
        "id": proposal.id,
        "matchmaker_id": proposal.matchmaker_id,
        "friend_id": proposal.friend_id,
        "partner_id": proposal.partner_id,
        "title": proposal.title,
        "status": proposal.status,
        "date_time": _iso(proposal.date_time),
        "market_id": proposal.market_id,
        "created_at": _iso(proposal.created_at),
        "updated_at": _iso(proposal.updated_at),
    }


def notification_to_dict(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "related_user_id": notification.related_user_id,
        "matcher_id": notification.matcher_id,
        "deadline": _iso(notification.deadline),
        "requires_response": notification.requires_response,
        "read": notification.read,
        "created_at": _iso(notification.created_at),
    }
