"""Pydantic schemas for API requests and response builders."""

from date_market.api.schemas.requests import (
    UserSyncRequest,
    UserUpdateRequest,
    FriendRequestCreate,
    FriendResponseRequest,
    MarketCreateRequest,
    ResolveMarketRequest,
    PlaceBetRequest,
    VouchRequest,
    DateOutcomeRequest,
    ProposalCreateRequest,
    ProposalAcceptRequest,
    ProposalRejectRequest,
)

__all__ = [
    'UserSyncRequest',
    'UserUpdateRequest',
    'FriendRequestCreate',
    'FriendResponseRequest',
    'MarketCreateRequest',
    'ResolveMarketRequest',
    'PlaceBetRequest',
    'VouchRequest',
    'DateOutcomeRequest',
    'ProposalCreateRequest',
    'ProposalAcceptRequest',
    'ProposalRejectRequest',
]
