"""
Pydantic schemas for API request bodies.

Bodies accept both camelCase (web client) and snake_case keys.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Base for request bodies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Must not be empty")
    return value.strip()


class UserSyncRequest(RequestModel):
    """Identity provider data pushed after login."""

    user_id: str = Field(..., description="Identity provider user id")
    email: Optional[str] = Field(None, description="Login email")
    wallet_address: Optional[str] = Field(None, description="Embedded wallet address")

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v):
        return _require_text(v)


class UserUpdateRequest(RequestModel):
    """Editable profile fields."""

    full_name: Optional[str] = Field(None, max_length=200)
    display_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=1024)
    wallet_address: Optional[str] = None


class FriendRequestCreate(RequestModel):
    requester_id: str = Field(..., description="User sending the request")
    addressee_id: str = Field(..., description="User receiving the request")


class FriendResponseRequest(RequestModel):
    """Accept/reject body; user_id must be the addressee when given."""

    user_id: Optional[str] = None


class MarketCreateRequest(RequestModel):
    """Request schema for opening a market."""

    matchmaker_id: str
    friend_1_id: str
    friend_2_id: str
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    resolution_date: Optional[datetime] = None
    contract_address: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _require_text(v)


class ResolveMarketRequest(RequestModel):
    """Request schema for resolving a market."""

    outcome: StrictBool = Field(..., description="true = YES (date happened), false = NO")
    resolver_id: Optional[str] = None
    evidence: Optional[str] = None


class PlaceBetRequest(RequestModel):
    """Request schema for placing a bet."""

    market_id: int
    user_id: str
    position: StrictBool = Field(..., description="true = YES, false = NO")
    amount: float = Field(..., description="Stake in USDC", gt=0)


class VouchRequest(RequestModel):
    """Request schema for setting a vouch."""

    user_id: str = Field(..., description="Voucher")
    vouched_for_id: str = Field(..., description="Friend being vouched for")
    points: float = Field(..., description="Vouch points (0-5)", ge=0, le=5)


class DateOutcomeRequest(RequestModel):
    """Request schema for reporting a date outcome to the vouch ledger."""

    user_a: str
    user_b: str
    success: StrictBool
    market_id: Optional[int] = None

    @field_validator("user_b")
    @classmethod
    def validate_participants(cls, v, info):
        if v == info.data.get("user_a"):
            raise ValueError("userA and userB must be different people")
        return v


class ProposalCreateRequest(RequestModel):
    """Request schema for proposing a match."""

    matchmaker_id: str
    friend_id: str
    partner_id: str
    title: str = Field(..., max_length=255)
    deadline: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _require_text(v)


class ProposalAcceptRequest(RequestModel):
    user_id: str
    date_time: datetime


class ProposalRejectRequest(RequestModel):
    user_id: str
