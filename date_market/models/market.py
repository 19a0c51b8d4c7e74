"""Prediction market, bet and resolution models."""

from datetime import datetime
from decimal import Decimal

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateTimeField,
    DecimalField,
    ForeignKeyField,
    TextField,
)

from date_market.models.base import BaseModel, TimestampedModel
from date_market.models.profile import Profile


MARKET_ACTIVE = 'active'
MARKET_RESOLVED = 'resolved'

BET_OPEN = 'open'
BET_WON = 'won'
BET_LOST = 'lost'


class Market(TimestampedModel):
    """
    Binary market on whether a date between two friends succeeds.

    Pools only grow through bet placement. Once status is 'resolved' the
    outcome and both pools are frozen.
    """

    id = AutoField()
    matchmaker = ForeignKeyField(Profile, backref='markets_created')
    friend_1 = ForeignKeyField(Profile, backref='markets_as_friend_1')
    friend_2 = ForeignKeyField(Profile, backref='markets_as_friend_2')
    title = CharField(max_length=255)
    description = TextField(null=True)
    resolution_date = DateTimeField(null=True)

    total_yes_pool = DecimalField(max_digits=20, decimal_places=6, default=Decimal("0"))
    total_no_pool = DecimalField(max_digits=20, decimal_places=6, default=Decimal("0"))

    status = CharField(max_length=16, default=MARKET_ACTIVE, index=True)
    outcome = BooleanField(null=True)
    resolved_at = DateTimeField(null=True)

    contract_address = CharField(max_length=42, null=True)
    """
    DateMarket contract mirroring this market on chain, if deployed.
    """

    class Meta:
        table_name = 'markets'

    @property
    def total_pool(self) -> Decimal:
        return Decimal(self.total_yes_pool) + Decimal(self.total_no_pool)


class Bet(BaseModel):
    """Stake on one side of a market."""

    id = AutoField()
    market = ForeignKeyField(Market, backref='bets', on_delete='CASCADE')
    user = ForeignKeyField(Profile, backref='bets')
    position = BooleanField()
    amount = DecimalField(max_digits=20, decimal_places=6)
    status = CharField(max_length=8, default=BET_OPEN, index=True)
    actual_payout = DecimalField(max_digits=20, decimal_places=6, default=Decimal("0"))
    created_at = DateTimeField(default=datetime.now)

    class Meta:
        table_name = 'bets'


class MarketResolution(BaseModel):
    """Audit record written once per resolved market."""

    id = AutoField()
    market = ForeignKeyField(Market, backref='resolutions', unique=True, on_delete='CASCADE')
    resolver = ForeignKeyField(Profile, null=True, backref='resolutions')
    outcome = BooleanField()
    evidence = TextField(null=True)
    total_pool = DecimalField(max_digits=20, decimal_places=6)
    winning_pool = DecimalField(max_digits=20, decimal_places=6)
    losing_pool = DecimalField(max_digits=20, decimal_places=6)
    vouch_outcome_applied = BooleanField(default=False)
    """
    Set once the date outcome has been applied to the vouch ledger.
    """
    created_at = DateTimeField(default=datetime.now)

    class Meta:
        table_name = 'market_resolutions'
