"""Vouch reputation models."""

import json
from datetime import datetime
from decimal import Decimal

from peewee import (
    AutoField,
    CharField,
    DateTimeField,
    DecimalField,
    ForeignKeyField,
    IntegerField,
    TextField,
)

from date_market.core.errors import StateError
from date_market.models.base import BaseModel, TimestampedModel
from date_market.models.market import Market
from date_market.models.profile import Profile


EVENT_VOUCH_GIVEN = 'vouch_given'
EVENT_VOUCH_UPDATED = 'vouch_updated'
EVENT_DATE_SUCCESS = 'date_success'
EVENT_DATE_FAIL = 'date_fail'
EVENT_FRIEND_ADDED = 'friend_added'
EVENT_FRIEND_REMOVED = 'friend_removed'


class VouchStats(TimestampedModel):
    """
    Per-user vouch budget.

    budget is what the user can still hand out; total_allocated is what
    is currently sitting in their vouches. vouch_score and
    total_vouches_received describe vouches this user has received.
    """

    user = ForeignKeyField(Profile, primary_key=True, backref='vouch_stats', on_delete='CASCADE')
    budget = DecimalField(max_digits=12, decimal_places=2)
    base_budget = DecimalField(max_digits=12, decimal_places=2)
    points_per_friend = DecimalField(max_digits=12, decimal_places=2)
    total_allocated = DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    vouch_score = DecimalField(max_digits=6, decimal_places=2, default=Decimal("0"))
    total_vouches_received = IntegerField(default=0)

    class Meta:
        table_name = 'user_vouch_stats'


class Vouch(TimestampedModel):
    """Points a voucher has put behind a friend, 0 to 5."""

    id = AutoField()
    voucher = ForeignKeyField(Profile, backref='vouches_given', on_delete='CASCADE')
    vouchee = ForeignKeyField(Profile, backref='vouches_received', on_delete='CASCADE')
    points = DecimalField(max_digits=4, decimal_places=2, default=Decimal("0"))

    class Meta:
        table_name = 'vouches'
        indexes = (
            (('voucher', 'vouchee'), True),
        )


class VouchHistory(BaseModel):
    """
    Append-only log of budget-affecting events.

    Rows are written once and never updated or deleted.
    """

    id = AutoField()
    user = ForeignKeyField(Profile, backref='vouch_history', on_delete='CASCADE')
    event_type = CharField(max_length=32)
    points_change = DecimalField(max_digits=12, decimal_places=2)
    budget_after = DecimalField(max_digits=12, decimal_places=2)
    related_user = ForeignKeyField(Profile, null=True, backref='+')
    related_market = ForeignKeyField(Market, null=True, backref='vouch_events')
    details = TextField(null=True)
    created_at = DateTimeField(default=datetime.now, index=True)

    class Meta:
        table_name = 'vouch_history'

    def save(self, *args, **kwargs):
        if self.get_id() is not None:
            raise StateError("Vouch history entries are immutable")
        return super().save(*args, **kwargs)

    def delete_instance(self, *args, **kwargs):
        raise StateError("Vouch history entries cannot be deleted")

    @classmethod
    def record(cls, user_id, event_type, points_change, budget_after,
               related_user_id=None, related_market_id=None, details=None):
        """Append one history entry."""
        return cls.create(
            user=user_id,
            event_type=event_type,
            points_change=points_change,
            budget_after=budget_after,
            related_user=related_user_id,
            related_market=related_market_id,
            details=json.dumps(details, default=str) if details is not None else None,
        )

    @property
    def details_dict(self) -> dict:
        if not self.details:
            return {}
        return json.loads(self.details)
