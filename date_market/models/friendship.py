"""Friendship model."""

from peewee import CharField, ForeignKeyField

from date_market.models.base import TimestampedModel
from date_market.models.profile import Profile


FRIENDSHIP_PENDING = 'pending'
FRIENDSHIP_ACCEPTED = 'accepted'
FRIENDSHIP_REJECTED = 'rejected'


class Friendship(TimestampedModel):
    """
    Friend relation between two profiles.

    The requester sends, the addressee accepts or rejects. The service
    layer keeps at most one row per unordered pair.
    """

    requester = ForeignKeyField(Profile, backref='friend_requests_sent', on_delete='CASCADE')
    addressee = ForeignKeyField(Profile, backref='friend_requests_received', on_delete='CASCADE')
    status = CharField(max_length=16, default=FRIENDSHIP_PENDING, index=True)

    class Meta:
        table_name = 'friendships'
        indexes = (
            (('requester', 'addressee'), True),
        )

    def other(self, user_id: str) -> str:
        """Return the id of the participant that is not user_id."""
        if self.requester_id == user_id:
            return self.addressee_id
        return self.requester_id
