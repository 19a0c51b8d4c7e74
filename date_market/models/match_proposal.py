"""Match proposal model."""

from peewee import AutoField, CharField, DateTimeField, ForeignKeyField

from date_market.models.base import TimestampedModel
from date_market.models.market import Market
from date_market.models.profile import Profile


PROPOSAL_PENDING = 'pending'
PROPOSAL_ACCEPTED = 'accepted'
PROPOSAL_REJECTED = 'rejected'


class MatchProposal(TimestampedModel):
    """
    Matchmaker's suggestion that a friend should date a partner.

    Only the partner can accept; acceptance fixes the date time and
    opens the market.
    """

    id = AutoField()
    matchmaker = ForeignKeyField(Profile, backref='proposals_made')
    friend = ForeignKeyField(Profile, backref='proposals_as_friend')
    partner = ForeignKeyField(Profile, backref='proposals_as_partner')
    title = CharField(max_length=255)
    status = CharField(max_length=16, default=PROPOSAL_PENDING, index=True)
    date_time = DateTimeField(null=True)
    market = ForeignKeyField(Market, null=True, backref='proposals')

    class Meta:
        table_name = 'match_proposals'
