"""In-app notification model."""

from datetime import datetime

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateTimeField,
    ForeignKeyField,
    TextField,
)

from date_market.models.base import BaseModel
from date_market.models.profile import Profile


NOTIFICATION_MATCH = 'match'
NOTIFICATION_PROPOSAL_ACCEPTED = 'proposal_accepted'
NOTIFICATION_PROPOSAL_REJECTED = 'proposal_rejected'


class Notification(BaseModel):
    """Message shown in a user's notification feed."""

    id = AutoField()
    user = ForeignKeyField(Profile, backref='notifications', on_delete='CASCADE')
    type = CharField(max_length=32)
    title = CharField(max_length=255)
    message = TextField()
    related_user = ForeignKeyField(Profile, null=True, backref='+')
    matcher = ForeignKeyField(Profile, null=True, backref='+')
    deadline = DateTimeField(null=True)
    requires_response = BooleanField(default=False)
    read = BooleanField(default=False, index=True)
    created_at = DateTimeField(default=datetime.now, index=True)

    class Meta:
        table_name = 'notifications'
