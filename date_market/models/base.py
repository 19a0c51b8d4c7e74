"""Base model bound to the shared database proxy."""

from datetime import datetime

from peewee import Model, DateTimeField

from date_market.core.database import database


class BaseModel(Model):
    """Base class for all date market tables."""

    class Meta:
        database = database


class TimestampedModel(BaseModel):
    """Model with created_at/updated_at columns maintained on save."""

    created_at = DateTimeField(default=datetime.now)
    updated_at = DateTimeField(default=datetime.now)

    def save(self, *args, **kwargs):
        """Override save to update updated_at timestamp."""
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)
