"""
User profile model.

Profiles are keyed by the identity provider's user id. Authentication
and wallet custody happen upstream; this table only mirrors what the
provider reports plus the market counters.
"""

from decimal import Decimal

from peewee import CharField, DecimalField, IntegerField

from date_market.models.base import TimestampedModel


class Profile(TimestampedModel):
    """
    Profile of an authenticated user.

    Created on first login sync and updated from the profile endpoints.
    """

    id = CharField(primary_key=True, max_length=255)
    """
    Identity provider user id (e.g. "did:privy:...").
    Primary key, immutable.
    """

    email = CharField(max_length=320, null=True, index=True)
    """
    Login email reported by the identity provider.
    Indexed for the user search endpoint.
    """

    full_name = CharField(max_length=200, null=True)
    display_name = CharField(max_length=100, null=True)
    avatar_url = CharField(max_length=1024, null=True)

    wallet_address = CharField(max_length=42, null=True, unique=True)
    """
    Embedded wallet address (checksum format).
    Format: 0x + 40 hexadecimal characters (42 total).
    Unique constraint prevents two profiles claiming one wallet.
    """

    total_bets_placed = IntegerField(default=0)
    total_markets_created = IntegerField(default=0)

    total_winnings = DecimalField(max_digits=20, decimal_places=6, default=Decimal("0"))
    """
    Sum of pari-mutuel payouts received, in USDC.
    """

    class Meta:
        table_name = 'profiles'

    @property
    def name(self) -> str:
        """Best available human-readable name."""
        return self.display_name or self.full_name or self.email or self.id
