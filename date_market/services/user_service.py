"""
Service for user profiles.

Profiles are synced from the identity provider after login and edited
from the profile page. All profile lookups used by other services go
through get_profile_or_raise().
"""

import logging
from typing import List, Optional

from peewee import IntegrityError

from date_market.core.blockchain.chain_client import checksum_address
from date_market.core.errors import DuplicateError, NotFoundError, ValidationError
from date_market.models import Profile

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
EDITABLE_FIELDS = ('full_name', 'display_name', 'avatar_url', 'wallet_address')


class UserService:
    """
    Service for managing user profiles.

    Provides upsert from the identity provider, lookups, updates and
    email search.
    """

    def __init__(self, database):
        """
        Initialize the service with database connection.

        Args:
            database: Peewee Database (or the bound proxy)
        """
        self.database = database

    def sync_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        wallet_address: Optional[str] = None
    ) -> Profile:
        """
        Create or refresh a profile from identity provider data.

        The wallet address is only set when the profile has none yet; a
        user switching wallets goes through update_profile().

        Args:
            user_id: Identity provider user id
            email: Login email, if any
            wallet_address: Embedded wallet address, if one was created

        Returns:
            The created or updated Profile

        Raises:
            ValidationError: If user_id is empty or the address is malformed
            DuplicateError: If the wallet is registered to another profile
        """
        if not user_id:
            raise ValidationError("Invalid identity provider user")

        address = checksum_address(wallet_address) if wallet_address else None

        with self.database.atomic():
            profile = Profile.get_or_none(Profile.id == user_id)
            created = profile is None
            if created:
                profile = Profile(id=user_id)

            if email:
                profile.email = email
            if address and not profile.wallet_address:
                self._ensure_wallet_free(address, user_id)
                profile.wallet_address = address

            profile.save(force_insert=created)

        logger.info(
            "Synced user profile",
            extra={"user_id": user_id, "profile_created": created, "has_wallet": bool(profile.wallet_address)}
        )
        return profile

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Retrieve profile by id, or None."""
        return Profile.get_or_none(Profile.id == user_id)

    def get_profile_or_raise(self, user_id: str) -> Profile:
        """
        Retrieve profile by id.

        Raises:
            NotFoundError: If no profile exists
        """
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError(f"User not found: {user_id}")
        return profile

    def update_profile(self, user_id: str, **updates) -> Profile:
        """
        Update editable profile fields.

        Only keys in EDITABLE_FIELDS are applied; None values are skipped.

        Raises:
            NotFoundError: If no profile exists
            ValidationError: If the wallet address is malformed
            DuplicateError: If the wallet is registered to another profile
        """
        profile = self.get_profile_or_raise(user_id)

        for field_name in EDITABLE_FIELDS:
            value = updates.get(field_name)
            if value is None:
                continue
            if field_name == 'wallet_address':
                value = checksum_address(value)
                self._ensure_wallet_free(value, user_id)
            setattr(profile, field_name, value)

        try:
            profile.save()
        except IntegrityError as e:
            raise DuplicateError("Wallet address already registered") from e

        logger.info("Updated user profile", extra={"user_id": user_id})
        return profile

    def search_users(self, query: str, exclude_user_id: Optional[str] = None) -> List[Profile]:
        """
        Case-insensitive substring search on email and display name.

        Args:
            query: Search text
            exclude_user_id: Optional id to leave out (the searching user)

        Returns:
            Up to SEARCH_LIMIT profiles
        """
        query = (query or "").strip()
        if not query:
            return []

        pattern = f"%{query}%"
        select = Profile.select().where(
            (Profile.email ** pattern) | (Profile.display_name ** pattern)
        )
        if exclude_user_id:
            select = select.where(Profile.id != exclude_user_id)

        return list(select.order_by(Profile.email).limit(SEARCH_LIMIT))

    def find_by_wallet(self, wallet_address: str) -> Optional[Profile]:
        """Reverse lookup by wallet address."""
        try:
            address = checksum_address(wallet_address)
        except ValidationError:
            return None
        return Profile.get_or_none(Profile.wallet_address == address)

    def _ensure_wallet_free(self, address: str, user_id: str) -> None:
        owner = Profile.get_or_none(Profile.wallet_address == address)
        if owner is not None and owner.id != user_id:
            logger.warning(
                "Wallet address already registered",
                extra={"user_id": user_id, "wallet_address": address}
            )
            raise DuplicateError("Wallet address already registered")
