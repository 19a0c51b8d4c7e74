"""
Wallet balance service.

Reads on-chain USDC balances for wallet addresses and for users with a
registered wallet.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from date_market.core.blockchain.chain_client import ChainClient, checksum_address
from date_market.core.errors import ChainError, ValidationError
from date_market.services.user_service import UserService

logger = logging.getLogger(__name__)


class WalletService:
    """Service for querying wallet balances."""

    def __init__(self, user_service: UserService, chain_client: Optional[ChainClient] = None):
        """
        Initialize wallet service.

        Args:
            user_service: Profile lookups for user wallets
            chain_client: Blockchain client; balance calls fail without one
        """
        self.user_service = user_service
        self.chain_client = chain_client

    def get_balance(self, address: str) -> Dict[str, object]:
        """
        USDC balance of an address.

        Returns:
            Dict with checksummed address and balance

        Raises:
            ValidationError: Malformed address
            ChainError: No chain client configured or RPC failure
        """
        address = checksum_address(address)
        if self.chain_client is None:
            raise ChainError("Blockchain client not configured")

        balance: Decimal = self.chain_client.get_usdc_balance(address)
        logger.debug("Fetched USDC balance", extra={"wallet_address": address})
        return {"address": address, "balance": balance}

    def get_user_balance(self, user_id: str) -> Dict[str, object]:
        """USDC balance of a user's registered wallet."""
        profile = self.user_service.get_profile_or_raise(user_id)
        if not profile.wallet_address:
            raise ValidationError("User has no wallet address")
        return self.get_balance(profile.wallet_address)
