"""
Wallet balance endpoints.
"""

from typing import Dict, Any
import logging

from fastapi import APIRouter, Depends

from date_market.api.dependencies import get_wallet_service
from date_market.core.errors import ChainError
from date_market.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallets", tags=["wallets"])


@router.get("/{wallet_address}/balance")
async def get_wallet_balance(
    wallet_address: str,
    wallet_service: WalletService = Depends(get_wallet_service)
) -> Dict[str, Any]:
    """
    Get USDC balance for a wallet.

    Args:
        wallet_address: Wallet address

    Returns:
        Balance information (null balance on RPC errors instead of failing)
    """
    try:
        result = wallet_service.get_balance(wallet_address)
    except ChainError as e:
        logger.warning(f"Failed to fetch balance for {wallet_address}: {e}")
        return {
            "wallet_address": wallet_address,
            "balance": None,
            "success": False,
            "error": str(e)
        }

    return {
        "wallet_address": result["address"],
        "balance": float(result["balance"]),
        "success": True,
        "error": None
    }
