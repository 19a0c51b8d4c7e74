"""
FastAPI dependency injection.

Services are built once per application and kept on app.state; routes
reach them through the getters below.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Request

from date_market.core.blockchain.chain_client import ChainClient
from date_market.core.vouch_ledger import LedgerConstants
from date_market.services.user_service import UserService
from date_market.services.vouch_service import VouchService
from date_market.services.friend_service import FriendService
from date_market.services.market_service import MarketService
from date_market.services.notification_service import NotificationService
from date_market.services.match_proposal_service import MatchProposalService
from date_market.services.wallet_service import WalletService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """All services used by the API."""
    users: UserService
    vouches: VouchService
    friends: FriendService
    markets: MarketService
    notifications: NotificationService
    proposals: MatchProposalService
    wallets: WalletService
    chain_client: Optional[ChainClient] = None


def build_services(config: dict, database, chain_client: Optional[ChainClient] = None) -> ServiceContainer:
    """
    Wire all services from a validated configuration.

    Args:
        config: Validated configuration (see load_config)
        database: Bound peewee Database
        chain_client: Pre-built chain client; built from the 'blockchain'
            section when omitted and that section is present

    Returns:
        ServiceContainer
    """
    vouch_config = config.get('vouch', {})
    settlement_config = config.get('settlement', {})

    if chain_client is None and config.get('blockchain'):
        chain_client = ChainClient.from_config(config['blockchain'])
        logger.info("Blockchain client initialized")

    users = UserService(database)
    vouches = VouchService(database, LedgerConstants.from_config(vouch_config))
    friends = FriendService(database, users, vouches)
    markets = MarketService(
        database,
        users,
        vouch_service=vouches,
        chain_client=chain_client,
        decimals=settlement_config.get('decimals', 6),
        apply_vouch_outcome=vouch_config.get('apply_on_market_resolve', False),
    )
    notifications = NotificationService(database)
    proposals = MatchProposalService(database, users, markets, notifications)
    wallets = WalletService(users, chain_client)

    logger.info("All services initialized successfully")
    return ServiceContainer(
        users=users,
        vouches=vouches,
        friends=friends,
        markets=markets,
        notifications=notifications,
        proposals=proposals,
        wallets=wallets,
        chain_client=chain_client,
    )


def get_services(request: Request) -> ServiceContainer:
    """Get the service container of the running application."""
    services = getattr(request.app.state, 'services', None)
    if services is None:
        raise RuntimeError("Services not initialized. Call build_services() on startup first.")
    return services


def get_user_service(request: Request) -> UserService:
    return get_services(request).users


def get_vouch_service(request: Request) -> VouchService:
    return get_services(request).vouches


def get_friend_service(request: Request) -> FriendService:
    return get_services(request).friends


def get_market_service(request: Request) -> MarketService:
    return get_services(request).markets


def get_notification_service(request: Request) -> NotificationService:
    return get_services(request).notifications


def get_proposal_service(request: Request) -> MatchProposalService:
    return get_services(request).proposals


def get_wallet_service(request: Request) -> WalletService:
    return get_services(request).wallets
