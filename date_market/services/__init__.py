"""
Services layer for the date market backend.

Business services shared by the API and scripts. Each service receives
its database and collaborators through the constructor.
"""

from date_market.services.user_service import UserService
from date_market.services.vouch_service import VouchService
from date_market.services.friend_service import FriendService
from date_market.services.market_service import MarketService
from date_market.services.notification_service import NotificationService
from date_market.services.match_proposal_service import MatchProposalService
from date_market.services.wallet_service import WalletService

__all__ = [
    'UserService',
    'VouchService',
    'FriendService',
    'MarketService',
    'NotificationService',
    'MatchProposalService',
    'WalletService',
]
