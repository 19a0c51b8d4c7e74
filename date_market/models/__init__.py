"""
Database models for date market.

This package contains the peewee models for profiles, the social graph,
markets and the vouch ledger.
"""

from .profile import Profile
from .friendship import Friendship
from .market import Market, Bet, MarketResolution
from .match_proposal import MatchProposal
from .vouch import VouchStats, Vouch, VouchHistory
from .notification import Notification

# Creation order respects foreign keys
ALL_MODELS = [
    Profile,
    Friendship,
    Market,
    Bet,
    MarketResolution,
    MatchProposal,
    VouchStats,
    Vouch,
    VouchHistory,
    Notification,
]

__all__ = [
    "Profile",
    "Friendship",
    "Market",
    "Bet",
    "MarketResolution",
    "MatchProposal",
    "VouchStats",
    "Vouch",
    "VouchHistory",
    "Notification",
    "ALL_MODELS",
]
