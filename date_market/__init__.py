"""
Date Market: social dating prediction market backend.

Users befriend each other, vouch for friends with a reputation budget,
propose matches, and bet USDC on whether the date goes well.
- API: FastAPI REST server
- Core: pari-mutuel settlement and vouch budget ledger
"""

__version__ = "0.1.0"
