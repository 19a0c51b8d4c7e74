"""
Pari-mutuel settlement for binary markets.

Winners split the whole pool in proportion to their stake. Payouts are
rounded down to the token's smallest unit; the leftover dust is reported
as the remainder and is never paid out. If nobody backed the winning
side the pool is forfeited: every payout is zero and losers get nothing
back.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, List, Optional, Tuple

# USDC has 6 decimals
DEFAULT_DECIMALS = 6

ZERO = Decimal("0")


def unit_quantum(decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Smallest representable token amount, e.g. Decimal('0.000001')."""
    return Decimal(1).scaleb(-decimals)


def to_token_amount(value, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Convert a number to a Decimal rounded down to the token unit."""
    return Decimal(str(value)).quantize(unit_quantum(decimals), rounding=ROUND_DOWN)


@dataclass(frozen=True)
class Stake:
    """One bet as seen by the calculator."""
    bet_id: int
    bettor_id: str
    position: bool
    amount: Decimal


@dataclass(frozen=True)
class Payout:
    """Settled result of one bet."""
    bet_id: int
    bettor_id: str
    won: bool
    amount: Decimal


@dataclass(frozen=True)
class Settlement:
    """Outcome of settling a market."""
    outcome: bool
    total_pool: Decimal
    winning_pool: Decimal
    losing_pool: Decimal
    payouts: List[Payout] = field(default_factory=list)

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.payouts), ZERO)

    @property
    def remainder(self) -> Decimal:
        """Pool left undistributed (rounding dust, or everything on forfeit)."""
        return self.total_pool - self.total_paid

    def payout_for(self, bet_id: int) -> Optional[Payout]:
        for payout in self.payouts:
            if payout.bet_id == bet_id:
                return payout
        return None


def settle(stakes: Iterable[Stake], outcome: bool, decimals: int = DEFAULT_DECIMALS) -> Settlement:
    """
    Compute pari-mutuel payouts for a resolved binary market.

    Args:
        stakes: Every bet placed on the market
        outcome: True if YES won, False if NO won
        decimals: Token precision used to round payouts down

    Returns:
        Settlement with pool totals and one Payout per stake

    Raises:
        ValueError: If a stake amount is not positive
    """
    stakes = list(stakes)
    quantum = unit_quantum(decimals)

    for stake in stakes:
        if Decimal(stake.amount) <= ZERO:
            raise ValueError(f"Bet {stake.bet_id} has non-positive amount {stake.amount}")

    total_pool = sum((Decimal(s.amount) for s in stakes), ZERO)
    winning_pool = sum((Decimal(s.amount) for s in stakes if s.position == outcome), ZERO)
    losing_pool = total_pool - winning_pool

    payouts = []
    for stake in stakes:
        won = stake.position == outcome
        amount = ZERO
        if won and winning_pool > ZERO:
            amount = (Decimal(stake.amount) * total_pool / winning_pool).quantize(
                quantum, rounding=ROUND_DOWN
            )
        payouts.append(Payout(stake.bet_id, stake.bettor_id, won, amount))

    return Settlement(
        outcome=outcome,
        total_pool=total_pool,
        winning_pool=winning_pool,
        losing_pool=losing_pool,
        payouts=payouts,
    )


def market_odds(yes_pool, no_pool) -> Tuple[Decimal, Decimal]:
    """
    Implied YES/NO percentages from the current pools.

    An empty market is quoted 50/50.
    """
    yes_pool = Decimal(yes_pool)
    no_pool = Decimal(no_pool)
    total = yes_pool + no_pool
    if total <= ZERO:
        return Decimal("50.00"), Decimal("50.00")

    yes = (yes_pool / total * 100).quantize(Decimal("0.01"))
    return yes, Decimal(100) - yes
