"""
Vouch budget arithmetic.

Every user has a budget of points to hand out to friends. Vouching moves
points from the budget into the vouch; lowering a vouch moves them back.
When a vouched-for friend goes on a date, the voucher's budget grows on
success and shrinks (twice as fast) on failure, never below zero.

This module is pure: callers fetch rows, call these functions, and
persist the results inside one transaction.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from date_market.core.errors import InsufficientBudgetError


BASE_BUDGET = Decimal("20.0")
POINTS_PER_FRIEND = Decimal("3.0")
REWARD_PER_POINT = Decimal("1.0")
PENALTY_PER_POINT = Decimal("2.0")

MIN_POINTS = Decimal("0")
MAX_POINTS = Decimal("5")

ZERO = Decimal("0")
CENT = Decimal("0.01")


def _points(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LedgerConstants:
    """Tunable ledger parameters."""
    base_budget: Decimal = BASE_BUDGET
    points_per_friend: Decimal = POINTS_PER_FRIEND
    reward_per_point: Decimal = REWARD_PER_POINT
    penalty_per_point: Decimal = PENALTY_PER_POINT

    @classmethod
    def from_config(cls, vouch_config: dict) -> "LedgerConstants":
        defaults = cls()
        return cls(
            base_budget=_points(vouch_config.get('base_budget', defaults.base_budget)),
            points_per_friend=_points(vouch_config.get('points_per_friend', defaults.points_per_friend)),
            reward_per_point=_points(vouch_config.get('reward_per_point', defaults.reward_per_point)),
            penalty_per_point=_points(vouch_config.get('penalty_per_point', defaults.penalty_per_point)),
        )


@dataclass(frozen=True)
class VouchChange:
    """Effect of setting a vouch to a new value."""
    old_points: Decimal
    new_points: Decimal
    delta: Decimal
    budget_after: Decimal
    allocated_after: Decimal


@dataclass(frozen=True)
class OutcomeAdjustment:
    """Effect of a date outcome on one voucher's budget."""
    points: Decimal
    change: Decimal
    budget_after: Decimal


def clamp_points(points) -> Decimal:
    """Clamp requested vouch points to [0, 5]."""
    value = _points(points)
    return max(MIN_POINTS, min(MAX_POINTS, value))


def initial_budget(friend_count: int, constants: LedgerConstants = LedgerConstants()) -> Decimal:
    """Budget granted on first access: base plus a fixed amount per accepted friend."""
    if friend_count < 0:
        raise ValueError("friend_count must not be negative")
    return constants.base_budget + constants.points_per_friend * friend_count


def compute_vouch_change(budget, allocated, old_points, new_points) -> VouchChange:
    """
    Apply a vouch update to the voucher's budget.

    Args:
        budget: Voucher's available budget
        allocated: Voucher's currently allocated points
        old_points: Existing vouch value (0 if none)
        new_points: Requested value, clamped to [0, 5]

    Returns:
        VouchChange with the delta and resulting balances

    Raises:
        InsufficientBudgetError: If the increase exceeds the available budget
    """
    budget = Decimal(budget)
    allocated = Decimal(allocated)
    old_points = Decimal(old_points)
    new_points = clamp_points(new_points)
    delta = new_points - old_points

    if delta > ZERO and budget < delta:
        raise InsufficientBudgetError(
            f"Not enough vouch points. You have {budget:.1f} points available, but need {delta:.1f}."
        )

    return VouchChange(
        old_points=old_points,
        new_points=new_points,
        delta=delta,
        budget_after=budget - delta,
        allocated_after=allocated + delta,
    )


def compute_outcome_adjustment(budget, points, success: bool,
                               constants: LedgerConstants = LedgerConstants()) -> OutcomeAdjustment:
    """
    Reward or penalize one vouch after a date.

    The resulting budget is floored at zero; change reports the
    unfloored amount that was applied.
    """
    budget = Decimal(budget)
    points = Decimal(points)
    if success:
        change = points * constants.reward_per_point
    else:
        change = -(points * constants.penalty_per_point)

    return OutcomeAdjustment(
        points=points,
        change=change,
        budget_after=max(ZERO, budget + change),
    )


def vouch_score(received_points: Iterable) -> Decimal:
    """Average of the positive vouch points a user has received."""
    points = [Decimal(p) for p in received_points if Decimal(p) > ZERO]
    if not points:
        return ZERO
    return (sum(points, ZERO) / len(points)).quantize(CENT, rounding=ROUND_HALF_UP)
