"""
Vouch reputation service.

Wraps the pure budget arithmetic in core.vouch_ledger with persistence:
lazy stats creation, row locking, vouch upserts and the append-only
history log. Every mutating call runs in a single transaction.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Any

from peewee import IntegrityError

from date_market.core.database import lock_rows
from date_market.core.errors import (
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from date_market.core.vouch_ledger import (
    LedgerConstants,
    clamp_points,
    compute_outcome_adjustment,
    compute_vouch_change,
    initial_budget,
    vouch_score,
)
from date_market.models import (
    Friendship,
    Market,
    MarketResolution,
    Profile,
    Vouch,
    VouchHistory,
    VouchStats,
)
from date_market.models.friendship import FRIENDSHIP_ACCEPTED
from date_market.models.market import MARKET_RESOLVED
from date_market.models.vouch import (
    EVENT_DATE_FAIL,
    EVENT_DATE_SUCCESS,
    EVENT_FRIEND_ADDED,
    EVENT_FRIEND_REMOVED,
    EVENT_VOUCH_GIVEN,
    EVENT_VOUCH_UPDATED,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500


@dataclass(frozen=True)
class VouchResult:
    """Voucher balances after set_vouch."""
    vouch: Optional[Vouch]
    budget: Decimal
    allocated: Decimal
    delta: Decimal


@dataclass(frozen=True)
class OutcomeRecord:
    """One voucher adjustment applied by process_outcome."""
    voucher_id: str
    vouchee_id: str
    points: Decimal
    change: Decimal
    budget_after: Decimal


def accepted_friendship_query(user_id: str):
    """Accepted friendships in which user_id takes part, on either side."""
    return Friendship.select().where(
        ((Friendship.requester == user_id) | (Friendship.addressee == user_id))
        & (Friendship.status == FRIENDSHIP_ACCEPTED)
    )


def are_friends(user_a: str, user_b: str) -> bool:
    """True if the two users have an accepted friendship."""
    return Friendship.select().where(
        (
            ((Friendship.requester == user_a) & (Friendship.addressee == user_b))
            | ((Friendship.requester == user_b) & (Friendship.addressee == user_a))
        )
        & (Friendship.status == FRIENDSHIP_ACCEPTED)
    ).exists()


class VouchService:
    """Service for the vouch budget ledger."""

    def __init__(self, database, constants: Optional[LedgerConstants] = None):
        """
        Initialize vouch service.

        Args:
            database: Peewee Database (or the bound proxy)
            constants: Ledger constants (defaults to the standard budget rules)
        """
        self.database = database
        self.constants = constants or LedgerConstants()

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def count_friends(self, user_id: str) -> int:
        return accepted_friendship_query(user_id).count()

    def get_stats(self, user_id: str) -> VouchStats:
        """
        Get vouch stats for a user, creating them on first access.

        Initial budget is BASE_BUDGET + POINTS_PER_FRIEND * accepted friends.

        Raises:
            NotFoundError: If the user has no profile
        """
        stats = VouchStats.get_or_none(VouchStats.user == user_id)
        if stats is not None:
            return stats

        if not Profile.select().where(Profile.id == user_id).exists():
            raise NotFoundError(f"User not found: {user_id}")

        friend_count = self.count_friends(user_id)
        budget = initial_budget(friend_count, self.constants)

        try:
            with self.database.atomic():
                stats = VouchStats.create(
                    user=user_id,
                    budget=budget,
                    base_budget=self.constants.base_budget,
                    points_per_friend=self.constants.points_per_friend,
                    total_allocated=Decimal("0"),
                    vouch_score=Decimal("0"),
                    total_vouches_received=0,
                )
        except IntegrityError:
            # Created concurrently by another request
            return VouchStats.get(VouchStats.user == user_id)

        logger.info(
            "Initialized vouch stats",
            extra={"user_id": user_id, "friend_count": friend_count, "budget": str(budget)}
        )
        return stats

    def _locked_stats(self, user_id: str) -> VouchStats:
        self.get_stats(user_id)
        return lock_rows(VouchStats.select().where(VouchStats.user == user_id)).get()

    # ------------------------------------------------------------------
    # Vouching
    # ------------------------------------------------------------------

    def set_vouch(self, voucher_id: str, vouchee_id: str, points) -> VouchResult:
        """
        Set or update a vouch for a friend.

        Points are clamped to [0, 5]. The voucher's budget pays for any
        increase and is refunded any decrease. Only increases require an
        accepted friendship, so a vouch for a removed friend can still be
        lowered or withdrawn.

        Args:
            voucher_id: User giving the vouch
            vouchee_id: Friend receiving it
            points: Requested vouch value

        Returns:
            VouchResult with the stored vouch and the voucher's balances

        Raises:
            ValidationError: If voucher and vouchee are the same user
            NotFoundError: If either user does not exist
            PermissionDeniedError: If they are not accepted friends and the
                vouch would increase
            InsufficientBudgetError: If the budget cannot cover the increase
        """
        if voucher_id == vouchee_id:
            raise ValidationError("Cannot vouch for yourself")

        for user_id in (voucher_id, vouchee_id):
            if not Profile.select().where(Profile.id == user_id).exists():
                raise NotFoundError(f"User not found: {user_id}")

        with self.database.atomic():
            stats = self._locked_stats(voucher_id)
            existing = Vouch.get_or_none(
                (Vouch.voucher == voucher_id) & (Vouch.vouchee == vouchee_id)
            )
            old_points = Decimal(existing.points) if existing is not None else Decimal("0")

            if clamp_points(points) > old_points and not are_friends(voucher_id, vouchee_id):
                raise PermissionDeniedError("You can only vouch for friends")

            change = compute_vouch_change(stats.budget, stats.total_allocated, old_points, points)

            if change.delta == 0:
                return VouchResult(
                    vouch=existing,
                    budget=Decimal(stats.budget),
                    allocated=Decimal(stats.total_allocated),
                    delta=change.delta,
                )

            if existing is not None:
                existing.points = change.new_points
                existing.save()
                vouch = existing
            else:
                vouch = Vouch.create(voucher=voucher_id, vouchee=vouchee_id, points=change.new_points)

            stats.budget = change.budget_after
            stats.total_allocated = change.allocated_after
            stats.save()

            VouchHistory.record(
                user_id=voucher_id,
                event_type=EVENT_VOUCH_UPDATED if existing is not None else EVENT_VOUCH_GIVEN,
                points_change=-change.delta,
                budget_after=change.budget_after,
                related_user_id=vouchee_id,
                details={"old_points": old_points, "new_points": change.new_points},
            )

            self._refresh_vouch_score(vouchee_id)

        logger.info(
            "Vouch set",
            extra={
                "voucher_id": voucher_id,
                "vouchee_id": vouchee_id,
                "points": str(change.new_points),
                "budget": str(change.budget_after),
            }
        )
        return VouchResult(
            vouch=vouch,
            budget=change.budget_after,
            allocated=change.allocated_after,
            delta=change.delta,
        )

    def remove_vouch(self, voucher_id: str, vouchee_id: str) -> VouchResult:
        """Remove a vouch (set to 0), refunding its points."""
        return self.set_vouch(voucher_id, vouchee_id, 0)

    def _refresh_vouch_score(self, vouchee_id: str) -> None:
        stats = self._locked_stats(vouchee_id)
        received = [
            v.points for v in Vouch.select(Vouch.points).where(
                (Vouch.vouchee == vouchee_id) & (Vouch.points > 0)
            )
        ]
        stats.vouch_score = vouch_score(received)
        stats.total_vouches_received = len(received)
        stats.save()

    def get_vouches_given(self, user_id: str) -> List[Vouch]:
        """All vouches given by a user, most recently updated first."""
        return list(
            Vouch.select(Vouch, Profile)
            .join(Profile, on=Vouch.vouchee)
            .where(Vouch.voucher == user_id)
            .order_by(Vouch.updated_at.desc())
        )

    def get_vouches_received(self, user_id: str) -> List[Vouch]:
        """Positive vouches received by a user, highest points first."""
        return list(
            Vouch.select(Vouch, Profile)
            .join(Profile, on=Vouch.voucher)
            .where((Vouch.vouchee == user_id) & (Vouch.points > 0))
            .order_by(Vouch.points.desc())
        )

    def get_friend_vouches(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Combine a user's friend list with the vouch they gave each friend.

        Returns:
            One dict per accepted friend with keys friend (Profile),
            vouch_points, vouch_score and vouch_id, sorted by points descending
        """
        friend_ids = [f.other(user_id) for f in accepted_friendship_query(user_id)]
        if not friend_ids:
            return []

        profiles = {p.id: p for p in Profile.select().where(Profile.id.in_(friend_ids))}
        vouches = {
            v.vouchee_id: v for v in Vouch.select().where(
                (Vouch.voucher == user_id) & (Vouch.vouchee.in_(friend_ids))
            )
        }
        scores = {
            s.user_id: Decimal(s.vouch_score)
            for s in VouchStats.select().where(VouchStats.user.in_(friend_ids))
        }

        result = []
        for friend_id, profile in profiles.items():
            vouch = vouches.get(friend_id)
            result.append({
                "friend": profile,
                "vouch_points": Decimal(vouch.points) if vouch else Decimal("0"),
                "vouch_score": scores.get(friend_id, Decimal("0")),
                "vouch_id": vouch.id if vouch else None,
            })

        result.sort(key=lambda item: item["vouch_points"], reverse=True)
        return result

    # ------------------------------------------------------------------
    # Budget adjustments
    # ------------------------------------------------------------------

    def process_outcome(
        self,
        user_a: str,
        user_b: str,
        success: bool,
        market_id: Optional[int] = None
    ) -> List[OutcomeRecord]:
        """
        Reward or penalize everyone who vouched for either dater.

        A voucher who vouched for both participants is adjusted twice,
        once per vouch.

        When a market is given it must be resolved with the same
        participants and outcome, and its outcome is applied only once.

        Args:
            user_a: First participant
            user_b: Second participant
            success: Whether the date was successful
            market_id: Market the outcome belongs to

        Returns:
            Applied adjustments in processing order

        Raises:
            ValidationError: Same participant twice, or participants or
                outcome differ from the market
            NotFoundError: Unknown market
            StateError: Market not resolved yet
            DuplicateError: Outcome already applied for the market
        """
        if user_a == user_b:
            raise ValidationError("A date needs two different participants")

        event_type = EVENT_DATE_SUCCESS if success else EVENT_DATE_FAIL
        records = []

        with self.database.atomic():
            resolution = None
            if market_id is not None:
                resolution = self._unapplied_resolution(market_id, user_a, user_b, success)

            for vouchee_id in (user_a, user_b):
                vouches = list(
                    Vouch.select().where(
                        (Vouch.vouchee == vouchee_id) & (Vouch.points > 0)
                    ).order_by(Vouch.id)
                )
                for vouch in vouches:
                    stats = self._locked_stats(vouch.voucher_id)
                    adjustment = compute_outcome_adjustment(
                        stats.budget, vouch.points, success, self.constants
                    )

                    stats.budget = adjustment.budget_after
                    stats.save()

                    VouchHistory.record(
                        user_id=vouch.voucher_id,
                        event_type=event_type,
                        points_change=adjustment.change,
                        budget_after=adjustment.budget_after,
                        related_user_id=vouchee_id,
                        related_market_id=market_id,
                        details={
                            "vouch_points": adjustment.points,
                            "date_participants": [user_a, user_b],
                            "success": success,
                        },
                    )

                    records.append(OutcomeRecord(
                        voucher_id=vouch.voucher_id,
                        vouchee_id=vouchee_id,
                        points=adjustment.points,
                        change=adjustment.change,
                        budget_after=adjustment.budget_after,
                    ))

            if resolution is not None:
                resolution.vouch_outcome_applied = True
                resolution.save()

        logger.info(
            f"Processed {'successful' if success else 'failed'} date outcome",
            extra={"user_a": user_a, "user_b": user_b, "adjustments": len(records)}
        )
        return records

    def _unapplied_resolution(self, market_id: int, user_a: str, user_b: str,
                              success: bool) -> MarketResolution:
        market = Market.get_or_none(Market.id == market_id)
        if market is None:
            raise NotFoundError("Market not found")
        if market.status != MARKET_RESOLVED:
            raise StateError("Market is not resolved yet")
        if {user_a, user_b} != {market.friend_1_id, market.friend_2_id}:
            raise ValidationError("Date participants do not match the market")
        if bool(market.outcome) != success:
            raise ValidationError("Date outcome does not match the market resolution")

        resolution = lock_rows(
            MarketResolution.select().where(MarketResolution.market == market.id)
        ).first()
        if resolution is None:
            raise StateError("Market is not resolved yet")
        if resolution.vouch_outcome_applied:
            raise DuplicateError("Date outcome already applied for this market")
        return resolution

    def _has_friend_event(self, user_id: str, friend_id: str) -> bool:
        return VouchHistory.select().where(
            (VouchHistory.user == user_id)
            & (VouchHistory.related_user == friend_id)
            & (VouchHistory.event_type.in_([EVENT_FRIEND_ADDED, EVENT_FRIEND_REMOVED]))
        ).exists()

    def grant_friend_capacity(self, user_id: str, friend_id: str) -> Optional[VouchStats]:
        """
        Add POINTS_PER_FRIEND to a user's budget for a newly accepted friend.

        Capacity is granted at most once per friend. Users without stats
        yet are skipped: their lazy initialisation already counts the
        friendship. A friend with an earlier friend_added or
        friend_removed entry is skipped too, so re-friending never adds
        budget.

        Returns:
            Updated stats, or None if nothing was granted
        """
        if not VouchStats.select().where(VouchStats.user == user_id).exists():
            return None
        if self._has_friend_event(user_id, friend_id):
            return None

        with self.database.atomic():
            stats = self._locked_stats(user_id)
            stats.budget = Decimal(stats.budget) + self.constants.points_per_friend
            stats.save()

            VouchHistory.record(
                user_id=user_id,
                event_type=EVENT_FRIEND_ADDED,
                points_change=self.constants.points_per_friend,
                budget_after=stats.budget,
                related_user_id=friend_id,
            )

        return stats

    def record_friend_removed(self, user_id: str, friend_id: str) -> Optional[VouchHistory]:
        """
        Log a removed friendship for a user with stats.

        The budget is left unchanged. The entry stops a later re-friend
        from granting capacity for the same friend again.
        """
        stats = VouchStats.get_or_none(VouchStats.user == user_id)
        if stats is None:
            return None
        return VouchHistory.record(
            user_id=user_id,
            event_type=EVENT_FRIEND_REMOVED,
            points_change=Decimal("0"),
            budget_after=stats.budget,
            related_user_id=friend_id,
        )

    def get_history(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[VouchHistory]:
        """Vouch history for a user, newest first."""
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        return list(
            VouchHistory.select()
            .where(VouchHistory.user == user_id)
            .order_by(VouchHistory.created_at.desc(), VouchHistory.id.desc())
            .limit(limit)
        )
