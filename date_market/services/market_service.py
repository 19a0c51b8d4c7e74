"""
Market and betting service.

Creates markets, places bets, and resolves markets with pari-mutuel
settlement. Resolution is all-or-nothing: market flag, bet payouts,
winnings counters, audit record, optional vouch adjustments and the
optional on-chain resolve happen in one transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from date_market.core.blockchain.chain_client import ChainClient, ChainMarketState, checksum_address
from date_market.core.database import lock_rows
from date_market.core.errors import (
    ChainError,
    MarketNotActiveError,
    NotFoundError,
    StateError,
    ValidationError,
)
from date_market.core.settlement import (
    DEFAULT_DECIMALS,
    Settlement,
    Stake,
    market_odds,
    settle,
    to_token_amount,
)
from date_market.models import Bet, Market, MarketResolution, Profile
from date_market.models.market import BET_LOST, BET_WON, MARKET_ACTIVE, MARKET_RESOLVED
from date_market.services.user_service import UserService
from date_market.services.vouch_service import OutcomeRecord, VouchService

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    """Everything produced by resolving a market."""
    market: Market
    settlement: Settlement
    resolution: MarketResolution
    vouch_adjustments: List[OutcomeRecord] = field(default_factory=list)
    tx_hash: Optional[str] = None


class MarketService:
    """Service for markets, bets and settlement."""

    def __init__(
        self,
        database,
        user_service: UserService,
        vouch_service: Optional[VouchService] = None,
        chain_client: Optional[ChainClient] = None,
        decimals: int = DEFAULT_DECIMALS,
        apply_vouch_outcome: bool = False
    ):
        """
        Initialize market service.

        Args:
            database: Peewee Database (or the bound proxy)
            user_service: Profile lookups
            vouch_service: Vouch ledger, required when apply_vouch_outcome is set
            chain_client: Optional blockchain client for contract-backed markets
            decimals: Token precision for stakes and payouts
            apply_vouch_outcome: Feed market outcomes into the vouch ledger
        """
        if apply_vouch_outcome and vouch_service is None:
            raise ValueError("apply_vouch_outcome requires a vouch_service")

        self.database = database
        self.user_service = user_service
        self.vouch_service = vouch_service
        self.chain_client = chain_client
        self.decimals = decimals
        self.apply_vouch_outcome = apply_vouch_outcome

    # ------------------------------------------------------------------
    # Markets
    # ------------------------------------------------------------------

    def create_market(
        self,
        matchmaker_id: str,
        friend_1_id: str,
        friend_2_id: str,
        title: str,
        description: Optional[str] = None,
        resolution_date: Optional[datetime] = None,
        contract_address: Optional[str] = None
    ) -> Market:
        """
        Open a market on a date between two friends.

        Raises:
            ValidationError: Missing title or identical participants
            NotFoundError: Unknown user
        """
        if not title or not title.strip():
            raise ValidationError("Missing required fields")
        if friend_1_id == friend_2_id:
            raise ValidationError("Cannot create market with same person")

        for user_id in (matchmaker_id, friend_1_id, friend_2_id):
            self.user_service.get_profile_or_raise(user_id)

        address = checksum_address(contract_address) if contract_address else None

        with self.database.atomic():
            market = Market.create(
                matchmaker=matchmaker_id,
                friend_1=friend_1_id,
                friend_2=friend_2_id,
                title=title.strip(),
                description=description,
                resolution_date=resolution_date,
                status=MARKET_ACTIVE,
                contract_address=address,
            )
            Profile.update(
                total_markets_created=Profile.total_markets_created + 1
            ).where(Profile.id == matchmaker_id).execute()

        logger.info(
            "Market created",
            extra={"market_id": market.id, "matchmaker_id": matchmaker_id}
        )
        return market

    def get_market(self, market_id: int) -> Market:
        """
        Raises:
            NotFoundError: If the market does not exist
        """
        market = Market.get_or_none(Market.id == market_id)
        if market is None:
            raise NotFoundError("Market not found")
        return market

    def get_market_detail(self, market_id: int) -> Tuple[Market, List[Bet], Tuple[Decimal, Decimal]]:
        """Market with its bets and current YES/NO odds."""
        market = self.get_market(market_id)
        bets = self.list_market_bets(market_id)
        return market, bets, market_odds(market.total_yes_pool, market.total_no_pool)

    def list_active_markets(self) -> List[Market]:
        return list(
            Market.select()
            .where(Market.status == MARKET_ACTIVE)
            .order_by(Market.created_at.desc(), Market.id.desc())
        )

    def list_user_markets(self, user_id: str) -> List[Market]:
        """Markets created by or involving a user."""
        return list(
            Market.select()
            .where(
                (Market.matchmaker == user_id)
                | (Market.friend_1 == user_id)
                | (Market.friend_2 == user_id)
            )
            .order_by(Market.created_at.desc(), Market.id.desc())
        )

    def get_chain_state(self, market_id: int) -> ChainMarketState:
        """
        Read the on-chain pools of a contract-backed market.

        Raises:
            ValidationError: If the market has no contract
            ChainError: If no chain client is configured or the call fails
        """
        market = self.get_market(market_id)
        if not market.contract_address:
            raise ValidationError("Market is not deployed on chain")
        if self.chain_client is None:
            raise ChainError("Blockchain client not configured")
        return self.chain_client.get_market_state(market.contract_address)

    # ------------------------------------------------------------------
    # Bets
    # ------------------------------------------------------------------

    def place_bet(self, market_id: int, user_id: str, position: bool, amount) -> Bet:
        """
        Stake an amount on YES (True) or NO (False).

        The amount is rounded down to the token unit and added to the
        matching pool with an atomic SQL increment.

        Raises:
            ValidationError: Non-boolean position or non-positive amount
            NotFoundError: Unknown market or user
            MarketNotActiveError: Market already resolved
        """
        if not isinstance(position, bool):
            raise ValidationError("Position must be true (YES) or false (NO)")

        try:
            stake = to_token_amount(amount, self.decimals)
        except (ArithmeticError, ValueError, TypeError):
            raise ValidationError("Amount must be a number")
        if stake <= 0:
            raise ValidationError("Amount must be positive")

        self.user_service.get_profile_or_raise(user_id)

        with self.database.atomic():
            market = lock_rows(Market.select().where(Market.id == market_id)).first()
            if market is None:
                raise NotFoundError("Market not found")
            if market.status != MARKET_ACTIVE:
                raise MarketNotActiveError("Market is not active")

            bet = Bet.create(market=market.id, user=user_id, position=position, amount=stake)

            pool = Market.total_yes_pool if position else Market.total_no_pool
            Market.update({
                pool: pool + stake,
                Market.updated_at: datetime.now(),
            }).where(Market.id == market.id).execute()

            Profile.update(
                total_bets_placed=Profile.total_bets_placed + 1
            ).where(Profile.id == user_id).execute()

        logger.info(
            "Bet placed",
            extra={
                "market_id": market_id,
                "user_id": user_id,
                "position": "YES" if position else "NO",
                "amount": str(stake),
            }
        )
        return bet

    def get_bet(self, bet_id: int) -> Bet:
        bet = Bet.get_or_none(Bet.id == bet_id)
        if bet is None:
            raise NotFoundError("Bet not found")
        return bet

    def list_market_bets(self, market_id: int) -> List[Bet]:
        return list(
            Bet.select().where(Bet.market == market_id).order_by(Bet.created_at.desc(), Bet.id.desc())
        )

    def list_user_bets(self, user_id: str) -> List[Bet]:
        return list(
            Bet.select(Bet, Market)
            .join(Market)
            .where(Bet.user == user_id)
            .order_by(Bet.created_at.desc(), Bet.id.desc())
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_market(
        self,
        market_id: int,
        outcome: bool,
        resolver_id: Optional[str] = None,
        evidence: Optional[str] = None
    ) -> ResolutionResult:
        """
        Resolve a market and settle every bet.

        Resolving an already resolved market is rejected, never
        recomputed. Any failure rolls the whole resolution back.

        Args:
            market_id: Market to resolve
            outcome: True if the date succeeded (YES)
            resolver_id: User declaring the outcome
            evidence: Free-form supporting note

        Returns:
            ResolutionResult with the settlement and side effects

        Raises:
            ValidationError: Non-boolean outcome
            NotFoundError: Unknown market or resolver
            MarketNotActiveError: Market already resolved
            StateError: Contract already resolved with the opposite outcome
            ChainError: On-chain resolution failed
        """
        if not isinstance(outcome, bool):
            raise ValidationError("Outcome must be true (YES) or false (NO)")
        if resolver_id is not None:
            self.user_service.get_profile_or_raise(resolver_id)

        with self.database.atomic():
            market = lock_rows(Market.select().where(Market.id == market_id)).first()
            if market is None:
                raise NotFoundError("Market not found")
            if market.status != MARKET_ACTIVE:
                raise MarketNotActiveError("Market is not active")

            bets = list(Bet.select().where(Bet.market == market.id).order_by(Bet.id))
            settlement = settle(
                (Stake(b.id, b.user_id, b.position, Decimal(b.amount)) for b in bets),
                outcome,
                self.decimals,
            )

            if settlement.total_pool != market.total_pool:
                logger.warning(
                    "Market pools disagree with bet total",
                    extra={
                        "market_id": market.id,
                        "pool_total": str(market.total_pool),
                        "bet_total": str(settlement.total_pool),
                    }
                )

            market.status = MARKET_RESOLVED
            market.outcome = outcome
            market.resolved_at = datetime.now()
            market.save()

            for bet, payout in zip(bets, settlement.payouts):
                bet.status = BET_WON if payout.won else BET_LOST
                bet.actual_payout = payout.amount
                bet.save()

                if payout.amount > 0:
                    Profile.update(
                        total_winnings=Profile.total_winnings + payout.amount
                    ).where(Profile.id == payout.bettor_id).execute()

            resolution = MarketResolution.create(
                market=market.id,
                resolver=resolver_id,
                outcome=outcome,
                evidence=evidence,
                total_pool=settlement.total_pool,
                winning_pool=settlement.winning_pool,
                losing_pool=settlement.losing_pool,
            )

            adjustments = []
            if self.apply_vouch_outcome:
                adjustments = self.vouch_service.process_outcome(
                    market.friend_1_id, market.friend_2_id, outcome, market_id=market.id
                )

            tx_hash = None
            if market.contract_address and self.chain_client is not None and self.chain_client.can_sign:
                tx_hash = self._resolve_on_chain(market, outcome)

        logger.info(
            "Market resolved",
            extra={
                "market_id": market.id,
                "outcome": "YES" if outcome else "NO",
                "total_pool": str(settlement.total_pool),
                "winning_pool": str(settlement.winning_pool),
                "remainder": str(settlement.remainder),
            }
        )
        return ResolutionResult(
            market=market,
            settlement=settlement,
            resolution=resolution,
            vouch_adjustments=adjustments,
            tx_hash=tx_hash,
        )

    def _resolve_on_chain(self, market: Market, outcome: bool) -> Optional[str]:
        """
        Resolve the market contract unless it already carries this outcome.

        A contract left resolved by an earlier attempt whose receipt never
        arrived is accepted as is, so the database can still catch up.

        Raises:
            StateError: Contract already resolved with the opposite outcome
            ChainError: Reading or resolving the contract failed
        """
        state = self.chain_client.get_market_state(market.contract_address)
        if state.resolved:
            if state.outcome != outcome:
                raise StateError("Market contract is already resolved with the opposite outcome")
            logger.info(
                "Market contract already resolved, skipping transaction",
                extra={"market_id": market.id, "contract_address": market.contract_address}
            )
            return None
        return self.chain_client.resolve_market(market.contract_address, outcome)
