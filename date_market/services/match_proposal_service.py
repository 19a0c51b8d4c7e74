"""
Match proposal service.

A matchmaker proposes that a friend dates a partner. The partner accepts
with a date time, which opens the market on that date; either
participant may reject.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from date_market.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from date_market.models import Market, MatchProposal, Vouch
from date_market.models.match_proposal import (
    PROPOSAL_ACCEPTED,
    PROPOSAL_PENDING,
    PROPOSAL_REJECTED,
)
from date_market.services.market_service import MarketService
from date_market.services.notification_service import NotificationService
from date_market.services.user_service import UserService

logger = logging.getLogger(__name__)

ROLE_ALL = 'all'
ROLE_MATCHMAKER = 'matchmaker'
ROLE_FRIEND = 'friend'
ROLE_PARTNER = 'partner'
ROLES = (ROLE_ALL, ROLE_MATCHMAKER, ROLE_FRIEND, ROLE_PARTNER)


@dataclass
class AcceptedProposal:
    """Accepted proposal with the market it opened."""
    proposal: MatchProposal
    market: Market
    eligible_bettors: List[str] = field(default_factory=list)


class MatchProposalService:
    """Service for creating and answering match proposals."""

    def __init__(
        self,
        database,
        user_service: UserService,
        market_service: MarketService,
        notification_service: NotificationService
    ):
        self.database = database
        self.user_service = user_service
        self.market_service = market_service
        self.notification_service = notification_service

    def get_proposal(self, proposal_id: int) -> MatchProposal:
        proposal = MatchProposal.get_or_none(MatchProposal.id == proposal_id)
        if proposal is None:
            raise NotFoundError("Match proposal not found")
        return proposal

    def create_proposal(
        self,
        matchmaker_id: str,
        friend_id: str,
        partner_id: str,
        title: str,
        deadline: Optional[datetime] = None
    ) -> MatchProposal:
        """
        Propose a date and notify everyone involved.

        Args:
            matchmaker_id: User making the match
            friend_id: Matchmaker's friend being set up
            partner_id: Person the friend is matched with; must respond
            title: Short description of the date
            deadline: Optional response deadline shown in notifications

        Raises:
            ValidationError: Missing fields, friend == partner, or the
                matchmaker is one of the participants
            NotFoundError: Unknown user
        """
        if not all((matchmaker_id, friend_id, partner_id, title and title.strip())):
            raise ValidationError("matchmakerId, friendId, partnerId and title required")
        if friend_id == partner_id:
            raise ValidationError("Friend and partner must be different people")
        if matchmaker_id in (friend_id, partner_id):
            raise ValidationError("Matchmaker cannot be matched")

        matchmaker = self.user_service.get_profile_or_raise(matchmaker_id)
        friend = self.user_service.get_profile_or_raise(friend_id)
        partner = self.user_service.get_profile_or_raise(partner_id)

        with self.database.atomic():
            proposal = MatchProposal.create(
                matchmaker=matchmaker_id,
                friend=friend_id,
                partner=partner_id,
                title=title.strip(),
                status=PROPOSAL_PENDING,
            )
            self.notification_service.send_match_notification(
                partner=partner, friend=friend, matcher=matchmaker, deadline=deadline
            )

        logger.info(
            "Match proposal created",
            extra={"proposal_id": proposal.id, "matchmaker_id": matchmaker_id}
        )
        return proposal

    def list_proposals(self, user_id: str, role: str = ROLE_ALL) -> List[MatchProposal]:
        """
        Proposals a user takes part in, newest first.

        Args:
            user_id: User to list for
            role: all, matchmaker, friend or partner

        Raises:
            ValidationError: Unknown role
        """
        if role not in ROLES:
            raise ValidationError(f"Invalid role: {role}")

        if role == ROLE_MATCHMAKER:
            condition = MatchProposal.matchmaker == user_id
        elif role == ROLE_FRIEND:
            condition = MatchProposal.friend == user_id
        elif role == ROLE_PARTNER:
            condition = MatchProposal.partner == user_id
        else:
            condition = (
                (MatchProposal.matchmaker == user_id)
                | (MatchProposal.friend == user_id)
                | (MatchProposal.partner == user_id)
            )

        return list(
            MatchProposal.select()
            .where(condition)
            .order_by(MatchProposal.created_at.desc(), MatchProposal.id.desc())
        )

    def accept_proposal(self, proposal_id: int, user_id: str, date_time: datetime) -> AcceptedProposal:
        """
        Accept a proposal as the partner and open its market.

        Returns:
            AcceptedProposal with the new market and the ids of users who
            vouched for either participant

        Raises:
            ValidationError: Missing date time
            NotFoundError: Unknown proposal
            PermissionDeniedError: User is not the partner
            StateError: Proposal is not pending
        """
        if date_time is None:
            raise ValidationError("userId and dateTime required")

        with self.database.atomic():
            proposal = self.get_proposal(proposal_id)
            if proposal.partner_id != user_id:
                raise PermissionDeniedError("Only the matched partner can accept this proposal")
            if proposal.status != PROPOSAL_PENDING:
                raise StateError(f"Proposal already {proposal.status}")

            market = self.market_service.create_market(
                matchmaker_id=proposal.matchmaker_id,
                friend_1_id=proposal.friend_id,
                friend_2_id=proposal.partner_id,
                title=proposal.title,
                resolution_date=date_time,
            )

            proposal.status = PROPOSAL_ACCEPTED
            proposal.date_time = date_time
            proposal.market = market
            proposal.save()

            responder = self.user_service.get_profile_or_raise(user_id)
            self.notification_service.notify_proposal_response(
                proposal.matchmaker_id, responder, accepted=True
            )

            eligible = self.eligible_bettors(proposal.friend_id, proposal.partner_id)

        logger.info(
            "Match proposal accepted",
            extra={"proposal_id": proposal.id, "market_id": market.id, "eligible_bettors": len(eligible)}
        )
        return AcceptedProposal(proposal=proposal, market=market, eligible_bettors=eligible)

    def reject_proposal(self, proposal_id: int, user_id: str) -> MatchProposal:
        """
        Reject a proposal as either participant.

        Raises:
            NotFoundError: Unknown proposal
            PermissionDeniedError: User is not a participant
            StateError: Proposal is not pending
        """
        with self.database.atomic():
            proposal = self.get_proposal(proposal_id)
            if user_id not in (proposal.friend_id, proposal.partner_id):
                raise PermissionDeniedError("Only participants can reject this proposal")
            if proposal.status != PROPOSAL_PENDING:
                raise StateError(f"Proposal already {proposal.status}")

            proposal.status = PROPOSAL_REJECTED
            proposal.save()

            responder = self.user_service.get_profile_or_raise(user_id)
            self.notification_service.notify_proposal_response(
                proposal.matchmaker_id, responder, accepted=False
            )

        logger.info("Match proposal rejected", extra={"proposal_id": proposal.id})
        return proposal

    @staticmethod
    def eligible_bettors(friend_id: str, partner_id: str) -> List[str]:
        """Distinct ids of users with a positive vouch for either participant."""
        ids = []
        for vouch in Vouch.select(Vouch.voucher).where(
            Vouch.vouchee.in_([friend_id, partner_id]) & (Vouch.points > 0)
        ).order_by(Vouch.id):
            if vouch.voucher_id not in ids and vouch.voucher_id not in (friend_id, partner_id):
                ids.append(vouch.voucher_id)
        return ids
