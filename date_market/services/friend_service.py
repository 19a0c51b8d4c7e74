"""
Friend graph service.

Handles friend requests and their state transitions. Accepting a
request also grows both users' vouch budgets.
"""

import logging
from typing import List, Optional

from date_market.core.errors import (
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from date_market.models import Friendship, Profile
from date_market.models.friendship import (
    FRIENDSHIP_ACCEPTED,
    FRIENDSHIP_PENDING,
    FRIENDSHIP_REJECTED,
)
from date_market.services.user_service import UserService
from date_market.services.vouch_service import VouchService, accepted_friendship_query

logger = logging.getLogger(__name__)


class FriendService:
    """Service for friend requests and friend lists."""

    def __init__(self, database, user_service: UserService, vouch_service: VouchService):
        self.database = database
        self.user_service = user_service
        self.vouch_service = vouch_service

    def _pair_query(self, user_a: str, user_b: str):
        return Friendship.select().where(
            ((Friendship.requester == user_a) & (Friendship.addressee == user_b))
            | ((Friendship.requester == user_b) & (Friendship.addressee == user_a))
        )

    def get_friendship(self, friendship_id: int) -> Friendship:
        friendship = Friendship.get_or_none(Friendship.id == friendship_id)
        if friendship is None:
            raise NotFoundError("Friendship not found")
        return friendship

    def send_request(self, requester_id: str, addressee_id: str) -> Friendship:
        """
        Send a friend request.

        A previously rejected request between the same pair is reopened
        as pending instead of creating a second row.

        Raises:
            ValidationError: Self request
            NotFoundError: Unknown user
            DuplicateError: Pending or accepted friendship already exists
        """
        if not requester_id or not addressee_id:
            raise ValidationError("Missing required fields")
        if requester_id == addressee_id:
            raise ValidationError("Cannot friend yourself")

        self.user_service.get_profile_or_raise(requester_id)
        self.user_service.get_profile_or_raise(addressee_id)

        with self.database.atomic():
            existing = self._pair_query(requester_id, addressee_id).first()
            if existing is not None:
                if existing.status != FRIENDSHIP_REJECTED:
                    raise DuplicateError("Friend request already exists")
                existing.requester = requester_id
                existing.addressee = addressee_id
                existing.status = FRIENDSHIP_PENDING
                existing.save()
                friendship = existing
            else:
                friendship = Friendship.create(
                    requester=requester_id,
                    addressee=addressee_id,
                    status=FRIENDSHIP_PENDING,
                )

        logger.info(
            "Friend request sent",
            extra={"requester_id": requester_id, "addressee_id": addressee_id}
        )
        return friendship

    def accept_request(self, friendship_id: int, user_id: Optional[str] = None) -> Friendship:
        """
        Accept a pending friend request.

        Args:
            friendship_id: Request to accept
            user_id: Acting user; when given it must be the addressee

        Raises:
            NotFoundError: Unknown request
            PermissionDeniedError: Acting user is not the addressee
            StateError: Request is not pending
        """
        with self.database.atomic():
            friendship = self.get_friendship(friendship_id)
            self._check_addressee(friendship, user_id)
            if friendship.status != FRIENDSHIP_PENDING:
                raise StateError(f"Friend request already {friendship.status}")

            friendship.status = FRIENDSHIP_ACCEPTED
            friendship.save()

            self.vouch_service.grant_friend_capacity(friendship.requester_id, friendship.addressee_id)
            self.vouch_service.grant_friend_capacity(friendship.addressee_id, friendship.requester_id)

        logger.info("Friend request accepted", extra={"friendship_id": friendship_id})
        return friendship

    def reject_request(self, friendship_id: int, user_id: Optional[str] = None) -> Friendship:
        """
        Reject a pending friend request.

        Raises:
            NotFoundError: Unknown request
            PermissionDeniedError: Acting user is not the addressee
            StateError: Request is not pending
        """
        with self.database.atomic():
            friendship = self.get_friendship(friendship_id)
            self._check_addressee(friendship, user_id)
            if friendship.status != FRIENDSHIP_PENDING:
                raise StateError(f"Friend request already {friendship.status}")

            friendship.status = FRIENDSHIP_REJECTED
            friendship.save()

        logger.info("Friend request rejected", extra={"friendship_id": friendship_id})
        return friendship

    def remove_friend(self, friendship_id: int, user_id: str) -> bool:
        """
        Remove a friend or cancel a request.

        Budgets are left untouched, but the removal is logged so the same
        friend never grants capacity twice. Vouches stay in place and can
        still be lowered or withdrawn.

        Raises:
            NotFoundError: Unknown friendship
            PermissionDeniedError: Acting user is not part of the friendship
        """
        with self.database.atomic():
            friendship = self.get_friendship(friendship_id)
            if user_id not in (friendship.requester_id, friendship.addressee_id):
                raise PermissionDeniedError("Only participants can remove this friendship")

            if friendship.status == FRIENDSHIP_ACCEPTED:
                self.vouch_service.record_friend_removed(friendship.requester_id, friendship.addressee_id)
                self.vouch_service.record_friend_removed(friendship.addressee_id, friendship.requester_id)
            friendship.delete_instance()

        logger.info("Friendship removed", extra={"friendship_id": friendship_id, "user_id": user_id})
        return True

    def get_friends(self, user_id: str) -> List[Profile]:
        """Accepted friends of a user."""
        friend_ids = [f.other(user_id) for f in accepted_friendship_query(user_id)]
        if not friend_ids:
            return []
        return list(Profile.select().where(Profile.id.in_(friend_ids)).order_by(Profile.id))

    def get_pending_requests(self, user_id: str) -> List[Friendship]:
        """Pending requests addressed to a user."""
        return list(
            Friendship.select()
            .where((Friendship.addressee == user_id) & (Friendship.status == FRIENDSHIP_PENDING))
            .order_by(Friendship.created_at.desc())
        )

    def get_status(self, user_a: str, user_b: str) -> str:
        """Friendship status between two users, or 'none'."""
        friendship = self._pair_query(user_a, user_b).first()
        return friendship.status if friendship is not None else 'none'

    @staticmethod
    def _check_addressee(friendship: Friendship, user_id: Optional[str]) -> None:
        if user_id is not None and friendship.addressee_id != user_id:
            raise PermissionDeniedError("Only the recipient can respond to this friend request")
