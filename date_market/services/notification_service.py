"""
Notification service.

Fans match notifications out to the matched users and to the people who
vouched for the partner, and keeps the per-user feed.
"""

import logging
from datetime import datetime
from typing import List, Optional

from date_market.core.errors import NotFoundError
from date_market.models import Notification, Profile, Vouch
from date_market.models.notification import (
    NOTIFICATION_MATCH,
    NOTIFICATION_PROPOSAL_ACCEPTED,
    NOTIFICATION_PROPOSAL_REJECTED,
)

logger = logging.getLogger(__name__)

MATCH_TITLE = 'You were matched!'


class NotificationService:
    """Service for in-app notifications."""

    def __init__(self, database):
        self.database = database

    def send_match_notification(
        self,
        partner: Profile,
        friend: Profile,
        matcher: Profile,
        deadline: Optional[datetime] = None
    ) -> List[Notification]:
        """
        Notify both matched users and the partner's vouchers.

        The partner must respond; the friend and the vouchers are only
        informed. Vouchers are deduplicated and never include the two
        matched users or the matchmaker.

        Returns:
            Created notifications
        """
        message = f"{matcher.name} matched {partner.name} with {friend.name}"

        rows = [
            dict(user=partner.id, related_user=friend.id, requires_response=True),
            dict(user=friend.id, related_user=partner.id, requires_response=False),
        ]

        excluded = {partner.id, friend.id, matcher.id}
        voucher_ids = []
        for vouch in Vouch.select(Vouch.voucher).where(
            (Vouch.vouchee == partner.id) & (Vouch.points > 0)
        ).order_by(Vouch.points.desc()):
            if vouch.voucher_id not in excluded and vouch.voucher_id not in voucher_ids:
                voucher_ids.append(vouch.voucher_id)

        rows.extend(
            dict(user=voucher_id, related_user=partner.id, requires_response=False)
            for voucher_id in voucher_ids
        )

        created = []
        with self.database.atomic():
            for row in rows:
                created.append(Notification.create(
                    type=NOTIFICATION_MATCH,
                    title=MATCH_TITLE,
                    message=message,
                    matcher=matcher.id,
                    deadline=deadline,
                    **row
                ))

        logger.info(
            "Match notifications sent",
            extra={"matcher_id": matcher.id, "recipients": len(created), "vouchers": len(voucher_ids)}
        )
        return created

    def notify_proposal_response(self, matcher_id: str, responder: Profile, accepted: bool) -> Notification:
        """Tell the matchmaker that a proposal was accepted or rejected."""
        if accepted:
            notification_type = NOTIFICATION_PROPOSAL_ACCEPTED
            title = 'Match accepted!'
            message = f"{responder.name} accepted your match"
        else:
            notification_type = NOTIFICATION_PROPOSAL_REJECTED
            title = 'Match declined'
            message = f"{responder.name} declined your match"

        return Notification.create(
            user=matcher_id,
            type=notification_type,
            title=title,
            message=message,
            related_user=responder.id,
        )

    def get_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Notifications for a user, newest first."""
        query = Notification.select().where(Notification.user == user_id)
        if unread_only:
            query = query.where(Notification.read == False)  # noqa: E712
        return list(query.order_by(Notification.created_at.desc(), Notification.id.desc()))

    def mark_read(self, notification_id: int) -> Notification:
        notification = Notification.get_or_none(Notification.id == notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        notification.read = True
        notification.save()
        return notification

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification as read. Returns rows updated."""
        return Notification.update(read=True).where(
            (Notification.user == user_id) & (Notification.read == False)  # noqa: E712
        ).execute()
