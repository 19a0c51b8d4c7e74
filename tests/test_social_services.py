"""Tests for friend requests, match proposals and notifications."""

import sys
import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
for path in (PROJECT_ROOT, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from helpers import make_database, make_friends, make_profile

from date_market.core.errors import (
    DuplicateError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from date_market.models import Market, Notification, Profile, VouchStats
from date_market.models.friendship import FRIENDSHIP_ACCEPTED, FRIENDSHIP_PENDING
from date_market.models.match_proposal import PROPOSAL_ACCEPTED, PROPOSAL_REJECTED
from date_market.models.notification import (
    NOTIFICATION_MATCH,
    NOTIFICATION_PROPOSAL_ACCEPTED,
    NOTIFICATION_PROPOSAL_REJECTED,
)
from date_market.services.friend_service import FriendService
from date_market.services.market_service import MarketService
from date_market.services.match_proposal_service import MatchProposalService
from date_market.services.notification_service import NotificationService
from date_market.services.user_service import UserService
from date_market.services.vouch_service import VouchService

D = Decimal


class FriendServiceTest(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        for user_id in ("alice", "bob", "carol"):
            make_profile(user_id)
        self.vouches = VouchService(self.db)
        self.service = FriendService(self.db, UserService(self.db), self.vouches)

    def tearDown(self):
        self.db.close()

    def test_request_and_accept(self):
        request = self.service.send_request("alice", "bob")
        self.assertEqual(request.status, FRIENDSHIP_PENDING)
        self.assertEqual([f.id for f in self.service.get_pending_requests("bob")], [request.id])

        accepted = self.service.accept_request(request.id, user_id="bob")

        self.assertEqual(accepted.status, FRIENDSHIP_ACCEPTED)
        self.assertEqual([p.id for p in self.service.get_friends("alice")], ["bob"])
        self.assertEqual([p.id for p in self.service.get_friends("bob")], ["alice"])
        self.assertEqual(self.service.get_status("bob", "alice"), FRIENDSHIP_ACCEPTED)

    def test_accept_grows_existing_budgets(self):
        self.assertEqual(self.vouches.get_stats("alice").budget, D("20"))
        request = self.service.send_request("alice", "bob")

        self.service.accept_request(request.id)

        self.assertEqual(self.vouches.get_stats("alice").budget, D("23"))
        # bob had no stats yet; lazy creation counts the new friend
        self.assertEqual(self.vouches.get_stats("bob").budget, D("23"))

    def test_duplicate_request_in_either_direction(self):
        self.service.send_request("alice", "bob")

        with self.assertRaises(DuplicateError):
            self.service.send_request("alice", "bob")
        with self.assertRaises(DuplicateError):
            self.service.send_request("bob", "alice")

    def test_self_request(self):
        with self.assertRaises(ValidationError):
            self.service.send_request("alice", "alice")

    def test_only_addressee_can_respond(self):
        request = self.service.send_request("alice", "bob")

        with self.assertRaises(PermissionDeniedError):
            self.service.accept_request(request.id, user_id="alice")

    def test_rejected_request_can_be_resent(self):
        request = self.service.send_request("alice", "bob")
        self.service.reject_request(request.id, user_id="bob")

        with self.assertRaises(StateError):
            self.service.accept_request(request.id)

        again = self.service.send_request("bob", "alice")
        self.assertEqual(again.id, request.id)
        self.assertEqual(again.requester_id, "bob")
        self.assertEqual(again.status, FRIENDSHIP_PENDING)

    def test_remove_friend(self):
        friendship = make_friends("alice", "carol")

        self.service.remove_friend(friendship.id, "carol")

        self.assertEqual(self.service.get_friends("alice"), [])
        self.assertEqual(self.service.get_status("alice", "carol"), "none")

    def test_only_participants_can_remove(self):
        friendship = make_friends("alice", "carol")

        with self.assertRaises(PermissionDeniedError):
            self.service.remove_friend(friendship.id, "bob")

        self.assertEqual(self.service.get_status("alice", "carol"), FRIENDSHIP_ACCEPTED)

    def test_refriending_does_not_grow_budget(self):
        self.assertEqual(self.vouches.get_stats("alice").budget, D("20"))
        self.assertEqual(self.vouches.get_stats("bob").budget, D("20"))

        for _ in range(5):
            request = self.service.send_request("alice", "bob")
            self.service.accept_request(request.id, user_id="bob")
            self.service.remove_friend(request.id, "alice")

        self.assertEqual(self.service.get_friends("alice"), [])
        self.assertEqual(self.vouches.get_stats("alice").budget, D("23"))
        self.assertEqual(self.vouches.get_stats("bob").budget, D("23"))

    def test_removed_friend_can_still_be_unvouched(self):
        request = self.service.send_request("alice", "bob")
        self.service.accept_request(request.id)
        self.vouches.set_vouch("alice", "bob", 5)

        self.service.remove_friend(request.id, "bob")
        result = self.vouches.remove_vouch("alice", "bob")

        self.assertEqual(result.budget, D("23"))
        self.assertEqual(result.allocated, D("0"))


class MatchProposalServiceTest(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        for user_id in ("matt", "fred", "paula", "vera", "walt"):
            make_profile(user_id)
        make_friends("matt", "fred")
        make_friends("vera", "paula")
        make_friends("walt", "paula")
        make_friends("walt", "fred")
        make_friends("matt", "paula")

        users = UserService(self.db)
        self.vouches = VouchService(self.db)
        self.vouches.set_vouch("vera", "paula", 3)
        self.vouches.set_vouch("walt", "paula", 2)
        self.vouches.set_vouch("walt", "fred", 1)
        # matchmaker vouching for the partner is not notified twice
        self.vouches.set_vouch("matt", "paula", 1)

        self.notifications = NotificationService(self.db)
        self.markets = MarketService(self.db, users, vouch_service=self.vouches)
        self.service = MatchProposalService(self.db, users, self.markets, self.notifications)

    def tearDown(self):
        self.db.close()

    def test_create_notifies_participants_and_partner_vouchers(self):
        proposal = self.service.create_proposal("matt", "fred", "paula", "Coffee date")

        recipients = sorted(n.user_id for n in Notification.select())
        self.assertEqual(recipients, ["fred", "paula", "vera", "walt"])
        paula = Notification.get(Notification.user == "paula")
        self.assertTrue(paula.requires_response)
        self.assertEqual(paula.type, NOTIFICATION_MATCH)
        self.assertEqual(paula.matcher_id, "matt")
        self.assertFalse(Notification.get(Notification.user == "vera").requires_response)
        self.assertEqual(self.service.list_proposals("paula", role="partner")[0].id, proposal.id)

    def test_create_validation(self):
        with self.assertRaises(ValidationError):
            self.service.create_proposal("matt", "fred", "fred", "Oops")
        with self.assertRaises(ValidationError):
            self.service.create_proposal("matt", "matt", "paula", "Self match")

    def test_partner_accepts_and_market_opens(self):
        proposal = self.service.create_proposal("matt", "fred", "paula", "Coffee date")
        when = datetime.now() + timedelta(days=3)

        accepted = self.service.accept_proposal(proposal.id, "paula", when)

        self.assertEqual(accepted.proposal.status, PROPOSAL_ACCEPTED)
        self.assertEqual(accepted.proposal.market_id, accepted.market.id)
        market = Market.get_by_id(accepted.market.id)
        self.assertEqual((market.friend_1_id, market.friend_2_id), ("fred", "paula"))
        self.assertEqual(market.resolution_date, when)
        self.assertEqual(Profile.get_by_id("matt").total_markets_created, 1)
        self.assertEqual(accepted.eligible_bettors, ["vera", "walt", "matt"])

        note = Notification.get(Notification.type == NOTIFICATION_PROPOSAL_ACCEPTED)
        self.assertEqual(note.user_id, "matt")

    def test_only_partner_accepts(self):
        proposal = self.service.create_proposal("matt", "fred", "paula", "Coffee date")

        with self.assertRaises(PermissionDeniedError):
            self.service.accept_proposal(proposal.id, "fred", datetime.now())
        self.assertEqual(Market.select().count(), 0)

    def test_participant_rejects(self):
        proposal = self.service.create_proposal("matt", "fred", "paula", "Coffee date")

        with self.assertRaises(PermissionDeniedError):
            self.service.reject_proposal(proposal.id, "vera")

        rejected = self.service.reject_proposal(proposal.id, "fred")

        self.assertEqual(rejected.status, PROPOSAL_REJECTED)
        self.assertTrue(
            Notification.select().where(Notification.type == NOTIFICATION_PROPOSAL_REJECTED).exists()
        )
        with self.assertRaises(StateError):
            self.service.accept_proposal(proposal.id, "paula", datetime.now())

    def test_list_by_role(self):
        self.service.create_proposal("matt", "fred", "paula", "Coffee date")

        self.assertEqual(len(self.service.list_proposals("matt")), 1)
        self.assertEqual(len(self.service.list_proposals("matt", role="friend")), 0)
        with self.assertRaises(ValidationError):
            self.service.list_proposals("matt", role="girl_c")


class NotificationServiceTest(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        for user_id in ("ann", "ben"):
            make_profile(user_id)
        self.service = NotificationService(self.db)
        ann = Profile.get_by_id("ann")
        self.service.notify_proposal_response("ben", ann, accepted=True)
        self.service.notify_proposal_response("ben", ann, accepted=False)

    def tearDown(self):
        self.db.close()

    def test_mark_read(self):
        first = self.service.get_notifications("ben")[-1]

        self.service.mark_read(first.id)

        self.assertEqual(len(self.service.get_notifications("ben", unread_only=True)), 1)

    def test_mark_all_read(self):
        self.assertEqual(self.service.mark_all_read("ben"), 2)
        self.assertEqual(self.service.get_notifications("ben", unread_only=True), [])
        self.assertEqual(self.service.mark_all_read("ben"), 0)


if __name__ == "__main__":
    unittest.main()
