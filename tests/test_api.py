"""End-to-end tests for the FastAPI application."""

import sys
import unittest
from decimal import Decimal
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
for path in (PROJECT_ROOT, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from fastapi.testclient import TestClient

from helpers import make_database

from date_market.api.dependencies import build_services
from date_market.api.main import create_app
from date_market.models import VouchStats

WALLET = "0x" + "ab" * 20


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        services = build_services({'vouch': {}, 'settlement': {'decimals': 6}}, self.db)
        self.client = TestClient(create_app(services=services))

    def tearDown(self):
        self.db.close()

    def sync(self, *user_ids):
        for user_id in user_ids:
            response = self.client.post(
                "/api/users/sync", json={"userId": user_id, "email": f"{user_id}@example.com"}
            )
            self.assertEqual(response.status_code, 200, response.text)

    def befriend(self, requester, addressee):
        response = self.client.post(
            "/api/friends/request", json={"requesterId": requester, "addresseeId": addressee}
        )
        self.assertEqual(response.status_code, 201, response.text)
        friendship_id = response.json()["friendship"]["id"]
        response = self.client.post(f"/api/friends/{friendship_id}/accept", json={"userId": addressee})
        self.assertEqual(response.status_code, 200, response.text)
        return friendship_id


class HealthTest(ApiTestCase):
    def test_health_and_root(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "healthy"})
        self.assertEqual(self.client.get("/").json()["status"], "running")


class UserApiTest(ApiTestCase):
    def test_sync_get_update_search(self):
        response = self.client.post(
            "/api/users/sync", json={"user_id": "alice", "email": "alice@example.com", "walletAddress": WALLET}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["wallet_address"].lower(), WALLET)

        response = self.client.patch("/api/users/alice", json={"displayName": "Alice A."})
        self.assertEqual(response.json()["user"]["display_name"], "Alice A.")

        users = self.client.get("/api/users/search/ALICE").json()["users"]
        self.assertEqual([u["id"] for u in users], ["alice"])

    def test_unknown_user_returns_error_body(self):
        response = self.client.get("/api/users/nobody")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "User not found: nobody"})

    def test_invalid_wallet(self):
        response = self.client.post("/api/users/sync", json={"userId": "bob", "walletAddress": "0x12"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())


class FriendAndVouchApiTest(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.sync("alice", "bob", "carol")
        self.friendship_id = self.befriend("alice", "bob")

    def test_friend_lists(self):
        friends = self.client.get("/api/friends/alice").json()["friends"]
        self.assertEqual([f["id"] for f in friends], ["bob"])

        self.client.post("/api/friends/request", json={"requesterId": "carol", "addresseeId": "alice"})
        pending = self.client.get("/api/friends/alice/pending").json()["pendingRequests"]
        self.assertEqual(pending[0]["requester"]["id"], "carol")

    def test_duplicate_friend_request(self):
        response = self.client.post(
            "/api/friends/request", json={"requesterId": "bob", "addresseeId": "alice"}
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "Friend request already exists")

    def test_vouch_flow(self):
        stats = self.client.get("/api/vouches/alice/stats").json()["stats"]
        self.assertEqual(stats["budget"], 23.0)

        response = self.client.post("/api/vouches", json={"userId": "alice", "vouchedForId": "bob", "points": 5})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["budget"], 18.0)
        self.assertEqual(response.json()["allocated"], 5.0)

        given = self.client.get("/api/vouches/alice/given").json()["vouches"]
        self.assertEqual(given[0]["user"]["id"], "bob")
        received = self.client.get("/api/vouches/bob/received").json()["vouches"]
        self.assertEqual(received[0]["points"], 5.0)

        response = self.client.post(
            "/api/vouches/outcomes", json={"userA": "bob", "userB": "carol", "success": False}
        )
        self.assertEqual(response.json()["adjustments"][0]["change"], -10.0)
        self.assertEqual(self.client.get("/api/vouches/alice/stats").json()["stats"]["budget"], 8.0)

        history = self.client.get("/api/vouches/alice/history").json()["history"]
        self.assertEqual(history[0]["event_type"], "date_fail")

        response = self.client.delete("/api/vouches/alice/bob")
        self.assertEqual(response.json()["budget"], 13.0)

    def test_remove_friend_requires_participant(self):
        url = f"/api/friends/{self.friendship_id}"

        self.assertEqual(self.client.delete(url).status_code, 400)
        response = self.client.delete(url, params={"user_id": "carol"})
        self.assertEqual(response.status_code, 403)

        response = self.client.delete(url, params={"user_id": "bob"})
        self.assertEqual(response.json(), {"success": True})
        self.assertEqual(self.client.get("/api/friends/alice").json()["friends"], [])

    def test_outcome_for_unknown_market(self):
        response = self.client.post(
            "/api/vouches/outcomes",
            json={"userA": "bob", "userB": "carol", "success": True, "marketId": 999}
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Market not found"})

    def test_vouch_points_out_of_range(self):
        response = self.client.post("/api/vouches", json={"userId": "alice", "vouchedForId": "bob", "points": 6})

        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_vouch_for_non_friend(self):
        response = self.client.post("/api/vouches", json={"userId": "alice", "vouchedForId": "carol", "points": 1})

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "You can only vouch for friends"})

    def test_insufficient_budget(self):
        self.client.get("/api/vouches/alice/stats")
        VouchStats.update(budget=Decimal("2")).where(VouchStats.user == "alice").execute()

        response = self.client.post("/api/vouches", json={"userId": "alice", "vouchedForId": "bob", "points": 5})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["error"],
            "Not enough vouch points. You have 2.0 points available, but need 5.0."
        )
        friends = self.client.get("/api/vouches/alice/friends").json()["friends"]
        self.assertEqual(friends[0]["vouch_points"], 0.0)


class MarketApiTest(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.sync("matt", "fred", "paula", "x", "y", "z")
        response = self.client.post("/api/markets", json={
            "matchmakerId": "matt",
            "friend1Id": "fred",
            "friend2Id": "paula",
            "title": "Second date?",
        })
        self.assertEqual(response.status_code, 201, response.text)
        self.market_id = response.json()["market"]["id"]

    def bet(self, user_id, position, amount):
        return self.client.post("/api/bets", json={
            "marketId": self.market_id, "userId": user_id, "position": position, "amount": amount
        })

    def test_bet_and_resolve(self):
        self.assertEqual(self.bet("x", True, 40).status_code, 201)
        self.assertEqual(self.bet("y", True, 60).status_code, 201)
        self.assertEqual(self.bet("z", False, 50).status_code, 201)

        market = self.client.get(f"/api/markets/{self.market_id}").json()["market"]
        self.assertEqual(market["odds"], {"yes": "66.67", "no": "33.33"})
        self.assertEqual(len(market["bets"]), 3)
        self.assertEqual(market["friend_1"]["id"], "fred")

        response = self.client.post(
            f"/api/markets/{self.market_id}/resolve", json={"outcome": True, "resolverId": "matt"}
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["outcome"], "YES")
        self.assertEqual(body["totalPool"], 150.0)
        self.assertEqual(body["winningPool"], 100.0)
        payouts = {p["user_id"]: p["payout"] for p in body["payouts"]}
        self.assertEqual(payouts, {"x": 60.0, "y": 90.0, "z": 0.0})

        self.assertEqual(self.client.get("/api/users/x").json()["user"]["total_winnings"], 60.0)

        response = self.bet("x", True, 10)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Market is not active"})

        response = self.client.post(f"/api/markets/{self.market_id}/resolve", json={"outcome": False})
        self.assertEqual(response.status_code, 400)

    def test_market_outcome_reported_once(self):
        outcome = {"userA": "fred", "userB": "paula", "success": True, "marketId": self.market_id}
        self.assertEqual(self.client.post("/api/vouches/outcomes", json=outcome).status_code, 400)

        self.client.post(f"/api/markets/{self.market_id}/resolve", json={"outcome": True})
        self.assertEqual(self.client.post("/api/vouches/outcomes", json=outcome).status_code, 200)

        response = self.client.post("/api/vouches/outcomes", json=outcome)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "Date outcome already applied for this market"})

        wrong_pair = dict(outcome, userB="x")
        self.assertEqual(self.client.post("/api/vouches/outcomes", json=wrong_pair).status_code, 400)

    def test_outcome_must_be_boolean(self):
        response = self.client.post(f"/api/markets/{self.market_id}/resolve", json={"outcome": "yes"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get("/api/markets").json()["markets"][0]["status"], "active")

    def test_bet_validation(self):
        self.assertEqual(self.bet("x", True, 0).status_code, 400)
        self.assertEqual(self.bet("x", "yes", 5).status_code, 400)
        self.assertEqual(self.client.post("/api/bets", json={"userId": "x"}).status_code, 400)

    def test_bet_lookups(self):
        bet_id = self.bet("x", False, 12.5).json()["bet"]["id"]

        self.assertEqual(self.client.get(f"/api/bets/{bet_id}").json()["bet"]["amount"], 12.5)
        self.assertEqual(len(self.client.get(f"/api/bets/market/{self.market_id}").json()["bets"]), 1)
        user_bets = self.client.get("/api/bets/user/x").json()["bets"]
        self.assertEqual(user_bets[0]["market"]["id"], self.market_id)
        self.assertEqual(self.client.get("/api/bets/999").status_code, 404)

    def test_user_markets(self):
        markets = self.client.get("/api/markets/user/paula").json()["markets"]

        self.assertEqual([m["id"] for m in markets], [self.market_id])

    def test_chain_state_without_contract(self):
        response = self.client.get(f"/api/markets/{self.market_id}/chain")

        self.assertEqual(response.status_code, 400)


class ProposalApiTest(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.sync("matt", "fred", "paula", "vera")
        self.befriend("vera", "paula")
        self.client.post("/api/vouches", json={"userId": "vera", "vouchedForId": "paula", "points": 2})

    def test_proposal_accept_flow(self):
        response = self.client.post("/api/match-proposals", json={
            "matchmakerId": "matt", "friendId": "fred", "partnerId": "paula", "title": "Dinner"
        })
        self.assertEqual(response.status_code, 201, response.text)
        proposal_id = response.json()["proposal"]["id"]

        notifications = self.client.get("/api/notifications/vera").json()["notifications"]
        self.assertEqual(len(notifications), 1)
        self.assertFalse(notifications[0]["read"])

        response = self.client.post(
            f"/api/match-proposals/{proposal_id}/accept",
            json={"userId": "fred", "dateTime": "2030-01-01T19:00:00"}
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.post(
            f"/api/match-proposals/{proposal_id}/accept",
            json={"userId": "paula", "dateTime": "2030-01-01T19:00:00"}
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["proposal"]["status"], "accepted")
        self.assertEqual(body["market"]["friend_2_id"], "paula")
        self.assertEqual(body["eligibleBettors"], ["vera"])

        proposals = self.client.get("/api/match-proposals/matt?role=matchmaker").json()["proposals"]
        self.assertEqual(proposals[0]["market_id"], body["market"]["id"])

        matt_notes = self.client.get("/api/notifications/matt").json()["notifications"]
        self.assertEqual(matt_notes[0]["type"], "proposal_accepted")
        self.assertEqual(self.client.post("/api/notifications/matt/read-all").json()["updated"], 1)

    def test_invalid_role(self):
        response = self.client.get("/api/match-proposals/matt?role=girl_c")

        self.assertEqual(response.status_code, 400)


class WalletApiTest(ApiTestCase):
    def test_balance_without_chain_client(self):
        body = self.client.get(f"/api/wallets/{WALLET}/balance").json()

        self.assertFalse(body["success"])
        self.assertIsNone(body["balance"])

    def test_malformed_address(self):
        response = self.client.get("/api/wallets/not-an-address/balance")

        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
