"""Shared setup for database-backed tests."""

from peewee import SqliteDatabase

from date_market.core.database import initialize_database
from date_market.models import Friendship, Profile
from date_market.models.friendship import FRIENDSHIP_ACCEPTED


def make_database():
    """In-memory SQLite bound to the model proxy, usable from any thread."""
    db = SqliteDatabase(
        ':memory:',
        thread_safe=False,
        check_same_thread=False,
        pragmas={'foreign_keys': 1},
    )
    return initialize_database(db)


def make_profile(user_id: str, **fields) -> Profile:
    fields.setdefault('email', f"{user_id}@example.com")
    fields.setdefault('display_name', user_id.capitalize())
    return Profile.create(id=user_id, **fields)


def make_friends(user_a: str, user_b: str) -> Friendship:
    return Friendship.create(requester=user_a, addressee=user_b, status=FRIENDSHIP_ACCEPTED)
