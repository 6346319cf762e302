"""
Donor Finder Tests - Test Configuration.

Provides pytest fixtures with user records shaped like the placeholder
users API, and the donors derived from them.
"""

import os
from typing import Any, Dict, List

import pytest

# Never reach the real users API from tests
os.environ.setdefault("USERS_API_URL", "http://users-api.test/users")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from donor_finder.domain import Donor, map_users  # noqa: E402

CITIES = [
    "Gwenborough",
    "Wisokyburgh",
    "McKenziehaven",
    "South Elvis",
    "Roscoeview",
    "South Christy",
    "Howemouth",
    "Aliyaview",
    "Bartholomebury",
    "Lebsackbury",
]

NAMES = [
    "Leanne Graham",
    "Ervin Howell",
    "Clementine Bauch",
    "Patricia Lebsack",
    "Chelsey Dietrich",
    "Mrs. Dennis Schulist",
    "Kurtis Weissnat",
    "Nicholas Runolfsdottir V",
    "Glenna Reichert",
    "Clementina DuBuque",
]


def make_user(user_id: int, name: str, city: str) -> Dict[str, Any]:
    """Build a user record with the extra fields the real API returns."""
    return {
        "id": user_id,
        "name": name,
        "username": name.split()[0],
        "email": f"user{user_id}@example.test",
        "address": {
            "street": "Kulas Light",
            "suite": "Apt. 556",
            "city": city,
            "zipcode": "92998-3874",
        },
    }


@pytest.fixture
def mock_users() -> List[Dict[str, Any]]:
    """
    Ten users with ids 1..10, as served by the placeholder API.

    Derived donors:
        1 A- available, 2 B+ available, 3 B- unavailable, 4 O+ available,
        5 O- available, 6 AB+ unavailable, 7 AB- available, 8 A+ available,
        9 A- unavailable, 10 B+ available
    """
    return [
        make_user(user_id, name, city)
        for user_id, (name, city) in enumerate(zip(NAMES, CITIES), start=1)
    ]


@pytest.fixture
def donors(mock_users: List[Dict[str, Any]]) -> List[Donor]:
    return map_users(mock_users)


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "asyncio: mark test as async",
    )
