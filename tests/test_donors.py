"""
Unit tests for donor derivation, filtering and help-request tracking.
"""

from typing import Any, Dict, List

import pytest

from donor_finder.domain import (
    BloodGroup,
    Donor,
    count_available,
    filter_donors,
    is_requested,
    map_user_to_donor,
    map_users,
    request_help,
)

from .conftest import make_user

GROUP_ORDER = ["A+", "A-", "B+", "B-", "O+", "O-", "AB+", "AB-"]


def donor(donor_id: int, city: str, availability: bool = True) -> Donor:
    return Donor(
        id=donor_id,
        name=f"Donor {donor_id}",
        city=city,
        blood_group=BloodGroup.for_id(donor_id),
        availability=availability,
    )


class TestMapUserToDonor:
    """Tests for the user to donor mapping."""

    @pytest.mark.parametrize(
        "user_id, group, available",
        [
            (0, "A+", False),
            (1, "A-", True),
            (3, "B-", False),
            (7, "AB-", True),
            (8, "A+", True),
            (9, "A-", False),
            (10, "B+", True),
            (15, "AB-", False),
        ],
    )
    def test_derived_attributes(self, user_id: int, group: str, available: bool):
        """Test blood group and availability come from id arithmetic."""
        result = map_user_to_donor(make_user(user_id, "Someone", "Somewhere"))

        assert result.blood_group == group
        assert result.availability is available

    def test_formula_over_range(self):
        """Test the modulo rules hold for a range of ids."""
        for user_id in range(0, 50):
            result = map_user_to_donor(make_user(user_id, "X", "Y"))
            assert result.blood_group.value == GROUP_ORDER[user_id % 8]
            assert result.availability == (user_id % 3 != 0)

    def test_copies_identity_fields(self):
        """Test id, name and city are copied verbatim."""
        result = map_user_to_donor(make_user(4, "Patricia Lebsack", "South Elvis"))

        assert result.id == 4
        assert result.name == "Patricia Lebsack"
        assert result.city == "South Elvis"

    def test_deterministic(self):
        """Test the same user always maps to an equal donor."""
        user = make_user(6, "Mrs. Dennis Schulist", "South Christy")

        assert map_user_to_donor(user) == map_user_to_donor(dict(user))

    def test_donor_is_immutable(self):
        """Test donors cannot be modified after creation."""
        result = map_user_to_donor(make_user(2, "Ervin Howell", "Wisokyburgh"))

        with pytest.raises(AttributeError):
            result.availability = False  # type: ignore[misc]


class TestMapUsers:
    """Tests for mapping whole collections."""

    def test_preserves_order_and_cardinality(self, mock_users: List[Dict[str, Any]]):
        result = map_users(mock_users)

        assert len(result) == len(mock_users)
        assert [d.id for d in result] == [u["id"] for u in mock_users]

    def test_empty_collection(self):
        assert map_users([]) == []

    def test_skips_malformed_records(self):
        """Test records without integer id or city are dropped."""
        users = [
            make_user(1, "Leanne Graham", "Gwenborough"),
            {"id": "2", "name": "Bad Id", "address": {"city": "X"}},
            {"id": 3, "name": "No Address"},
            {"id": 4, "name": "No City", "address": {}},
            {"id": -5, "name": "Negative", "address": {"city": "X"}},
            None,
            make_user(6, "Mrs. Dennis Schulist", "South Christy"),
        ]

        result = map_users(users)

        assert [d.id for d in result] == [1, 6]


class TestFilterDonors:
    """Tests for blood group and city filtering."""

    def test_identity_with_no_filters(self, donors: List[Donor]):
        assert filter_donors(donors, "All", "") == donors

    def test_whitespace_search_is_no_filter(self, donors: List[Donor]):
        assert filter_donors(donors, "All", "   ") == donors

    def test_group_filter_exact_match(self, donors: List[Donor]):
        result = filter_donors(donors, "A-", "")

        assert [d.id for d in result] == [1, 9]

    def test_group_filter_is_case_sensitive(self, donors: List[Donor]):
        assert filter_donors(donors, "ab+", "") == []

    def test_group_with_no_donors(self):
        only = [donor(1, "Gwenborough")]

        assert filter_donors(only, "O-", "") == []

    @pytest.mark.parametrize("search", ["gwen", "borough", "GWENBOROUGH", "  wen  "])
    def test_city_substring_case_insensitive(self, search: str):
        gwen = donor(1, "Gwenborough")

        assert filter_donors([gwen], "All", search) == [gwen]

    def test_city_no_match(self):
        assert filter_donors([donor(1, "Gwenborough")], "All", "xyz") == []

    def test_conjunctive(self):
        """Test both predicates must pass."""
        group_only = donor(1, "Wisokyburgh")  # A-
        city_only = donor(2, "Gwenborough")  # B+
        both = donor(9, "Gwenborough")  # A-

        result = filter_donors([group_only, city_only, both], "A-", "gwen")

        assert result == [both]

    def test_stable_order(self, donors: List[Donor]):
        result = filter_donors(donors, "All", "south")

        assert [d.id for d in result] == [4, 6]

    def test_pure(self, donors: List[Donor]):
        snapshot = list(donors)

        first = filter_donors(donors, "B+", "")
        second = filter_donors(donors, "B+", "")

        assert first == second
        assert donors == snapshot


class TestCountAvailable:
    """Tests for the available count."""

    def test_counts_only_available(self, donors: List[Donor]):
        assert count_available(donors) == 7

    def test_counts_filtered_view(self):
        """Test counting over the filtered list, not the full list."""
        full = [
            donor(1, "Gwenborough"),
            donor(2, "Wisokyburgh"),
            donor(3, "Gwenborough", availability=False),
        ]

        filtered = filter_donors(full, "All", "gwen")

        assert count_available(full) == 2
        assert count_available(filtered) == 1

    def test_empty(self):
        assert count_available([]) == 0


class TestRequestHelp:
    """Tests for help request tracking."""

    def test_marks_available_donor(self, donors: List[Donor]):
        result = request_help(donors, {}, 1)

        assert result == {1: True}
        assert is_requested(result, 1)

    def test_preserves_other_entries(self, donors: List[Donor]):
        status = {2: True}

        result = request_help(donors, status, 4)

        assert result == {2: True, 4: True}

    def test_does_not_mutate_input(self, donors: List[Donor]):
        status = {2: True}

        result = request_help(donors, status, 4)

        assert status == {2: True}
        assert result is not status

    def test_unavailable_donor_is_noop(self, donors: List[Donor]):
        status = {1: True}

        result = request_help(donors, status, 3)

        assert result == status
        assert not is_requested(result, 3)

    def test_unknown_donor_is_noop(self, donors: List[Donor]):
        status: Dict[int, bool] = {}

        result = request_help(donors, status, 999)

        assert result == {}

    def test_idempotent(self, donors: List[Donor]):
        once = request_help(donors, {}, 5)
        twice = request_help(donors, once, 5)

        assert once == twice == {5: True}

    def test_no_donors_loaded(self):
        assert request_help([], {}, 1) == {}
