"""
Donor derivation, filtering and help-request tracking.

All functions here are pure: they never perform I/O and never mutate
their arguments. Session state calls them on every state transition and
keeps whatever they return.
"""

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..logging_config import get_logger
from .entities import ALL_GROUPS, BloodGroup, Donor

logger = get_logger(__name__)

# donor id -> requested; only ever holds True values
RequestStatus = Dict[int, bool]


def map_user_to_donor(user: Mapping[str, Any]) -> Donor:
    """
    Build a donor from a raw user record.

    Blood group and availability depend only on ``user["id"]``, so the same
    user always maps to the same donor.

    Args:
        user: Record with a non-negative integer ``id``, a ``name`` and
            an ``address.city``

    Returns:
        The derived donor
    """
    user_id = user["id"]
    return Donor(
        id=user_id,
        name=user["name"],
        city=user["address"]["city"],
        blood_group=BloodGroup.for_id(user_id),
        availability=user_id % 3 != 0,
    )


def _is_well_formed(user: Any) -> bool:
    if not isinstance(user, Mapping):
        return False
    user_id = user.get("id")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id < 0:
        return False
    if not isinstance(user.get("name"), str):
        return False
    address = user.get("address")
    return isinstance(address, Mapping) and isinstance(address.get("city"), str)


def map_users(users: Iterable[Any]) -> List[Donor]:
    """
    Map a collection of user records to donors, preserving order.

    Records missing an integer id, a name or a city are dropped with a
    warning instead of being passed to the mapper.
    """
    donors: List[Donor] = []
    for position, user in enumerate(users):
        if not _is_well_formed(user):
            logger.warning(
                "Skipping malformed user record",
                extra={
                    "extra_fields": {
                        "position": position,
                        "user_id": user.get("id") if isinstance(user, Mapping) else None,
                    }
                },
            )
            continue
        donors.append(map_user_to_donor(user))
    return donors


def filter_donors(
    donors: Sequence[Donor],
    selected_group: str,
    city_search: str,
) -> List[Donor]:
    """
    Narrow donors by blood group and city.

    A donor is kept when the group is ``"All"`` or equals its blood group
    exactly, and when the stripped search text is empty or is a
    case-insensitive substring of its city. Input order is preserved.

    Args:
        donors: Donors in display order
        selected_group: ``"All"`` or one of the 8 blood group strings
        city_search: Free text typed by the visitor

    Returns:
        The matching donors as a new list
    """
    needle = city_search.strip().lower()

    def matches(donor: Donor) -> bool:
        matches_group = selected_group == ALL_GROUPS or donor.blood_group == selected_group
        matches_city = needle == "" or needle in donor.city.lower()
        return matches_group and matches_city

    return [donor for donor in donors if matches(donor)]


def count_available(donors: Iterable[Donor]) -> int:
    """Count available donors; callers pass the filtered list."""
    return sum(1 for donor in donors if donor.availability)


def request_help(
    donors: Sequence[Donor],
    status: RequestStatus,
    donor_id: int,
) -> RequestStatus:
    """
    Record a help request for a donor.

    Unknown ids and unavailable donors are ignored and ``status`` is
    returned as is. Otherwise a new mapping with ``donor_id`` marked is
    returned; ``status`` itself is never modified.

    Args:
        donors: Full donor list of the session
        status: Current request status
        donor_id: Donor the visitor clicked

    Returns:
        The resulting request status
    """
    donor = next((d for d in donors if d.id == donor_id), None)
    if donor is None or not donor.availability:
        return status
    return {**status, donor_id: True}


def is_requested(status: Mapping[int, bool], donor_id: int) -> bool:
    return bool(status.get(donor_id))
