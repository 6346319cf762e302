"""
Domain layer - donor entities and the pure donor derivation rules.

This layer is independent of HTTP, templates and session handling.
"""

from .donors import (
    count_available,
    filter_donors,
    is_requested,
    map_user_to_donor,
    map_users,
    request_help,
)
from .entities import ALL_GROUPS, BLOOD_GROUP_CHOICES, BloodGroup, Donor, ViewState

__all__ = [
    "ALL_GROUPS",
    "BLOOD_GROUP_CHOICES",
    "BloodGroup",
    "Donor",
    "ViewState",
    "count_available",
    "filter_donors",
    "is_requested",
    "map_user_to_donor",
    "map_users",
    "request_help",
]
