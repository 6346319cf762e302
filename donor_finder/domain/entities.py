"""
Domain entities for donor data.

Core value objects representing donors and the fixed blood group
enumeration. These entities are framework-agnostic.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List

from ..exceptions import ValidationException

# Filter sentinel matching every blood group
ALL_GROUPS = "All"


class BloodGroup(str, Enum):
    """
    Blood groups in assignment order.

    The declaration order is significant: a donor's group is picked by
    indexing this sequence with ``id % 8``.
    """

    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    O_POS = "O+"
    O_NEG = "O-"
    AB_POS = "AB+"
    AB_NEG = "AB-"

    @classmethod
    def ordered(cls) -> List["BloodGroup"]:
        """Return the groups in assignment order."""
        return list(cls)

    @classmethod
    def for_id(cls, donor_id: int) -> "BloodGroup":
        """Pick the group for a donor id by cycling through the enumeration."""
        groups = cls.ordered()
        return groups[donor_id % len(groups)]

    @classmethod
    def parse(cls, value: str) -> "BloodGroup":
        """
        Convert a display string such as ``"AB-"`` into a member.

        Raises:
            ValidationException: If the string is not one of the 8 groups
        """
        try:
            return cls(value)
        except ValueError:
            raise ValidationException(
                field_name="blood_group",
                value=value,
                reason=f"must be one of {', '.join(g.value for g in cls)}",
            ) from None


# Options offered by the blood group select, sentinel first
BLOOD_GROUP_CHOICES: List[str] = [ALL_GROUPS] + [g.value for g in BloodGroup]


class ViewState(str, Enum):
    """What the donor grid should currently show."""

    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True)
class Donor:
    """
    Donor derived from an external user record.

    Immutable once created; ``id`` is the identity key within a loaded set.
    """

    id: int
    name: str
    city: str
    blood_group: BloodGroup
    availability: bool

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON responses."""
        data = asdict(self)
        data["blood_group"] = self.blood_group.value
        return data
