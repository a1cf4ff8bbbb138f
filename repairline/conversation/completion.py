"""
Completion tracking over the required booking fields.

Two views of the same slot set:
- completion_percentage counts city and zip_code as separate fields
- missing_fields collapses them into one "location" entry, which is
  what the flow engine asks for
"""

import math
from typing import Mapping

from repairline.schemas.slot_schema import LOCATION, REQUIRED_FIELDS


def _present(slots: Mapping[str, object], name: str) -> bool:
    return bool(slots.get(name))


def completion_percentage(slots: Mapping[str, object]) -> int:
    """Share of required fields present, as a 0-100 integer (halves round up)."""
    filled = sum(1 for name in REQUIRED_FIELDS if _present(slots, name))
    return math.floor(100 * filled / len(REQUIRED_FIELDS) + 0.5)


def missing_required(slots: Mapping[str, object]) -> list[str]:
    """Required field names with no value, in required order."""
    return [name for name in REQUIRED_FIELDS if not _present(slots, name)]


def missing_fields(slots: Mapping[str, object]) -> list[str]:
    """Missing fields in the order the flow engine asks for them."""
    missing: list[str] = []

    # Repair details first
    for name in ("appliance_type", "issue_description", "appliance_make"):
        if not _present(slots, name):
            missing.append(name)

    # Contact details
    for name in ("customer_name", "street_address"):
        if not _present(slots, name):
            missing.append(name)
    if not _present(slots, "city") or not _present(slots, "zip_code"):
        missing.append(LOCATION)
    if not _present(slots, "callback_number"):
        missing.append("callback_number")

    # Scheduling
    if not _present(slots, "preferred_time"):
        missing.append("preferred_time")

    return missing


def is_complete(slots: Mapping[str, object]) -> bool:
    return not missing_fields(slots)
