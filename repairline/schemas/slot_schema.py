"""Slot vocabulary collected from customer utterances."""

from typing import TypedDict


class SlotSet(TypedDict, total=False):
    """Booking fields accumulated across turns. Every key is optional."""

    appliance_type: str
    issue_description: str
    appliance_make: str
    customer_name: str
    street_address: str
    city: str
    zip_code: str
    callback_number: str
    preferred_time: str
    issue_location: str
    last_confirmation: str
    completion_percentage: int


# Order matters: it is the order completion is reported in.
REQUIRED_FIELDS: tuple[str, ...] = (
    "appliance_type",
    "issue_description",
    "appliance_make",
    "customer_name",
    "street_address",
    "city",
    "zip_code",
    "callback_number",
    "preferred_time",
)

# Flow-engine pseudo-field standing for city + zip together.
LOCATION = "location"

URGENT_TIME = "urgent"
