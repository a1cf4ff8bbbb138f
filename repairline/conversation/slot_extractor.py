"""
Keyword and pattern based slot extraction.

Turns one customer utterance plus the slots gathered so far into an
updated slot set. A fixed battery of matchers runs in order, each owning
one slot (city and zip share one). Category matchers walk an ordered list
of canonical values and take the first trigger phrase found; structural
matchers try an ordered list of regex templates and take the first one
that passes its sanity filter. A matcher that finds nothing leaves the
prior value in place.

Iteration order is behavior: "dishwasher" contains "washer", so the
washer entry must stay ahead of dishwasher to keep existing conversations
resolving the way they always have.

Usage:
    slots = extract("My Samsung washer is leaking", {})
    # {'appliance_type': 'washer', 'appliance_make': 'Samsung',
    #  'issue_description': 'leaking', 'completion_percentage': 33}
"""

import logging
import re
from typing import Callable, Mapping, Optional

from repairline.conversation.completion import completion_percentage, missing_required
from repairline.schemas.slot_schema import URGENT_TIME, SlotSet
from repairline.utils import normalize_callback_number

logger = logging.getLogger(__name__)

# Sanity bounds for structural matches
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MIN_ADDRESS_LENGTH = 5
MAX_ADDRESS_LENGTH = 100

CategoryTable = list[tuple[str, list[str]]]

APPLIANCE_TYPES: CategoryTable = [
    ("washer", ["washer", "washing machine", "laundry"]),
    ("dryer", ["dryer", "drying machine"]),
    ("dishwasher", ["dishwasher", "dish washer"]),
    ("refrigerator", ["refrigerator", "fridge", "freezer"]),
    ("oven", ["oven", "stove", "range", "cooktop"]),
    ("microwave", ["microwave"]),
    ("garbage_disposal", ["garbage disposal", "disposal", "disposer"]),
    ("air_conditioner", ["ac", "air conditioner", "air conditioning", "hvac"]),
]

APPLIANCE_MAKES: CategoryTable = [
    ("whirlpool", ["whirlpool"]),
    ("ge", ["ge", "general electric"]),
    ("samsung", ["samsung"]),
    ("lg", ["lg"]),
    ("maytag", ["maytag"]),
    ("frigidaire", ["frigidaire"]),
    ("kenmore", ["kenmore"]),
    ("bosch", ["bosch"]),
    ("kitchenaid", ["kitchenaid", "kitchen aid"]),
    ("electrolux", ["electrolux"]),
]

ISSUES: CategoryTable = [
    ("leaking", ["leaking", "leak", "water coming out", "dripping", "flooding"]),
    ("not_starting", ["not starting", "won't start", "not turning on", "dead", "not working"]),
    ("noisy", ["noisy", "loud", "making noise", "banging", "grinding", "squeaking"]),
    ("not_heating", ["not heating", "cold", "not hot", "no heat"]),
    ("not_cooling", ["not cooling", "warm", "not cold", "not freezing"]),
    ("not_spinning", ["not spinning", "not turning", "won't spin"]),
    ("not_draining", ["not draining", "water sitting", "standing water", "won't drain"]),
    ("not_cleaning", ["not cleaning", "dishes dirty", "not washing"]),
    ("door_issue", ["door won't close", "door stuck", "door problem"]),
    ("control_panel", ["buttons not working", "display not working", "controls broken"]),
]

CONFIRMATIONS: CategoryTable = [
    ("yes", ["yes", "yeah", "yep", "sure", "okay", "ok", "correct", "right", "that's right"]),
    ("no", ["no", "nope", "not right", "incorrect", "wrong", "that's wrong"]),
]

ISSUE_LOCATIONS: CategoryTable = [
    ("front", ["front", "door", "front door"]),
    ("bottom", ["bottom", "underneath", "under"]),
    ("back", ["back", "behind", "rear"]),
    ("inside", ["inside", "interior"]),
    ("hose", ["hose", "connection", "pipe"]),
]

# Issue location only applies to water problems
ISSUE_LOCATION_GATES = ("leak", "water")

NAME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?:i'm|my name is|call me|this is)\s+([a-zA-Z]+(?:\s+[a-zA-Z]+)?)", re.IGNORECASE),
    # The whole message is two words: taken as a bare full name
    re.compile(r"^([a-zA-Z]+\s+[a-zA-Z]+)$"),
    re.compile(r"hi,?\s+([a-zA-Z]+\s+[a-zA-Z]+)", re.IGNORECASE),
]

_NAME_CHARS = re.compile(r"[a-zA-Z\s]+")

ADDRESS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"(\d+\s+[a-zA-Z\s]+(?:street|st|avenue|ave|drive|dr|road|rd|lane|ln|way|court|ct"
        r"|circle|cir|place|pl))",
        re.IGNORECASE,
    ),
    re.compile(r"(?:address is|live at|located at)\s+([^,\n]+)", re.IGNORECASE),
    re.compile(r"(\d{1,5}\s+[a-zA-Z\s,]+)", re.IGNORECASE),
]

CITY_ZIP_PATTERN = re.compile(r"([a-zA-Z\s]+),?\s+(\d{5})")

PHONE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(\d{3}[-.\s]?\d{3}[-.\s]?\d{4})"),
    re.compile(r"\((\d{3})\)\s?(\d{3})[-.\s]?(\d{4})"),
]

TIME_PATTERNS: list[tuple[re.Pattern[str], Callable[[re.Match[str]], str]]] = [
    (re.compile(r"(\d{1,2})\s*(am|pm)", re.IGNORECASE), lambda m: m.group(0)),
    (re.compile(r"(morning|afternoon|evening)", re.IGNORECASE), lambda m: m.group(0)),
    (re.compile(r"(today|tomorrow|this week|next week)", re.IGNORECASE), lambda m: m.group(0)),
    (re.compile(r"(asap|urgent|emergency|right away)", re.IGNORECASE), lambda m: URGENT_TIME),
]


def match_category(text_lower: str, table: CategoryTable) -> Optional[str]:
    """Return the first canonical value whose trigger phrase occurs in the text."""
    for canonical, phrases in table:
        for phrase in phrases:
            if phrase in text_lower:
                return canonical
    return None


def _is_plausible_name(candidate: str) -> bool:
    return (
        MIN_NAME_LENGTH <= len(candidate) <= MAX_NAME_LENGTH
        and _NAME_CHARS.fullmatch(candidate) is not None
    )


def extract_name(message: str) -> Optional[str]:
    for pattern in NAME_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1):
            name = match.group(1).strip()
            if _is_plausible_name(name):
                return name
    return None


def extract_address(message: str) -> Optional[str]:
    for pattern in ADDRESS_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1):
            address = match.group(1).strip()
            if MIN_ADDRESS_LENGTH <= len(address) <= MAX_ADDRESS_LENGTH:
                return address
    return None


def extract_city_zip(message: str) -> Optional[tuple[str, str]]:
    match = CITY_ZIP_PATTERN.search(message)
    if match:
        return match.group(1).strip(), match.group(2)
    return None


def extract_callback_number(message: str) -> Optional[str]:
    for pattern in PHONE_PATTERNS:
        match = pattern.search(message)
        if match:
            return normalize_callback_number(match.group(0))
    return None


def extract_preferred_time(message: str) -> Optional[str]:
    for pattern, render in TIME_PATTERNS:
        match = pattern.search(message)
        if match:
            return render(match)
    return None


def extract_issue_location(text_lower: str) -> Optional[str]:
    if not any(gate in text_lower for gate in ISSUE_LOCATION_GATES):
        return None
    return match_category(text_lower, ISSUE_LOCATIONS)


def extract(utterance: str, prior_slots: Optional[Mapping[str, object]] = None) -> SlotSet:
    """Merge whatever the utterance reveals into a copy of the prior slots.

    Never mutates ``prior_slots``. Values are only ever overwritten by a new
    non-empty match, and ``completion_percentage`` is always recomputed.
    """
    slots: SlotSet = dict(prior_slots or {})  # type: ignore[assignment]
    message = utterance or ""
    text_lower = message.lower()

    appliance = match_category(text_lower, APPLIANCE_TYPES)
    if appliance:
        slots["appliance_type"] = appliance

    make = match_category(text_lower, APPLIANCE_MAKES)
    if make:
        slots["appliance_make"] = make.capitalize()

    issue = match_category(text_lower, ISSUES)
    if issue:
        slots["issue_description"] = issue

    name = extract_name(message)
    if name:
        slots["customer_name"] = name

    address = extract_address(message)
    if address:
        slots["street_address"] = address

    city_zip = extract_city_zip(message)
    if city_zip:
        slots["city"], slots["zip_code"] = city_zip

    callback = extract_callback_number(message)
    if callback:
        slots["callback_number"] = callback

    preferred_time = extract_preferred_time(message)
    if preferred_time:
        slots["preferred_time"] = preferred_time

    confirmation = match_category(text_lower, CONFIRMATIONS)
    if confirmation:
        slots["last_confirmation"] = confirmation

    location = extract_issue_location(text_lower)
    if location:
        slots["issue_location"] = location

    slots["completion_percentage"] = completion_percentage(slots)

    logger.debug(
        "Extraction complete: fields=%s completion=%d%% missing=%s",
        sorted(k for k, v in slots.items() if v and k != "completion_percentage"),
        slots["completion_percentage"],
        missing_required(slots),
    )
    return slots
