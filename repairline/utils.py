"""Shared utilities used across the dialogue engine."""

import re


def normalize_callback_number(value: str) -> str:
    """Reduce a phone number to digits, prefixing +1 when it is a 10-digit US number.

    Examples:
        >>> normalize_callback_number("555-123-4567")
        '+15551234567'
        >>> normalize_callback_number("(555) 123 4567")
        '+15551234567'
        >>> normalize_callback_number("12345")
        '12345'
    """
    digits = re.sub(r"[^\d]", "", value)
    if len(digits) == 10:
        return f"+1{digits}"
    return digits


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def preview(text: str, length: int = 50) -> str:
    """Short single-line preview for log messages."""
    return text[:length].replace("\n", " ")
