"""
Customer-facing apologies for failed turns.

The raw error never reaches the customer. It is sorted into a category
(by exception type first, then by keywords in its message) and the
category picks a fixed voice or text reply that steers the conversation
back to the appliance.
"""

from enum import Enum

import httpx
import openai

from repairline.exceptions import ServiceUnavailableError, StoreError
from repairline.schemas.conversation_schema import Channel


class ErrorCategory(str, Enum):
    QUOTA = "quota"
    RATE_LIMIT = "rate_limit"
    MODEL_API = "model_api"
    NETWORK = "network"
    DATABASE = "database"
    VALIDATION = "validation"
    DEFAULT = "default"


# (voice, text)
ERROR_RESPONSES: dict[ErrorCategory, tuple[str, str]] = {
    ErrorCategory.QUOTA: (
        "I'm experiencing high demand right now. Let me connect you with someone who can help immediately.",
        "I'm experiencing high demand. Please call our main number for immediate assistance.",
    ),
    ErrorCategory.RATE_LIMIT: (
        "I'm processing many requests right now. Please wait a moment and try again.",
        "I'm busy right now. Please wait a moment and try again.",
    ),
    ErrorCategory.MODEL_API: (
        "I'm having trouble understanding right now. What appliance needs service?",
        "I'm having technical issues. What appliance needs service?",
    ),
    ErrorCategory.NETWORK: (
        "I'm having connection issues. Please try again or call our main number.",
        "I'm having connection issues. Please try again or call us directly.",
    ),
    ErrorCategory.DATABASE: (
        "I'm having trouble accessing your information. Please call our main number.",
        "I'm having trouble with your information. Please call our main number.",
    ),
    ErrorCategory.VALIDATION: (
        "I didn't understand that clearly. Could you tell me what appliance needs service?",
        "I didn't understand that. What appliance needs service?",
    ),
    ErrorCategory.DEFAULT: (
        "I understand you need help. What appliance is giving you trouble?",
        "I understand you need help. What appliance needs service?",
    ),
}

_KEYWORD_CATEGORIES: list[tuple[ErrorCategory, tuple[str, ...]]] = [
    (ErrorCategory.QUOTA, ("quota", "billing")),
    (ErrorCategory.RATE_LIMIT, ("rate limit", "429")),
    (ErrorCategory.MODEL_API, ("openai", "api")),
    (ErrorCategory.NETWORK, ("network", "fetch")),
    (ErrorCategory.DATABASE, ("database", "supabase")),
    (ErrorCategory.VALIDATION, ("validation", "missing")),
]


def _root_cause(error: BaseException) -> BaseException:
    while error.__cause__ is not None:
        error = error.__cause__
    return error


def categorize_error(error: BaseException) -> ErrorCategory:
    root = _root_cause(error)
    message = f"{error} {root}".lower()

    # Quota exhaustion arrives as a 429 too; only the message tells them apart
    if "quota" in message or "billing" in message:
        return ErrorCategory.QUOTA
    if isinstance(root, (openai.RateLimitError, ServiceUnavailableError)):
        return ErrorCategory.RATE_LIMIT
    if isinstance(root, (openai.APIConnectionError, httpx.TransportError)):
        return ErrorCategory.NETWORK
    if isinstance(root, openai.APIError):
        return ErrorCategory.MODEL_API
    if isinstance(root, StoreError):
        return ErrorCategory.DATABASE
    if isinstance(root, ValueError):
        return ErrorCategory.VALIDATION

    for category, keywords in _KEYWORD_CATEGORIES:
        if any(keyword in message for keyword in keywords):
            return category
    return ErrorCategory.DEFAULT


def error_response(error: BaseException, channel: Channel) -> str:
    voice, text = ERROR_RESPONSES[categorize_error(error)]
    return voice if channel == Channel.VOICE else text
