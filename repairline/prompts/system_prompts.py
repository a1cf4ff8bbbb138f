"""
System prompt for the fallback generative responder.

The model only speaks when neither an FAQ nor a scripted flow reply
applies, so the prompt carries everything collected so far and the
pricing to quote. Business values come from configuration and the
tenant's own record.
"""

import json
from typing import Mapping, Optional

from repairline.config import settings
from repairline.conversation.completion import completion_percentage
from repairline.schemas.conversation_schema import Channel

_biz = settings.business

VOICE_STYLE_RULES = """You're handling a phone call, so keep replies short (under 15 words when possible) and conversational.
Never use markdown, lists, or special characters."""

TEXT_STYLE_RULES = """You're handling text messages, so be concise but add detail when it helps."""

REQUIRED_INFORMATION = """REQUIRED INFORMATION TO COLLECT:
- Appliance type (washer, dryer, dishwasher, etc.)
- Specific issue description
- Appliance make/brand
- Customer full name
- Complete address (street, city, zip)
- Callback phone number
- Preferred appointment time"""

FLOW_RULES = """CONVERSATION FLOW RULES:
1. Ask ONE question at a time
2. Get appliance and issue details first
3. Then collect customer contact information
4. Finally schedule the appointment
5. Always mention the diagnostic fee before final confirmation
6. If the customer gives several details at once, acknowledge them and ask only for what is missing
7. For urgent customers, streamline the process
8. Confirm all details before final scheduling"""

RESPONSE_EXAMPLES = """RESPONSE EXAMPLES:
- "What's happening with your washer?" (not "Can you tell me what specific issues you're experiencing with your washing machine?")
- "What brand is it?" (not "What is the manufacturer or brand name of your appliance?")
- "Your address?" (not "I'll need your complete street address where the repair will take place")"""

PRICING_INFO = f"""DIAGNOSTIC AND PRICING INFO:
- Diagnostic fee: ${_biz.diagnostic_fee} (goes toward repair)
- Most repairs: ${_biz.repair_range_low}-${_biz.repair_range_high} plus parts
- Mention pricing only at final confirmation"""


def build_system_prompt(
    slots: Mapping[str, object],
    channel: Channel,
    business_name: Optional[str] = None,
) -> str:
    """Prompt for one turn, embedding the current slot set and its completion."""
    name = business_name or _biz.name
    style = VOICE_STYLE_RULES if channel == Channel.VOICE else TEXT_STYLE_RULES
    known = {k: v for k, v in slots.items() if k != "completion_percentage"}

    return f"""You are {_biz.assistant_name}, a professional AI assistant for {name}.
{style}
Your goal is to efficiently gather information and schedule appliance repairs.

CURRENT CONVERSATION DATA ({completion_percentage(slots)}% complete):
{json.dumps(known, indent=2, sort_keys=True)}

{REQUIRED_INFORMATION}

{FLOW_RULES}

{RESPONSE_EXAMPLES}

{PRICING_INFO}

Generate your next response based on what information is missing and keep it natural and efficient."""


def build_greeting(business_name: Optional[str] = None) -> str:
    """Opening line with the recorded-line disclaimer."""
    name = business_name or _biz.name
    return (
        f"Hi, this is {_biz.assistant_name} from {name}. Before we proceed, I would like "
        "to let you know you are on a recorded line and my responses can take 4 to 5 "
        "seconds as I will be updating your records during our conversation, so for me "
        "to better assist you please be patient with me. Would that be okay with you?"
    )


GREETING_CONFIRMED_TEXT = "Great! How can I help you today?"

GREETING_HURRY_SMS_TEXT = (
    "I understand your concerns and respect your time. Please send us a text message "
    "with your full name, address, what appliance is having an issue, appliance make "
    "and model if you have it, and what issues you are noticing. We can get your "
    "appointment scheduled faster. Will that be okay?"
)
