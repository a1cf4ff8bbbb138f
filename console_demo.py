"""
Offline console demo: runs repair-booking conversations without any API keys.

Uses the real extractor, flow engine, matchers and orchestrator on
in-memory stores seeded with a demo tenant, a few FAQs and some cached
clips. The fallback responder is scripted. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario urgent
    python console_demo.py --scenario detailed --channel text
"""

import argparse
import asyncio

from repairline.config import settings
from repairline.conversation.state_manager import ConversationStateManager
from repairline.orchestrator import TurnOrchestrator
from repairline.responders import ScriptedResponder
from repairline.schemas.catalog_schema import FAQRecord, TenantConfig
from repairline.schemas.conversation_schema import Channel, InboundTurn, TurnResult
from repairline.store.catalogs import (
    InMemoryAudioCatalog,
    InMemoryFAQCatalog,
    InMemoryTenantDirectory,
)
from repairline.store.conversation_store import InMemoryConversationStore
from repairline.store.interactions import InMemoryInteractionLog

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_TENANT = "demo-org"
DEMO_CONTACT = "+15550100100"

DEMO_FAQS = [
    FAQRecord(
        id="faq-hours",
        question="What are your business hours?",
        answer="We're open Monday through Friday, 8 AM to 6 PM.",
        keywords="hours, open, business hours",
        usage_count=12,
    ),
    FAQRecord(
        id="faq-fee",
        question="How much is the diagnostic fee?",
        answer=(
            f"Our diagnostic fee is ${settings.business.diagnostic_fee} and it goes "
            "toward the repair."
        ),
        keywords="diagnostic, fee, cost, price",
        usage_count=30,
    ),
]

DEMO_CLIPS = {
    "greeting": "https://audio.example.com/demo/greeting.mp3",
    "greeting_confirmed": "https://audio.example.com/demo/greeting_confirmed.mp3",
    "greeting_hurry_sms": "https://audio.example.com/demo/greeting_hurry_sms.mp3",
    "understand": "https://audio.example.com/demo/understand.mp3",
    "diagnostic_fee": "https://audio.example.com/demo/diagnostic_fee.mp3",
    "anything_else": "https://audio.example.com/demo/anything_else.mp3",
}


class ConsoleSession:
    """Plays one conversation against in-memory stores in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "detailed": [
            "Hi, my Samsung washer is leaking from the bottom. I'm John Smith at "
            "123 Main Street, Springfield 62701, call me at 555-123-4567",
            "Tomorrow morning works",
            "yes",
        ],
        "vague": [
            "My dryer is broken",
            "It's not heating",
            "Whirlpool",
            "John Smith",
            "123 Oak Avenue",
            "Springfield, 62704",
            "555-987-6543",
            "afternoon",
        ],
        "urgent": [
            "Emergency! My dishwasher is flooding the kitchen",
            "This is Jane Doe, 42 Elm Street",
        ],
        "progressive": [
            "I need help with my refrigerator",
            "It's not cooling",
            "It's a GE",
            "My name is Maria Lopez",
            "I live at 9 Pine Court",
            "Austin, 78701",
            "(512) 555-0199",
            "10 am",
        ],
        "faq": [
            "What are your business hours?",
            "How much is the diagnostic fee?",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, channel: Channel = Channel.VOICE) -> None:
        self.channel = channel
        self.store = InMemoryConversationStore()
        self.faqs = InMemoryFAQCatalog({DEMO_TENANT: list(DEMO_FAQS)})
        self.orchestrator = TurnOrchestrator(
            state_manager=ConversationStateManager(self.store),
            faq_catalog=self.faqs,
            audio_catalog=InMemoryAudioCatalog({DEMO_TENANT: dict(DEMO_CLIPS)}),
            tenants=InMemoryTenantDirectory(
                {DEMO_TENANT: TenantConfig(organization_id=DEMO_TENANT, business_name=settings.business.name)}
            ),
            responder=ScriptedResponder(),
            interactions=InMemoryInteractionLog(),
        )

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.business.assistant_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  REPAIRLINE - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}  Channel: {self.channel.value}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    async def _greet(self) -> None:
        if self.channel != Channel.VOICE:
            return
        greeting = await self.orchestrator.greet(DEMO_TENANT)
        self.agent_say(greeting.text)
        if greeting.audio_url:
            self.system_log(f"Clip: {greeting.audio_url}")
        reply = await self.orchestrator.confirm_disclaimer(DEMO_TENANT, "okay")
        print(f"\n{BLUE}[Caller] {RESET}okay")
        if reply is not None:
            self.agent_say(reply.text)
            self.system_log(f"Clip: {reply.template_key}")

    async def _process_input(self, text: str) -> TurnResult:
        result = await self.orchestrator.handle_turn(
            InboundTurn(
                utterance=text,
                tenant_id=DEMO_TENANT,
                contact_id=DEMO_CONTACT,
                channel=self.channel,
            )
        )
        await self.orchestrator.drain()
        self.agent_say(result.reply_text)
        self.system_log(
            f"Source: {result.source.value}  Completion: {result.completion_percentage}%"
            + (f"  Clip: {result.audio_url}" if result.audio_url else "")
        )
        return result

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        await self._greet()

        result = None
        for step in steps:
            print(f"\n{BLUE}[Caller] {RESET}{step}")
            result = await self._process_input(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        if result is not None:
            print(f"{DIM}  Slots: {result.updated_slots}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def run(self) -> None:
        self._banner("Console Demo (type 'quit' to exit)")
        await self._greet()

        while True:
            user_input = input(f"\n{BLUE}[Caller] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue
            await self._process_input(user_input)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--channel",
        choices=[c.value for c in Channel],
        default=Channel.VOICE.value,
        help="Conversation channel",
    )
    args = parser.parse_args()

    session = ConsoleSession(Channel.parse(args.channel))
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
