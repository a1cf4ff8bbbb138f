"""
Repairline command-line entry point.

Runs the offline console demo, or housekeeping against the configured
REST store.

Usage:
    Console mode:   python main.py console [--scenario NAME] [--channel voice|text]
    Reap expired:   python main.py reap
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from repairline.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode(scenario: Optional[str], channel: str) -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession
    from repairline.schemas.conversation_schema import Channel

    session = ConsoleSession(Channel.parse(channel))
    if scenario:
        asyncio.run(session.run_scenario(scenario))
    else:
        asyncio.run(session.run())


async def _reap() -> int:
    from repairline.conversation.state_manager import ConversationStateManager
    from repairline.store.conversation_store import RestConversationStore
    from repairline.store.rest_client import RestClient

    async with RestClient.from_settings() as client:
        manager = ConversationStateManager(RestConversationStore(client))
        return await manager.reap()


def _run_reap() -> int:
    """Delete expired conversation records (requires store credentials)."""
    if not settings.store.url or not settings.store.service_key:
        logger.error("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set to reap conversations")
        return 1
    removed = asyncio.run(_reap())
    print(f"Removed {removed} expired conversations")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Repairline dialogue engine")
    commands = parser.add_subparsers(dest="command", required=True)

    console = commands.add_parser("console", help="Run the offline console demo")
    console.add_argument("--scenario", default=None, help="Auto-play a pre-scripted scenario")
    console.add_argument("--channel", choices=["voice", "text"], default="voice")

    commands.add_parser("reap", help="Delete expired conversation records")

    args = parser.parse_args(argv)
    if args.command == "console":
        _run_console_mode(args.scenario, args.channel)
        return 0
    return _run_reap()


if __name__ == "__main__":
    sys.exit(main())
