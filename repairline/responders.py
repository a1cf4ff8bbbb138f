"""
Fallback responders, used only when no FAQ or scripted flow reply applies.

OpenAIResponder calls the chat completions API with the system prompt,
the last few exchanges and the new utterance. Failed calls are retried
with exponential backoff; the whole exchange runs under the responder's
own ResiliencePolicy so a dead API stops being hammered.

ScriptedResponder returns canned text and is used by the console demo
and tests.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from openai import AsyncOpenAI

from repairline.config import settings
from repairline.exceptions import ResponderError, ServiceUnavailableError
from repairline.resilience import ResiliencePolicy

logger = logging.getLogger(__name__)

HistoryItem = dict[str, Any]


class FallbackResponder(Protocol):
    async def respond(
        self, utterance: str, system_prompt: str, history: Sequence[HistoryItem]
    ) -> str: ...


def build_messages(
    utterance: str,
    system_prompt: str,
    history: Sequence[HistoryItem],
    history_turns: int = 4,
) -> list[dict[str, str]]:
    """Chat messages: system prompt, recent exchanges (oldest first), then the utterance."""
    messages = [{"role": "system", "content": system_prompt}]
    recent = list(history)[-history_turns:] if history_turns > 0 else []
    for item in recent:
        if item.get("speech_input"):
            messages.append({"role": "user", "content": str(item["speech_input"])})
        if item.get("ai_response"):
            messages.append({"role": "assistant", "content": str(item["ai_response"])})
    messages.append({"role": "user", "content": utterance})
    return messages


class OpenAIResponder:
    """Chat-completions fallback with retries and a resilience policy."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        policy: Optional[ResiliencePolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        cfg = settings.model
        self._client = client
        self.model = model or cfg.llm_model
        self.temperature = cfg.llm_temperature
        self.max_tokens = cfg.max_tokens
        self.max_retries = cfg.max_retries
        self.history_turns = cfg.history_turns
        self.policy = policy or ResiliencePolicy(
            "openai",
            failure_threshold=settings.resilience.model_failure_threshold,
            cooldown_sec=settings.resilience.model_cooldown_sec,
        )
        self._sleep = sleep

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            # Retries are handled here, not inside the SDK
            self._client = AsyncOpenAI(api_key=settings.model.api_key or None, max_retries=0)
        return self._client

    async def respond(
        self, utterance: str, system_prompt: str, history: Sequence[HistoryItem]
    ) -> str:
        messages = build_messages(utterance, system_prompt, history, self.history_turns)
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                return await self.policy.call(self._complete, messages)
            except ServiceUnavailableError as e:
                raise ResponderError(str(e)) from e
            except Exception as e:
                last_error = e
                logger.warning(
                    "Model call failed (attempt %d/%d): %s",
                    attempt + 1, self.max_retries + 1, e,
                )
                if attempt < self.max_retries:
                    await self._sleep(2 ** attempt)

        raise ResponderError(
            f"Model call failed after {self.max_retries + 1} attempts: {last_error}"
        ) from last_error

    async def _complete(self, messages: list[dict[str, str]]) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore[arg-type]
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ResponderError("Model returned an empty completion")
        return content.strip()


class ScriptedResponder:
    """Returns a fixed reply and records what it was asked."""

    def __init__(self, reply: str = "I can help with that. What appliance needs service?") -> None:
        self.reply = reply
        self.calls: list[tuple[str, str, list[HistoryItem]]] = []

    async def respond(
        self, utterance: str, system_prompt: str, history: Sequence[HistoryItem]
    ) -> str:
        self.calls.append((utterance, system_prompt, list(history)))
        return self.reply
