"""Tests for the fallback responders, prompts and error apologies."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from repairline.exceptions import ResponderError, ServiceUnavailableError, StoreError
from repairline.prompts.error_responses import ErrorCategory, categorize_error, error_response
from repairline.prompts.system_prompts import build_greeting, build_system_prompt
from repairline.resilience import ResiliencePolicy
from repairline.responders import OpenAIResponder, ScriptedResponder, build_messages
from repairline.schemas.conversation_schema import Channel


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return _completion(outcome)


def make_responder(outcomes, failure_threshold=10):
    completions = FakeCompletions(outcomes)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    responder = OpenAIResponder(
        client=client,
        policy=ResiliencePolicy("openai-test", failure_threshold=failure_threshold),
        sleep=fake_sleep,
    )
    responder.max_retries = 2
    return responder, completions, sleeps


class TestBuildMessages:
    def test_order_and_roles(self):
        history = [
            {"speech_input": "hello", "ai_response": "Hi! How can I help?"},
            {"speech_input": "my washer", "ai_response": ""},
        ]
        messages = build_messages("it's leaking", "SYSTEM", history)
        assert messages == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "hello"},
            {"role": "assistant", "content": "Hi! How can I help?"},
            {"role": "user", "content": "my washer"},
            {"role": "user", "content": "it's leaking"},
        ]

    def test_only_recent_history(self):
        history = [{"speech_input": f"u{i}", "ai_response": f"a{i}"} for i in range(6)]
        messages = build_messages("now", "S", history, history_turns=4)
        contents = [m["content"] for m in messages]
        assert "u1" not in contents
        assert contents[1] == "u2"
        assert contents[-1] == "now"


class TestOpenAIResponder:
    @pytest.mark.asyncio
    async def test_success(self):
        responder, completions, _ = make_responder(["  Sure, what's the brand?  "])
        reply = await responder.respond("my oven", "SYSTEM", [])
        assert reply == "Sure, what's the brand?"
        call = completions.calls[0]
        assert call["model"] == responder.model
        assert call["messages"][0] == {"role": "system", "content": "SYSTEM"}

    @pytest.mark.asyncio
    async def test_retries_with_backoff(self):
        responder, completions, sleeps = make_responder(
            [RuntimeError("network blip"), RuntimeError("network blip"), "Got it."]
        )
        assert await responder.respond("hi", "S", []) == "Got it."
        assert len(completions.calls) == 3
        assert sleeps == [1, 2]

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self):
        responder, completions, sleeps = make_responder([RuntimeError("x")] * 3)
        with pytest.raises(ResponderError):
            await responder.respond("hi", "S", [])
        assert len(completions.calls) == 3
        assert sleeps == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_completion_is_failure(self):
        responder, _, _ = make_responder(["", "", ""])
        with pytest.raises(ResponderError):
            await responder.respond("hi", "S", [])

    @pytest.mark.asyncio
    async def test_open_policy_short_circuits(self):
        responder, completions, _ = make_responder([RuntimeError("x")] * 3, failure_threshold=1)
        with pytest.raises(ResponderError, match="temporarily unavailable"):
            await responder.respond("hi", "S", [])
        assert len(completions.calls) == 1


class TestScriptedResponder:
    @pytest.mark.asyncio
    async def test_records_calls(self):
        responder = ScriptedResponder("canned")
        assert await responder.respond("u", "p", [{"speech_input": "x"}]) == "canned"
        assert responder.calls == [("u", "p", [{"speech_input": "x"}])]


class TestSystemPrompt:
    def test_includes_slots_and_completion(self):
        prompt = build_system_prompt({"appliance_type": "washer"}, Channel.VOICE, "Fix It Co")
        assert "Fix It Co" in prompt
        assert "(11% complete)" in prompt
        assert '"appliance_type": "washer"' in prompt
        assert "phone call" in prompt

    def test_text_style(self):
        prompt = build_system_prompt({}, Channel.TEXT)
        assert "text messages" in prompt

    def test_greeting_mentions_recorded_line(self):
        greeting = build_greeting("Fix It Co")
        assert "Fix It Co" in greeting
        assert "recorded line" in greeting
        assert greeting.endswith("Would that be okay with you?")


class TestErrorResponses:
    @pytest.mark.parametrize(
        "error, category",
        [
            (RuntimeError("You exceeded your current quota"), ErrorCategory.QUOTA),
            (RuntimeError("rate limit reached (429)"), ErrorCategory.RATE_LIMIT),
            (ServiceUnavailableError("openai", 12.0), ErrorCategory.RATE_LIMIT),
            (StoreError("boom", 500), ErrorCategory.DATABASE),
            (ValueError("bad input"), ErrorCategory.VALIDATION),
            (RuntimeError("fetch failed"), ErrorCategory.NETWORK),
            (RuntimeError("something odd"), ErrorCategory.DEFAULT),
        ],
    )
    def test_categories(self, error, category):
        assert categorize_error(error) == category

    def test_network_error_by_type(self):
        request = httpx.Request("POST", "https://api.test")
        assert categorize_error(openai.APIConnectionError(request=request)) == ErrorCategory.NETWORK

    def test_wrapped_cause_is_used(self):
        try:
            try:
                raise StoreError("row store down")
            except StoreError as e:
                raise ResponderError("gave up") from e
        except ResponderError as wrapped:
            assert categorize_error(wrapped) == ErrorCategory.DATABASE

    def test_channel_wording(self):
        error = RuntimeError("something odd")
        assert error_response(error, Channel.VOICE) == (
            "I understand you need help. What appliance is giving you trouble?"
        )
        assert error_response(error, Channel.TEXT) == (
            "I understand you need help. What appliance needs service?"
        )

    def test_raw_error_text_not_exposed(self):
        reply = error_response(RuntimeError("secret-token-123 failed"), Channel.VOICE)
        assert "secret-token-123" not in reply
