import sys
import threading
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.config import TestConfig
from app.services.composer import compose_local_response
from app.services.orchestrator import (
    HUB_MIN_LENGTH,
    LOCAL_SOURCE,
    CascadeStep,
    ChatRequest,
    ChatRequestError,
    ResponseOrchestrator,
    build_orchestrator,
    generate_creative_response,
)
from app.services.prompts import SYSTEM_PROMPTS
from app.services.providers import ProviderAdapter

HUB_ANSWER = "Consider starting your plot with a clear inciting incident."


def _config_dict(config_class):
    return {key: getattr(config_class, key) for key in dir(config_class) if key.isupper()}


class DummyAdapter(ProviderAdapter):
    def __init__(self, name, response=None, error=None):
        super().__init__("key")
        self.name = name
        self.response = response
        self.error = error
        self.calls = []

    def _generate(self, system_prompt, user_message):
        self.calls.append((system_prompt, user_message))
        if self.error is not None:
            raise self.error
        return self.response


def _request(message="How do I build tension in my story?", category="story-development"):
    return ChatRequest.from_payload(message, category)


def test_first_usable_provider_short_circuits_the_cascade():
    hub = DummyAdapter("huggingface", HUB_ANSWER)
    groq = DummyAdapter("groq", "unused")
    orchestrator = ResponseOrchestrator([CascadeStep(hub, HUB_MIN_LENGTH), groq])

    result = orchestrator.generate(_request())

    assert result.text == HUB_ANSWER
    assert result.source == "huggingface"
    assert not result.used_fallback
    assert groq.calls == []
    assert hub.calls == [(SYSTEM_PROMPTS["story-development"], "How do I build tension in my story?")]


def test_short_hub_answer_moves_on_to_next_provider():
    hub = DummyAdapter("huggingface", "Too short to use.")
    groq = DummyAdapter("groq", "ok")
    orchestrator = ResponseOrchestrator([CascadeStep(hub, HUB_MIN_LENGTH), groq])

    result = orchestrator.generate(_request())

    assert result.text == "ok"
    assert result.source == "groq"


@pytest.mark.parametrize("length, source", [(20, "groq"), (21, "huggingface")])
def test_hub_step_needs_more_than_twenty_characters(length, source):
    hub = DummyAdapter("huggingface", "h" * length)
    groq = DummyAdapter("groq", "ok")
    orchestrator = ResponseOrchestrator([CascadeStep(hub, HUB_MIN_LENGTH), groq])

    result = orchestrator.generate(_request())

    assert result.source == source
    assert len(groq.calls) == (1 if source == "groq" else 0)


def test_failing_providers_fall_back_to_local_composer():
    adapters = [
        DummyAdapter("huggingface", None),
        DummyAdapter("groq", error=RuntimeError("sdk exploded")),
        DummyAdapter("together", ""),
        DummyAdapter("ollama", None),
    ]
    orchestrator = ResponseOrchestrator(adapters)

    result = orchestrator.generate(_request())

    assert result.source == LOCAL_SOURCE
    assert result.used_fallback
    assert result.text == compose_local_response(
        "story-development", "How do I build tension in my story?"
    )
    assert all(len(adapter.calls) == 1 for adapter in adapters)


def test_local_fallback_is_repeatable():
    orchestrator = ResponseOrchestrator([])

    first = orchestrator.generate(_request("Which twist is best?", "plot-brainstorming"))
    second = orchestrator.generate(_request("Which twist is best?", "plot-brainstorming"))

    assert first.text == second.text


def test_cancelled_request_skips_remaining_providers():
    hub = DummyAdapter("huggingface", HUB_ANSWER)
    cancel = threading.Event()
    cancel.set()

    result = ResponseOrchestrator([hub]).generate(_request(), cancel_event=cancel)

    assert result.source == LOCAL_SOURCE
    assert result.text
    assert hub.calls == []


def test_unknown_category_uses_story_development_prompt():
    groq = DummyAdapter("groq", "Answer")

    ResponseOrchestrator([groq]).generate(_request("Help me", "screenwriting"))

    assert groq.calls[0][0] == SYSTEM_PROMPTS["story-development"]


@pytest.mark.parametrize(
    "category",
    ["story-development", "character-creation", "plot-brainstorming", "writing-style", "general"],
)
def test_default_cascade_without_credentials_always_answers(category):
    orchestrator = build_orchestrator(_config_dict(TestConfig))

    result = orchestrator.generate(_request("Tell me something useful", category))

    assert orchestrator.provider_names == ["huggingface", "groq", "together", "ollama"]
    assert result.source == LOCAL_SOURCE
    assert result.text.strip()


@pytest.mark.parametrize(
    "message, category",
    [(None, "general"), ("", "general"), ("   ", "general"), ("Hello", None), ("Hello", ""), (42, "general")],
)
def test_malformed_requests_are_rejected(message, category):
    with pytest.raises(ChatRequestError, match="Message and category are required"):
        ChatRequest.from_payload(message, category)


def test_history_entries_are_coerced():
    request = ChatRequest.from_payload(
        "Next?",
        "general",
        [{"role": "user", "content": "Hi"}, {"role": "assistant"}, "junk"],
    )

    assert [(m.role, m.content) for m in request.history] == [("user", "Hi")]


def test_generate_creative_response_with_explicit_orchestrator():
    groq = DummyAdapter("groq", "Give your hero a ticking clock.")

    result = generate_creative_response(
        "story-development",
        "How do I raise the stakes?",
        orchestrator=ResponseOrchestrator([groq]),
    )

    assert result.text == "Give your hero a ticking clock."
