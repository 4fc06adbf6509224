"""Response orchestration: the provider cascade with a local fallback."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from .composer import compose
from .intent import IntentAnalysis, analyze
from .prompts import get_system_prompt, normalize_category
from .providers import (
    DEFAULT_TIMEOUT,
    GroqAdapter,
    HuggingFaceAdapter,
    OllamaAdapter,
    ProviderAdapter,
    TogetherAdapter,
    configured_names,
)

LOGGER = logging.getLogger(__name__)

LOCAL_SOURCE = "local"

# The hub adapter output must be longer than this to be accepted; the other
# providers only need to return something non-empty.
HUB_MIN_LENGTH = 20


class ChatRequestError(RuntimeError):
    """Raised when a chat request is missing its message or category."""


@dataclass(frozen=True)
class HistoryMessage:
    role: str
    content: str


@dataclass
class ChatRequest:
    category: str
    message: str
    history: List[HistoryMessage] = field(default_factory=list)

    @classmethod
    def from_payload(
        cls,
        message: Any,
        category: Any,
        history: Optional[Sequence[Any]] = None,
    ) -> "ChatRequest":
        message_text = message if isinstance(message, str) else ""
        category_text = category if isinstance(category, str) else ""
        if not message_text.strip() or not category_text.strip():
            raise ChatRequestError("Message and category are required")
        return cls(
            category=category_text.strip(),
            message=message_text,
            history=_coerce_history(history),
        )


@dataclass
class OrchestratorResult:
    text: str
    source: str

    @property
    def used_fallback(self) -> bool:
        return self.source == LOCAL_SOURCE


@dataclass(frozen=True)
class CascadeStep:
    adapter: ProviderAdapter
    min_length: int = 0

    def accepts(self, text: Optional[str]) -> bool:
        return bool(text) and len(text) > self.min_length


class ResponseOrchestrator:
    """Try each provider in order; the first usable answer wins.

    When every provider misses (or the request is cancelled) the local
    composer answers, so ``generate`` always returns non-empty text.
    """

    def __init__(
        self,
        steps: Sequence[CascadeStep | ProviderAdapter],
        *,
        analyzer: Callable[[str, str], IntentAnalysis] = analyze,
        composer: Callable[[IntentAnalysis, str, str], str] = compose,
    ) -> None:
        self.steps: Tuple[CascadeStep, ...] = tuple(
            step if isinstance(step, CascadeStep) else CascadeStep(step) for step in steps
        )
        self._analyzer = analyzer
        self._composer = composer

    @property
    def provider_names(self) -> List[str]:
        return [step.adapter.name for step in self.steps]

    def generate(
        self,
        request: ChatRequest,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> OrchestratorResult:
        system_prompt = get_system_prompt(request.category)

        for step in self.steps:
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.info("Request cancelled; skipping remaining providers.")
                break

            LOGGER.info("Trying %s...", step.adapter.name)
            text = step.adapter.attempt(system_prompt, request.message)
            if step.accepts(text):
                LOGGER.info("Generated response using %s", step.adapter.name)
                return OrchestratorResult(text=text, source=step.adapter.name)

        LOGGER.info("Using local analysis for category %s", request.category)
        return OrchestratorResult(text=self.fallback(request), source=LOCAL_SOURCE)

    def fallback(self, request: ChatRequest) -> str:
        category = normalize_category(request.category)
        analysis = self._analyzer(request.message, category)
        return self._composer(analysis, request.message, category)


def build_orchestrator(config: Mapping[str, Any]) -> ResponseOrchestrator:
    """Build the default cascade: Hugging Face, Groq, Together, then Ollama."""

    timeout = float(config.get("PROVIDER_TIMEOUT") or DEFAULT_TIMEOUT)
    steps = [
        CascadeStep(
            HuggingFaceAdapter(
                config.get("HUGGINGFACE_API_KEY"),
                models=config.get("HUGGINGFACE_MODELS"),
                timeout=timeout,
            ),
            min_length=HUB_MIN_LENGTH,
        ),
        CascadeStep(
            GroqAdapter(
                config.get("GROQ_API_KEY"),
                model=config.get("GROQ_MODEL"),
                timeout=timeout,
            )
        ),
        CascadeStep(
            TogetherAdapter(
                config.get("TOGETHER_API_KEY"),
                model=config.get("TOGETHER_MODEL"),
                timeout=timeout,
            )
        ),
        CascadeStep(
            OllamaAdapter(
                config.get("OLLAMA_URL"),
                model=config.get("OLLAMA_MODEL"),
                enabled=bool(config.get("OLLAMA_ENABLED", True)),
                timeout=timeout,
            )
        ),
    ]
    orchestrator = ResponseOrchestrator(steps)
    LOGGER.info(
        "Response cascade ready; configured providers: %s",
        ", ".join(configured_names(step.adapter for step in steps)) or "none",
    )
    return orchestrator


def generate_creative_response(
    category: str,
    message: str,
    history: Optional[Sequence[Any]] = None,
    *,
    orchestrator: Optional[ResponseOrchestrator] = None,
    cancel_event: Optional[threading.Event] = None,
) -> OrchestratorResult:
    """Answer ``message`` for ``category`` through the app's orchestrator."""

    request = ChatRequest.from_payload(message, category, history)
    if orchestrator is None:
        orchestrator = _get_orchestrator()
    return orchestrator.generate(request, cancel_event=cancel_event)


def _get_orchestrator() -> ResponseOrchestrator:  # pragma: no cover - integration point
    from flask import current_app

    orchestrator = current_app.extensions.get("artemis_orchestrator")
    if orchestrator is None:
        orchestrator = build_orchestrator(current_app.config)
        current_app.extensions["artemis_orchestrator"] = orchestrator
    return orchestrator


def _coerce_history(history: Optional[Sequence[Any]]) -> List[HistoryMessage]:
    if not isinstance(history, (list, tuple)):
        return []
    entries: List[HistoryMessage] = []
    for item in history:
        if isinstance(item, HistoryMessage):
            entries.append(item)
        elif isinstance(item, Mapping):
            role = item.get("role")
            content = item.get("content")
            if isinstance(role, str) and isinstance(content, str):
                entries.append(HistoryMessage(role=role, content=content))
    return entries
