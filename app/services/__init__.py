"""Service layer for the Artemis chat assistant."""

from __future__ import annotations

from .composer import compose, compose_local_response  # noqa: F401
from .intent import IntentAnalysis, analyze  # noqa: F401
from .orchestrator import (  # noqa: F401
    ChatRequest,
    ChatRequestError,
    OrchestratorResult,
    ResponseOrchestrator,
    build_orchestrator,
    generate_creative_response,
)

__all__ = [
    "ChatRequest",
    "ChatRequestError",
    "IntentAnalysis",
    "OrchestratorResult",
    "ResponseOrchestrator",
    "analyze",
    "build_orchestrator",
    "compose",
    "compose_local_response",
    "generate_creative_response",
]
