"""Adapters for the hosted and local language-model providers.

Every adapter exposes ``attempt(system_prompt, user_message)`` and returns the
generated text, or ``None`` when the provider is not configured, unreachable,
or produced nothing usable. Adapters never raise; failures are logged and the
caller simply moves on to the next provider.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Optional, Sequence

import openai
import requests

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_TEMPERATURE = 0.8
DEFAULT_MAX_TOKENS = 1000

HUGGINGFACE_API_URL = "https://api-inference.huggingface.co/models/{model}"
HUGGINGFACE_MODELS = (
    "google/flan-t5-large",
    "microsoft/DialoGPT-medium",
    "bigscience/bloom-560m",
)
MIN_HUGGINGFACE_RESPONSE_LENGTH = 30

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GROQ_MODEL = "llama3-8b-8192"

TOGETHER_API_URL = "https://api.together.xyz/v1/chat/completions"
TOGETHER_MODEL = "meta-llama/Llama-2-7b-chat-hf"

OLLAMA_URL = "http://localhost:11434/api/generate"
OLLAMA_MODEL = "llama3.2:3b"

_HUB_QUESTION_PREFIX = "Question about creative writing:"
_HUB_ADVICE_SUFFIX = "Provide helpful advice for creative writing:"
_HUB_SCAFFOLD_PATTERN = re.compile(
    r"^(Question about creative writing:|Provide helpful advice for creative writing:)",
    re.MULTILINE,
)


def _chat_messages(system_prompt: str, user_message: str) -> List[dict]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_message},
    ]


class ProviderAdapter:
    """Base class for a single provider in the response cascade."""

    name = "provider"

    def __init__(self, api_key: Optional[str] = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.api_key = (api_key or "").strip()
        self.timeout = float(timeout or DEFAULT_TIMEOUT)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def attempt(self, system_prompt: str, user_message: str) -> Optional[str]:
        if not self.is_configured():
            LOGGER.debug("%s is not configured; skipping.", self.name)
            return None

        try:
            text = self._generate(system_prompt, user_message)
        except Exception as exc:  # provider failures must not escape the adapter
            LOGGER.warning("%s request failed: %s", self.name, exc)
            return None

        text = (text or "").strip()
        return text or None

    def _generate(self, system_prompt: str, user_message: str) -> Optional[str]:
        raise NotImplementedError

    def _auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def __repr__(self) -> str:  # pragma: no cover - repr for debugging
        return f"<{type(self).__name__} configured={self.is_configured()}>"


class HuggingFaceAdapter(ProviderAdapter):
    """Text-generation calls against the Hugging Face inference hub.

    Candidate models are tried in order until one produces at least
    ``MIN_HUGGINGFACE_RESPONSE_LENGTH`` characters.
    """

    name = "huggingface"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        models: Optional[Sequence[str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(api_key, timeout=timeout)
        self.models = tuple(models or HUGGINGFACE_MODELS)
        self._http = session or requests

    def _generate(self, system_prompt: str, user_message: str) -> Optional[str]:
        payload = {
            "inputs": f"{_HUB_QUESTION_PREFIX} {user_message}\n\n{_HUB_ADVICE_SUFFIX}",
            "parameters": {
                "max_new_tokens": 200,
                "temperature": 0.7,
                "do_sample": True,
                "top_p": 0.95,
                "repetition_penalty": 1.15,
            },
            "options": {"wait_for_model": True, "use_cache": False},
        }

        for model in self.models:
            LOGGER.debug("Trying Hugging Face model %s", model)
            try:
                response = self._http.post(
                    HUGGINGFACE_API_URL.format(model=model),
                    headers=self._auth_headers(),
                    json=payload,
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                LOGGER.warning("Hugging Face model %s failed: %s", model, exc)
                continue

            if not response.ok:
                LOGGER.warning(
                    "Hugging Face model %s returned %s: %s",
                    model,
                    response.status_code,
                    response.text[:100],
                )
                continue

            try:
                data = response.json()
            except ValueError as exc:
                LOGGER.warning("Hugging Face model %s returned a malformed body: %s", model, exc)
                continue

            text = self._clean(self._extract_generated_text(data))
            if len(text) >= MIN_HUGGINGFACE_RESPONSE_LENGTH:
                LOGGER.info("Hugging Face model %s produced a response.", model)
                return text
            LOGGER.debug("Hugging Face model %s response too short (%d chars).", model, len(text))

        return None

    @staticmethod
    def _extract_generated_text(data: Any) -> str:
        if isinstance(data, list):
            first = data[0] if data else None
            if isinstance(first, dict):
                return str(first.get("generated_text") or "")
            return ""
        if isinstance(data, dict):
            return str(data.get("generated_text") or "")
        return ""

    @staticmethod
    def _clean(text: str) -> str:
        return _HUB_SCAFFOLD_PATTERN.sub("", (text or "").strip()).strip()


class GroqAdapter(ProviderAdapter):
    """Chat completions served by Groq through its OpenAI-compatible API."""

    name = "groq"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: str = GROQ_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Any = None,
    ) -> None:
        super().__init__(api_key, timeout=timeout)
        self.model = model or GROQ_MODEL
        self._client = client

    def _get_client(self) -> Any:
        """Create the SDK client on first use."""
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.api_key,
                base_url=GROQ_BASE_URL,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def _generate(self, system_prompt: str, user_message: str) -> Optional[str]:
        response = self._get_client().chat.completions.create(
            model=self.model,
            messages=_chat_messages(system_prompt, user_message),
            max_tokens=DEFAULT_MAX_TOKENS,
            temperature=DEFAULT_TEMPERATURE,
        )
        return _extract_text_from_chat(response)


class TogetherAdapter(ProviderAdapter):
    """Chat completions served by Together AI over plain HTTP."""

    name = "together"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: str = TOGETHER_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(api_key, timeout=timeout)
        self.model = model or TOGETHER_MODEL
        self._http = session or requests

    def _generate(self, system_prompt: str, user_message: str) -> Optional[str]:
        response = self._http.post(
            TOGETHER_API_URL,
            headers=self._auth_headers(),
            json={
                "model": self.model,
                "messages": _chat_messages(system_prompt, user_message),
                "max_tokens": DEFAULT_MAX_TOKENS,
                "temperature": DEFAULT_TEMPERATURE,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return None
        message = choices[0].get("message") or {}
        return message.get("content")


class OllamaAdapter(ProviderAdapter):
    """Generation through a local Ollama daemon.

    Most deployments do not run the daemon, so a refused connection is an
    ordinary miss and is only logged at debug level.
    """

    name = "ollama"

    def __init__(
        self,
        url: str = OLLAMA_URL,
        *,
        model: str = OLLAMA_MODEL,
        enabled: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(None, timeout=timeout)
        self.url = url or OLLAMA_URL
        self.model = model or OLLAMA_MODEL
        self.enabled = enabled
        self._http = session or requests

    def is_configured(self) -> bool:
        return self.enabled and bool(self.url)

    def _generate(self, system_prompt: str, user_message: str) -> Optional[str]:
        try:
            response = self._http.post(
                self.url,
                json={
                    "model": self.model,
                    "prompt": f"{system_prompt}\n\nUser: {user_message}\nAssistant:",
                    "stream": False,
                    "options": {"temperature": DEFAULT_TEMPERATURE, "num_predict": 500},
                },
                timeout=self.timeout,
            )
        except requests.ConnectionError:
            LOGGER.debug("Ollama is not reachable at %s.", self.url)
            return None

        if not response.ok:
            LOGGER.debug("Ollama returned %s.", response.status_code)
            return None
        return response.json().get("response")


def _extract_text_from_chat(resp: Any) -> str:
    choices = getattr(resp, "choices", []) or []
    if not choices:
        return ""
    first = choices[0]
    msg = getattr(first, "message", None)
    if isinstance(msg, dict):
        content = msg.get("content")
    else:
        content = getattr(msg, "content", None)
    if isinstance(content, list):
        parts: List[str] = []
        for p in content:
            if isinstance(p, dict) and p.get("type") == "text":
                parts.append(str(p.get("text") or ""))
        return "\n".join([p for p in parts if p])
    return str(content or "")


def configured_names(adapters: Iterable[ProviderAdapter]) -> List[str]:
    """Names of the adapters that hold the settings they need to run."""

    return [adapter.name for adapter in adapters if adapter.is_configured()]
