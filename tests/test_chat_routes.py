import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app import create_app
from app.config import TestConfig
from app.extensions import db
from app.models import User
from app.services.orchestrator import CascadeStep, HUB_MIN_LENGTH, ResponseOrchestrator
from app.services.providers import ProviderAdapter

HUB_ANSWER = "Consider starting your plot with a clear inciting incident."


class MemoryTestConfig(TestConfig):
    CONVERSATION_BACKEND = "memory"


class DummyAdapter(ProviderAdapter):
    def __init__(self, name, response):
        super().__init__("key")
        self.name = name
        self.response = response
        self.calls = 0

    def _generate(self, system_prompt, user_message):
        self.calls += 1
        return self.response


@pytest.fixture(params=[TestConfig, MemoryTestConfig], ids=["sql", "memory"])
def app_instance(request):
    app = create_app(request.param)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app_instance):
    return app_instance.test_client()


def _make_user(email):
    user = User(email=email, display_name=email.split("@")[0])
    user.set_password("password123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def user(app_instance):
    return _make_user("writer@example.com")


def _login(client, user):
    client.post(
        "/login",
        data={"email": user.email, "password": "password123"},
        follow_redirects=True,
    )


def test_missing_message_is_rejected(client):
    response = client.post("/api/chat", json={"category": "general"})

    assert response.status_code == 400
    assert response.get_json() == {"error": "Message and category are required"}


def test_missing_category_is_rejected(client):
    response = client.post("/api/chat", json={"message": "Hello"})

    assert response.status_code == 400


@pytest.mark.parametrize("body", [["hello"], "hello", 5])
def test_non_object_body_is_rejected(client, body):
    response = client.post("/api/chat", json=body)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Message and category are required"}


def test_chat_without_providers_answers_locally(client):
    response = client.post(
        "/api/chat",
        json={"message": "How do I build tension in my story?", "category": "story-development"},
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["category"] == "story-development"
    assert "Here's how to develop a compelling plot" in payload["message"]
    assert payload["timestamp"]
    assert "isErrorFallback" not in payload
    assert "conversationId" not in payload


def test_chat_returns_provider_answer_verbatim(app_instance, client):
    hub = DummyAdapter("huggingface", HUB_ANSWER)
    groq = DummyAdapter("groq", "unused")
    app_instance.extensions["artemis_orchestrator"] = ResponseOrchestrator(
        [CascadeStep(hub, HUB_MIN_LENGTH), groq]
    )

    response = client.post(
        "/api/chat",
        json={
            "message": "Where should my plot start?",
            "category": "plot-brainstorming",
            "conversationHistory": [{"role": "user", "content": "Hi"}],
        },
    )

    assert response.get_json()["message"] == HUB_ANSWER
    assert groq.calls == 0


def test_unexpected_error_returns_friendly_fallback(monkeypatch, client):
    def explode(*_args, **_kwargs):
        raise RuntimeError("sdk exploded")

    monkeypatch.setattr("app.chat.routes.generate_creative_response", explode)

    response = client.post("/api/chat", json={"message": "Hello", "category": "writing-style"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["isErrorFallback"] is True
    assert payload["category"] == "general"
    assert "Quick Writing Tips" in payload["message"]


def test_signed_in_chat_creates_and_fills_conversation(client, user):
    _login(client, user)

    response = client.post(
        "/api/chat",
        json={
            "message": "How do I write a villain with a tragic past and a secret?",
            "category": "character-creation",
            "newConversation": True,
        },
    )
    payload = response.get_json()
    conversation_id = payload["conversationId"]

    follow_up = client.post(
        "/api/chat",
        json={"message": "What else?", "category": "character-creation", "conversationId": conversation_id},
    )
    assert follow_up.get_json()["conversationId"] == conversation_id

    listing = client.get("/api/conversations").get_json()["conversations"]
    assert [c["id"] for c in listing] == [conversation_id]
    assert listing[0]["title"] == "How do I write a villain..."
    assert listing[0]["category"] == "character-creation"

    messages = client.get(f"/api/conversations/{conversation_id}/messages").get_json()["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]
    assert messages[1]["content"] == payload["message"]


def test_conversation_api_crud(client, user):
    _login(client, user)

    created = client.post("/api/conversations", json={"title": "Draft", "category": "general"})
    assert created.status_code == 201
    conversation_id = created.get_json()["conversation"]["id"]

    renamed = client.patch(f"/api/conversations/{conversation_id}", json={"title": "Revised"})
    assert renamed.get_json()["conversation"]["title"] == "Revised"

    assert client.patch(f"/api/conversations/{conversation_id}", json={}).status_code == 400
    assert client.post("/api/conversations", json={"title": "No category"}).status_code == 400

    deleted = client.delete(f"/api/conversations/{conversation_id}")
    assert deleted.get_json() == {"deleted": True, "id": conversation_id}
    assert client.get(f"/api/conversations/{conversation_id}/messages").status_code == 404


def test_conversations_are_private(app_instance, client, user):
    other = _make_user("other@example.com")
    _login(client, other)
    conversation_id = client.post(
        "/api/conversations", json={"title": "Secret", "category": "general"}
    ).get_json()["conversation"]["id"]
    client.get("/logout")

    _login(client, user)

    assert client.get(f"/api/conversations/{conversation_id}/messages").status_code == 404
    assert client.delete(f"/api/conversations/{conversation_id}").status_code == 404
    assert client.get("/api/conversations").get_json()["conversations"] == []

    # A foreign id on /api/chat is ignored rather than written to.
    response = client.post(
        "/api/chat",
        json={"message": "Hello there", "category": "general", "conversationId": conversation_id},
    )
    assert "conversationId" not in response.get_json()


def test_conversation_api_requires_login(client):
    response = client.get("/api/conversations")

    assert response.status_code == 401
    assert "error" in response.get_json()


def test_health_check(client):
    assert client.get("/health").get_json() == {"status": "healthy"}


def test_storage_failure_still_answers_and_keeps_conversation_clean(
    monkeypatch, app_instance, client, user
):
    _login(client, user)
    conversation_id = client.post(
        "/api/conversations", json={"title": "Draft", "category": "general"}
    ).get_json()["conversation"]["id"]
    repository = app_instance.extensions["artemis_conversations"]

    def failing_exchange(*_args, **_kwargs):
        raise RuntimeError("storage unavailable")

    monkeypatch.setattr(repository, "add_exchange", failing_exchange)

    response = client.post(
        "/api/chat",
        json={"message": "Hello there", "category": "general", "conversationId": conversation_id},
    )

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["message"]
    assert "conversationId" not in payload
    assert repository.list_messages(conversation_id) == []
