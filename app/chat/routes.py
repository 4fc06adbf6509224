from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from ..extensions import db
from ..services.conversations import (
    ConversationRecord,
    generate_conversation_title,
    get_conversation_repository,
)
from ..services.orchestrator import ChatRequestError, generate_creative_response
from ..services.prompts import normalize_category
from . import bp

ERROR_FALLBACK_MESSAGE = (
    "I'm having trouble connecting to my creative writing brain right now. "
    "Let me help you with some general writing advice instead!\n\n"
    "**Quick Writing Tips:**\n"
    "- Write regularly, even if just for 15 minutes\n"
    "- Read widely in your genre\n"
    "- Get feedback from other writers\n"
    "- Don't edit while drafting\n"
    "- Remember: all first drafts need revision\n\n"
    "How can I help with your writing project today?"
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _owned_conversation(conversation_id: Any) -> Optional[ConversationRecord]:
    if not isinstance(conversation_id, str) or not conversation_id:
        return None
    conversation = get_conversation_repository().get_conversation(conversation_id)
    if conversation is None or conversation.user_id != current_user.id:
        return None
    return conversation


@bp.route("/chat", methods=["POST"])
def chat():
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Message and category are required"}), 400

    message = payload.get("message")
    category = payload.get("category")

    try:
        result = generate_creative_response(
            category,
            message,
            payload.get("conversationHistory"),
        )
    except ChatRequestError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Chat generation failed; returning static fallback")
        return jsonify(
            {
                "message": ERROR_FALLBACK_MESSAGE,
                "category": "general",
                "timestamp": _timestamp(),
                "isErrorFallback": True,
            }
        )

    current_app.logger.info(
        "Answered %s request (%d chars, %r...) via %s",
        category,
        len(message),
        message[:50],
        result.source,
    )

    response_payload = {
        "message": result.text,
        "category": category,
        "timestamp": _timestamp(),
    }

    conversation_id = _persist_exchange(payload, category, message, result.text)
    if conversation_id:
        response_payload["conversationId"] = conversation_id

    return jsonify(response_payload)


def _persist_exchange(payload: dict, category: str, message: str, answer: str) -> Optional[str]:
    """Store the user message and reply when the caller is signed in.

    Storage problems are logged; the writer still gets the answer.
    """

    if not current_user.is_authenticated:
        return None

    repository = get_conversation_repository()
    try:
        conversation = _owned_conversation(payload.get("conversationId"))
        if conversation is None and payload.get("newConversation"):
            conversation = repository.create_conversation(
                current_user.id,
                generate_conversation_title(message),
                normalize_category(category),
            )
        if conversation is None:
            return None

        repository.add_exchange(conversation.id, message.strip(), answer)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to store chat exchange")
        return None
    return conversation.id


@bp.route("/conversations", methods=["GET"])
@login_required
def list_conversations():
    conversations = get_conversation_repository().list_conversations(current_user.id)
    return jsonify({"conversations": [conversation.to_dict() for conversation in conversations]})


@bp.route("/conversations", methods=["POST"])
@login_required
def create_conversation():
    payload = request.get_json(silent=True) or {}
    title = payload.get("title")
    category = payload.get("category")
    if not isinstance(title, str) or not title.strip():
        return jsonify({"error": "A conversation title is required."}), 400
    if not isinstance(category, str) or not category.strip():
        return jsonify({"error": "A conversation category is required."}), 400

    conversation = get_conversation_repository().create_conversation(
        current_user.id,
        title.strip(),
        normalize_category(category),
    )
    return jsonify({"conversation": conversation.to_dict()}), 201


@bp.route("/conversations/<conversation_id>/messages", methods=["GET"])
@login_required
def conversation_messages(conversation_id: str):
    conversation = _owned_conversation(conversation_id)
    if conversation is None:
        return jsonify({"error": "We couldn't find that conversation."}), 404

    messages = get_conversation_repository().list_messages(conversation.id)
    return jsonify(
        {
            "conversation": conversation.to_dict(),
            "messages": [message.to_dict() for message in messages],
        }
    )


@bp.route("/conversations/<conversation_id>", methods=["PATCH"])
@login_required
def rename_conversation(conversation_id: str):
    conversation = _owned_conversation(conversation_id)
    if conversation is None:
        return jsonify({"error": "We couldn't find that conversation."}), 404

    payload = request.get_json(silent=True) or {}
    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        return jsonify({"error": "A conversation title is required."}), 400

    repository = get_conversation_repository()
    repository.update_title(conversation.id, title.strip())
    return jsonify({"conversation": repository.get_conversation(conversation.id).to_dict()})


@bp.route("/conversations/<conversation_id>", methods=["DELETE"])
@login_required
def delete_conversation(conversation_id: str):
    conversation = _owned_conversation(conversation_id)
    if conversation is None:
        return jsonify({"error": "We couldn't find that conversation."}), 404

    get_conversation_repository().delete_conversation(conversation.id)
    return jsonify({"deleted": True, "id": conversation.id})
