"""Conversation storage behind a single repository interface.

``SqlConversationRepository`` persists to the application database and
``InMemoryConversationRepository`` keeps everything in the current process,
which is handy for tests and throwaway deployments. Both return the same
record types so callers never care which one is active.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Conversation, Message

ROLES = ("user", "assistant")
TITLE_WORD_LIMIT = 6


class ConversationNotFoundError(RuntimeError):
    """Raised when a message targets a conversation that does not exist."""


@dataclass(frozen=True)
class ConversationRecord:
    id: str
    user_id: int
    title: str
    category: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "category": self.category,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class MessageRecord:
    id: str
    conversation_id: str
    role: str
    content: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "role": self.role,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }


def generate_conversation_title(message: str) -> str:
    """Title a new conversation after the first few words of its opening message."""

    words = (message or "").strip().split(" ")
    title = " ".join(words[:TITLE_WORD_LIMIT])
    if len(words) > TITLE_WORD_LIMIT:
        title += "..."
    return title or "New conversation"


def _reply_timestamp(user_at: datetime) -> datetime:
    # Replies must sort after the turn they answer.
    return max(datetime.utcnow(), user_at + timedelta(microseconds=1))


def _validate_role(role: str) -> str:
    if role not in ROLES:
        raise ValueError(f"Unsupported message role: {role!r}")
    return role


class ConversationRepository:
    """Interface shared by the storage backends."""

    def create_conversation(self, user_id: int, title: str, category: str) -> ConversationRecord:
        raise NotImplementedError

    def list_conversations(self, user_id: int) -> List[ConversationRecord]:
        raise NotImplementedError

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        raise NotImplementedError

    def add_message(self, conversation_id: str, role: str, content: str) -> MessageRecord:
        raise NotImplementedError

    def add_exchange(
        self, conversation_id: str, user_message: str, assistant_message: str
    ) -> Tuple[MessageRecord, MessageRecord]:
        """Store a user turn and its reply together, or neither."""
        raise NotImplementedError

    def list_messages(self, conversation_id: str) -> List[MessageRecord]:
        raise NotImplementedError

    def update_title(self, conversation_id: str, title: str) -> bool:
        raise NotImplementedError

    def delete_conversation(self, conversation_id: str) -> bool:
        raise NotImplementedError


class SqlConversationRepository(ConversationRepository):
    """Repository backed by the Flask-SQLAlchemy models."""

    def create_conversation(self, user_id: int, title: str, category: str) -> ConversationRecord:
        now = datetime.utcnow()
        conversation = Conversation(
            user_id=user_id,
            title=title,
            category=category,
            created_at=now,
            updated_at=now,
        )
        db.session.add(conversation)
        db.session.commit()
        return self._conversation_record(conversation)

    def list_conversations(self, user_id: int) -> List[ConversationRecord]:
        conversations = (
            Conversation.query.filter_by(user_id=user_id)
            .order_by(Conversation.updated_at.desc())
            .all()
        )
        return [self._conversation_record(conversation) for conversation in conversations]

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        conversation = db.session.get(Conversation, conversation_id)
        if conversation is None:
            return None
        return self._conversation_record(conversation)

    def add_message(self, conversation_id: str, role: str, content: str) -> MessageRecord:
        conversation = db.session.get(Conversation, conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(f"Conversation {conversation_id} does not exist.")

        now = datetime.utcnow()
        message = Message(
            conversation_id=conversation.id,
            role=_validate_role(role),
            content=content,
            created_at=now,
        )
        conversation.updated_at = now
        db.session.add(message)
        db.session.commit()
        return self._message_record(message)

    def add_exchange(
        self, conversation_id: str, user_message: str, assistant_message: str
    ) -> Tuple[MessageRecord, MessageRecord]:
        conversation = db.session.get(Conversation, conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(f"Conversation {conversation_id} does not exist.")

        user_at = datetime.utcnow()
        reply_at = _reply_timestamp(user_at)
        question = Message(
            conversation_id=conversation.id, role="user", content=user_message, created_at=user_at
        )
        reply = Message(
            conversation_id=conversation.id,
            role="assistant",
            content=assistant_message,
            created_at=reply_at,
        )
        conversation.updated_at = reply_at
        try:
            db.session.add_all([question, reply])
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return self._message_record(question), self._message_record(reply)

    def list_messages(self, conversation_id: str) -> List[MessageRecord]:
        messages = (
            Message.query.filter_by(conversation_id=conversation_id)
            .order_by(Message.created_at.asc())
            .all()
        )
        return [self._message_record(message) for message in messages]

    def update_title(self, conversation_id: str, title: str) -> bool:
        conversation = db.session.get(Conversation, conversation_id)
        if conversation is None:
            return False
        conversation.title = title
        db.session.commit()
        return True

    def delete_conversation(self, conversation_id: str) -> bool:
        conversation = db.session.get(Conversation, conversation_id)
        if conversation is None:
            return False
        db.session.delete(conversation)
        db.session.commit()
        return True

    @staticmethod
    def _conversation_record(conversation: Conversation) -> ConversationRecord:
        return ConversationRecord(
            id=conversation.id,
            user_id=conversation.user_id,
            title=conversation.title,
            category=conversation.category,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )

    @staticmethod
    def _message_record(message: Message) -> MessageRecord:
        return MessageRecord(
            id=message.id,
            conversation_id=message.conversation_id,
            role=message.role,
            content=message.content,
            created_at=message.created_at,
        )


class InMemoryConversationRepository(ConversationRepository):
    """Process-local repository; each instance owns its own storage."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conversations: Dict[str, ConversationRecord] = {}
        self._messages: Dict[str, List[MessageRecord]] = {}

    def create_conversation(self, user_id: int, title: str, category: str) -> ConversationRecord:
        now = datetime.utcnow()
        record = ConversationRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            category=category,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._conversations[record.id] = record
            self._messages[record.id] = []
        return record

    def list_conversations(self, user_id: int) -> List[ConversationRecord]:
        with self._lock:
            owned = [c for c in self._conversations.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.updated_at, reverse=True)

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        with self._lock:
            return self._conversations.get(conversation_id)

    def add_message(self, conversation_id: str, role: str, content: str) -> MessageRecord:
        now = datetime.utcnow()
        record = MessageRecord(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role=_validate_role(role),
            content=content,
            created_at=now,
        )
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(f"Conversation {conversation_id} does not exist.")
            self._messages[conversation_id].append(record)
            self._conversations[conversation_id] = replace(conversation, updated_at=now)
        return record

    def add_exchange(
        self, conversation_id: str, user_message: str, assistant_message: str
    ) -> Tuple[MessageRecord, MessageRecord]:
        user_at = datetime.utcnow()
        reply_at = _reply_timestamp(user_at)
        question = MessageRecord(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role="user",
            content=user_message,
            created_at=user_at,
        )
        reply = MessageRecord(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role="assistant",
            content=assistant_message,
            created_at=reply_at,
        )
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(f"Conversation {conversation_id} does not exist.")
            self._messages[conversation_id].extend([question, reply])
            self._conversations[conversation_id] = replace(conversation, updated_at=reply_at)
        return question, reply

    def list_messages(self, conversation_id: str) -> List[MessageRecord]:
        with self._lock:
            return list(self._messages.get(conversation_id, []))

    def update_title(self, conversation_id: str, title: str) -> bool:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                return False
            self._conversations[conversation_id] = replace(conversation, title=title)
        return True

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            if self._conversations.pop(conversation_id, None) is None:
                return False
            self._messages.pop(conversation_id, None)
        return True


def build_conversation_repository(backend: str) -> ConversationRepository:
    normalized = (backend or "sql").strip().lower()
    if normalized == "memory":
        return InMemoryConversationRepository()
    if normalized == "sql":
        return SqlConversationRepository()
    raise ValueError(f"Unknown conversation backend: {backend!r}")


def get_conversation_repository() -> ConversationRepository:
    """Return the repository bound to the current application."""
    from flask import current_app

    return current_app.extensions["artemis_conversations"]
