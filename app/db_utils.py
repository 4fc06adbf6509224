"""Database helper utilities for ensuring schema consistency."""
from __future__ import annotations

from typing import Iterable, Set

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db


def _get_column_names(table_name: str) -> Set[str]:
    inspector = inspect(db.engine)
    return {column["name"] for column in inspector.get_columns(table_name)}


def ensure_database_schema() -> None:
    """Ensure that essential schema updates are applied.

    Runs on every application start. Missing tables are created and the
    ``conversations`` table is given the ``updated_at`` column that the
    sidebar ordering relies on when an older database lacks it.
    """

    try:
        inspector = inspect(db.engine)
        table_names: Iterable[str] = inspector.get_table_names()

        if "users" not in table_names:
            db.create_all()
            inspector = inspect(db.engine)
            table_names = inspector.get_table_names()

        # Import locally to avoid circular import issues during application setup.
        from .models import Conversation, Message

        required_tables = {
            "conversations": Conversation.__table__,
            "messages": Message.__table__,
        }

        for table_name, table in required_tables.items():
            if table_name not in table_names:
                table.create(bind=db.engine)

        if "conversations" in table_names:
            conversation_columns = _get_column_names("conversations")
            if "updated_at" not in conversation_columns:
                with db.engine.begin() as connection:
                    connection.execute(
                        text("ALTER TABLE conversations ADD COLUMN updated_at DATETIME")
                    )
                    connection.execute(
                        text("UPDATE conversations SET updated_at = created_at")
                    )
    except SQLAlchemyError:
        # A partially configured schema must not let the application start.
        raise
