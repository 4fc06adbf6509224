from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, jsonify
from dotenv import load_dotenv

from .config import Config
from .extensions import csrf, db, login_manager, migrate
from .db_utils import ensure_database_schema
from .services.conversations import build_conversation_repository
from .services.orchestrator import build_orchestrator


BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder=str(BASE_DIR / "static"),
        static_url_path="/static",
    )
    app.config.from_object(config_class)
    configure_logging(app)

    register_extensions(app)
    register_blueprints(app)

    with app.app_context():
        ensure_database_schema()

    app.extensions["artemis_conversations"] = build_conversation_repository(
        app.config.get("CONVERSATION_BACKEND", "sql")
    )
    app.extensions["artemis_orchestrator"] = build_orchestrator(app.config)

    @app.get("/health")
    def health_check():
        return jsonify({"status": "healthy"})

    return app


def configure_logging(app: Flask) -> None:
    level = logging.DEBUG if app.debug else logging.INFO
    app.logger.setLevel(level)
    logging.getLogger("app.services").setLevel(level)


def register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "info"
    csrf.init_app(app)


def register_blueprints(app: Flask) -> None:
    from .auth import bp as auth_bp
    from .chat import bp as chat_bp
    from .main import bp as main_bp

    csrf.exempt(chat_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(chat_bp, url_prefix="/api")
