"""Utility script to configure development environment variables and initialize the database."""
from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path
from typing import Dict

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app import create_app  # noqa: E402
from app.extensions import db  # noqa: E402

DEFAULT_ENV_PATH = REPO_ROOT / ".env"
BACKUP_SUFFIX = ".bak"
SECRET_KEYS = {"SECRET_KEY", "HUGGINGFACE_API_KEY", "GROQ_API_KEY", "TOGETHER_API_KEY"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Create or update a .env file with the Flask settings and AI provider keys "
            "required for local development and initialize the SQLite database."
        )
    )
    parser.add_argument(
        "--flask-app",
        default="wsgi.py",
        help="Entry point used by Flask (default: wsgi.py)",
    )
    parser.add_argument(
        "--secret-key",
        required=False,
        help=(
            "Secret key for Flask sessions. If omitted, the current value in .env is preserved or "
            "fallback defaults are used."
        ),
    )
    parser.add_argument("--huggingface-api-key", help="Hugging Face inference token (optional).")
    parser.add_argument("--groq-api-key", help="Groq API key (optional).")
    parser.add_argument("--together-api-key", help="Together AI API key (optional).")
    parser.add_argument(
        "--ollama-url",
        help="Generate endpoint of a local Ollama daemon (optional).",
    )
    parser.add_argument(
        "--conversation-backend",
        choices=("sql", "memory"),
        help="Where conversations are stored (optional).",
    )
    parser.add_argument(
        "--database-url",
        help="Override SQLALCHEMY_DATABASE_URI / DATABASE_URL (optional).",
    )
    parser.add_argument(
        "--env-path",
        type=Path,
        default=DEFAULT_ENV_PATH,
        help="Path to the .env file that should be created/updated.",
    )
    parser.add_argument(
        "--skip-db",
        action="store_true",
        help="Only update the .env file without touching the database.",
    )
    return parser.parse_args()


def read_env(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    data: Dict[str, str] = {}
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        data[key.strip()] = value.strip()
    return data


def write_env(path: Path, values: Dict[str, str]) -> None:
    if path.exists():
        backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
        shutil.copy(path, backup_path)
        print(f"Existing {path.name} backed up to {backup_path.name}.")
    lines = [f"{key}={value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    print(f"Updated environment variables written to {path}.")


def update_env_file(args: argparse.Namespace) -> Dict[str, str]:
    env_data = read_env(args.env_path)
    env_updates = {"FLASK_APP": args.flask_app}
    optional_updates = {
        "SECRET_KEY": args.secret_key,
        "HUGGINGFACE_API_KEY": args.huggingface_api_key,
        "GROQ_API_KEY": args.groq_api_key,
        "TOGETHER_API_KEY": args.together_api_key,
        "OLLAMA_URL": args.ollama_url,
        "CONVERSATION_BACKEND": args.conversation_backend,
        "DATABASE_URL": args.database_url,
    }
    env_updates.update({key: value for key, value in optional_updates.items() if value})

    env_data.update(env_updates)
    write_env(args.env_path, env_data)
    return env_data


def initialize_database() -> None:
    app = create_app()
    with app.app_context():
        db.create_all()
    print("Database initialized (instance/artemis.db).")


def _display_value(key: str, value: str) -> str:
    if key in SECRET_KEYS and value:
        return value[:4] + "…"
    return value


def main() -> None:
    args = parse_args()
    env_values = update_env_file(args)

    if not args.skip_db:
        initialize_database()
    else:
        print("Database initialization skipped.")

    print("\nSetup complete! Summary:")
    for key in sorted(env_values):
        print(f"  {key}={_display_value(key, env_values[key])}")


if __name__ == "__main__":
    main()
