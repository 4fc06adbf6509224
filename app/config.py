import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _default_sqlite_uri() -> str:
    instance_path = BASE_DIR / "instance"
    instance_path.mkdir(exist_ok=True)
    return f"sqlite:///{instance_path / 'artemis.db'}"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: tuple) -> tuple:
    raw = os.environ.get(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


class Config:
    """Base configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", _default_sqlite_uri())
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_TIME_LIMIT = None

    # "sql" stores conversations in the relational database, "memory" keeps
    # them in a per-process repository.
    CONVERSATION_BACKEND = os.environ.get("CONVERSATION_BACKEND", "sql")

    HUGGINGFACE_API_KEY = os.environ.get("HUGGINGFACE_API_KEY", "")
    HUGGINGFACE_MODELS = _env_list(
        "HUGGINGFACE_MODELS",
        ("google/flan-t5-large", "microsoft/DialoGPT-medium", "bigscience/bloom-560m"),
    )
    GROQ_API_KEY = os.environ.get("GROQ_API_KEY", "")
    GROQ_MODEL = os.environ.get("GROQ_MODEL", "llama3-8b-8192")
    TOGETHER_API_KEY = os.environ.get("TOGETHER_API_KEY", "")
    TOGETHER_MODEL = os.environ.get("TOGETHER_MODEL", "meta-llama/Llama-2-7b-chat-hf")
    OLLAMA_ENABLED = _env_flag("OLLAMA_ENABLED", True)
    OLLAMA_URL = os.environ.get("OLLAMA_URL", "http://localhost:11434/api/generate")
    OLLAMA_MODEL = os.environ.get("OLLAMA_MODEL", "llama3.2:3b")
    PROVIDER_TIMEOUT = float(os.environ.get("PROVIDER_TIMEOUT", "10"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    HUGGINGFACE_API_KEY = ""
    GROQ_API_KEY = ""
    TOGETHER_API_KEY = ""
    OLLAMA_ENABLED = False
