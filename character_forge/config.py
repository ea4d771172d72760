import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _default_sqlite_uri() -> str:
    instance_path = BASE_DIR / "instance"
    instance_path.mkdir(exist_ok=True)
    return f"sqlite:///{instance_path / 'character_forge.db'}"


class Config:
    """Base configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", _default_sqlite_uri())
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_TIME_LIMIT = None

    # Character JSON bodies and uploads can be large.
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024

    OPENROUTER_BASE_URL = os.environ.get("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    APP_URL = os.environ.get("APP_URL", "http://localhost:4000")
    APP_TITLE = os.environ.get("APP_TITLE", "Eliza Character Generator")
    GENERATION_PARAMETERS = {
        "temperature": 0.7,
        "top_p": 0.95,
        "presence_penalty": 0.0,
        "frequency_penalty": 0.0,
    }

    KNOWLEDGE_TEXT_EXTENSIONS = (".txt", ".md", ".json", ".yml", ".csv")
    DEFAULT_BACKUP_NAME = "Autosave"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
