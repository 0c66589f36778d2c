"""Application configuration and constants."""
import logging
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float_env(name: str, default: float) -> float:
    """Parse float from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'quizzes.db'}"
)

# Token verification (tokens are issued by the identity service)
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"

# Quiz player
TICK_INTERVAL_SECONDS = _parse_float_env("TICK_INTERVAL_SECONDS", 1.0)
DEFAULT_QUESTION_POINTS = _parse_int_env("DEFAULT_QUESTION_POINTS", 10)
MIN_CHOICE_OPTIONS = 2

# Difficulty thresholds (question count)
EASY_MAX_QUESTIONS = 5
MEDIUM_MAX_QUESTIONS = 10

# Server
SERVER_HOST = os.environ.get("SERVER_HOST", "127.0.0.1")
SERVER_PORT = _parse_int_env("SERVER_PORT", 8000)
LOG_LEVEL = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
