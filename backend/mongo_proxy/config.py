import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_PORT = 3000
DEFAULT_DATABASE = "Saica"
DEFAULT_HEALTH_COLLECTION = "network_tests"
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# backend/.env.local, next to the package
_ENV_LOCAL_PATH = Path(__file__).resolve().parent.parent / ".env.local"


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, read once at startup and never mutated.
    """

    mongodb_uri: str
    database: str = DEFAULT_DATABASE
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    cors_origins: tuple = ("*",)
    health_collection: str = DEFAULT_HEALTH_COLLECTION
    server_selection_timeout_ms: Optional[int] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_env_files() -> None:
    if _ENV_LOCAL_PATH.exists():
        load_dotenv(_ENV_LOCAL_PATH)
    load_dotenv()


def _int_env(env, name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _list_env(env, name: str, default: List[str]) -> tuple:
    raw = env.get(name)
    if not raw:
        return tuple(default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _log_level(env) -> str:
    level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {level!r}")
    return level


def load_settings(env=None) -> Settings:
    """Build Settings from environment variables.

    MONGODB_URI is required; a missing or blank value raises ConfigurationError.
    """
    if env is None:
        load_env_files()
        env = os.environ

    uri = (env.get("MONGODB_URI") or "").strip()
    if not uri:
        raise ConfigurationError("MONGODB_URI environment variable is required!")

    return Settings(
        mongodb_uri=uri,
        database=env.get("DATABASE") or DEFAULT_DATABASE,
        port=_int_env(env, "PORT", DEFAULT_PORT),
        host=env.get("HOST") or "0.0.0.0",
        cors_origins=_list_env(env, "CORS_ORIGINS", ["*"]),
        health_collection=env.get("HEALTH_COLLECTION") or DEFAULT_HEALTH_COLLECTION,
        server_selection_timeout_ms=_int_env(env, "MONGODB_SERVER_SELECTION_TIMEOUT_MS", None),
        log_level=_log_level(env),
        log_file=env.get("LOG_FILE") or None,
    )
