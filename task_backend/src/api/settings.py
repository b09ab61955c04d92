from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

SUPPORTED_BACKENDS = {"memory", "sqlite", "firestore"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'sqlite' or 'firestore'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - FIRESTORE_PROJECT_ID: Google Cloud project for the firestore backend (optional)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level name. Default 'INFO'
    """

    persistence_backend: str
    sqlite_db_path: str
    firestore_project_id: Optional[str]
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in SUPPORTED_BACKENDS:
        backend = "memory"

    project_id = os.getenv("FIRESTORE_PROJECT_ID") or None

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/tasks.db").strip(),
        firestore_project_id=project_id.strip() if project_id else None,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
