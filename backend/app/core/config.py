"""
Application settings.

Settings are read from the environment once at start-up (after the project
``.env`` is loaded) and handed to components through ``app.state``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

DEFAULT_JWT_SECRET = "please-set-a-real-secret"


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from e


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the API and its components."""

    environment: str = "development"
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = 30
    bcrypt_rounds: int = 12
    data_dir: Path = Path("/data")
    storage_backend: str = "local"
    firestore_collection: str = "accounts"
    storage_timeout_seconds: float = 5.0
    max_body_bytes: int = 1024 * 1024
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @property
    def users_dir(self) -> Path:
        return self.data_dir / "users"

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ValueError: If a numeric variable cannot be parsed or the storage
                backend is unknown
        """
        env = os.environ if env is None else env

        origins = [o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()]
        backend = env.get("STORAGE_BACKEND", "local").strip().lower()
        if backend not in ("local", "firestore"):
            raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")

        return cls(
            environment=env.get("ENVIRONMENT", "development"),
            jwt_secret=env.get("JWT_SECRET") or DEFAULT_JWT_SECRET,
            token_ttl_days=_get_int(env, "TOKEN_TTL_DAYS", 30),
            bcrypt_rounds=_get_int(env, "BCRYPT_ROUNDS", 12),
            data_dir=Path(env.get("DATA_DIR", "/data")),
            storage_backend=backend,
            firestore_collection=env.get("FIRESTORE_COLLECTION", "accounts"),
            storage_timeout_seconds=_get_float(env, "STORAGE_TIMEOUT_SECONDS", 5.0),
            max_body_bytes=_get_int(env, "MAX_BODY_BYTES", 1024 * 1024),
            cors_origins=origins or ["*"],
            host=env.get("HOST", "0.0.0.0"),
            port=_get_int(env, "PORT", 3000),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
