# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration, read from the environment once at import.
Single source of truth for every tunable parameter of the rotation engine.
"""

import os


def _csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _pairs(raw: str) -> list[tuple[str, str]]:
    """Parse ``key:value,key:value`` into a list of pairs (order preserved)."""
    pairs: list[tuple[str, str]] = []
    for item in _csv(raw):
        key, sep, value = item.partition(":")
        if sep and key.strip() and value.strip():
            pairs.append((key.strip(), value.strip()))
    return pairs


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "chore-rotation-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8005"))

    # Rotation seed, used only when no snapshot exists yet
    ROTATION_MEMBERS: list[tuple[str, str]] = _pairs(
        os.getenv(
            "ROTATION_MEMBERS",
            "eden:Eden Aronov,adele:Adele Aronov,emma:Emma Aronov",
        )
    )
    MEMBER_ALIASES: list[tuple[str, str]] = _pairs(os.getenv("MEMBER_ALIASES", ""))
    BOOTSTRAP_ADMINS: list[str] = _csv(os.getenv("BOOTSTRAP_ADMINS", ""))
    BOOTSTRAP_AUTHORIZED: list[str] = _csv(os.getenv("BOOTSTRAP_AUTHORIZED", ""))

    MAX_AUTHORIZED_USERS: int = int(os.getenv("MAX_AUTHORIZED_USERS", "3"))
    MAX_ADMINS: int = int(os.getenv("MAX_ADMINS", "2"))

    PUNISHMENT_MIN_TURNS: int = int(os.getenv("PUNISHMENT_MIN_TURNS", "1"))
    PUNISHMENT_MAX_TURNS: int = int(os.getenv("PUNISHMENT_MAX_TURNS", "10"))
    PUNISHMENT_REQUIRE_REASON: bool = (
        os.getenv("PUNISHMENT_REQUIRE_REASON", "true").lower() == "true"
    )
    PUNISHMENT_HISTORY_LIMIT: int = int(os.getenv("PUNISHMENT_HISTORY_LIMIT", "10"))
    PUNISHMENT_RETENTION_DAYS: int = int(os.getenv("PUNISHMENT_RETENTION_DAYS", "30"))
    PUNISHMENT_DEFAULT_TURNS: int = int(os.getenv("PUNISHMENT_DEFAULT_TURNS", "3"))

    SNAPSHOT_ENABLED: bool = os.getenv("SNAPSHOT_ENABLED", "true").lower() == "true"
    SNAPSHOT_PATH: str = os.getenv("SNAPSHOT_PATH", "data/state.json")
    SNAPSHOT_INTERVAL_SECONDS: float = float(
        os.getenv("SNAPSHOT_INTERVAL_SECONDS", "300")
    )

    OPERATOR_WEBHOOK_URL: str = os.getenv("OPERATOR_WEBHOOK_URL", "")
    OPERATOR_TIMEOUT: float = float(os.getenv("OPERATOR_TIMEOUT", "3.0"))

    DEFAULT_EVENT_LIMIT: int = int(os.getenv("DEFAULT_EVENT_LIMIT", "100"))
    MAX_EVENT_LOG_SIZE: int = int(os.getenv("MAX_EVENT_LOG_SIZE", "5000"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
