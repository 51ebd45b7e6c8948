from pydantic import BaseModel

from app.shared.config import config


def _flag(key: str, default: str = "false") -> bool:
    return (config.get(key) or default).strip().lower() == "true"


def _int(key: str, default: int) -> int:
    return int((config.get(key) or "").strip() or default)


class AppEnvironConfig(BaseModel):
    DEBUG: bool = _flag("DEBUG")

    # API server
    API_HOST: str = (config.get("API_HOST") or "0.0.0.0").strip()
    API_PORT: int = _int("API_PORT", 8000)
    API_WORKERS: int = _int("API_WORKERS", 1)
    API_CORS_ORIGINS: list[str] = [
        x.strip() for x in (config.get("API_CORS_ORIGINS") or "*").split(",") if x.strip()
    ]
    SESSION_SECRET: str = (config.get("SESSION_SECRET") or "dev-secret").strip()

    # MongoDB
    MONGO_LABEL: str = "primary"
    MONGO_DATABASE: str = (config.get("MONGO_DATABASE") or "fitstream").strip()

    # Identity tokens
    JWT_SECRET: str = (config.get("JWT_SECRET") or "dev-jwt-secret").strip()
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_DAYS: int = _int("JWT_EXPIRES_DAYS", 7)

    # LiveKit configuration
    LIVEKIT_URL: str | None = (config.get("LIVEKIT_URL") or "").strip() or None
    LIVEKIT_API_KEY: str | None = (config.get("LIVEKIT_API_KEY") or "").strip() or None
    LIVEKIT_API_SECRET: str | None = (config.get("LIVEKIT_API_SECRET") or "").strip() or None

    # Stream credentials and start window
    STREAM_HOST_TOKEN_TTL_HOURS: int = _int("STREAM_HOST_TOKEN_TTL_HOURS", 24)
    STREAM_VIEWER_TOKEN_TTL_HOURS: int = _int("STREAM_VIEWER_TOKEN_TTL_HOURS", 3)
    STREAM_START_BUFFER_MINUTES: int = _int("STREAM_START_BUFFER_MINUTES", 15)

    # Tracing
    LOGFIRE_ENABLE: bool = _flag("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
