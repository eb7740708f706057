import os
from dataclasses import dataclass

VALID_ENVS = ("development", "staging", "production", "test")

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

# tracing-style names (warn/trace) map onto stdlib levels
_LOG_LEVEL_ALIASES = {
    "trace": "DEBUG",
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    db_pool_size: int
    db_pool_timeout: int
    db_busy_timeout_ms: int

    csrf_enabled: bool
    seed_demo_data: bool
    enable_landing: bool
    metrics_enabled: bool
    cors_allow_origins: tuple[str, ...]


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {raw!r}).") from None


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "1" if default else "0").lower()
    return raw in ("1", "true", "yes", "on")


def _getenv_list(name: str, default: str) -> tuple[str, ...]:
    # set-but-empty means an empty list, not the default
    raw = os.environ.get(name)
    if raw is None:
        raw = default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def parse_origins(origins: tuple[str, ...]) -> tuple[str, ...]:
    for origin in origins:
        if origin != "*" and not origin.startswith(("http://", "https://")):
            raise ConfigError(f"CORS_ALLOW_ORIGINS entries must be http(s) origins or * (got {origin!r}).")
    return tuple(origin.rstrip("/") for origin in origins)


def normalize_log_level(raw: str) -> str:
    level = _LOG_LEVEL_ALIASES.get(raw.strip().lower())
    if not level:
        raise ConfigError(f"LOG_LEVEL must be one of: {', '.join(sorted(_LOG_LEVEL_ALIASES))} (got {raw!r}).")
    return level


def load_settings() -> Settings:
    env = _getenv("ENV", "development").lower()
    if env == "prod":
        env = "production"
    if env not in VALID_ENVS:
        raise ConfigError(f"ENV must be one of: {', '.join(VALID_ENVS)} (got {env!r}).")

    s = Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=env,
        database_url=_getenv("DATABASE_URL", "sqlite:///app.db"),
        log_level=normalize_log_level(_getenv("LOG_LEVEL", "info")),
        db_pool_size=_getenv_int("DB_POOL_SIZE", 5),
        db_pool_timeout=_getenv_int("DB_POOL_TIMEOUT", 8),
        db_busy_timeout_ms=_getenv_int("DB_BUSY_TIMEOUT_MS", 10000),
        csrf_enabled=_getenv_bool("CSRF_ENABLED", True),
        seed_demo_data=_getenv_bool("SEED_DEMO_DATA", True),
        enable_landing=_getenv_bool("ENABLE_LANDING", True),
        metrics_enabled=_getenv_bool("METRICS_ENABLED", True),
        cors_allow_origins=parse_origins(_getenv_list("CORS_ALLOW_ORIGINS", DEFAULT_CORS_ORIGINS)),
    )
    if s.db_pool_size < 1:
        raise ConfigError("DB_POOL_SIZE must be at least 1.")
    if s.db_pool_timeout < 0 or s.db_busy_timeout_ms < 0:
        raise ConfigError("DB_POOL_TIMEOUT and DB_BUSY_TIMEOUT_MS must not be negative.")
    return s


def load_config() -> dict:
    s = load_settings()
    is_production = s.env == "production"
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "DB_POOL_SIZE": s.db_pool_size,
        "DB_POOL_TIMEOUT": s.db_pool_timeout,
        "DB_BUSY_TIMEOUT_MS": s.db_busy_timeout_ms,
        "CSRF_ENABLED": s.csrf_enabled,
        "SEED_DEMO_DATA": s.seed_demo_data,
        "ENABLE_LANDING": s.enable_landing,
        "METRICS_ENABLED": s.metrics_enabled,
        "CORS_ALLOW_ORIGINS": list(s.cors_allow_origins),
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # form posts here are tiny; anything bigger is a mistake
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
