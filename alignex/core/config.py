from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal
from uuid import UUID

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getbool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    permission_cache_ttl_seconds: int = 300
    permission_fail_open: bool = True
    # Placeholder identities; real identity comes from the bearer token.
    default_user_email: str = "demo@alignex.com"
    default_org_id: str = "00000000-0000-0000-0000-000000000001"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")
    ttl_raw = _getenv("PERMISSION_CACHE_TTL_SECONDS", "300")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        ttl = int(ttl_raw)
    except ValueError:
        raise ValueError(
            f"PERMISSION_CACHE_TTL_SECONDS must be an integer (got {ttl_raw!r})"
        ) from None
    if ttl <= 0:
        raise ValueError(f"PERMISSION_CACHE_TTL_SECONDS must be positive (got {ttl})")

    default_org_id = _getenv("DEFAULT_ORG_ID", "00000000-0000-0000-0000-000000000001")
    try:
        UUID(default_org_id)
    except ValueError:
        raise ValueError(
            f"DEFAULT_ORG_ID must be a UUID (got {default_org_id!r})"
        ) from None

    default_user_email = _getenv("DEFAULT_USER_EMAIL", "demo@alignex.com").lower()
    if not default_user_email:
        raise ValueError("DEFAULT_USER_EMAIL must be non-empty")

    database_url = _getenv("DATABASE_URL", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getbool("LOG_JSON", False),
        port=port,
        database_url=database_url,
        permission_cache_ttl_seconds=ttl,
        permission_fail_open=_getbool("PERMISSION_FAIL_OPEN", True),
        default_user_email=default_user_email,
        default_org_id=default_org_id,
    )


SETTINGS = load_settings()
