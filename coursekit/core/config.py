from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
SecretStoreBackend = Literal["aws", "env"]

_TRUTHY = ("1", "true", "yes", "on")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    redis_url: str | None
    # Media delivery. Validated by CredentialIssuer, not here, so a dev
    # instance can start without a CDN.
    cdn_domain: str | None = None
    key_pair_id: str | None = None
    private_key_secret_name: str | None = None
    video_url_expiry_minutes: int = 30
    secret_store: SecretStoreBackend = "aws"
    aws_region: str = "us-east-1"
    secret_store_timeout_seconds: float = 5.0
    store_timeout_seconds: float = 2.0
    # Bearer tokens.  No public key means an ephemeral dev key (token_service).
    jwt_public_key: str | None = None
    jwt_issuer: str = "coursekit"
    jwt_audience: str = "coursekit-api"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def media_configured(self) -> bool:
        return bool(self.cdn_domain and self.key_pair_id and self.private_key_secret_name)


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")
    secret_store_raw = _getenv("SECRET_STORE", "aws").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if secret_store_raw not in ("aws", "env"):
        raise ValueError(f"SECRET_STORE must be aws|env (got {secret_store_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in _TRUTHY,
        port=port,
        redis_url=_getenv("REDIS_URL", "") or None,
        cdn_domain=_getenv("CLOUDFRONT_DOMAIN", "") or None,
        key_pair_id=_getenv("CLOUDFRONT_KEY_PAIR_ID", "") or None,
        private_key_secret_name=_getenv("CLOUDFRONT_PRIVATE_KEY_SECRET_NAME", "")
        or None,
        video_url_expiry_minutes=_positive_int(
            "VIDEO_URL_EXPIRY_MINUTES", _getenv("VIDEO_URL_EXPIRY_MINUTES", "30")
        ),
        secret_store=secret_store_raw,
        aws_region=_getenv("AWS_REGION", "us-east-1"),
        secret_store_timeout_seconds=_positive_float(
            "SECRET_STORE_TIMEOUT_SECONDS", _getenv("SECRET_STORE_TIMEOUT_SECONDS", "5")
        ),
        store_timeout_seconds=_positive_float(
            "STORE_TIMEOUT_SECONDS", _getenv("STORE_TIMEOUT_SECONDS", "2")
        ),
        jwt_public_key=_getenv("JWT_PUBLIC_KEY", "") or None,
        jwt_issuer=_getenv("JWT_ISSUER", "coursekit"),
        jwt_audience=_getenv("JWT_AUDIENCE", "coursekit-api"),
    )


# Read once at import; tests build their own with dataclasses.replace().
SETTINGS = load_settings()
