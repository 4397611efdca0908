import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationWarning

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

SERVICE_NAME = "claude-code-setup-wizard"

DEFAULT_EMAIL_TO = "claude-code-enterprise@anthropic.com"
DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent / "static")

# 10 MB
DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() == "true"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        warnings.warn(
            f"{name}={value!r} is not an integer, using {default}",
            ConfigurationWarning,
            stacklevel=2,
        )
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once from the environment at startup."""

    port: int = 3000
    host: str = "0.0.0.0"
    environment: str = "development"
    log_level: str = "INFO"

    # CORS
    allowed_origin: str = "*"

    # Mail transport
    email_service: Optional[str] = None
    email_user: Optional[str] = None
    email_app_password: Optional[str] = None
    resend_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None

    # Addressing
    email_from: Optional[str] = None
    email_to: Optional[str] = None
    sales_email: Optional[str] = None
    send_confirmation: bool = False

    # Request limits
    rate_limit_max: int = 10
    rate_limit_window_seconds: int = 15 * 60
    redis_url: Optional[str] = None
    trust_proxy: bool = False
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    security_headers_enabled: bool = True
    static_dir: str = DEFAULT_STATIC_DIR

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=_env_int("PORT", 3000),
            host=os.getenv("HOST", "0.0.0.0"),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            allowed_origin=os.getenv("ALLOWED_ORIGIN") or "*",
            email_service=(os.getenv("EMAIL_SERVICE") or "").strip().lower() or None,
            email_user=os.getenv("EMAIL_USER"),
            email_app_password=os.getenv("EMAIL_APP_PASSWORD"),
            resend_api_key=os.getenv("RESEND_API_KEY"),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_secure=_env_bool("SMTP_SECURE"),
            smtp_user=os.getenv("SMTP_USER"),
            smtp_pass=os.getenv("SMTP_PASS"),
            email_from=os.getenv("EMAIL_FROM") or None,
            email_to=os.getenv("EMAIL_TO") or None,
            sales_email=os.getenv("SALES_EMAIL") or None,
            send_confirmation=_env_bool("SEND_CONFIRMATION"),
            rate_limit_max=_env_int("RATE_LIMIT_MAX", 10),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            redis_url=os.getenv("REDIS_URL") or None,
            trust_proxy=_env_bool("TRUST_PROXY"),
            max_body_bytes=_env_int("MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
            security_headers_enabled=_env_bool("SECURITY_HEADERS_ENABLED", default=True),
            static_dir=os.getenv("STATIC_DIR") or DEFAULT_STATIC_DIR,
        )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def notification_recipient(self) -> str:
        return self.email_to or DEFAULT_EMAIL_TO

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origin.split(",") if origin.strip()]

    @property
    def transport_configured(self) -> bool:
        if self.email_service == "gmail":
            return bool(self.email_user and self.email_app_password)
        if self.email_service == "resend":
            return bool(self.resend_api_key)
        return bool(self.smtp_host)

    def configuration_warnings(self) -> list[str]:
        """Problems worth flagging at startup; none of them stop the server."""
        problems = []
        if not self.email_to:
            problems.append(
                f"EMAIL_TO not configured. Notifications will go to {DEFAULT_EMAIL_TO}."
            )
        if not self.transport_configured:
            problems.append("Email transport not properly configured. Emails will not be sent.")
        return problems


def get_settings() -> Settings:
    return Settings.from_env()
