from dataclasses import dataclass, field
from typing import Optional
import os

from dotenv import load_dotenv

MAIL_PROVIDER_RESEND = "resend"
MAIL_PROVIDER_SMTP = "smtp"

INSECURE_SECRETS = (
    "change-me-in-production",
    "change-me-to-random-string",
    "your-secret-key-here",
)


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup and never mutated."""

    database_url: str
    jwt_secret: str
    mail_provider: str = MAIL_PROVIDER_RESEND
    resend_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    from_email: str = "noreply@wrapper.dev"
    sender_name: str = "Receipt Gateway"
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    cors_origins: tuple[str, ...] = field(default=("*",))
    rate_limit_enabled: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if not self.database_url:
            raise RuntimeError("Missing required setting: DATABASE_URL")
        if not self.jwt_secret or self.jwt_secret in INSECURE_SECRETS:
            raise RuntimeError("JWT_SECRET must be set to a non-default value")
        if self.mail_provider == MAIL_PROVIDER_RESEND:
            if not self.resend_api_key:
                raise RuntimeError("Missing required setting: RESEND_API_KEY")
        elif self.mail_provider == MAIL_PROVIDER_SMTP:
            missing = [
                name
                for name, value in (
                    ("SMTP_HOST", self.smtp_host),
                    ("SMTP_USER", self.smtp_user),
                    ("SMTP_PASSWORD", self.smtp_password),
                )
                if not value
            ]
            if missing:
                raise RuntimeError(f"Missing required settings: {', '.join(missing)}")
        else:
            raise RuntimeError(f"Unknown MAIL_PROVIDER: {self.mail_provider}")


def _get(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


def _get_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {key} must be an integer") from exc


def _get_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Read settings from the environment (and a .env file if present)."""
    load_dotenv()
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=_get("DATABASE_URL"),
        jwt_secret=_get("JWT_SECRET"),
        mail_provider=os.getenv("MAIL_PROVIDER", MAIL_PROVIDER_RESEND).lower(),
        resend_api_key=os.getenv("RESEND_API_KEY"),
        smtp_host=os.getenv("SMTP_HOST"),
        smtp_port=_get_int("SMTP_PORT", 587),
        smtp_user=os.getenv("SMTP_USER"),
        smtp_password=os.getenv("SMTP_PASSWORD"),
        smtp_use_tls=_get_bool("SMTP_USE_TLS", True),
        from_email=os.getenv("FROM_EMAIL", "noreply@wrapper.dev"),
        sender_name=os.getenv("SENDER_NAME", "Receipt Gateway"),
        admin_email=os.getenv("ADMIN_EMAIL"),
        admin_password=os.getenv("ADMIN_PASSWORD"),
        cors_origins=tuple(item.strip() for item in origins.split(",") if item.strip()),
        rate_limit_enabled=_get_bool("RATE_LIMIT_ENABLED", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("LOG_FILE"),
    )
