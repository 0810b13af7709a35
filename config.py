import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        token_secret: str,
        token_max_age_days: int,
        bcrypt_rounds: int,
        strict_categories: bool,
        smtp_host: str,
        smtp_port: int,
        smtp_user: str,
        smtp_password: str,
        smtp_use_ssl: bool,
        report_sender_name: str,
        cors_origins: list[str],
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.token_secret = token_secret
        self.token_max_age_days = token_max_age_days
        self.bcrypt_rounds = bcrypt_rounds
        self.strict_categories = strict_categories
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_ssl = smtp_use_ssl
        self.report_sender_name = report_sender_name
        self.cors_origins = cors_origins
        self.log_level = log_level

    @property
    def token_max_age_secs(self) -> int:
        return self.token_max_age_days * 24 * 3600


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "UTC")
    token_secret = os.getenv(
        "FINANCE_TOKEN_SECRET",
        "5c0f1d9e27a4b8f3c6e1a0d4b7f2e9c3a8d5b1e6f0c4a7d2b9e3f6a1c8d5b0e7",
    )
    token_max_age_days = int(os.getenv("FINANCE_TOKEN_MAX_AGE_DAYS", "7"))
    bcrypt_rounds = int(os.getenv("FINANCE_BCRYPT_ROUNDS", "12"))
    strict_categories = _env_flag("FINANCE_STRICT_CATEGORIES", "false")
    smtp_host = os.getenv("FINANCE_SMTP_HOST", "smtp.gmail.com")
    smtp_port = int(os.getenv("FINANCE_SMTP_PORT", "465"))
    smtp_user = os.getenv("FINANCE_SMTP_USER", "")
    smtp_password = os.getenv("FINANCE_SMTP_PASSWORD", "")
    smtp_use_ssl = _env_flag("FINANCE_SMTP_USE_SSL", "true")
    report_sender_name = os.getenv("FINANCE_REPORT_SENDER_NAME", "Finance Tracker")
    cors_origins = [
        origin.strip()
        for origin in os.getenv("FINANCE_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]
    log_level = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        token_secret=token_secret,
        token_max_age_days=token_max_age_days,
        bcrypt_rounds=bcrypt_rounds,
        strict_categories=strict_categories,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_password=smtp_password,
        smtp_use_ssl=smtp_use_ssl,
        report_sender_name=report_sender_name,
        cors_origins=cors_origins,
        log_level=log_level,
    )
