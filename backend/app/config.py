from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote


def _csv_env(name: str, default: str) -> list[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


@dataclass
class Settings:
    app_name: str = os.getenv("APP_NAME", "Jobs Out Cuba")
    environment: str = os.getenv("ENV", "production")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./db/jobs.db")
    cors_origins: list[str] = field(
        default_factory=lambda: _csv_env("CORS_ORIGINS", "http://localhost,http://localhost:5173,http://127.0.0.1:8000")
    )
    default_admin_username: str = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    default_admin_password: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin1234")
    auth_secret: str = os.getenv("AUTH_SECRET", "jobs-out-cuba-dev-secret")
    auth_token_ttl_seconds: int = int(os.getenv("AUTH_TOKEN_TTL_SECONDS", str(60 * 60 * 24 * 14)))
    password_hash_iterations: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "210000"))
    telegram_bot_token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    telegram_bot_username: str = os.getenv("TELEGRAM_BOT_USERNAME", "")
    telegram_api_url: str = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
    telegram_polling: bool = os.getenv("TELEGRAM_POLLING", "false").lower() == "true"
    verification_code_ttl_seconds: int = int(os.getenv("VERIFICATION_CODE_TTL_SECONDS", str(10 * 60)))
    broadcast_batch_size: int = int(os.getenv("BROADCAST_BATCH_SIZE", "20"))
    broadcast_batch_delay_seconds: float = float(os.getenv("BROADCAST_BATCH_DELAY_SECONDS", "0.2"))

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token)

    @property
    def telegram_bot_link(self) -> str | None:
        if not self.telegram_bot_username:
            return None
        return f"https://t.me/{self.telegram_bot_username}"

    def ensure_directories(self) -> None:
        self._ensure_sqlite_directory()

    def _ensure_sqlite_directory(self) -> None:
        if not self.database_url.startswith("sqlite:///"):
            return
        raw_path = self.database_url.replace("sqlite:///", "", 1)
        if not raw_path or raw_path == ":memory:":
            return
        db_path = Path(unquote(raw_path))
        if not db_path.is_absolute():
            db_path = Path(".") / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)


settings = Settings()
