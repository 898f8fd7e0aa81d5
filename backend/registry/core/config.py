import json
import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Baby Shower Registry API"
    frontend_url: str = "http://localhost:3000"
    environment: str = "local"
    backend_cors_origins_raw: str = ""  # Comma-separated or JSON array

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "allow",
    }

    @property
    def backend_cors_origins(self) -> list[str]:
        """Parse CORS origins from raw string."""
        raw = os.getenv("BACKEND_CORS_ORIGINS", self.backend_cors_origins_raw).strip()
        if not raw:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    return [str(item).strip() for item in parsed if str(item).strip()]
            except ValueError:
                pass
        return [item.strip() for item in raw.split(",") if item.strip()]

    # Database: sqlite+aiosqlite:///./registry.db (dev) | postgresql+asyncpg://... (prod)
    database_dsn: str = "sqlite+aiosqlite:///./registry.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_recycle: int = 1800
    db_pool_timeout: int = 30

    # Guest/admin session tokens
    session_cookie_name: str = "bs_session"
    session_expire_days: int = 7
    # SECURITY: override via SESSION_SECRET_KEY env var outside local
    session_secret_key: str = "CHANGE_ME"
    session_algorithm: str = "HS256"

    # Seed values for the site settings row, hashed on first use
    default_guest_password: str = "babyshower"
    default_admin_password: str = "admin-babyshower"
    default_event_title: str = "Baby Shower"
    default_event_date: str = ""
    default_event_time: str = ""
    default_event_location: str = ""
    default_hero_message: str = "Gracias por acompanarnos en esta celebracion tan especial."
    default_whatsapp_number: str = ""

    # Minimum monetary contribution per currency, in cents
    min_contribution_eur: int = 1000
    min_contribution_cop: int = 50000

    rate_limit_enabled: bool = True
    rate_limit_requests: int = 10
    rate_limit_window_seconds: int = 60
    rate_limit_login_requests: int = 5

    log_level: str = "INFO"
    log_file: str = ""

    @property
    def min_contribution_by_currency(self) -> dict[str, int]:
        return {"EUR": self.min_contribution_eur, "COP": self.min_contribution_cop}

    @property
    def is_local(self) -> bool:
        return (self.environment or "local").lower() == "local"


settings = Settings()
