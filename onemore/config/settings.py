from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Server-side writes; bypasses RLS

    # Invites
    invite_scheme: str = "onemore"
    invite_link_domain: Optional[str] = None  # e.g. links.example.com; falls back to the app scheme

    # Billing
    currency_symbol: str = "€"

    # Live session reconciliation
    event_match_window_seconds: float = 5.0
    participant_match_window_seconds: float = 30.0
    recent_activity_ttl_seconds: float = 2.0
    recent_activity_sweep_seconds: float = 0.5
    participant_reload_delay_seconds: float = 0.1

    # App
    app_name: str = "onemore-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:8081,http://127.0.0.1:3000,http://127.0.0.1:8081"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
