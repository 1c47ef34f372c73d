"""
Application configuration.
All settings are loaded from environment variables (or .env).
The Settings object is built once in create_app() and passed to every component.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


LEDGER_BACKENDS = ("supabase", "database")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Missing credentials do not fail startup: verification and issuance
    degrade to their rejection outcomes instead.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # Comma-separated. Empty = allow any origin (no credentials).
    cors_origins: str = ""
    # Directory with the storefront pages (index.html, download.html). Empty = API only.
    static_dir: str = ""

    # ===========================================
    # STRIPE (payment processor)
    # ===========================================
    stripe_secret_key: str = ""
    stripe_api_base: str = "https://api.stripe.com"

    # ===========================================
    # SUPABASE (catalog, ledger, storage)
    # ===========================================
    supabase_url: str = ""
    supabase_service_key: str = ""
    # Public read-only key, exposed via /config for client-side catalog browsing
    supabase_anon_key: str = ""
    supabase_storage_bucket: str = ""

    # ===========================================
    # LEDGER / CATALOG BACKEND
    # ===========================================
    ledger_backend: str = "supabase"  # supabase, database
    database_url: str = ""

    # ===========================================
    # HTTP
    # ===========================================
    http_client_timeout: float = 10.0

    # ===========================================
    # LOGGING
    # ===========================================
    request_id_header: str = "X-Request-Id"
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("supabase_url", "stripe_api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("ledger_backend")
    @classmethod
    def validate_ledger_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in LEDGER_BACKENDS:
            raise ValueError(f"ledger_backend must be one of {', '.join(LEDGER_BACKENDS)}")
        return v

    @property
    def supabase_configured(self) -> bool:
        """Service-level access to Supabase REST and Storage is available."""
        return bool(self.supabase_url and self.supabase_service_key)

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
