"""
Application Configuration
=============================================================================
CONCEPT: pydantic-settings (BaseSettings)

Every tunable of the portal lives in one typed class. Values come from
environment variables or a `.env` file and are validated at startup, so a
malformed webhook URL list or a non-numeric timeout fails when the process
boots instead of the first time an approver clicks a button.

WHICH BACKEND DOES THE PORTAL USE?
  The data-access adapter is picked ONCE from these settings
  (see ops_portal/adapters/factory.py):

    store_base_id + store_token set  ->  remote record store (HTTPS API)
    database_url set                 ->  SQL database
    demo_mode = true                 ->  in-memory demo data
    nothing set                      ->  null adapter (empty reads, failing writes)
=============================================================================
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    All portal settings loaded from environment variables / .env file.

    Field `store_token` reads env var `STORE_TOKEN`, list fields such as
    `delegated_login_allowed_domains` accept a JSON array
    (e.g. DELEGATED_LOGIN_ALLOWED_DOMAINS='["acme.com"]').
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Remote record store (spreadsheet-style HTTPS API) ---
    store_api_url: str = "https://api.airtable.com/v0"
    store_base_id: str = ""
    store_token: str = ""
    store_write_enabled: bool = True
    # None = no client-side timeout; deployments impose their own policy
    store_timeout_seconds: float | None = None

    # --- SQL store ---
    database_url: str = ""

    # --- Demo mode (in-memory store seeded with sample data) ---
    demo_mode: bool = False

    # --- Identity ---
    delegated_login_allowed_domains: list[str] = ["creooglobal.com", "creoo.co", "gmail.com"]
    delegated_jwks_url: str = "https://www.googleapis.com/oauth2/v3/certs"
    delegated_client_id: str = ""
    delegated_issuers: list[str] = ["https://accounts.google.com", "accounts.google.com"]
    delegated_algorithms: list[str] = ["RS256"]
    password_min_length: int = 8
    temp_password_length: int = 12

    # --- JWT (session tokens) ---
    jwt_secret_key: str = "change-me-to-a-random-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 12

    # --- Notifications (outbound webhooks, best effort) ---
    notifications_enabled: bool = False
    webhook_tool_request_url: str = ""
    webhook_leave_request_url: str = ""
    webhook_status_update_url: str = ""
    webhook_finance_event_url: str = ""
    webhook_timeout_seconds: float = 10.0
    portal_base_url: str = "http://localhost:5173"

    # --- App ---
    app_name: str = "Ops Portal"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    @property
    def has_store_credentials(self) -> bool:
        return bool(self.store_base_id and self.store_token)


# Singleton instance, loaded once per process
settings = Settings()
