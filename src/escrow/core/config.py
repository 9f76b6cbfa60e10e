from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Escrow Settlement Service"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production
    shutdown_grace_period: int = 30  # Seconds to wait for background tasks on shutdown

    # Security
    trusted_proxy_ips: list[str] = []  # List of trusted proxy IPs for X-Forwarded-For
    log_user_emails: bool = False  # Set to False in production for GDPR compliance

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full

    # Auth (tokens are issued by the identity provider, only verified here)
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    # Ledger
    chain_rpc_url: str = "http://127.0.0.1:8545"
    chain_id: int = 31337
    company_wallet_private_key: str | None = None  # Beneficiary of releases
    chain_funder_private_key: str | None = None  # Tops up custodial wallets
    escrow_artifact_path: str | None = None  # Compiled contract JSON (abi + bytecode)
    ledger_confirmation_timeout_seconds: int = 120
    ledger_poll_interval_seconds: float = 1.0
    min_wallet_balance_eth: Decimal = Decimal("0.5")
    wallet_top_up_eth: Decimal = Decimal("2.0")

    # Verification codes
    admin_mfa_code: str | None = None  # Break-glass override, operator-set
    mfa_code_ttl_minutes: int = 10
    verification_code_secret: str

    @field_validator("admin_mfa_code")
    @classmethod
    def strip_admin_mfa_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("verification_code_secret")
    @classmethod
    def validate_verification_code_secret(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("VERIFICATION_CODE_SECRET must be at least 32 characters")
        return v

    # Payments
    payment_mode: str = "FIAT"  # FIAT or CRYPTO

    # Email (Resend API, or SMTP when no API key is set)
    resend_api_key: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    email_from: str = "noreply@example.com"
    email_send_timeout_seconds: int = 10  # Timeout for email API calls

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "escrow-jobs"

    # Schedules (Temporal cron syntax, unset disables the schedule)
    chain_index_schedule: str | None = "*/5 * * * *"
    review_timeout_schedule: str | None = "*/15 * * * *"
    verification_cleanup_schedule: str | None = "0 3 * * *"
    verification_cleanup_retention_days: int = 7

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Redis (optional - app works without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Rate Limiting (fixed window)
    global_rate_limit_per_minute: int = 120  # Max requests/minute per IP
    verification_code_rate_limit: int = 5
    verification_code_rate_window_ms: int = 600_000
    escrow_action_rate_limit: int = 20
    escrow_action_rate_window_ms: int = 60_000
    job_trigger_rate_limit: int = 5
    job_trigger_rate_window_ms: int = 60_000


@lru_cache
def get_settings() -> Settings:
    return Settings()
