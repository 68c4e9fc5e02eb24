from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Fakturace"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_URL: str = "http://localhost:8000"
    APP_DATABASE_DSN: str = "sqlite:////tmp/fakturace.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Sessions
    SESSION_SECRET: str = "change-me-session-secret"
    SESSION_COOKIE_NAME: str = "session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_DURATION_DAYS: int = 7
    ADMIN_EMAILS: str = ""  # comma separated, promoted to admin at registration

    # Token lifetimes
    EMAIL_VERIFICATION_TTL_HOURS: int = 1
    PASSWORD_RESET_TTL_HOURS: int = 1

    # SMTP (email sending is a no-op when SMTP_HOST is empty)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "info@example.com"
    SMTP_FROM_NAME: str = "Fakturace"

    # ARES company registry
    ARES_BASE_URL: str = "https://ares.gov.cz/ekonomicke-subjekty-v-be/rest"
    ARES_TIMEOUT_SECONDS: float = 10.0

    # Rate limiting
    RATE_LIMIT_REGISTER_PER_HOUR: int = 5
    RATE_LIMIT_LOGIN_PER_MINUTE: int = 10
    RATE_LIMIT_PASSWORD_RESET_PER_HOUR: int = 5

    # Plans and invoicing
    FREE_PLAN_NAME: str = "Free"
    FREE_PLAN_INVOICE_LIMIT: int = 4
    DEFAULT_CURRENCY: str = "CZK"

    # Operator bank account used for subscription payment instructions
    BILLING_BANK_ACCOUNT: str = "2900000000/2010"
    BILLING_BENEFICIARY_NAME: str = "Fakturace s.r.o."

    @property
    def admin_emails(self) -> set[str]:
        return {e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()}


settings = Settings()
