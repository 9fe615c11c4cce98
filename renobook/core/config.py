from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = True
    # Create tables on startup instead of running Alembic (local SQLite only)
    auto_create_tables: bool = False

    # JWT (admin back office)
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # Single administrator account; password stored as a bcrypt hash
    admin_email: str = ""
    admin_password_hash: str = ""

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling policy
    timezone: str = "Europe/Brussels"
    booking_horizon_months: int = 3
    canonical_time_slots: str = "09:00,10:00,11:00,12:00,13:00,14:00,15:00,16:00,17:00,18:00"
    booking_reference_prefix: str = "AFS"

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "Renovatie Afspraken"
    notify_admin_on_booking: bool = True
    admin_notification_email: str = ""
    # Branding and contact in footer
    site_name: str = "Renovatie Afspraken"
    contact_email: str = "info@example.be"
    contact_phone: str = "+32 9 000 00 00"
    contact_address: str = "Gent, Belgium"
    appointment_duration_minutes: int = 60

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def time_slots_list(self) -> list[str]:
        return [t.strip() for t in self.canonical_time_slots.split(",") if t.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)

    @property
    def admin_recipient(self) -> str:
        return self.admin_notification_email or self.from_email or self.contact_email


settings = Settings()
