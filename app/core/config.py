from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BUSINESS_NAME: str = "Your Business"
    BUSINESS_TIMEZONE: str = "Europe/Bucharest"

    BOOKING_DAY_START_HOUR: int = 15
    BOOKING_DAY_END_HOUR: int = 20
    BOOKING_SLOT_MINUTES: int = 30
    BOOKING_LOOKAHEAD_MONTHS: int = 2

    BUSY_EVENTS_WEBHOOK_URL: str | None = None
    BOOKING_WEBHOOK_URL: str | None = None
    REFERRAL_WEBHOOK_URL: str | None = None
    AFFILIATE_VISIT_WEBHOOK_URL: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 10.0

    SESSION_STORE: str = "memory"  # "memory" | "json"
    SESSION_DATA_DIR: str = "./data/sessions"

    CONFIRMATION_PATH: str = "/confirmare-contact"
    AFFILIATE_COOKIE_NAME: str = "affiliateCode"
    AFFILIATE_COOKIE_DAYS: int = 30


settings = Settings()
