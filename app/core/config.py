import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

class Settings:
    ENV: str = os.getenv("ENV", "local")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    EMAIL_BACKEND: str = os.getenv("EMAIL_BACKEND", "console")
    WHATSAPP_BACKEND: str = os.getenv("WHATSAPP_BACKEND", "console")

    # Database
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"
    DATABASE_POOL_SIZE: int = int(os.getenv("DATABASE_POOL_SIZE", 20))
    DATABASE_MAX_OVERFLOW: int = int(os.getenv("DATABASE_MAX_OVERFLOW", 10))

    # API tokens (channel adapters / admin UI)
    VOICE_AGENT_API_TOKEN: Optional[str] = os.getenv("VOICE_AGENT_API_TOKEN")
    ADMIN_API_TOKEN: Optional[str] = os.getenv("ADMIN_API_TOKEN")

    # App identity / email
    APP_NAME: str = os.getenv("APP_NAME", "Dental Clinic")
    SENDER_NAME: str = os.getenv("SENDER_NAME", "Dental Clinic Team")

    SMTP_HOST: Optional[str] = os.getenv("SMTP_HOST")
    SMTP_PORT: Optional[int] = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER: Optional[str] = os.getenv("SMTP_USER")
    SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")

    # WhatsApp (Twilio)
    TWILIO_ACCOUNT_SID: Optional[str] = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: Optional[str] = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_WHATSAPP_FROM: Optional[str] = os.getenv("TWILIO_WHATSAPP_FROM")

    # CORS
    BACKEND_CORS_ORIGINS: Optional[str] = os.getenv("BACKEND_CORS_ORIGINS")

    # Redis / Celery
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CELERY_BROKER_URL: str = os.getenv("CELERY_BROKER_URL", REDIS_URL)
    CELERY_RESULT_BACKEND: str = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)

    # Scheduling policy
    DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "Europe/Amsterdam")
    SLOT_STEP_MINUTES: int = int(os.getenv("SLOT_STEP_MINUTES", 30))
    ALTERNATIVE_SEARCH_DAYS: int = int(os.getenv("ALTERNATIVE_SEARCH_DAYS", 2))
    ALTERNATIVE_SLOT_LIMIT: int = int(os.getenv("ALTERNATIVE_SLOT_LIMIT", 3))
    EMERGENCY_SEARCH_DAYS: int = int(os.getenv("EMERGENCY_SEARCH_DAYS", 7))

    # Self-service authorization compares only the trailing digits of the phone.
    PHONE_MATCH_DIGITS: int = int(os.getenv("PHONE_MATCH_DIGITS", 6))

    REFERENCE_NUMBER_PREFIX: str = os.getenv("REFERENCE_NUMBER_PREFIX", "DC")
    REFERENCE_NUMBER_LENGTH: int = int(os.getenv("REFERENCE_NUMBER_LENGTH", 6))

    # Reminders
    REMINDER_DISPATCH_INTERVAL_SECONDS: int = int(os.getenv("REMINDER_DISPATCH_INTERVAL_SECONDS", 300))

    # Channel sessions
    SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", 1800))



settings = Settings()
