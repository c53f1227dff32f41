import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = "StayDesk"
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Hotel
    HOTEL_NAME: str = os.getenv("HOTEL_NAME", "SUPER-STAR HIGH RANK HOTEL")
    CURRENCY: str = os.getenv("CURRENCY", "USD").upper()
    # Unknown room ids fail pricing instead of counting as zero
    PRICING_STRICT: bool = os.getenv("PRICING_STRICT", "true").lower() == "true"

    # Admin gate
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "HotelAdmin")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    ADMIN_PASSWORD_HASH: str = os.getenv("ADMIN_PASSWORD_HASH", "")
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "staydesk_admin")
    SESSION_MAX_AGE_HOURS: int = int(os.getenv("SESSION_MAX_AGE_HOURS", "12"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./staydesk.db")

    # Mail Settings (Mailgun)
    MAIL_FROM: str = os.getenv("MAIL_FROM", "noreply@staydesk.local")
    MAILGUN_API_KEY: str = os.getenv("MAILGUN_API_KEY", "")
    MAILGUN_DOMAIN: str = os.getenv("MAILGUN_DOMAIN", "")
    MAILGUN_BASE_URL: str = os.getenv("MAILGUN_BASE_URL", "https://api.mailgun.net/v3")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_AUTH: str = os.getenv("RATE_LIMIT_AUTH", "5/minute")

settings = Settings()
