import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as slotbook.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "slotbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Base for the approve/deny links mailed to admins (falls back to the request host)
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")

    # bcrypt hash of the admin API key (generate with: flask hash-admin-key <key>)
    ADMIN_API_KEY_HASH = os.getenv("ADMIN_API_KEY_HASH")

    # Booking pages
    BOOKING_MAX_DAYS = int(os.getenv("BOOKING_MAX_DAYS", "30"))   # days per availability page
    CONFIRMATION_TOKEN_BYTES = int(os.getenv("CONFIRMATION_TOKEN_BYTES", "24"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # SMS (Twilio)
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_FROM_SMS = os.getenv("TWILIO_FROM_SMS")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    PUBLIC_BASE_URL = "https://book.example.test"
    SMTP_HOST = None
    TWILIO_ACCOUNT_SID = None
