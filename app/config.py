import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# "development" adds debug details to error responses
ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

DATABASE_URL = os.getenv("DATABASE_URL") or os.getenv("NEON_DATABASE_URL")
if not DATABASE_URL:
    import warnings

    warnings.warn(
        "DATABASE_URL not set! Falling back to local SQLite database", RuntimeWarning, stacklevel=2
    )
    DATABASE_URL = "sqlite:///./fayeed_auto_care.db"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Session tokens issued at login
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8080")

# CORS: comma-separated list of allowed origins
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:5173").split(",")
    if origin.strip()
]

# Redis (rate limiting + caching). Disable both for local dev without Redis.
REDIS_ENABLED = os.getenv("REDIS_ENABLED", "true").lower() == "true"
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Cache TTLs (seconds)
BRANCHES_CACHE_TTL_SECONDS = int(os.getenv("BRANCHES_CACHE_TTL_SECONDS", "60"))
XENDIT_METHODS_CACHE_TTL_SECONDS = int(os.getenv("XENDIT_METHODS_CACHE_TTL_SECONDS", "300"))

# Bookings
SLOT_CAPACITY = int(os.getenv("SLOT_CAPACITY", "2"))  # Concurrent bookings per slot per branch
GARAGE_TIMEZONE = os.getenv("GARAGE_TIMEZONE", "Asia/Manila")
GARAGE_OPEN_HOUR = int(os.getenv("GARAGE_OPEN_HOUR", "8"))
GARAGE_CLOSE_HOUR = int(os.getenv("GARAGE_CLOSE_HOUR", "20"))

# Seed branches, packages, levels and POS categories on startup
SEED_DEFAULTS = os.getenv("SEED_DEFAULTS", "true").lower() == "true"

# Pusher Configuration
PUSHER_APP_ID = os.getenv("PUSHER_APP_ID")
PUSHER_KEY = os.getenv("PUSHER_KEY")
PUSHER_SECRET = os.getenv("PUSHER_SECRET")
PUSHER_CLUSTER = os.getenv("PUSHER_CLUSTER", "mt1")

# Xendit Configuration
XENDIT_SECRET_KEY = os.getenv("XENDIT_SECRET_KEY")
XENDIT_API_URL = os.getenv("XENDIT_API_URL", "https://api.xendit.co/v2")

# Firebase Configuration (push notifications)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_CREDENTIALS_FILE = os.getenv("FIREBASE_CREDENTIALS_FILE")

# SMTP Configuration
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Fayeed Auto Care <noreply@fayeedautocare.com>")
