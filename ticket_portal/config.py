# ABOUTME: Loads environment variables from .env and system for config.
# ABOUTME: Read once at startup and handed to create_app(); nothing else reads os.environ.

import os
from dotenv import load_dotenv

load_dotenv()  # Loads .env if present (local dev)


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    DEBUG = _env_flag("DEBUG", False)

    # Database (MONGOLAB_URI kept for older deployments)
    MONGODB_URI = os.environ.get("MONGODB_URI") or os.environ.get("MONGOLAB_URI")
    MONGODB_DB = os.environ.get("MONGODB_DB", "ticket_portal")

    # Bind address (OPENSHIFT_* kept for older deployments)
    HOST = os.environ.get("HOST") or os.environ.get("OPENSHIFT_NODEJS_IP") or "0.0.0.0"
    PORT = int(os.environ.get("PORT") or os.environ.get("OPENSHIFT_NODEJS_PORT") or 8080)
    TRUST_PROXY = _env_flag("TRUST_PROXY", True)

    # Sessions live in MongoDB; the cookie only carries the session id
    SECRET_KEY = os.environ.get("SESSION_SECRET")
    SESSION_TYPE = "mongodb"
    SESSION_MONGODB_COLLECT = "sessions"
    SESSION_PERMANENT = True
    SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", 60))
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE", True)

    # CSRF is decided by the request gate, not per view
    WTF_CSRF_CHECK_DEFAULT = False

    # Security headers; the last three are off unless configured
    HSTS_MAX_AGE = 31536000
    HSTS_INCLUDE_SUBDOMAINS = True
    HSTS_PRELOAD = _env_flag("HSTS_PRELOAD", True)
    CONTENT_SECURITY_POLICY = os.environ.get("CONTENT_SECURITY_POLICY")
    REFERRER_POLICY = os.environ.get("REFERRER_POLICY")
    NOSNIFF = _env_flag("NOSNIFF", False)

    # Uploads
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # Tickets and payment gateway
    TICKET_PRICE = int(os.environ.get("TICKET_PRICE", 30000))
    PAYMENT_API_URL = os.environ.get("PAYMENT_API_URL")
    PAYMENT_API_KEY = os.environ.get("PAYMENT_API_KEY")

    # Mail
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", 587))
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    SMTP_USE_TLS = _env_flag("SMTP_USE_TLS", True)
    MAIL_FROM = os.environ.get("MAIL_FROM", "tickets@localhost")
    CONTACT_EMAIL = os.environ.get("CONTACT_EMAIL", "contact@localhost")

    # OAuth sign-in
    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")
    LINKEDIN_CLIENT_ID = os.environ.get("LINKEDIN_CLIENT_ID")
    LINKEDIN_CLIENT_SECRET = os.environ.get("LINKEDIN_CLIENT_SECRET")

    @classmethod
    def validate(cls):
        """Return a list of configuration problems; empty when the app can start."""
        problems = []
        if not cls.MONGODB_URI:
            problems.append("MONGODB_URI is not set.")
        if not cls.SECRET_KEY:
            problems.append("SESSION_SECRET is not set.")
        return problems

# Usage: from ticket_portal.config import Config; create_app(Config)
