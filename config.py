import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to this file as personnel.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "personnel.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens: 24 hours absolute lifetime
    TOKEN_LIFETIME_SECONDS = 24 * 60 * 60

    # bcrypt cost factor
    BCRYPT_ROUNDS = 12

    # Account lockout
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_MINUTES = 30

    # Per-IP login throttle, independent of account state
    LOGIN_RATE_MAX_ATTEMPTS = 5
    LOGIN_RATE_DECAY_SECONDS = 15 * 60

    # Reverse proxies in front of the app that append X-Forwarded-For.
    # 0 means the peer address is the client address.
    PROXY_FIX_X_FOR = int(os.getenv("PROXY_FIX_X_FOR", "0"))

    # Fixed delay on every failed credential check
    LOGIN_FAILURE_DELAY_SECONDS = 1.0

    # Registrant emails must resolve (MX/A lookup)
    EMAIL_CHECK_DELIVERABILITY = os.getenv("EMAIL_CHECK_DELIVERABILITY", "true").lower() == "true"

    # Listing
    REGISTRATION_DEFAULT_PER_PAGE = 10
    REGISTRATION_MAX_PER_PAGE = 100

    # Owner bootstrap (flask seed-owner)
    INITIAL_EMAIL = os.getenv("INITIAL_EMAIL")
    INITIAL_PASSWORD = os.getenv("INITIAL_PASSWORD")

    # CORS for the SPA frontend
    CORS_ALLOWED_ORIGINS = [
        o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()
    ]

    # Basic app settings
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    BCRYPT_ROUNDS = 4
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    EMAIL_CHECK_DELIVERABILITY = False
    INITIAL_EMAIL = None
    INITIAL_PASSWORD = None
