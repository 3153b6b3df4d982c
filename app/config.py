"""
Centralized configuration for all environments.

Select a config by setting:
  APP_CONFIG=app.config.DevConfig      # local dev
  APP_CONFIG=app.config.ProdConfig     # production (default if unset)
  APP_CONFIG=app.config.TestConfig     # pytest

Notes:
- SECRET_KEY is read from FLASK_SECRET_KEY
- Rate limiting uses Flask-Limiter v3 keys (RATELIMIT_*).
- CONTENT_STORE=memory runs without Supabase (data lives in process memory).
"""

from __future__ import annotations
import os
from datetime import timedelta

class BaseConfig:
    # Secrets & basics
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "")
    DEBUG = False
    TESTING = False

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = True  # Only send cookies over HTTPS (overridden in dev)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Supabase (Database + Auth)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Devotions
    CONTENT_STORE = os.getenv("CONTENT_STORE", "supabase")  # supabase | memory
    DEVOTIONS_TABLE = os.getenv("DEVOTIONS_TABLE", "devotions")
    DEVOTIONS_PAGE_SIZE = int(os.getenv("DEVOTIONS_PAGE_SIZE", "9"))

    # Mounted view state (server-side list caches)
    VIEW_STATE_TTL_SECONDS = int(os.getenv("VIEW_STATE_TTL_SECONDS", "1800"))
    MAX_VIEWS_PER_VIEWER = int(os.getenv("MAX_VIEWS_PER_VIEWER", "8"))
    MAX_MOUNTED_VIEWS = int(os.getenv("MAX_MOUNTED_VIEWS", "2000"))

    # Flask-Limiter v3
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "120 per minute; 5000 per day")
    LOGIN_RATE_LIMIT = "5 per minute; 20 per hour"
    SCROLL_RATE_LIMIT = "60 per minute"

    # Misc
    PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "https")
    SEND_FILE_MAX_AGE_DEFAULT = int(os.getenv("SEND_FILE_MAX_AGE_DEFAULT", "3600"))

class ProdConfig(BaseConfig):
    """Production settings (selected by default if APP_CONFIG is unset)."""
    pass

class DevConfig(BaseConfig):
    """Developer-friendly settings."""
    ENV = "development"
    DEBUG = True
    TEMPLATES_AUTO_RELOAD = True
    SEND_FILE_MAX_AGE_DEFAULT = 0
    PREFERRED_URL_SCHEME = "http"
    SESSION_COOKIE_SECURE = False
    LOGIN_RATE_LIMIT = "100 per minute"

class TestConfig(BaseConfig):
    """CI/pytest settings."""
    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    CONTENT_STORE = "memory"
    DEVOTIONS_PAGE_SIZE = 9
    RATELIMIT_ENABLED = False
    WTF_CSRF_ENABLED = False
    SESSION_COOKIE_SECURE = False
    TEMPLATES_AUTO_RELOAD = True
    SEND_FILE_MAX_AGE_DEFAULT = 0
