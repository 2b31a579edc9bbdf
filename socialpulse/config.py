from dotenv import load_dotenv
load_dotenv()  # Load environment variables from .env file

import os


PROVIDER_PLATFORMS = ("FACEBOOK", "INSTAGRAM", "LINKEDIN", "SNAPCHAT", "TIKTOK", "TWITTER", "YOUTUBE")


def _int_env(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return int(default)


def _provider_settings():
    """<PLATFORM>_CLIENT_ID / _CLIENT_SECRET / _REDIRECT_URI / _SCOPE for every platform."""
    api_base_url = os.getenv("API_BASE_URL", "http://localhost:5000").rstrip("/")
    settings = {}
    for platform in PROVIDER_PLATFORMS:
        settings[f"{platform}_CLIENT_ID"] = os.getenv(f"{platform}_CLIENT_ID")
        settings[f"{platform}_CLIENT_SECRET"] = os.getenv(f"{platform}_CLIENT_SECRET")
        settings[f"{platform}_REDIRECT_URI"] = os.getenv(
            f"{platform}_REDIRECT_URI",
            f"{api_base_url}/api/social-accounts/{platform.lower()}/callback",
        )
        settings[f"{platform}_SCOPE"] = os.getenv(f"{platform}_SCOPE")
    return settings


class Config:
    """Base configuration class."""
    APP_NAME = os.getenv("APP_NAME", "SocialPulse")

    SECRET_KEY = os.getenv("SECRET_KEY", "your_default_secret_key")
    DEBUG = os.getenv("FLASK_DEBUG", "False") == "True"
    TESTING = False

    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME = os.getenv("DB_NAME", "socialpulse")
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = _int_env("REDIS_PORT", 6379)

    # ========================================
    # OAUTH / PKCE
    # ========================================
    PKCE_STORE = os.getenv("PKCE_STORE", "memory")  # 'memory' or 'redis'
    PKCE_TTL_SECONDS = _int_env("PKCE_TTL_SECONDS", 600)
    PKCE_MAX_ENTRIES = _int_env("PKCE_MAX_ENTRIES", 10000)
    PROVIDER_HTTP_TIMEOUT_SECONDS = _int_env("PROVIDER_HTTP_TIMEOUT_SECONDS", 10)

    FRONT_END_BASE_URL = os.getenv("FRONT_END_BASE_URL", "http://localhost:3000")
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")

    # ========================================
    # INSIGHTS (LLM)
    # ========================================
    INSIGHTS_CACHE_TTL_SECONDS = _int_env("INSIGHTS_CACHE_TTL_SECONDS", 3600)
    LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("ANTHROPIC_API_KEY")
    LLM_API_URL = os.getenv("LLM_API_URL", "https://api.anthropic.com/v1/messages")
    LLM_MODEL = os.getenv("LLM_MODEL", "claude-3-5-sonnet-20240620")
    LLM_MAX_TOKENS = _int_env("LLM_MAX_TOKENS", 150)
    LLM_TIMEOUT_SECONDS = _int_env("LLM_TIMEOUT_SECONDS", 30)

    # ========================================
    # BACKGROUND JOBS
    # ========================================
    CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    SYNC_INTERVAL_MINUTES = _int_env("SYNC_INTERVAL_MINUTES", 60)

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


# per-provider OAuth client settings
for _key, _value in _provider_settings().items():
    setattr(Config, _key, _value)


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = os.getenv("TEST_SECRET_KEY", "test-secret-key")
    MONGO_URI = os.getenv("TEST_MONGO_URI", "mongodb://localhost:27017")
    DB_NAME = "socialpulse_test"
    PKCE_STORE = "memory"
    LLM_API_KEY = None


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    PKCE_STORE = os.getenv("PKCE_STORE", "redis")


CONFIGS = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def load_config(app, overrides=None):
    load_dotenv()
    app_mode = (overrides or {}).get("APP_ENV") or os.getenv("APP_ENV", "development")
    app.config.from_object(CONFIGS.get(app_mode, DevelopmentConfig))
    if overrides:
        app.config.update(overrides)
    return app.config
