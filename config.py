import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _truthy(val):
    if not val:
        return False
    return val.strip().lower() in {"1", "true", "yes", "on", "y"}


class BaseConfig:
    # ---------------------
    # Security & Logging
    # ---------------------
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 1440))  # 24 hours

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "")

    # ---------------------
    # Database
    # ---------------------
    DATABASE_URL = os.getenv(
        "DATABASE_URL", f"sqlite:///{Path.cwd() / 'school.db'}"
    )

    # ---------------------
    # HTTP
    # ---------------------
    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if o.strip()
    ]

    # ---------------------
    # Payments
    # ---------------------
    # Tuition allows several partial payments per period unless this is on
    ENFORCE_UNIQUE_TUITION_PERIOD = _truthy(os.getenv("ENFORCE_UNIQUE_TUITION_PERIOD", "0"))

    # Initial password for the seeded admin / administrator accounts
    SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    DEBUG = False
    TESTING = False


class TestConfig(BaseConfig):
    TESTING = True
    LOG_LEVEL = "WARNING"
    LOG_FILE = ""
    # keep tests isolated
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")
    SECRET_KEY = "test-secret"


_CONFIGS = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}


def get_config():
    """Pick the config class from APP_ENV (development by default)."""
    return _CONFIGS.get(os.getenv("APP_ENV", "development").lower(), DevConfig)


settings = get_config()
