import os
import tempfile
from datetime import timedelta
from dotenv import load_dotenv


load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY", "dev-secret"))
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "fallback-jwt")
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///portal.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_EXPIRE_DAYS", "7")))
    JWT_TOKEN_LOCATION = ["headers"]
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5500,http://127.0.0.1:5500,http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL", "memory://")

    # "redis" publishes to pub/sub channels, "memory" keeps events in-process, "none" drops them
    EVENT_SINK = os.getenv("EVENT_SINK", "redis" if os.getenv("REDIS_URL") else "memory")
    EVENT_CHANNEL_PREFIX = os.getenv("EVENT_CHANNEL_PREFIX", "portal")

    LOW_ATTENDANCE_WINDOW_DAYS = int(os.getenv("LOW_ATTENDANCE_WINDOW_DAYS", "30"))
    AUDIT_LOG_FILE = os.getenv("AUDIT_LOG_FILE", os.path.join("logs", "audit.log"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    EVENT_SINK = "memory"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    AUDIT_LOG_FILE = os.path.join(tempfile.gettempdir(), "portal-audit-test.log")
