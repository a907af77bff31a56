# shop_admin/config.py
import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))

INSTANCE_DIR = os.path.join(BASE_DIR, "instance")


def _env(key: str, default=None):
    v = os.getenv(key)
    return v if v not in (None, "", "None") else default


def _env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v in (None, "", "None"):
        return default
    return str(v).strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(key: str, default: int) -> int:
    try:
        return int(_env(key, default))
    except (TypeError, ValueError):
        return default


def _resolve_database_uri() -> str:
    db_url = _env("DATABASE_URL")
    if db_url:
        if db_url.startswith("postgres://"):
            # SQLAlchemy only knows the postgresql:// scheme
            db_url = "postgresql://" + db_url[len("postgres://"):]
        if db_url.startswith("sqlite:///"):
            raw_path = db_url.replace("sqlite:///", "", 1)
            if not os.path.isabs(raw_path):
                raw_path = os.path.join(BASE_DIR, raw_path)
            db_path = os.path.normpath(raw_path)
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
            return "sqlite:///" + db_path.replace("\\", "/")
        return db_url

    host = _env("DB_HOST")
    if host:
        user = _env("DB_USER", "postgres")
        password = _env("DB_PASSWORD", "postgres")
        port = _env("DB_PORT", "5432")
        name = _env("DB_NAME", "zeytin_admin")
        return f"postgresql://{user}:{password}@{host}:{port}/{name}"

    os.makedirs(INSTANCE_DIR, exist_ok=True)
    db_path = os.path.join(INSTANCE_DIR, "database.db")
    return "sqlite:///" + db_path.replace("\\", "/")


def _engine_options() -> dict:
    if _env_bool("DB_SSL", False):
        return {"connect_args": {"sslmode": "require"}}
    return {}


def _csv(key: str, default: str) -> list[str]:
    raw = _env(key, default) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    SECRET_KEY = _env("SECRET_KEY", "dev-please-change-me")

    # access tokens for the admin API and the live socket
    JWT_SECRET = _env("JWT_SECRET", _env("SECRET_KEY", "dev_jwt_secret"))
    JWT_EXPIRES_IN = _env_int("JWT_EXPIRES_IN", 86400)

    SQLALCHEMY_DATABASE_URI = _resolve_database_uri()
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DB_SYNC = _env_bool("DB_SYNC", True)
    SEED_ON_STARTUP = _env_bool("SEED_ON_STARTUP", True)

    JSON_AS_ASCII = False
    JSON_SORT_KEYS = False

    REDIS_URL = _env("REDIS_URL", "redis://localhost:6379")
    ADMIN_EVENTS_CHANNEL = _env("ADMIN_EVENTS_CHANNEL", "admin:events")
    CORS_ORIGINS = _csv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
    SOCKETIO_ASYNC_MODE = _env("SOCKETIO_ASYNC_MODE", "threading")

    SERVICE_NAME = _env("SERVICE_NAME", "zeytin-admin-api")
    ORDER_NUMBER_PREFIX = _env("ORDER_NUMBER_PREFIX", "ZYT")
    DEFAULT_CURRENCY = _env("DEFAULT_CURRENCY", "TRY")

    ADMIN_USERNAME = _env("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = _env("ADMIN_PASSWORD", "admin123")
    REP_USERNAME = _env("REP_USERNAME", "temsilci")
    REP_PASSWORD = _env("REP_PASSWORD", "temsilci123")
    REP_FULL_NAME = _env("REP_FULL_NAME", "Musteri Temsilcisi")

    MAIL_SERVER = _env("MAIL_SERVER", "localhost")
    MAIL_PORT = _env_int("MAIL_PORT", 25)
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", False)
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", False)
    MAIL_USERNAME = _env("MAIL_USERNAME")
    MAIL_PASSWORD = _env("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = _env("MAIL_DEFAULT_SENDER", _env("MAIL_USERNAME"))
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", True)
    ORDER_NOTIFY_EMAIL = _env("ORDER_NOTIFY_EMAIL")
