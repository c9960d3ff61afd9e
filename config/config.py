import os


def _flag(name: str, default: str) -> bool:
    return bool(int(os.environ.get(name, default)))


def _origins(value: str) -> list[str]:
    return [o.strip() for o in value.split(",") if o.strip()]


class Config:
    """Settings shared by every environment; each value can be overridden via env vars."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "hrms-dev-secret-change-me-0123456789abcdef"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "hrms_db")

    # "mysql" or "memory"
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "mysql").lower()

    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_EXPIRE_DAYS = int(os.environ.get("JWT_EXPIRE_DAYS", "7"))

    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")
    CORS_ORIGINS = _origins(os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
