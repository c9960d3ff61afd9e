import os

from config.config import Config, _flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = Config.db_config()

DEBUG = False

STORE_BACKEND = Config.STORE_BACKEND

AUTO_INIT_DB = _flag("AUTO_INIT_DB", "0")
SEED_DEMO_USERS = _flag("SEED_DEMO_USERS", "0")

JWT_SECRET = os.getenv("JWT_SECRET", SECRET_KEY)
JWT_EXPIRE_DAYS = Config.JWT_EXPIRE_DAYS

FRONTEND_URL = Config.FRONTEND_URL
CORS_ORIGINS = Config.CORS_ORIGINS

LOG_LEVEL = Config.LOG_LEVEL
