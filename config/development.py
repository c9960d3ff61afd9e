from config.config import Config, _flag

SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = Config.db_config()

DEBUG = True

STORE_BACKEND = Config.STORE_BACKEND

# If enabled, the app applies schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = _flag("AUTO_INIT_DB", "1")
SEED_DEMO_USERS = _flag("SEED_DEMO_USERS", "1")

JWT_SECRET = Config.JWT_SECRET
JWT_EXPIRE_DAYS = Config.JWT_EXPIRE_DAYS

FRONTEND_URL = Config.FRONTEND_URL
CORS_ORIGINS = Config.CORS_ORIGINS

LOG_LEVEL = "DEBUG" if Config.LOG_LEVEL == "INFO" else Config.LOG_LEVEL
