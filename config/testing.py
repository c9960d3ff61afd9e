from config.config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = Config.db_config()

DEBUG = False
TESTING = True

# Tests never need a database server.
STORE_BACKEND = "memory"

AUTO_INIT_DB = False
SEED_DEMO_USERS = True

JWT_SECRET = "test-jwt-secret-0123456789abcdef0123"
JWT_EXPIRE_DAYS = 1

FRONTEND_URL = "http://localhost:5173"
CORS_ORIGINS = ["http://localhost:5173"]

LOG_LEVEL = "WARNING"
