import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "rollcall_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOGIN_DOMAIN = "rollcall.local"

LOG_LEVEL = "WARNING"
LOG_FILE = None

BOOTSTRAP_ADMIN_EMAIL = None
BOOTSTRAP_ADMIN_PASSWORD = None
