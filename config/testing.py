import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "office_hours_test"),
}

STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = False
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "1")))
SWEEP_ON_START = False

DASHBOARD_TICK_SECONDS = 0.01
RESET_BATCH_SIZE = 2
