import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "office_hours"),
}

# "mysql" or "memory" (in-process, data lost on restart)
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the default roster on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Close sessions left open overnight when the app boots
SWEEP_ON_START = bool(int(os.getenv("SWEEP_ON_START", "1")))

DASHBOARD_TICK_SECONDS = float(os.getenv("DASHBOARD_TICK_SECONDS", "1"))
RESET_BATCH_SIZE = int(os.getenv("RESET_BATCH_SIZE", "450"))
