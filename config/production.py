import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "contracting_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SETUP_CHECK_RETRIES = int(os.getenv("SETUP_CHECK_RETRIES", "3"))
SETUP_CHECK_DELAY_SECONDS = float(os.getenv("SETUP_CHECK_DELAY_SECONDS", "0.5"))
PAYMENT_FANOUT_WORKERS = int(os.getenv("PAYMENT_FANOUT_WORKERS", "8"))
