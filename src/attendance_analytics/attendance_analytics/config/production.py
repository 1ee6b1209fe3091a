import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_analytics"),
}

DEBUG = False

CHECKIN_EARLY_MINUTES = int(os.getenv("CHECKIN_EARLY_MINUTES", "30"))
CHECKIN_LATE_MINUTES = int(os.getenv("CHECKIN_LATE_MINUTES", "15"))
LEAVE_MIN_NOTICE_HOURS = float(os.getenv("LEAVE_MIN_NOTICE_HOURS", "2"))

REPORT_CACHE_TTL_SECONDS = int(os.getenv("REPORT_CACHE_TTL_SECONDS", "300"))
REPORT_TIMEOUT_SECONDS = float(os.getenv("REPORT_TIMEOUT_SECONDS", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
