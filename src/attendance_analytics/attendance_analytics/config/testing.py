import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_analytics_test"),
}

DEBUG = False
TESTING = True

CHECKIN_EARLY_MINUTES = 30
CHECKIN_LATE_MINUTES = 15
LEAVE_MIN_NOTICE_HOURS = 2

REPORT_CACHE_TTL_SECONDS = 300
REPORT_TIMEOUT_SECONDS = 5.0

LOG_LEVEL = "WARNING"
LOG_FORMAT = "standard"

AUTO_INIT_DB = False
