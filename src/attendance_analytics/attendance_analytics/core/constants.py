"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

CHECKIN_EARLY_MINUTES = 30
CHECKIN_LATE_MINUTES = 15
REPORT_CACHE_TTL_SECONDS = 300
REPORT_CACHE_MAX_ENTRIES = 1024
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_REPORT_DAYS = 30
LEAVE_MIN_NOTICE_HOURS = 2
LEAVE_MIN_REASON_LENGTH = 10
DEFAULT_PENDING_LIMIT = 200

TOTAL_ROW_LABEL = "Total"
SYSTEM_WIDE_LABEL = "All units"
