"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import LeaveType

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
DEFAULT_ATTENDANCE_PAGE_LIMIT = 20
DEFAULT_NOTIFICATION_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

MIN_PASSWORD_LENGTH = 6
DEFAULT_SESSION_DAYS = 7
EMAIL_VERIFICATION_HOURS = 24
PASSWORD_RESET_MINUTES = 10

HALF_DAY_THRESHOLD_HOURS = 4

PROVIDENT_FUND_RATE = 0.12
TAX_RATE = 0.10

# Yearly allotment in days per leave type.
LEAVE_ALLOTMENTS = {
    LeaveType.PAID: 20,
    LeaveType.SICK: 10,
    LeaveType.CASUAL: 12,
    LeaveType.ANNUAL: 15,
}

LEAVE_TREND_MONTHS = 12
