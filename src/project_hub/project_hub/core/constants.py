"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_SESSION_DAYS = 7

# Working day
WORK_START_TIME = time(9, 0)
LATE_GRACE_MINUTES = 15
WEEKEND_DAYS = (5, 6)  # date.weekday(): Saturday, Sunday

# Attendance hours
DEFAULT_CHECKOUT_HOURS = 8
MAX_HOURS_PER_DAY = 12
MAX_ADJUSTED_HOURS = 24
LATE_PATTERN_COUNT = 3
ANALYTICS_MAX_WORKING_DAYS = 22
DEFAULT_ANALYTICS_DAYS = 30
RECENT_EXCEPTION_DAYS = 7

# Attendance settings defaults
DEFAULT_WORK_HOURS_PER_DAY = 8
DEFAULT_WORK_DAYS = "1,2,3,4,5"

# Pagination
DEFAULT_PROJECT_PAGE_SIZE = 10
DEFAULT_TASK_PAGE_SIZE = 20
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_TEAM_PAGE_SIZE = 50
DEFAULT_AUDIT_PAGE_SIZE = 20
DEFAULT_USER_LIST_LIMIT = 10
DEFAULT_REPORT_DAYS = 7

# Projects and tasks
PROJECT_TITLE_MIN = 3
PROJECT_TITLE_MAX = 100
TASK_TITLE_MIN = 3
TASK_ORDER_STEP = 1000
DEFAULT_STATUS_COLOR = "#6E56CF"

DEFAULT_PROJECT_STATUSES = (
    {"name": "To Do", "color": "#3498db", "is_default": True, "is_completed_status": False},
    {"name": "In Progress", "color": "#f39c12", "is_default": False, "is_completed_status": False},
    {"name": "Done", "color": "#2ecc71", "is_default": False, "is_completed_status": True},
)

DASHBOARD_RECENT_PROJECTS = 5
DASHBOARD_GROWTH_MONTHS = 6
