"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 30
DEFAULT_JWT_EXPIRES_DAYS = 7
DEFAULT_HISTORY_DAYS = 30
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_RECENT_ACTIVITY = 10
DEFAULT_JIRA_TIMEOUT_SECONDS = 15

MIN_PASSWORD_LENGTH = 8
MIN_ORGANIZATION_NAME_LENGTH = 2
MAX_DESCRIPTION_LENGTH = 500
MAX_EDIT_REASON_LENGTH = 200

RESET_TOKEN_TTL_HOURS = 1
INVITE_RESET_TOKEN_TTL_HOURS = 24
INVITATION_TTL_DAYS = 7
OAUTH_STATE_TTL_MINUTES = 5
TRIAL_DAYS = 14

OAUTH_PLACEHOLDER_DOMAIN = "oauth.placeholder"

DEFAULT_CHECK_IN_START = "08:00"
DEFAULT_CHECK_IN_END = "10:00"
DEFAULT_CHECK_IN_TIMEZONE = "UTC+3"

WEEKLY_TARGET_HOURS = 40
ONLINE_THRESHOLD_HOURS = 4
