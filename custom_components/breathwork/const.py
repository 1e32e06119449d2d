# File: const.py
"""Constants for the Breathwork integration.

This file centralizes configuration keys, defaults, record field names, track
definitions, signal suffixes and service names for consistency across the
integration.
"""

from datetime import timedelta
import logging

import homeassistant.util.dt as dt_util
from homeassistant.const import Platform

from .utils import dt_utils


def set_default_timezone(hass):
    """Set the default timezone based on the Home Assistant configuration."""
    global DEFAULT_TIME_ZONE
    DEFAULT_TIME_ZONE = dt_util.get_time_zone(hass.config.time_zone)
    if DEFAULT_TIME_ZONE is not None:
        dt_utils.set_default_timezone(DEFAULT_TIME_ZONE)


# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
BREATHWORK_TITLE = "Breathwork"

DOMAIN = "breathwork"

LOGGER = logging.getLogger(__package__)

PLATFORMS = [
    Platform.SENSOR,
]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
STORAGE_KEY = "breathwork"
STORAGE_VERSION = 1
STORAGE_SAVE_DELAY = 1  # seconds

# Default timezone: initially None, to be set once hass is available.
DEFAULT_TIME_ZONE = None

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_USER_ID = "user_id"
CONF_REMOTE_URL = "remote_url"
CONF_API_TOKEN = "api_token"
CONF_PREMIUM_TIER = "premium_tier"
CONF_UPDATE_INTERVAL = "update_interval"
CONF_ROLLOVER_CHECK_INTERVAL = "rollover_check_interval"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

# Defaults
DEFAULT_PREMIUM_TIER = False
DEFAULT_UPDATE_INTERVAL = 15  # minutes
DEFAULT_ROLLOVER_CHECK_INTERVAL = 60  # seconds
DEFAULT_REMOTE_TIMEOUT = 10  # seconds
DEFAULT_ZERO = 0

# Retry policy defaults (remote store I/O)
DEFAULT_RETRY_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_RETRY_MAX_DELAY = 30.0  # seconds
DEFAULT_RETRY_JITTER = 0.5  # seconds

# ------------------------------------------------------------------------------------------------
# Tracks
# ------------------------------------------------------------------------------------------------
TRACK_STANDARD = "standard"
TRACK_EXTENDED = "extended"
TRACK_KINDS = [TRACK_STANDARD, TRACK_EXTENDED]

TRACK_LENGTHS = {
    TRACK_STANDARD: 5,
    TRACK_EXTENDED: 21,
}

SESSION_MORNING = "morning"
SESSION_EVENING = "evening"
EXTENDED_SESSIONS = [SESSION_MORNING, SESSION_EVENING]
SESSION_KEY_SEPARATOR = "-"

FIRST_DAY = 1

# ------------------------------------------------------------------------------------------------
# Record Kinds (remote documents / local cache entries)
# ------------------------------------------------------------------------------------------------
RECORD_PROGRAM = "program"
RECORD_STATS = "stats"
RECORD_RESET_QUOTA = "reset_quota"
RECORD_KINDS = [RECORD_PROGRAM, RECORD_STATS, RECORD_RESET_QUOTA]

# Local-only cache entry holding completions waiting for a remote write
CACHE_PENDING_COMPLETIONS = "pending_completions"

# ------------------------------------------------------------------------------------------------
# Program Record Fields
# ------------------------------------------------------------------------------------------------
DATA_PROGRAM_TRACK_KIND = "track_kind"
DATA_PROGRAM_CURRENT_DAY = "current_day"
DATA_PROGRAM_COMPLETED_DAYS = "completed_days"
DATA_PROGRAM_START_DATE = "start_date"
DATA_PROGRAM_LAST_UPDATED = "last_updated"
DATA_PROGRAM_IS_ACTIVE = "is_active"
DATA_PROGRAM_DAYS = "days"

# Opaque Day content fields read by the projection
DATA_DAY_NUMBER = "day"
DATA_DAY_SESSION = "session"
DATA_DAY_LOCKED = "locked"
DATA_DAY_COMPLETED = "completed"

# ------------------------------------------------------------------------------------------------
# Stats Record Fields
# ------------------------------------------------------------------------------------------------
DATA_STATS_TOTAL_SESSIONS = "total_sessions"
DATA_STATS_TOTAL_MINUTES = "total_minutes"
DATA_STATS_CURRENT_STREAK = "current_streak"
DATA_STATS_LONGEST_STREAK = "longest_streak"
DATA_STATS_LAST_SESSION_DATE = "last_session_date"
DATA_STATS_LAST_SESSION_TECHNIQUE = "last_session_technique"
DATA_STATS_TECHNIQUE_COUNTS = "technique_counts"
DATA_STATS_FAVORITE_TECHNIQUES = "favorite_techniques"

# ------------------------------------------------------------------------------------------------
# Reset Quota Record Fields
# ------------------------------------------------------------------------------------------------
DATA_QUOTA_RESET_COUNT = "reset_count"
DATA_QUOTA_MONTH_KEY = "month_key"

MAX_MONTHLY_RESETS = 3
UNLIMITED_RESETS = -1

# ------------------------------------------------------------------------------------------------
# Pending Completion Fields
# ------------------------------------------------------------------------------------------------
DATA_PENDING_KEY = "key"
DATA_PENDING_TECHNIQUE = "technique"
DATA_PENDING_DURATION = "duration_minutes"
DATA_PENDING_COMPLETED_AT = "completed_at"

# ------------------------------------------------------------------------------------------------
# Sync
# ------------------------------------------------------------------------------------------------
TRIGGER_REFRESH = "refresh"
TRIGGER_FOCUS = "focus"
TRIGGER_ROLLOVER = "rollover"
TRIGGER_RETRY = "retry"

SOURCE_REMOTE = "remote"
SOURCE_CACHE = "cache"

ERROR_TYPE_NETWORK = "network"
ERROR_TYPE_TIMEOUT = "timeout"
ERROR_TYPE_SERVER = "server"
ERROR_TYPE_MALFORMED = "malformed"

# HTTP statuses the remote store uses for "temporarily unreachable"
REMOTE_UNAVAILABLE_STATUSES = (502, 503, 504)

ROLLOVER_CHECK_INTERVAL = timedelta(seconds=DEFAULT_ROLLOVER_CHECK_INTERVAL)

# ------------------------------------------------------------------------------------------------
# Dispatcher Signals (instance-scoped via get_event_signal)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_MIDNIGHT_ROLLOVER = "midnight_rollover"
SIGNAL_SUFFIX_PROGRAM_UPDATED = "program_updated"
SIGNAL_SUFFIX_SESSION_COMPLETED = "session_completed"
SIGNAL_SUFFIX_PROGRAM_RESET = "program_reset"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_COMPLETE_SESSION = "complete_session"
SERVICE_RECORD_PRACTICE = "record_practice"
SERVICE_RESET_PROGRAM = "reset_program"
SERVICE_CREATE_PROGRAM = "create_program"
SERVICE_REFRESH = "refresh"

FIELD_CONFIG_ENTRY_ID = "config_entry_id"
FIELD_DAY = "day"
FIELD_SESSION = "session"
FIELD_TECHNIQUE = "technique"
FIELD_DURATION_MINUTES = "duration_minutes"
FIELD_TRACK_KIND = "track_kind"
FIELD_DAYS = "days"

DEFAULT_TECHNIQUE = "-"

# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------
SENSOR_UID_SUFFIX_PROGRAM_PROGRESS = "_program_progress"
SENSOR_UID_SUFFIX_SESSION_STREAK = "_session_streak"
SENSOR_UID_SUFFIX_RESETS_REMAINING = "_resets_remaining"

TRANS_KEY_SENSOR_PROGRAM_PROGRESS = "program_progress"
TRANS_KEY_SENSOR_SESSION_STREAK = "session_streak"
TRANS_KEY_SENSOR_RESETS_REMAINING = "resets_remaining"

ATTR_TRACK_KIND = "track_kind"
ATTR_TRACK_LENGTH = "track_length"
ATTR_CURRENT_DAY = "current_day"
ATTR_ERROR_TYPE = "error_type"
ATTR_COMPLETED_COUNT = "completed_count"
ATTR_PROGRESS_PERCENT = "progress_percent"
ATTR_DEGRADED = "degraded"
ATTR_SOURCE = "source"
ATTR_LAST_SYNCED = "last_synced"
ATTR_ROLLOVER_PENDING = "rollover_pending"
ATTR_PENDING_COMPLETIONS = "pending_completions"
ATTR_DAYS = "days"
ATTR_LONGEST_STREAK = "longest_streak"
ATTR_TOTAL_SESSIONS = "total_sessions"
ATTR_TOTAL_MINUTES = "total_minutes"
ATTR_FAVORITE_TECHNIQUES = "favorite_techniques"
ATTR_LAST_SESSION_DATE = "last_session_date"
ATTR_UNLIMITED = "unlimited"
ATTR_MONTH_KEY = "month_key"

# ------------------------------------------------------------------------------------------------
# Errors (config flow)
# ------------------------------------------------------------------------------------------------
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_INVALID_AUTH = "invalid_auth"
ERROR_UNKNOWN = "unknown"
ABORT_ALREADY_CONFIGURED = "already_configured"

TO_REDACT = {CONF_API_TOKEN}
