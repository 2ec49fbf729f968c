"""
Constants for the Dashboard Tabs application.

This module defines all system-wide constants including:
- Application metadata
- Tab, group and input limits
- Tab input types and defaults
- Error message templates
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Dashboard Tabs"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "dashboard_tabs.db"
EXPORT_FORMAT_VERSION = "1.0"

# ============================================================================
# API Defaults
# ============================================================================

DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8050
DEFAULT_LOG_LEVEL = "INFO"

# ============================================================================
# Tabs and Groups
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_SLUG_LENGTH = 120
MAX_ICON_LENGTH = 100
MAX_LINK_LENGTH = 2000

# Suffix appended to a duplicated tab's name when no name is supplied
DUPLICATE_NAME_SUFFIX = " (Copy)"

# Prefix for generated identifiers
GROUP_ID_PREFIX = "group"
TAB_INPUT_ID_PREFIX = "tab_input"

# ============================================================================
# Tab Inputs
# ============================================================================

TAB_INPUT_TYPES: List[str] = [
    "text",
    "number",
    "date",
]

DEFAULT_INPUT_TYPE = "text"
DEFAULT_INPUT_LABEL = "New variable"
DEFAULT_INPUT_KEY = "input"
MAX_INPUT_KEY_LENGTH = 50
MAX_LABEL_LENGTH = 200

# Fields a caller may change through update_input()
UPDATABLE_INPUT_FIELDS: List[str] = [
    "key",
    "label",
    "type",
    "value",
    "default_value",
    "placeholder",
    "description",
    "options",
]

# ============================================================================
# Error Messages
# ============================================================================

ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_DATE = "Must be a date in YYYY-MM-DD format"
ERROR_INVALID_OPTION = "Must be one of the configured options"
ERROR_INVALID_URL = "Must be an http or https URL"
