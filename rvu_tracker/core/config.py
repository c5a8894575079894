"""Configuration constants for RVU Tracker."""

import os

# Version
APP_VERSION = "1.4.0"
APP_NAME = "RVU Tracker"

# Logging configuration
LOG_FOLDER = "logs"
LOG_FILE_NAME = os.path.join(LOG_FOLDER, "rvu_tracker.log")
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_CHECK_INTERVAL = 100  # Check log size every N writes
LOG_TRIM_TARGET_RATIO = 0.9  # Keep 90% of max size when trimming

# Folder structure
SETTINGS_FOLDER = "settings"
DATA_FOLDER = "data"
RESOURCES_FOLDER = "resources"

# File names
USER_SETTINGS_FILE_NAME = os.path.join(SETTINGS_FOLDER, "user_settings.yaml")
CACHE_DATABASE_FILE_NAME = os.path.join(DATA_FOLDER, "rvu_cache.db")
CATALOG_RESOURCE_NAME = "rvu.csv"
SETTINGS_TEMPLATE_NAME = "user_settings.yaml"

# Remote API
DEFAULT_API_BASE_URL = "https://www.trackmyrvu.com/api"
DEFAULT_API_TIMEOUT_SECONDS = 30
API_USER_AGENT = "RVU-Tracker-Client"

# Cache configuration
CACHE_FRESHNESS_SECONDS = 5 * 60
VISITS_CACHE_KEY = "visits"
FAVORITES_CACHE_KEY = "favorites"
CACHE_SCHEMA_VERSIONS = {
    VISITS_CACHE_KEY: 2,
    FAVORITES_CACHE_KEY: 4,
}

# Search / analytics
SEARCH_RESULT_LIMIT = 100
DEFAULT_RANGE_DAYS = 30
WEEK_START_MONDAY = 0
WEEK_START_SUNDAY = 6
WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

# Visit entry limits
MAX_PROCEDURES_PER_VISIT = 50
MAX_VISIT_AGE_YEARS = 10

__all__ = [
    'APP_VERSION',
    'APP_NAME',
    'LOG_FILE_NAME',
    'LOG_FOLDER',
    'LOG_MAX_BYTES',
    'LOG_CHECK_INTERVAL',
    'LOG_TRIM_TARGET_RATIO',
    'SETTINGS_FOLDER',
    'DATA_FOLDER',
    'RESOURCES_FOLDER',
    'USER_SETTINGS_FILE_NAME',
    'CACHE_DATABASE_FILE_NAME',
    'CATALOG_RESOURCE_NAME',
    'SETTINGS_TEMPLATE_NAME',
    'DEFAULT_API_BASE_URL',
    'DEFAULT_API_TIMEOUT_SECONDS',
    'API_USER_AGENT',
    'CACHE_FRESHNESS_SECONDS',
    'VISITS_CACHE_KEY',
    'FAVORITES_CACHE_KEY',
    'CACHE_SCHEMA_VERSIONS',
    'SEARCH_RESULT_LIMIT',
    'DEFAULT_RANGE_DAYS',
    'WEEK_START_MONDAY',
    'WEEK_START_SUNDAY',
    'WEEKDAY_NAMES',
    'MAX_PROCEDURES_PER_VISIT',
    'MAX_VISIT_AGE_YEARS',
]
