"""User settings persisted as YAML next to the application data."""

import os
import copy
import logging
from typing import Optional

import yaml

from .config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_RANGE_DAYS,
    CACHE_FRESHNESS_SECONDS,
    SEARCH_RESULT_LIMIT,
    SETTINGS_TEMPLATE_NAME,
    USER_SETTINGS_FILE_NAME,
    WEEKDAY_NAMES,
    WEEK_START_SUNDAY,
)
from .platform_utils import get_app_root, get_bundled_resource_path

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "api": {
        "base_url": DEFAULT_API_BASE_URL,
        "timeout_seconds": DEFAULT_API_TIMEOUT_SECONDS,
    },
    "analytics": {
        "week_start": "sunday",
        "default_range_days": DEFAULT_RANGE_DAYS,
    },
    "cache": {
        "freshness_seconds": CACHE_FRESHNESS_SECONDS,
    },
    "catalog": {
        "path": None,
    },
    "search": {
        "result_limit": SEARCH_RESULT_LIMIT,
    },
}


def _merge_defaults(defaults: dict, loaded: dict) -> dict:
    """Deep-merge loaded values over defaults, keeping unknown keys."""
    merged = copy.deepcopy(defaults)
    for key, value in (loaded or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_bundled_template() -> Optional[dict]:
    """Load the settings template shipped in the package resources."""
    bundled_file = get_bundled_resource_path(SETTINGS_TEMPLATE_NAME)
    try:
        if os.path.exists(bundled_file):
            logger.info(f"Loading bundled settings from: {bundled_file}")
            with open(bundled_file, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        logger.warning(f"Bundled settings not found: {bundled_file}")
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading bundled settings {bundled_file}: {e}")
    return None


def default_settings_path(root: str = None) -> str:
    return os.path.join(root or get_app_root(), USER_SETTINGS_FILE_NAME)


def load_settings(path: str = None) -> dict:
    """Load user settings, creating the file from the bundled template on first run.

    Args:
        path: Settings file location. Defaults to settings/user_settings.yaml
            under the app root.

    Returns:
        Settings dict with every default key present.
    """
    path = path or default_settings_path()

    if os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return _merge_defaults(DEFAULT_SETTINGS, yaml.safe_load(f) or {})
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading user settings file {path}: {e}")
            return copy.deepcopy(DEFAULT_SETTINGS)

    logger.info("User settings file not found, copying from bundled template...")
    bundled = _load_bundled_template()
    settings = _merge_defaults(DEFAULT_SETTINGS, bundled or {})
    save_settings(settings, path)
    return settings


def save_settings(settings: dict, path: str = None) -> bool:
    """Write settings back to YAML. Returns False when the write fails."""
    path = path or default_settings_path()
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(settings, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        logger.info(f"Saved user settings to {path}")
        return True
    except OSError as e:
        logger.error(f"Error saving user settings: {e}")
        return False


def resolve_week_start(settings: dict) -> int:
    """Map analytics.week_start to a Python weekday number (Monday=0)."""
    value = settings.get("analytics", {}).get("week_start", "sunday")
    if isinstance(value, int) and 0 <= value <= 6:
        return value
    weekday = WEEKDAY_NAMES.get(str(value).strip().lower())
    if weekday is None:
        logger.warning(f"Unknown week_start '{value}', using Sunday")
        return WEEK_START_SUNDAY
    return weekday


__all__ = [
    'DEFAULT_SETTINGS',
    'default_settings_path',
    'load_settings',
    'save_settings',
    'resolve_week_start',
]
