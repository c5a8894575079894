"""Core utilities and configuration for RVU Tracker."""

from .config import *
from .logging_config import setup_logging, logger
from .platform_utils import get_app_paths, get_app_root, get_bundled_resource_path
from .settings import load_settings, save_settings, resolve_week_start

__all__ = [
    'setup_logging',
    'logger',
    'get_app_paths',
    'get_app_root',
    'get_bundled_resource_path',
    'load_settings',
    'save_settings',
    'resolve_week_start',
]
