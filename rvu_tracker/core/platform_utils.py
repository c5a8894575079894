"""Application path helpers for source checkouts and frozen builds."""

import os
import sys
import logging
from typing import Tuple

logger = logging.getLogger(__name__)

# Overrides the writable app root (settings, data and logs)
APP_HOME_ENV_VAR = "RVU_TRACKER_HOME"


# =============================================================================
# App Paths
# =============================================================================

def get_app_root() -> str:
    """Get the root directory for writable files, handling portable executable cases."""
    override = os.environ.get(APP_HOME_ENV_VAR)
    if override:
        return os.path.abspath(override)
    if getattr(sys, 'frozen', False):
        # Running as a compiled executable
        return os.path.dirname(sys.executable)
    # Running from source - root is the parent of the rvu_tracker package
    script_dir = os.path.dirname(os.path.abspath(__file__))
    return os.path.abspath(os.path.join(script_dir, "..", ".."))


def ensure_directories(root: str = None):
    """Create the required directory structure if it doesn't exist."""
    # Import inside to avoid circular dependency
    from .config import SETTINGS_FOLDER, DATA_FOLDER, LOG_FOLDER

    root = root or get_app_root()
    for folder in [SETTINGS_FOLDER, DATA_FOLDER, LOG_FOLDER]:
        os.makedirs(os.path.join(root, folder), exist_ok=True)


def get_app_paths() -> Tuple[str, str]:
    """Get the correct paths for bundled app vs running as script.

    Returns:
        tuple: (resources_dir, data_root)
        - resources_dir: Where bundled read-only resources live
        - data_root: The root directory for writable data
    """
    from .config import RESOURCES_FOLDER

    if getattr(sys, 'frozen', False):
        bundle_dir = getattr(sys, '_MEIPASS', os.path.dirname(sys.executable))
        resources_dir = os.path.join(bundle_dir, 'rvu_tracker', RESOURCES_FOLDER)
    else:
        package_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        resources_dir = os.path.join(package_dir, RESOURCES_FOLDER)

    data_root = get_app_root()
    logger.debug(f"App paths: resources={resources_dir}, data={data_root}")
    return resources_dir, data_root


def get_bundled_resource_path(filename: str) -> str:
    """Full path of a file shipped inside the package resources folder."""
    resources_dir, _ = get_app_paths()
    return os.path.join(resources_dir, filename)


__all__ = [
    'APP_HOME_ENV_VAR',
    'get_app_paths',
    'get_app_root',
    'ensure_directories',
    'get_bundled_resource_path',
]
