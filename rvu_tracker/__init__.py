"""RVU Tracker - work RVU catalog, visit sync and productivity analytics."""

from .core.config import APP_VERSION

__version__ = APP_VERSION

__all__ = ['__version__']
