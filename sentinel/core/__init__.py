# sentinel/core/__init__.py
"""
Sentinel Core Module
Central location for shared constants and metadata
"""

from sentinel import __version__, __description__, __author__

from sentinel.core.app_state import AppState, ComponentOverrides, get_start_time

__all__ = [
    "__version__",
    "__description__",
    "__author__",
    "AppState",
    "ComponentOverrides",
    "get_start_time",
]
