# =============================================================================
# Sentinel Main Package - Dynamic Version Loading
# =============================================================================
"""
Sentinel - Main Package

Version is loaded from installed metadata, falling back to pyproject.toml
when running from a source checkout.
"""

from __future__ import annotations


def _get_version() -> str:
    """
    Get package version dynamically from installed metadata.

    Returns:
        Version string (e.g., "0.3.0")
    """
    from importlib.metadata import version, PackageNotFoundError

    try:
        return version("sentinel-chat")
    except PackageNotFoundError:
        pass  # Not installed, read pyproject.toml instead

    import tomllib
    from pathlib import Path

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            return tomllib.load(f)["project"]["version"]

    return "0.1.0-unknown"


__version__: str = _get_version()
__description__: str = "Sentinel - Real-time Chat, Presence & Push Notifications"
__author__: str = "Sentinel Team"

# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "__version__",
    "__description__",
    "__author__",
]
