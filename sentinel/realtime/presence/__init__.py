# =============================================================================
# File: sentinel/realtime/presence/__init__.py
# =============================================================================

from sentinel.realtime.presence.presence_tracker import PresenceTracker

__all__ = ["PresenceTracker"]
