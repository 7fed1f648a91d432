# =============================================================================
# File: sentinel/realtime/presence/presence_tracker.py
# Description: Per-process user -> open-connection count
# =============================================================================

import logging
from typing import Callable, Dict, List, Set

log = logging.getLogger("sentinel.realtime.presence")

PresenceListener = Callable[[str, bool], None]


class PresenceTracker:
    """
    Tracks how many live connections each user has on this process.

    A user is online while the count is above zero. increment/decrement are
    the only mutators and never suspend, so concurrent connects and
    disconnects of the same user cannot interleave. Listeners run
    synchronously once per zero crossing with (user_id, online).
    """

    def __init__(self) -> None:
        self._counts: Dict[str, int] = {}
        self._listeners: List[PresenceListener] = []

    def add_listener(self, listener: PresenceListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PresenceListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def increment(self, user_id: str) -> bool:
        """Register one more connection; True when the user just came online."""
        count = self._counts.get(user_id, 0) + 1
        self._counts[user_id] = count
        if count == 1:
            self._notify(user_id, True)
            return True
        return False

    def decrement(self, user_id: str) -> bool:
        """Drop one connection; True when the user just went offline."""
        count = self._counts.get(user_id, 0)
        if count == 0:
            log.debug(f"Presence decrement for {user_id} with no open connections ignored")
            return False
        if count == 1:
            del self._counts[user_id]
            self._notify(user_id, False)
            return True
        self._counts[user_id] = count - 1
        return False

    def is_online(self, user_id: str) -> bool:
        return self._counts.get(user_id, 0) > 0

    def connection_count(self, user_id: str) -> int:
        return self._counts.get(user_id, 0)

    def online_user_ids(self) -> Set[str]:
        return set(self._counts)

    def clear(self) -> None:
        self._counts.clear()

    def _notify(self, user_id: str, online: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(user_id, online)
            except Exception as e:
                log.error(f"Presence listener failed for {user_id}: {e}", exc_info=True)
