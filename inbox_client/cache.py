"""
Local mirror of a user's notification inbox.

``InboxCache`` is a small state machine. Its transitions are the only way the
state changes, and each one mirrors what the server does for the matching
operation, so a refetch after any transition reports the same thing:

- the unread counter never goes below zero;
- marking one item read decrements the counter only if the local copy was unread;
- removing an item decrements the counter only if it was unread;
- mark-all-read leaves the ``read_at`` of already-read items untouched.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from utils.mongo import utc_now


class InboxState(BaseModel):
    notifications: List[Dict[str, Any]] = Field(default_factory=list)  # Newest first, as loaded
    unread_count: int = 0
    loading: bool = False
    error: Optional[str] = None
    page: int = 1
    has_more: bool = True


class InboxCache:
    def __init__(self):
        self.state = InboxState()

    def _find(self, notification_id: str) -> Optional[Dict[str, Any]]:
        return next((n for n in self.state.notifications if n.get("id") == notification_id), None)

    # --- Loading ---

    def start_loading(self):
        self.state.loading = True
        self.state.error = None

    def replace_first_page(self, items: List[Dict[str, Any]], pages: int):
        """Page 1 replaces everything. The unread count is only an estimate until reconciled."""
        self.state.notifications = list(items)
        self.state.unread_count = sum(1 for n in items if not n.get("read"))
        self.state.page = 1
        self.state.has_more = 1 < pages
        self.state.loading = False
        self.state.error = None

    def append_page(self, items: List[Dict[str, Any]], page: int, pages: int):
        # Append-only: the server's ordering is stable across pages
        self.state.notifications.extend(items)
        self.state.page = page
        self.state.has_more = page < pages
        self.state.loading = False
        self.state.error = None

    def fail(self, message: str):
        self.state.error = message
        self.state.loading = False

    # --- Read state ---

    def mark_read(self, notification_id: str, read_at: Any = None) -> bool:
        """Returns True when a locally-unread item flipped."""
        item = self._find(notification_id)
        if item is None or item.get("read"):
            return False
        item["read"] = True
        item["read_at"] = read_at or utc_now()
        self.state.unread_count = max(0, self.state.unread_count - 1)
        return True

    def mark_all_read(self, read_at: Any = None):
        read_at = read_at or utc_now()
        for item in self.state.notifications:
            if not item.get("read"):
                item["read"] = True
                item["read_at"] = read_at
        self.state.unread_count = 0

    def remove(self, notification_id: str) -> bool:
        item = self._find(notification_id)
        if item is None:
            return False
        self.state.notifications = [n for n in self.state.notifications if n is not item]
        if not item.get("read"):
            self.state.unread_count = max(0, self.state.unread_count - 1)
        return True

    def set_unread_count(self, count: int):
        """Authoritative count from the server supersedes any local estimate."""
        self.state.unread_count = max(0, count)

    def clear(self):
        self.state = InboxState()
