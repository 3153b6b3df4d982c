"""
Server-side view models for mounted pages.

Each page that shows a devotion list (the public read view or the admin
dashboard) gets a DevotionFeed: cursor, scroll trigger, list cache and
selection bundled together. The page keeps the feed's view_id and talks to
it through the JSON endpoints in routes/api.py.

ViewRegistry owns the feeds. A feed is only reachable by the viewer (browser
session) that mounted it and only as the kind it was mounted as, so caches
are never shared between tabs, sessions, or the public and admin sides.
Idle feeds expire after a TTL, in the same spirit as the other in-memory
caches in this app.
"""

from __future__ import annotations
import secrets
import threading
import time
from typing import Any, Callable, Dict, List, Optional
from flask import current_app

from app.services.content_store import ContentStore
from app.services.devotion_cache import DevotionListCache
from app.services.devotions import Devotion
from app.services.pagination import InfiniteScrollTrigger, ScrollState
from app.services.selection import SelectionState
from app.utils.errors import NotFoundError, log_info

VIEW_KINDS = ("read", "admin")


class DevotionFeed:
    def __init__(self, kind: str, store: ContentStore, page_size: int, owner: str):
        if kind not in VIEW_KINDS:
            raise ValueError(f"Unknown view kind: {kind}")
        self.view_id = secrets.token_urlsafe(16)
        self.kind = kind
        self.owner = owner
        self.cache = DevotionListCache(store, page_size)
        self.trigger = InfiniteScrollTrigger(self.cache.cursor, self.cache.load_next)
        self.selection = SelectionState()
        self._unfollow = self.selection.follow(self.cache)
        self.last_seen = time.monotonic()

    @property
    def state(self) -> ScrollState:
        return self.trigger.state

    @property
    def exhausted(self) -> bool:
        return self.trigger.state is ScrollState.EXHAUSTED

    def load_initial(self) -> List[Devotion]:
        return self.cache.load_initial()

    def more(self) -> Optional[List[Devotion]]:
        """Sentinel became visible. None means the event was ignored."""
        return self.trigger.on_sentinel_visible()

    def open(self, devotion_id: str) -> Devotion:
        devotion = self.cache.get(devotion_id)
        if devotion is None:
            raise NotFoundError(f"Devotion {devotion_id} is not loaded in this view")
        self.selection.open(devotion)
        return devotion

    def close(self) -> None:
        self.selection.close()

    def dispose(self) -> None:
        self._unfollow()
        self.selection.close()
        self.cache.dispose()

    def snapshot(self) -> Dict[str, Any]:
        selected = self.selection.selected
        return {
            "view_id": self.view_id,
            "state": self.state.value,
            "exhausted": self.exhausted,
            "count": len(self.cache),
            "selected": selected.id if selected else None,
            "scroll_locked": self.selection.scroll_locked,
        }


class ViewRegistry:
    def __init__(self, ttl_seconds: float = 1800, max_views_per_owner: int = 8,
                 max_views: int = 2000, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_views_per_owner = max_views_per_owner
        self.max_views = max_views
        self._clock = clock
        self._feeds: Dict[str, DevotionFeed] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._feeds)

    def _expire(self) -> None:
        cutoff = self._clock() - self.ttl_seconds
        for view_id in [v for v, f in self._feeds.items() if f.last_seen < cutoff]:
            self._feeds.pop(view_id).dispose()

    def mount(self, kind: str, store: ContentStore, page_size: int, owner: str) -> DevotionFeed:
        """Register a new, empty feed. The caller runs load_initial()."""
        feed = DevotionFeed(kind, store, page_size, owner)
        feed.last_seen = self._clock()

        with self._lock:
            self._expire()
            owned = sorted(
                (f for f in self._feeds.values() if f.owner == owner),
                key=lambda f: f.last_seen,
            )
            # Drop the oldest views of this viewer beyond the cap
            for stale in owned[:max(0, len(owned) - self.max_views_per_owner + 1)]:
                self._feeds.pop(stale.view_id).dispose()
            # Then the least recently seen views of anyone, beyond the global cap
            overflow = len(self._feeds) - self.max_views + 1
            if overflow > 0:
                idle_first = sorted(self._feeds.values(), key=lambda f: f.last_seen)
                for stale in idle_first[:overflow]:
                    self._feeds.pop(stale.view_id).dispose()
                log_info(f"View cap reached, evicted {overflow} idle view(s)")
            self._feeds[feed.view_id] = feed

        log_info(f"Mounted {kind} view {feed.view_id}")
        return feed

    def get(self, view_id: str, owner: str, kind: Optional[str] = None) -> Optional[DevotionFeed]:
        with self._lock:
            self._expire()
            feed = self._feeds.get(view_id)
            if feed is None or feed.owner != owner:
                return None
            if kind is not None and feed.kind != kind:
                return None
            feed.last_seen = self._clock()
            return feed

    def unmount(self, view_id: str, owner: str) -> bool:
        with self._lock:
            feed = self._feeds.get(view_id)
            if feed is None or feed.owner != owner:
                return False
            del self._feeds[view_id]

        feed.dispose()
        log_info(f"Unmounted {feed.kind} view {view_id}")
        return True


def init_views(app) -> None:
    """Create the view registry for this app. Call from the app factory."""
    app.extensions["views"] = ViewRegistry(
        ttl_seconds=app.config.get("VIEW_STATE_TTL_SECONDS", 1800),
        max_views_per_owner=app.config.get("MAX_VIEWS_PER_VIEWER", 8),
        max_views=app.config.get("MAX_MOUNTED_VIEWS", 2000),
    )


def get_registry() -> ViewRegistry:
    return current_app.extensions["views"]
