"""
Local list cache of loaded devotions.

One DevotionListCache belongs to one mounted view. Pages are appended in
store order; admin updates and deletes are projected into the list in place
once the store has confirmed them; creates trigger a full reload so the new
record lands in its created_at position.

Fetches that settle after dispose() or after a newer load_initial() are
dropped, so a slow response can never write into a list it no longer
belongs to.
"""

from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from app.services.content_store import ContentStore
from app.services.devotions import Devotion
from app.services.pagination import PaginationCursor
from app.utils.errors import RefreshError, StoreError, log_info

Listener = Callable[["DevotionListCache"], None]


class DevotionListCache:
    def __init__(self, store: ContentStore, page_size: int,
                 order_by: str = "created_at", descending: bool = True):
        self.store = store
        self.cursor = PaginationCursor(page_size)
        self.order_by = order_by
        self.descending = descending
        self._items: List[Devotion] = []
        self._generation = 0
        self._disposed = False
        self._lock = threading.RLock()
        # Held for the whole of a page load, so one cache never has two fetches in flight
        self._fetch_lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._record_locks: Dict[str, threading.Lock] = {}

    # -- reading -------------------------------------------------------------

    @property
    def items(self) -> Tuple[Devotion, ...]:
        with self._lock:
            return tuple(self._items)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get(self, devotion_id: str) -> Optional[Devotion]:
        with self._lock:
            for item in self._items:
                if item.id == devotion_id:
                    return item
        return None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Devotion]:
        return iter(self.items)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

    def _fetch(self, start: int, end: int) -> List[Devotion]:
        return self.store.fetch_page(start, end - start + 1, self.order_by, self.descending)

    # -- page loads ----------------------------------------------------------

    def load_initial(self) -> List[Devotion]:
        """Clear, reset the cursor and load page 0. Store errors propagate with the list left empty."""
        with self._fetch_lock:
            return self._load_initial()

    def load_next(self) -> List[Devotion]:
        """Fetch the next window and append it. Store errors propagate; the list is unchanged."""
        with self._fetch_lock:
            return self._load_next()

    def _load_initial(self) -> List[Devotion]:
        with self._lock:
            if self._disposed:
                return []
            self._generation += 1
            generation = self._generation
            self._items = []
            self.cursor.reset()
            start, end = self.cursor.next_window()

        try:
            page = self._fetch(start, end)
        except Exception:
            self._notify()
            raise

        with self._lock:
            if self._disposed or generation != self._generation:
                return []
            self._items = list(page)
            self.cursor.advance(len(page))

        self._notify()
        return page

    def _load_next(self) -> List[Devotion]:
        with self._lock:
            if self._disposed or self.cursor.exhausted:
                return []
            generation = self._generation
            start, end = self.cursor.next_window()

        page = self._fetch(start, end)

        with self._lock:
            if self._disposed or generation != self._generation:
                log_info(f"Discarding stale page [{start}, {end}]")
                return []
            self._items.extend(page)
            self.cursor.advance(len(page))
            if self.cursor.exhausted:
                log_info(f"Devotion list exhausted at {self.cursor.offset} items")

        self._notify()
        return page

    # -- projections of confirmed store mutations ----------------------------

    def apply_create(self, record: Devotion) -> None:
        self.load_initial()

    def apply_update(self, devotion_id: str, patch: Dict[str, Any]) -> bool:
        with self._lock:
            for index, item in enumerate(self._items):
                if item.id == devotion_id:
                    self._items[index] = item.with_patch(patch)
                    break
            else:
                return False
        self._notify()
        return True

    def apply_delete(self, devotion_id: str) -> bool:
        with self._lock:
            kept = [item for item in self._items if item.id != devotion_id]
            if len(kept) == len(self._items):
                return False
            self._items = kept
        self._notify()
        return True

    # -- store mutations followed by projection ------------------------------

    @contextmanager
    def _record_lock(self, devotion_id: str):
        with self._lock:
            lock = self._record_locks.setdefault(devotion_id, threading.Lock())
        with lock:
            yield

    def create(self, payload: Dict[str, Any]) -> Devotion:
        """
        Insert, then reload the list. A failed reload raises RefreshError
        carrying the created record, so callers never mistake it for a
        failed insert.
        """
        record = self.store.insert(payload)
        try:
            self.apply_create(record)
        except StoreError as e:
            raise RefreshError(record, e) from e
        return record

    def update(self, devotion_id: str, patch: Dict[str, Any]) -> Devotion:
        with self._record_lock(devotion_id):
            record = self.store.update_by_id(devotion_id, patch)
            self.apply_update(devotion_id, patch)
        return record

    def delete(self, devotion_id: str) -> None:
        with self._record_lock(devotion_id):
            self.store.delete_by_id(devotion_id)
            self.apply_delete(devotion_id)
        # The id is gone for good, so its lock is no longer needed
        with self._lock:
            self._record_locks.pop(devotion_id, None)

    def dispose(self) -> None:
        """Detach from the view. Later page loads are ignored."""
        with self._lock:
            self._disposed = True
            self._listeners.clear()
