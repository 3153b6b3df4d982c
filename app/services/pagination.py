"""
Pagination state for infinite scroll.

PaginationCursor is plain offset arithmetic. InfiniteScrollTrigger wraps a
page loader with the Idle/Fetching/Exhausted state machine: one fetch in
flight at a time, and nothing more once a short page has come back.
"""

from __future__ import annotations
import enum
import threading
from typing import Callable, List, Optional, Sequence


class PaginationCursor:
    def __init__(self, page_size: int):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.offset = 0
        self.exhausted = False

    def next_window(self) -> tuple[int, int]:
        """Inclusive (start, end) of the next page."""
        if self.exhausted:
            raise RuntimeError("next_window() called on an exhausted cursor")
        return self.offset, self.offset + self.page_size - 1

    def advance(self, received_count: int) -> None:
        self.offset += received_count
        if received_count < self.page_size:
            self.exhausted = True

    def reset(self) -> None:
        self.offset = 0
        self.exhausted = False

    def __repr__(self) -> str:
        return f"<PaginationCursor offset={self.offset} page_size={self.page_size} exhausted={self.exhausted}>"


class ScrollState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"


class InfiniteScrollTrigger:
    """
    Turns sentinel-visible events into page loads.

    `load_page` fetches the cursor's next window and advances the cursor
    (DevotionListCache.load_next). The trigger only decides whether to call
    it. Exhaustion is read from the cursor, so a full reload that resets the
    cursor makes the trigger usable again.
    """

    def __init__(self, cursor: PaginationCursor, load_page: Callable[[], Sequence]):
        self.cursor = cursor
        self._load_page = load_page
        self._in_flight = False
        self._lock = threading.Lock()

    @property
    def state(self) -> ScrollState:
        if self._in_flight:
            return ScrollState.FETCHING
        if self.cursor.exhausted:
            return ScrollState.EXHAUSTED
        return ScrollState.IDLE

    def on_sentinel_visible(self) -> Optional[List]:
        """
        Load the next page if idle.

        Returns the page (possibly empty), or None when the event was ignored
        because a fetch is already running or the list is exhausted. Store
        errors propagate after the trigger has gone back to idle, and the
        cursor is left where it was so the same window is retried next time.
        """
        with self._lock:
            if self._in_flight or self.cursor.exhausted:
                return None
            self._in_flight = True

        try:
            return list(self._load_page())
        finally:
            with self._lock:
                self._in_flight = False
