"""Single-selection state for the devotion reading modal."""

from __future__ import annotations
import threading
from typing import Callable, List, Optional

from app.services.devotions import Devotion

Listener = Callable[["SelectionState"], None]


class SelectionState:
    """
    At most one devotion is open at a time. While something is open the page
    scroll lock is engaged; opening another devotion replaces the current one.
    """

    def __init__(self):
        self._selected: Optional[Devotion] = None
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    @property
    def selected(self) -> Optional[Devotion]:
        return self._selected

    @property
    def scroll_locked(self) -> bool:
        return self._selected is not None

    def open(self, devotion: Devotion) -> None:
        with self._lock:
            self._selected = devotion
        self._notify()

    def close(self) -> None:
        with self._lock:
            if self._selected is None:
                return
            self._selected = None
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def follow(self, cache) -> Callable[[], None]:
        """
        Keep the selection consistent with a DevotionListCache: close it when
        the open devotion leaves the list, refresh it when it is edited.
        """
        def on_change(changed) -> None:
            current = self._selected
            if current is None:
                return
            latest = changed.get(current.id)
            if latest is None:
                self.close()
            elif latest != current:
                self.open(latest)

        return cache.subscribe(on_change)
