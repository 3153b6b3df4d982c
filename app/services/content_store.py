"""
Content store interface and an in-memory implementation.

Everything above this layer (pagination, caches, routes) talks to a
ContentStore. Production uses SupabaseDevotionStore from supabase_client;
tests and local development without Supabase credentials use
InMemoryContentStore.
"""

from __future__ import annotations
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from app.services.devotions import Devotion, to_row
from app.utils.errors import NotFoundError, QueryError, ValidationError


class ContentStore(Protocol):
    """Operations the app needs from the devotion backend."""

    def fetch_page(
        self,
        offset: int,
        limit: int,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Devotion]:
        ...

    def insert(self, payload: Dict[str, Any]) -> Devotion:
        ...

    def update_by_id(self, devotion_id: str, patch: Dict[str, Any]) -> Devotion:
        ...

    def delete_by_id(self, devotion_id: str) -> None:
        ...

    def current_identity(self, access_token: str, refresh_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ...


REQUIRED_COLUMNS = ("title", "verse", "content", "date")
SORTABLE_COLUMNS = ("created_at", "date", "title")


class InMemoryContentStore:
    """
    Dict-backed store with the same contract as the Supabase one.

    created_at comes from `clock`, bumped by a microsecond when two inserts
    land on the same instant so ordering by creation time is always strict.
    """

    def __init__(self, rows: Optional[Iterable[Dict[str, Any]]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_created: Optional[datetime] = None
        self._lock = threading.Lock()
        self.fetch_calls: List[tuple[int, int]] = []
        for row in rows or []:
            self._rows[str(row["id"])] = dict(row)

    def __len__(self) -> int:
        return len(self._rows)

    def _next_created_at(self) -> str:
        now = self._clock()
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now.isoformat()

    def fetch_page(self, offset, limit, order_by="created_at", descending=True):
        if order_by not in SORTABLE_COLUMNS:
            raise QueryError(f"Cannot order by {order_by!r}")
        if offset < 0 or limit <= 0:
            raise QueryError(f"Invalid range offset={offset} limit={limit}")

        with self._lock:
            self.fetch_calls.append((offset, limit))
            rows = sorted(
                self._rows.values(),
                key=lambda r: str(r.get(order_by) or ""),
                reverse=descending,
            )
            return [Devotion.from_row(r) for r in rows[offset:offset + limit]]

    def insert(self, payload):
        data = to_row(payload)
        missing = [c for c in REQUIRED_COLUMNS if not data.get(c)]
        if missing:
            raise ValidationError(
                f"Missing required field(s): {', '.join(missing)}",
                {c: "This field is required." for c in missing},
            )

        with self._lock:
            row = {**data, "id": str(uuid.uuid4()), "created_at": self._next_created_at()}
            self._rows[row["id"]] = row
            return Devotion.from_row(row)

    def update_by_id(self, devotion_id, patch):
        data = to_row(patch)
        with self._lock:
            row = self._rows.get(str(devotion_id))
            if row is None:
                raise NotFoundError(f"Devotion {devotion_id} not found")
            row.update(data)
            return Devotion.from_row(row)

    def delete_by_id(self, devotion_id):
        with self._lock:
            if self._rows.pop(str(devotion_id), None) is None:
                raise NotFoundError(f"Devotion {devotion_id} not found")

    def current_identity(self, access_token, refresh_token=None):
        return None
