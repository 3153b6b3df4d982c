"""
Devotion record type.

Rows come back from the store as plain dicts; this module turns them into
Devotion objects and back. The verse column is stored as
"reference | full text" and split on the first pipe.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, replace
from datetime import date, datetime
from typing import Any, Dict, Optional

# Fields an admin may change after creation. created_at is never in here.
MUTABLE_FIELDS = ("title", "verse", "content", "date")

VERSE_SEPARATOR = "|"


def split_verse(verse: str) -> tuple[str, str]:
    """Return (reference, text) for a compound verse string."""
    if not verse:
        return "", ""
    reference, sep, text = verse.partition(VERSE_SEPARATOR)
    if not sep:
        return verse.strip(), ""
    return reference.strip(), text.strip()


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Devotion:
    id: str
    title: str
    verse: str
    content: str
    date: Optional[date]
    created_at: Optional[str] = None

    @property
    def reference(self) -> str:
        return split_verse(self.verse)[0]

    @property
    def verse_text(self) -> str:
        return split_verse(self.verse)[1]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Devotion":
        """Build a Devotion from a store row (missing text columns become "")."""
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            verse=row.get("verse") or "",
            content=row.get("content") or "",
            date=_parse_date(row.get("date")),
            created_at=row.get("created_at"),
        )

    def with_patch(self, patch: Dict[str, Any]) -> "Devotion":
        """Copy with mutable fields replaced. Unknown keys, id and created_at are ignored."""
        changes = {k: v for k, v in patch.items() if k in MUTABLE_FIELDS}
        if "date" in changes:
            changes["date"] = _parse_date(changes["date"])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dict, including the split verse parts."""
        data = asdict(self)
        data["date"] = self.date.isoformat() if self.date else None
        data["reference"] = self.reference
        data["verse_text"] = self.verse_text
        return data


def to_row(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Store-ready dict for insert/update: mutable fields only, dates as ISO strings."""
    row = {k: v for k, v in payload.items() if k in MUTABLE_FIELDS}
    if isinstance(row.get("date"), date):
        row["date"] = row["date"].isoformat()
    return row
