"""
Input validation and normalization for the admin devotion form.

Trims and bounds field lengths, checks the verse has a reference before the
"|" separator, and parses the publication date. Content is rich-text HTML
from the editor widget and is passed through as-is apart from the length
bound and an emptiness check.
"""

from __future__ import annotations
import re
from datetime import date
from typing import Any, Dict, Tuple

from app.services.devotions import split_verse, VERSE_SEPARATOR

MAX_TITLE_LEN = 200
MAX_VERSE_LEN = 2000
MAX_CONTENT_LEN = 50_000

_TAG_PATTERN = re.compile(r"<[^>]*>")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def _clean_line(text: str) -> str:
    """Strip, drop control chars, collapse runs of spaces/tabs."""
    t = _CONTROL_CHARS.sub("", text or "")
    return re.sub(r"[ \t]{2,}", " ", t).strip()


def html_is_blank(html: str) -> bool:
    """True if the editor produced only markup/whitespace (e.g. "<p><br></p>")."""
    text = _TAG_PATTERN.sub("", html or "").replace("&nbsp;", " ")
    return not text.strip()


def validate_devotion_form(form: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """
    Validate the admin create/edit form.

    Returns (payload, errors). payload holds title, verse, content and date
    (a datetime.date). errors maps field name to message and is empty on
    success.
    """
    errors: Dict[str, str] = {}

    title = _clean_line(form.get("title", ""))
    if not title:
        errors["title"] = "Title is required."
    elif len(title) > MAX_TITLE_LEN:
        errors["title"] = f"Title must be under {MAX_TITLE_LEN} characters."

    verse = _clean_line(form.get("verse", ""))
    reference, _text = split_verse(verse)
    if not verse:
        errors["verse"] = "Verse is required."
    elif len(verse) > MAX_VERSE_LEN:
        errors["verse"] = f"Verse must be under {MAX_VERSE_LEN} characters."
    elif not reference:
        errors["verse"] = f'Verse needs a reference before "{VERSE_SEPARATOR}", e.g. "John 3:16 {VERSE_SEPARATOR} For God so loved..."'

    content = (form.get("content") or "").strip()
    if html_is_blank(content):
        errors["content"] = "Content is required."
    elif len(content) > MAX_CONTENT_LEN:
        errors["content"] = "Content is too long."

    raw_date = (form.get("date") or "").strip()
    pub_date = None
    if not raw_date:
        errors["date"] = "Date is required."
    else:
        try:
            pub_date = date.fromisoformat(raw_date)
        except ValueError:
            errors["date"] = "Date must be in YYYY-MM-DD format."

    if errors:
        return {}, errors

    return {
        "title": title,
        "verse": verse,
        "content": content,
        "date": pub_date,
    }, {}
