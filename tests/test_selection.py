"""
Unit tests for the reading-modal selection state.
"""

from datetime import date
from unittest.mock import Mock

from app.services.devotion_cache import DevotionListCache
from app.services.devotions import Devotion
from app.services.selection import SelectionState


def _devotion(devotion_id, title="Title"):
    return Devotion(id=devotion_id, title=title, verse="Ps 1:1 | Blessed", content="<p>x</p>",
                    date=date(2025, 1, 1))


class TestSelectionState:

    def test_starts_closed(self):
        selection = SelectionState()
        assert selection.selected is None
        assert selection.scroll_locked is False

    def test_open_engages_scroll_lock(self):
        selection = SelectionState()
        devotion = _devotion("a")

        selection.open(devotion)

        assert selection.selected is devotion
        assert selection.scroll_locked is True

    def test_close_releases_scroll_lock(self):
        selection = SelectionState()
        selection.open(_devotion("a"))

        selection.close()

        assert selection.selected is None
        assert selection.scroll_locked is False

    def test_opening_another_replaces(self):
        selection = SelectionState()
        selection.open(_devotion("a"))
        selection.open(_devotion("b"))

        assert selection.selected.id == "b"
        assert selection.scroll_locked is True

    def test_listeners_notified_on_change_only(self):
        selection = SelectionState()
        listener = Mock()
        selection.subscribe(listener)

        selection.close()  # already closed
        selection.open(_devotion("a"))
        selection.close()

        assert listener.call_count == 2


class TestSelectionFollowsCache:

    def test_deleting_open_devotion_clears_selection(self, seeded_store):
        cache = DevotionListCache(seeded_store, page_size=9)
        cache.load_initial()
        selection = SelectionState()
        selection.follow(cache)
        selection.open(cache.get("dev-16"))

        cache.delete("dev-16")

        assert selection.selected is None
        assert selection.scroll_locked is False

    def test_deleting_other_devotion_keeps_selection(self, seeded_store):
        cache = DevotionListCache(seeded_store, page_size=9)
        cache.load_initial()
        selection = SelectionState()
        selection.follow(cache)
        selection.open(cache.get("dev-16"))

        cache.delete("dev-15")

        assert selection.selected.id == "dev-16"

    def test_editing_open_devotion_refreshes_selection(self, seeded_store):
        cache = DevotionListCache(seeded_store, page_size=9)
        cache.load_initial()
        selection = SelectionState()
        selection.follow(cache)
        selection.open(cache.get("dev-16"))

        cache.update("dev-16", {"title": "Edited title"})

        assert selection.selected.title == "Edited title"
        assert selection.scroll_locked is True
