"""
Tests for the Devotion record type and admin form validation.
"""

from datetime import date

from app.services.devotions import Devotion, split_verse, to_row
from app.utils.validation import validate_devotion_form, html_is_blank


class TestVerseSplitting:

    def test_reference_is_text_before_first_pipe(self):
        assert split_verse("John 3:16 | For God so loved | the world") == (
            "John 3:16", "For God so loved | the world"
        )

    def test_no_pipe_is_all_reference(self):
        assert split_verse("Psalm 23") == ("Psalm 23", "")

    def test_empty(self):
        assert split_verse("") == ("", "")


class TestDevotion:

    def test_from_row(self):
        devotion = Devotion.from_row({
            "id": 7,
            "title": "Rest",
            "verse": "Matthew 11:28 | Come to me",
            "content": "<p>Rest</p>",
            "date": "2025-01-04",
            "created_at": "2025-01-01T10:00:00+00:00",
            "extra_column": "ignored",
        })

        assert devotion.id == "7"
        assert devotion.date == date(2025, 1, 4)
        assert devotion.reference == "Matthew 11:28"
        assert devotion.verse_text == "Come to me"

    def test_from_row_accepts_timestamp_date(self):
        devotion = Devotion.from_row({"id": "a", "date": "2025-01-04T00:00:00"})
        assert devotion.date == date(2025, 1, 4)
        assert devotion.title == ""

    def test_to_dict_is_json_friendly(self):
        devotion = Devotion.from_row({"id": "a", "verse": "Ps 1 | Blessed", "date": "2025-01-04"})
        data = devotion.to_dict()
        assert data["date"] == "2025-01-04"
        assert data["reference"] == "Ps 1"
        assert data["verse_text"] == "Blessed"

    def test_to_row_drops_immutable_fields(self):
        row = to_row({"id": "x", "created_at": "now", "title": "T", "date": date(2025, 5, 1)})
        assert row == {"title": "T", "date": "2025-05-01"}


class TestValidateDevotionForm:

    def test_valid_form(self, sample_form):
        payload, errors = validate_devotion_form(sample_form)

        assert errors == {}
        assert payload["title"] == "Morning Light"
        assert payload["date"] == date(2025, 3, 1)
        assert payload["content"] == "<p>Start the day with gratitude.</p>"

    def test_all_fields_required(self):
        payload, errors = validate_devotion_form({})
        assert payload == {}
        assert set(errors) == {"title", "verse", "content", "date"}

    def test_verse_needs_reference(self, sample_form):
        _, errors = validate_devotion_form({**sample_form, "verse": " | text with no reference"})
        assert "verse" in errors

    def test_bad_date(self, sample_form):
        _, errors = validate_devotion_form({**sample_form, "date": "03/01/2025"})
        assert "YYYY-MM-DD" in errors["date"]

    def test_editor_placeholder_markup_counts_as_empty(self, sample_form):
        _, errors = validate_devotion_form({**sample_form, "content": "<p><br></p>&nbsp;"})
        assert "content" in errors

    def test_title_is_trimmed_and_bounded(self, sample_form):
        payload, _ = validate_devotion_form({**sample_form, "title": "  Grace   upon grace \x07 "})
        assert payload["title"] == "Grace upon grace"

        _, errors = validate_devotion_form({**sample_form, "title": "x" * 201})
        assert "title" in errors

    def test_html_is_blank(self):
        assert html_is_blank("") is True
        assert html_is_blank("<div> </div>") is True
        assert html_is_blank("<b>Amen</b>") is False
