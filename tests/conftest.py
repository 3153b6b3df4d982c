# tests/conftest.py
"""
Test configuration and shared fixtures.

Provides the Flask app (in-memory content store), test client, and
devotion row factories for pytest.
"""

import os
import sys
import pytest

# Add the project root to sys.path
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def make_rows(count, start=1):
    """
    Devotion rows created at T{start}..T{start+count-1}, one second apart.

    Row N has id "dev-NN" and title "Devotion NN", so newest-first order is
    easy to assert on.
    """
    rows = []
    for n in range(start, start + count):
        rows.append({
            "id": f"dev-{n:02d}",
            "title": f"Devotion {n:02d}",
            "verse": f"Psalm {n}:1 | Verse text {n}",
            "content": f"<p>Reflection {n}</p>",
            "date": f"2025-02-{(n % 28) + 1:02d}",
            "created_at": f"2025-01-01T00:{n // 60:02d}:{n % 60:02d}+00:00",
        })
    return rows


def ids(devotions):
    return [d.id for d in devotions]


@pytest.fixture
def app(monkeypatch):
    """Create and configure a Flask app instance for testing."""
    monkeypatch.setenv("APP_CONFIG", "app.config.TestConfig")
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")

    from app import create_app

    app = create_app()
    app.config.update({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "RATELIMIT_ENABLED": False,
    })

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask app."""
    return app.test_cli_runner()


@pytest.fixture
def memory_store(app):
    """The app's in-memory content store (shared by public and admin side)."""
    return app.extensions["supabase"]["store"]


@pytest.fixture
def seeded_store():
    """In-memory store holding 20 devotions created at T1..T20."""
    from app.services.content_store import InMemoryContentStore

    return InMemoryContentStore(make_rows(20))


@pytest.fixture
def seeded_app(app):
    """App whose content store holds 20 devotions created at T1..T20."""
    from app.services.content_store import InMemoryContentStore

    store = InMemoryContentStore(make_rows(20))
    app.extensions["supabase"]["store"] = store
    app.extensions["supabase"]["admin_store"] = store
    return app


@pytest.fixture
def admin_user():
    return {"id": "admin-user-id", "email": "admin@example.com"}


@pytest.fixture
def sample_form():
    """Valid admin form submission."""
    return {
        "title": "Morning Light",
        "verse": "Lamentations 3:22-23 | His mercies are new every morning.",
        "content": "<p>Start the day with gratitude.</p>",
        "date": "2025-03-01",
    }
