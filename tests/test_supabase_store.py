"""
Tests for the Supabase-backed content store and client setup.

The Supabase client is a MagicMock; these tests check the query chain we
build and how PostgREST/httpx failures map onto the store error types.
"""

import httpx
import pytest
from unittest.mock import MagicMock, Mock, patch
from postgrest.exceptions import APIError

from conftest import make_rows
from app.services.supabase_client import SupabaseDevotionStore, init_supabase
from app.utils.errors import ConnectivityError, NotFoundError, QueryError, ValidationError


def _api_error(code, message="db error"):
    return APIError({"message": message, "code": code, "hint": None, "details": None})


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return SupabaseDevotionStore(client, table="devotions")


class TestFetchPage:

    def test_builds_ordered_range_query(self, store, client):
        query = client.table.return_value.select.return_value
        query.order.return_value.range.return_value.execute.return_value = Mock(data=make_rows(2))

        page = store.fetch_page(9, 9)

        client.table.assert_called_once_with("devotions")
        query.order.assert_called_once_with("created_at", desc=True)
        query.order.return_value.range.assert_called_once_with(9, 17)
        assert [d.id for d in page] == ["dev-01", "dev-02"]

    def test_empty_result(self, store, client):
        chain = client.table.return_value.select.return_value.order.return_value.range.return_value
        chain.execute.return_value = Mock(data=None)
        assert store.fetch_page(0, 9) == []

    def test_transport_error_is_connectivity_error(self, store, client):
        chain = client.table.return_value.select.return_value.order.return_value.range.return_value
        chain.execute.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ConnectivityError):
            store.fetch_page(0, 9)

    def test_api_error_is_query_error(self, store, client):
        chain = client.table.return_value.select.return_value.order.return_value.range.return_value
        chain.execute.side_effect = _api_error("42703", "column does not exist")

        with pytest.raises(QueryError):
            store.fetch_page(0, 9)


class TestInsert:

    def test_returns_created_record(self, store, client, sample_form):
        row = {**make_rows(1)[0], "title": sample_form["title"]}
        client.table.return_value.insert.return_value.execute.return_value = Mock(data=[row])

        created = store.insert({**sample_form, "id": "ignored", "created_at": "ignored"})

        sent = client.table.return_value.insert.call_args[0][0]
        assert set(sent) == {"title", "verse", "content", "date"}
        assert created.title == "Morning Light"

    def test_constraint_violation_is_validation_error(self, store, client, sample_form):
        client.table.return_value.insert.return_value.execute.side_effect = _api_error(
            "23502", 'null value in column "verse"'
        )

        with pytest.raises(ValidationError):
            store.insert(sample_form)

    def test_timeout_is_connectivity_error(self, store, client, sample_form):
        client.table.return_value.insert.return_value.execute.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(ConnectivityError):
            store.insert(sample_form)


class TestUpdateAndDelete:

    def test_update_by_id(self, store, client):
        chain = client.table.return_value.update.return_value.eq.return_value
        chain.execute.return_value = Mock(data=[{**make_rows(1)[0], "title": "New"}])

        updated = store.update_by_id("dev-01", {"title": "New"})

        client.table.return_value.update.assert_called_once_with({"title": "New"})
        client.table.return_value.update.return_value.eq.assert_called_once_with("id", "dev-01")
        assert updated.title == "New"

    def test_update_matching_nothing_is_not_found(self, store, client):
        client.table.return_value.update.return_value.eq.return_value.execute.return_value = Mock(data=[])

        with pytest.raises(NotFoundError):
            store.update_by_id("missing", {"title": "New"})

    def test_delete_by_id(self, store, client):
        chain = client.table.return_value.delete.return_value.eq.return_value
        chain.execute.return_value = Mock(data=[make_rows(1)[0]])

        store.delete_by_id("dev-01")

        client.table.return_value.delete.return_value.eq.assert_called_once_with("id", "dev-01")

    def test_delete_matching_nothing_is_not_found(self, store, client):
        client.table.return_value.delete.return_value.eq.return_value.execute.return_value = Mock(data=[])

        with pytest.raises(NotFoundError):
            store.delete_by_id("missing")

    def test_delete_malformed_id_is_not_found(self, store, client):
        client.table.return_value.delete.return_value.eq.return_value.execute.side_effect = _api_error(
            "22P02", "invalid input syntax for type uuid"
        )

        with pytest.raises(NotFoundError):
            store.delete_by_id("not-a-uuid")

    def test_delete_connectivity_error(self, store, client):
        client.table.return_value.delete.return_value.eq.return_value.execute.side_effect = httpx.ConnectError("down")

        with pytest.raises(ConnectivityError):
            store.delete_by_id("dev-01")


class TestInitSupabase:

    def _app(self, **config):
        app = MagicMock()
        app.extensions = {}
        app.config = {"DEVOTIONS_TABLE": "devotions", **config}
        return app

    def test_memory_backend(self):
        app = self._app(CONTENT_STORE="memory")
        init_supabase(app)

        state = app.extensions["supabase"]
        assert state["store"] is not None
        assert state["store"] is state["admin_store"]

    def test_missing_credentials_disable_store(self):
        app = self._app(CONTENT_STORE="supabase", SUPABASE_URL="", SUPABASE_ANON_KEY="")
        init_supabase(app)

        assert app.extensions["supabase"]["store"] is None
        app.logger.warning.assert_called_once()

    @patch("app.services.supabase_client.create_client")
    def test_service_key_gets_separate_admin_store(self, mock_create):
        app = self._app(
            CONTENT_STORE="supabase",
            SUPABASE_URL="https://x.supabase.co",
            SUPABASE_ANON_KEY="anon",
            SUPABASE_SERVICE_ROLE_KEY="service",
        )
        init_supabase(app)

        state = app.extensions["supabase"]
        assert mock_create.call_count == 2
        assert isinstance(state["store"], SupabaseDevotionStore)
        assert state["admin_store"] is not state["store"]

    @patch("app.services.supabase_client.create_client")
    def test_without_service_key_admin_uses_anon_store(self, mock_create):
        app = self._app(
            CONTENT_STORE="supabase",
            SUPABASE_URL="https://x.supabase.co",
            SUPABASE_ANON_KEY="anon",
            SUPABASE_SERVICE_ROLE_KEY="",
        )
        init_supabase(app)

        state = app.extensions["supabase"]
        mock_create.assert_called_once_with("https://x.supabase.co", "anon")
        assert state["admin_store"] is state["store"]
