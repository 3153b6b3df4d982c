"""
Supabase client initialization and helper functions.

Provides centralized access to Supabase for:
- Authentication (email/password sign-in for admins)
- Devotion queries (paged reads, insert, update, delete)

Clients are created once in the app factory and kept on
app.extensions["supabase"]; nothing here lives in module globals.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List
import httpx
from flask import current_app
from postgrest.exceptions import APIError
from supabase import create_client, Client

from app.services.content_store import ContentStore, InMemoryContentStore
from app.services.devotions import Devotion, to_row
from app.utils.errors import (
    ConnectivityError,
    NotFoundError,
    QueryError,
    ValidationError,
    log_error,
    log_info,
)

# PostgreSQL error codes that mean "the data you sent is bad"
_VALIDATION_CODES = {"23502", "23505", "23514", "22P02", "22007", "22008", "22001"}


def _translate(e: Exception, operation: str, validation_ok: bool = False) -> Exception:
    """Map a Supabase/PostgREST/httpx exception onto the store error taxonomy."""
    if isinstance(e, httpx.TransportError):
        return ConnectivityError(f"{operation}: {e}")
    if isinstance(e, APIError):
        if validation_ok and e.code in _VALIDATION_CODES:
            return ValidationError(e.message or f"{operation} rejected by database")
        return QueryError(f"{operation}: [{e.code}] {e.message}")
    return QueryError(f"{operation}: {e}")


class SupabaseDevotionStore:
    """ContentStore backed by a Supabase table."""

    def __init__(self, client: Client, table: str = "devotions"):
        self._client = client
        self.table = table

    def fetch_page(
        self,
        offset: int,
        limit: int,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Devotion]:
        try:
            response = (self._client
                       .table(self.table)
                       .select("*")
                       .order(order_by, desc=descending)
                       .range(offset, offset + limit - 1)
                       .execute())
        except Exception as e:
            err = _translate(e, "fetch_page")
            log_error(f"Error fetching devotions [{offset}, {offset + limit - 1}]: {e}")
            raise err from e

        return [Devotion.from_row(row) for row in (response.data or [])]

    def insert(self, payload: Dict[str, Any]) -> Devotion:
        try:
            response = self._client.table(self.table).insert(to_row(payload)).execute()
        except Exception as e:
            log_error(f"Error creating devotion: {e}")
            raise _translate(e, "insert", validation_ok=True) from e

        if not response.data:
            raise QueryError("insert: no row returned")
        return Devotion.from_row(response.data[0])

    def update_by_id(self, devotion_id: str, patch: Dict[str, Any]) -> Devotion:
        try:
            response = (self._client
                       .table(self.table)
                       .update(to_row(patch))
                       .eq("id", devotion_id)
                       .execute())
        except Exception as e:
            log_error(f"Error updating devotion {devotion_id}: {e}")
            raise _translate(e, "update", validation_ok=True) from e

        # Zero rows back means the id matched nothing (or RLS hid it)
        if not response.data:
            raise NotFoundError(f"Devotion {devotion_id} not found")
        return Devotion.from_row(response.data[0])

    def delete_by_id(self, devotion_id: str) -> None:
        try:
            response = (self._client
                       .table(self.table)
                       .delete()
                       .eq("id", devotion_id)
                       .execute())
        except APIError as e:
            log_error(f"Error deleting devotion {devotion_id}: {e}")
            if e.code == "22P02":  # malformed uuid
                raise NotFoundError(f"Devotion {devotion_id} not found") from e
            raise _translate(e, "delete") from e
        except Exception as e:
            log_error(f"Error deleting devotion {devotion_id}: {e}")
            raise _translate(e, "delete") from e

        if not response.data:
            raise NotFoundError(f"Devotion {devotion_id} not found")

    def current_identity(self, access_token: str, refresh_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return verify_session(self._client, access_token, refresh_token)


def init_supabase(app) -> None:
    """
    Build the content stores and auth client for this app.

    CONTENT_STORE=memory uses an InMemoryContentStore for both the public
    and admin side. Otherwise two Supabase clients are created:
    - Regular client with anon key (public reads, auth)
    - Admin client with service role key (devotion writes)

    Call this from the Flask app factory.
    """
    state: Dict[str, Any] = {"client": None, "admin": None, "store": None, "admin_store": None}
    app.extensions["supabase"] = state

    table = app.config.get("DEVOTIONS_TABLE", "devotions")

    if app.config.get("CONTENT_STORE") == "memory":
        store = InMemoryContentStore()
        state["store"] = state["admin_store"] = store
        app.logger.info("Using in-memory content store")
        return

    url = app.config.get("SUPABASE_URL", "")
    anon_key = app.config.get("SUPABASE_ANON_KEY", "")
    service_key = app.config.get("SUPABASE_SERVICE_ROLE_KEY", "")

    if not url or not anon_key:
        app.logger.warning("Supabase URL or ANON_KEY not configured. Devotions will be unavailable.")
        return

    try:
        state["client"] = create_client(url, anon_key)
        state["store"] = SupabaseDevotionStore(state["client"], table)
        app.logger.info("Supabase client initialized successfully")

        if service_key:
            state["admin"] = create_client(url, service_key)
            state["admin_store"] = SupabaseDevotionStore(state["admin"], table)
            app.logger.info("Supabase admin client initialized successfully")
        else:
            # Writes go through the anon client and depend on RLS policies
            state["admin_store"] = state["store"]
            app.logger.warning("SUPABASE_SERVICE_ROLE_KEY not configured. Admin writes use the anon key.")

    except Exception as e:
        app.logger.error(f"Failed to initialize Supabase client: {e}")
        state.update(client=None, admin=None, store=None, admin_store=None)


def _state() -> Dict[str, Any]:
    return current_app.extensions.get("supabase", {})


def get_client() -> Optional[Client]:
    """Supabase client using the anon key (auth and public reads)."""
    return _state().get("client")


def get_store(admin: bool = False) -> Optional[ContentStore]:
    """Content store for the public read view, or the admin dashboard."""
    return _state().get("admin_store" if admin else "store")


# ============================================================================
# Authentication Helpers
# ============================================================================

def sign_in_with_password(email: str, password: str) -> Dict[str, Any]:
    """
    Sign an admin in with email and password.

    Returns:
        Dict with 'success' bool and either 'user', 'access_token',
        'refresh_token' or 'error'
    """
    client = get_client()
    if not client:
        return {"success": False, "error": "Authentication is not configured"}

    try:
        response = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        log_error(f"Error signing in: {e}")
        message = str(e).lower()
        if "rate limit" in message or "too many requests" in message:
            return {"success": False, "error": "Too many sign-in attempts. Please wait a few minutes."}
        return {"success": False, "error": "Invalid email or password."}

    if not response or not response.session:
        return {"success": False, "error": "Invalid email or password."}

    log_info(f"Admin signed in: {response.user.id}")
    return {
        "success": True,
        "user": response.user.model_dump(),
        "access_token": response.session.access_token,
        "refresh_token": response.session.refresh_token,
    }


def verify_session(client: Optional[Client], access_token: str,
                   refresh_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Verify a session token and return the user it belongs to.

    Returns:
        User dict with id, email, etc. or None if invalid
    """
    if not client:
        return None

    try:
        session_response = client.auth.set_session(
            access_token=access_token,
            refresh_token=refresh_token or "",
        )
        if session_response and session_response.user:
            return session_response.user.model_dump()
        return None
    except Exception as e:
        log_error(f"Error verifying session: {e}")
        return None


def current_identity(access_token: str, refresh_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return the signed-in user for these tokens, or None."""
    return verify_session(get_client(), access_token, refresh_token)


def sign_out(access_token: str) -> bool:
    """Sign the current admin out of Supabase Auth."""
    client = get_client()
    if not client:
        return False

    try:
        if access_token:
            client.auth.set_session(access_token, "")
        client.auth.sign_out()
        return True
    except Exception as e:
        log_error(f"Error signing out: {e}")
        return False
