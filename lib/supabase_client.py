# =============================================================================
# lib/supabase_client.py - Supabase Client Handle
# =============================================================================
# This module provides the connection handle to the relational backend.
# Two variants exist:
# - admin: service_role key, bypasses Row Level Security (batch jobs)
# - public: anon key, subject to RLS (read-only lookups)
#
# The underlying supabase Client is created lazily on first use and then
# reused. Entry points construct one SupabaseClient per role and pass it
# down, so there is no hidden module-level state.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   admin = SupabaseClient.from_settings(settings, role="admin")
#   rows = admin.table("app_documents").select("id,data").execute().data
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Literal

from supabase import Client, create_client

from app.config import Settings
from app.exceptions import StoreError

logger = logging.getLogger(__name__)

ClientRole = Literal["admin", "public"]


class SupabaseClientError(StoreError):
    """
    Error while creating or using the Supabase client.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)


class SupabaseClient:
    """
    Lazily-initialized Supabase connection handle.

    Example:
        admin = SupabaseClient.from_settings(settings)
        response = admin.table("businesses").select("*").eq("id", "b1").execute()
    """

    def __init__(
        self,
        url: str,
        key: str,
        role: ClientRole = "admin",
        client: Client | None = None,
    ):
        self.url = url
        self.role = role
        self._key = key
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, role: ClientRole = "admin") -> SupabaseClient:
        """Build a handle for the given role from application settings."""
        key = settings.SUPABASE_SERVICE_KEY if role == "admin" else settings.SUPABASE_ANON_KEY
        return cls(settings.SUPABASE_URL, key, role=role)

    @property
    def client(self) -> Client:
        """
        Get or create the underlying Supabase client.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if self._client is None:
            try:
                self._client = create_client(self.url, self._key)
                logger.info(f"Supabase {self.role} client initialized")
            except Exception as e:
                key_name = "SUPABASE_SERVICE_KEY" if self.role == "admin" else "SUPABASE_ANON_KEY"
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion=f"Check SUPABASE_URL and {key_name} in your .env file",
                ) from e
        return self._client

    def table(self, name: str):
        """Start a PostgREST query against a table."""
        return self.client.table(name)
