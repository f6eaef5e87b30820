"""Shared helpers for Supabase repositories."""

import httpx
from postgrest.exceptions import APIError

from nutrition_log.errors import PersistenceError


def execute(request, action: str):  # type: ignore[no-untyped-def]
    """Execute a Supabase request, mapping client failures to PersistenceError."""
    try:
        return request.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise PersistenceError(f"Supabase {action} failed") from exc
