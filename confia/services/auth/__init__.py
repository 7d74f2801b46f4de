"""Identity / session services package."""

from confia.services.auth.interface import (
    AuthError,
    Principal,
    SessionListener,
    SessionProviderInterface,
)
from confia.services.auth.supabase_auth import SupabaseSessionProvider

__all__ = [
    "AuthError",
    "Principal",
    "SessionListener",
    "SessionProviderInterface",
    "SupabaseSessionProvider",
]
