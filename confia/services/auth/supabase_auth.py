"""Supabase Auth session provider."""

from typing import Any, Callable, Optional

import structlog

from confia.services.auth.interface import (
    AuthError,
    Principal,
    SessionListener,
    SessionProviderInterface,
)
from confia.services.storage.supabase_store import SupabaseClient, backend_message


logger = structlog.get_logger(__name__)


def _principal_from_session(session: Any) -> Optional[Principal]:
    user = getattr(session, "user", None) if session else None
    if user is None:
        return None
    return Principal(id=str(user.id), email=getattr(user, "email", None))


class SupabaseSessionProvider(SessionProviderInterface):
    """Wraps `client.auth` of the shared Supabase client."""

    def __init__(self, client: SupabaseClient):
        self._client = client

    @property
    def _auth(self):
        return self._client.connect().auth

    def get_session(self) -> Optional[Principal]:
        try:
            return _principal_from_session(self._auth.get_session())
        except Exception as e:
            logger.warning("get_session_failed", error=str(e))
            return None

    def sign_in(self, email: str, password: str) -> Principal:
        try:
            response = self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthError(backend_message(e))

        principal = _principal_from_session(getattr(response, "session", None))
        if principal is None and getattr(response, "user", None) is not None:
            principal = Principal(id=str(response.user.id), email=response.user.email)
        if principal is None:
            raise AuthError("Sign-in returned no user")
        return principal

    def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except Exception as e:
            # The local session is dropped either way
            logger.warning("sign_out_failed", error=str(e))

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        subscription = self._auth.on_auth_state_change(
            lambda _event, session: listener(_principal_from_session(session))
        )
        return subscription.unsubscribe
