"""Tests for the Supabase Auth session provider."""

from types import SimpleNamespace

import pytest

from confia.services.auth import AuthError, Principal, SupabaseSessionProvider
from confia.services.storage import SupabaseClient


def make_session(user_id="user-1", email="owner@example.com"):
    return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))


class FakeAuth:
    """The subset of supabase-py's `client.auth` the provider uses."""

    def __init__(self):
        self.session = None
        self.listener = None
        self.unsubscribed = False
        self.fail_sign_out = False

    def get_session(self):
        return self.session

    def sign_in_with_password(self, credentials):
        if credentials["password"] != "secret":
            raise RuntimeError("Invalid login credentials")
        self.session = make_session(email=credentials["email"])
        return SimpleNamespace(session=self.session, user=self.session.user)

    def sign_out(self):
        if self.fail_sign_out:
            raise RuntimeError("network down")
        self.session = None

    def on_auth_state_change(self, callback):
        self.listener = callback
        return SimpleNamespace(unsubscribe=self._unsubscribe)

    def _unsubscribe(self):
        self.unsubscribed = True


class FakeAuthClient(SupabaseClient):
    def __init__(self, auth: FakeAuth):
        self._auth = auth

    def connect(self):
        return SimpleNamespace(auth=self._auth)


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def provider(auth):
    return SupabaseSessionProvider(FakeAuthClient(auth))


class TestSupabaseSessionProvider:
    """Tests for SupabaseSessionProvider."""

    def test_no_session(self, provider):
        """Test signed-out state."""
        assert provider.get_session() is None

    def test_sign_in(self, provider):
        """Test a successful sign-in returns the principal."""
        principal = provider.sign_in("owner@example.com", "secret")
        assert principal == Principal(id="user-1", email="owner@example.com")
        assert provider.get_session() == principal

    def test_sign_in_rejected(self, provider):
        """Test rejected credentials raise AuthError."""
        with pytest.raises(AuthError, match="Invalid login credentials"):
            provider.sign_in("owner@example.com", "wrong")

    def test_sign_out_failure_is_absorbed(self, provider, auth):
        """Test sign-out never raises."""
        auth.fail_sign_out = True
        provider.sign_out()

    def test_subscribe(self, provider, auth):
        """Test auth events are translated into principals."""
        received = []
        unsubscribe = provider.subscribe(received.append)

        auth.listener("SIGNED_IN", make_session(user_id=42))
        auth.listener("SIGNED_OUT", None)
        assert received == [Principal(id="42", email="owner@example.com"), None]

        unsubscribe()
        assert auth.unsubscribed is True

    def test_get_session_failure_reads_as_signed_out(self, provider, auth):
        """Test provider errors are treated as no session."""
        def broken():
            raise RuntimeError("refresh token expired")

        auth.get_session = broken
        assert provider.get_session() is None
