"""
Shared fixtures.

No network: the Supabase client is replaced by an in-memory table fake,
and the local store writes under pytest's tmp_path.
"""

from itertools import count
from typing import Callable, Optional

import pytest

from confia.audit import AuditLogger
from confia.config import SupabaseSettings
from confia.services.auth import AuthError, Principal, SessionProviderInterface
from confia.services.storage import (
    LocalKeyValueStore,
    LocalRecordStore,
    SupabaseClient,
    SupabaseRecordStore,
)
from confia.session import AppSession


class FakeAPIError(Exception):
    """Mimics postgrest's APIError, which carries a `message` attribute."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """The subset of the postgrest query builder the store uses."""

    def __init__(self, db: "FakeDatabase", table: str):
        self._db = db
        self._table = table
        self._op = None
        self._payload = None
        self._filters = []

    def select(self, columns: str = "*"):
        self._op = "select"
        return self

    def insert(self, payload: dict):
        self._op = "insert"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column: str, value):
        self._filters.append((column, value))
        return self

    def _matches(self, row: dict) -> bool:
        return all(str(row.get(column)) == str(value) for column, value in self._filters)

    def execute(self) -> FakeResponse:
        self._db.calls.append((self._table, self._op, self._payload, list(self._filters)))
        error = self._db.failures.get((self._table, self._op))
        if error is not None:
            raise error

        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "select":
            return FakeResponse([dict(row) for row in rows])
        if self._op == "insert":
            if self._db.empty_insert:
                return FakeResponse([])
            row = dict(self._payload)
            row["id"] = next(self._db.ids)
            row["created_at"] = "2024-05-01T12:00:00+00:00"
            rows.append(row)
            return FakeResponse([dict(row)])
        if self._op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self._db.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(removed)
        raise AssertionError(f"Unexpected operation {self._op}")


class FakeDatabase:
    """In-memory tables keyed by name; rows get integer ids like Postgres."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list = []
        self.empty_insert = False
        self.ids = count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, op: str, message: str = "permission denied") -> None:
        self.failures[(table, op)] = FakeAPIError(message)


class FakeSupabaseClient(SupabaseClient):
    """SupabaseClient whose connection is the in-memory database."""

    def __init__(self, db: FakeDatabase):
        super().__init__(
            SupabaseSettings(url="https://example.supabase.co", anon_key="test-key")
        )
        self._db = db

    def connect(self):
        return self._db


class FakeSessionProvider(SessionProviderInterface):
    """Identity provider with a fixed set of accounts."""

    def __init__(self, accounts: Optional[dict[str, tuple[str, str]]] = None):
        # email -> (password, user id)
        self._accounts = accounts or {"owner@example.com": ("secret", "user-1")}
        self._principal: Optional[Principal] = None
        self._listeners: list[Callable] = []
        self.sign_out_calls = 0

    def get_session(self) -> Optional[Principal]:
        return self._principal

    def sign_in(self, email: str, password: str) -> Principal:
        account = self._accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        self._principal = Principal(id=account[1], email=email)
        return self._principal

    def sign_out(self) -> None:
        self.sign_out_calls += 1
        self._principal = None

    def subscribe(self, listener):
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, principal: Optional[Principal]) -> None:
        """Simulate a session change pushed by the provider."""
        self._principal = principal
        for listener in list(self._listeners):
            listener(principal)


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def kv_store(tmp_path):
    return LocalKeyValueStore(tmp_path / "data")


@pytest.fixture
def local_store(kv_store, audit_logger):
    return LocalRecordStore(kv_store, key_prefix="confia_", audit_logger=audit_logger)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def remote_client(fake_db):
    return FakeSupabaseClient(fake_db)


@pytest.fixture
def remote_store(remote_client):
    return SupabaseRecordStore(remote_client, owner_id="user-1")


@pytest.fixture
def session_provider():
    return FakeSessionProvider()


@pytest.fixture
def make_session(kv_store, audit_logger, remote_client, session_provider):
    """Build an AppSession; remote wiring is optional."""

    def _make(remote: bool = True) -> AppSession:
        return AppSession(
            session_provider=session_provider if remote else None,
            remote_client=remote_client if remote else None,
            local_store_factory=lambda: LocalRecordStore(
                kv_store, key_prefix="confia_", audit_logger=audit_logger
            ),
            audit_logger=audit_logger,
        )

    return _make
