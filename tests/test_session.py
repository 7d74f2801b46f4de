"""Tests for mode selection, the application session and the facade."""

import pytest

from confia.models.records import CustomerCreate, EntityKind, StoreMode
from confia.services.auth import AuthError, Principal
from confia.services.storage import (
    ConfigurationError,
    LocalRecordStore,
    RecordStoreFacade,
    SupabaseRecordStore,
)
from confia.session import AppSession, select_mode


class TestSelectMode:
    """Tests for select_mode()."""

    @pytest.mark.parametrize("has_session,remote_configured,offline,expected", [
        (True, True, False, StoreMode.REMOTE),
        (True, True, True, StoreMode.REMOTE),
        (False, True, True, StoreMode.LOCAL),
        (True, False, True, StoreMode.LOCAL),
        (False, False, True, StoreMode.LOCAL),
        (False, True, False, StoreMode.NONE),
        (True, False, False, StoreMode.NONE),
        (False, False, False, StoreMode.NONE),
    ])
    def test_mode_table(self, has_session, remote_configured, offline, expected):
        """Test every combination of session, configuration and demo flag."""
        assert select_mode(has_session, remote_configured, offline) == expected


class TestRecordStoreFacade:
    """Tests for RecordStoreFacade."""

    @pytest.mark.asyncio
    async def test_without_backend_lists_are_empty(self):
        """Test an inactive facade reads as empty."""
        facade = RecordStoreFacade()
        assert facade.mode == StoreMode.NONE
        assert facade.is_active is False
        assert await facade.customers.list() == []
        assert await facade.transactions.list() == []

    @pytest.mark.asyncio
    async def test_without_backend_writes_are_refused(self):
        """Test create/delete raise ConfigurationError with no store."""
        facade = RecordStoreFacade()
        with pytest.raises(ConfigurationError):
            await facade.customers.create({"name": "Acme", "tax_id": "123"})
        with pytest.raises(ConfigurationError):
            await facade.suppliers.delete("1")

    @pytest.mark.asyncio
    async def test_create_validates_fields(self, local_store):
        """Test required fields are checked before the backend is called."""
        facade = RecordStoreFacade(local_store)
        with pytest.raises(ValueError):
            await facade.customers.create({"name": "", "tax_id": "123"})
        assert await facade.customers.list() == []

    @pytest.mark.asyncio
    async def test_create_accepts_dict_or_model(self, local_store):
        """Test both input shapes are stored."""
        facade = RecordStoreFacade(local_store)
        await facade.customers.create({"name": "Acme", "tax_id": "123"})
        await facade.customers.create(CustomerCreate(name="Padaria", tax_id="456"))
        assert [c.name for c in await facade.customers.list()] == ["Acme", "Padaria"]

    def test_collection_lookup(self, local_store):
        """Test collection() returns the named handles."""
        facade = RecordStoreFacade(local_store)
        assert facade.collection(EntityKind.SUPPLIERS) is facade.suppliers
        assert facade.collection(EntityKind.TRANSACTIONS).entity == EntityKind.TRANSACTIONS
        assert facade.mode == StoreMode.LOCAL


class TestAppSession:
    """Tests for AppSession."""

    def test_starts_with_no_store(self, make_session):
        """Test nothing is active before sign-in or demo mode."""
        session = make_session()
        session.start()
        assert session.mode == StoreMode.NONE
        assert session.store.is_active is False
        assert session.display_email == "usuario@demo.com"

    def test_start_subscribes_once(self, make_session, session_provider):
        """Test start() and teardown() manage the subscription."""
        session = make_session()
        session.start()
        session.start()
        assert session_provider.listener_count == 1
        session.teardown()
        assert session_provider.listener_count == 0

    def test_enter_offline_mode(self, make_session):
        """Test demo mode selects the local store."""
        session = make_session()
        session.start()
        generation = session.generation

        session.enter_offline_mode()
        assert session.mode == StoreMode.LOCAL
        assert isinstance(session.store.backend, LocalRecordStore)
        assert session.generation == generation + 1

    def test_offline_mode_without_remote_configuration(self, make_session):
        """Test demo mode works with no remote backend at all."""
        session = make_session(remote=False)
        session.start()
        assert session.remote_configured is False
        session.enter_offline_mode()
        assert session.mode == StoreMode.LOCAL

    def test_sign_in_selects_remote_store(self, make_session):
        """Test signing in builds a remote store for the principal."""
        session = make_session()
        session.start()
        principal = session.sign_in("owner@example.com", "secret")

        assert principal.id == "user-1"
        assert session.mode == StoreMode.REMOTE
        assert isinstance(session.store.backend, SupabaseRecordStore)
        assert session.store.backend.owner_id == "user-1"
        assert session.display_email == "owner@example.com"

    def test_sign_in_wins_over_demo_mode(self, make_session):
        """Test a session takes precedence over the demo flag."""
        session = make_session()
        session.start()
        session.enter_offline_mode()
        session.sign_in("owner@example.com", "secret")
        assert session.mode == StoreMode.REMOTE

    def test_bad_credentials(self, make_session):
        """Test rejected credentials leave the session unchanged."""
        session = make_session()
        session.start()
        with pytest.raises(AuthError):
            session.sign_in("owner@example.com", "wrong")
        assert session.mode == StoreMode.NONE

    def test_sign_in_without_remote_configuration(self, make_session):
        """Test sign-in is refused when no backend is configured."""
        session = make_session(remote=False)
        session.start()
        with pytest.raises(ConfigurationError):
            session.sign_in("owner@example.com", "secret")

    def test_existing_session_is_restored_on_start(self, make_session, session_provider):
        """Test a provider session present at startup selects remote mode."""
        session_provider.sign_in("owner@example.com", "secret")
        session = make_session()
        session.start()
        assert session.mode == StoreMode.REMOTE

    def test_provider_change_rebuilds_store(self, make_session, session_provider):
        """Test session changes pushed by the provider switch the store."""
        session = make_session()
        session.start()
        generation = session.generation

        session_provider.emit(Principal(id="user-2", email="other@example.com"))
        assert session.mode == StoreMode.REMOTE
        assert session.store.backend.owner_id == "user-2"
        assert session.generation == generation + 1

        # Same principal again: nothing to rebuild
        session_provider.emit(Principal(id="user-2", email="other@example.com"))
        assert session.generation == generation + 1

        session_provider.emit(None)
        assert session.mode == StoreMode.NONE

    def test_sign_out(self, make_session, session_provider):
        """Test sign-out clears the principal and the demo flag."""
        session = make_session()
        session.start()
        session.enter_offline_mode()
        session.sign_in("owner@example.com", "secret")

        session.sign_out()
        assert session_provider.sign_out_calls == 1
        assert session.principal is None
        assert session.offline_mode is False
        assert session.mode == StoreMode.NONE
        assert session.store.is_active is False

    def test_sign_out_from_demo_mode_skips_provider(self, make_session, session_provider):
        """Test leaving demo mode does not call the provider."""
        session = make_session()
        session.start()
        session.enter_offline_mode()
        session.sign_out()
        assert session_provider.sign_out_calls == 0
        assert session.mode == StoreMode.NONE

    @pytest.mark.asyncio
    async def test_remote_create_is_owned_by_principal(self, make_session, fake_db):
        """Test records created through the session carry the owner."""
        session = make_session()
        session.start()
        session.sign_in("owner@example.com", "secret")

        created = await session.store.customers.create({"name": "Acme", "tax_id": "123"})
        assert created.owner_id == "user-1"
        assert fake_db.tables["clientes"][0]["usuario_id"] == "user-1"

    @pytest.mark.asyncio
    async def test_demo_data_persists_across_sessions(self, make_session):
        """Test local data is still there after sign-out and back."""
        session = make_session(remote=False)
        session.start()
        session.enter_offline_mode()
        await session.store.customers.create({"name": "Acme", "tax_id": "123"})

        session.sign_out()
        assert await session.store.customers.list() == []

        session.enter_offline_mode()
        assert [c.name for c in await session.store.customers.list()] == ["Acme"]


def test_default_session_has_no_remote():
    """Test a bare AppSession only offers demo mode."""
    session = AppSession()
    assert session.remote_configured is False
    assert session.mode == StoreMode.NONE
