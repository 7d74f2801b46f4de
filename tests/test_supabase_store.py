"""Tests for the Supabase record store (against an in-memory table fake)."""

from datetime import date
from decimal import Decimal

import pytest
from tenacity import wait_none

from confia.config import SupabaseSettings
from confia.models.records import (
    CustomerCreate,
    EntityKind,
    StoreMode,
    SupplierCreate,
    TransactionCreate,
    TransactionKind,
)
from confia.services.storage import (
    ConnectionError,
    PersistenceError,
    StorageError,
    SupabaseClient,
    SupabaseRecordStore,
)
from confia.services.storage.supabase_store import backend_message


class TestSupabaseRecordStore:
    """Tests for SupabaseRecordStore."""

    def test_mode_is_remote(self, remote_store):
        """Test the store reports remote mode."""
        assert remote_store.mode == StoreMode.REMOTE
        assert remote_store.owner_id == "user-1"

    def test_table_names(self, remote_client):
        """Test the default table names."""
        assert remote_client.table_name(EntityKind.CUSTOMERS) == "clientes"
        assert remote_client.table_name(EntityKind.SUPPLIERS) == "fornecedores"
        assert remote_client.table_name(EntityKind.TRANSACTIONS) == "lancamentos"

    @pytest.mark.asyncio
    async def test_create_stamps_owner_and_renames_columns(self, remote_store, fake_db):
        """Test the insert payload uses table column names and the owner."""
        created = await remote_store.create_record(
            EntityKind.CUSTOMERS,
            CustomerCreate(name="Acme", tax_id="123", email="a@a.com"),
        )

        row = fake_db.tables["clientes"][0]
        assert row["usuario_id"] == "user-1"
        assert row["cpf_cnpj"] == "123"
        assert "tax_id" not in row
        assert created.id == "1"
        assert created.tax_id == "123"
        assert created.owner_id == "user-1"

    @pytest.mark.asyncio
    async def test_supplier_column_mapping(self, remote_store, fake_db):
        """Test supplier renames both ways."""
        await remote_store.create_record(
            EntityKind.SUPPLIERS,
            SupplierCreate(name="Distribuidora", tax_id="99", product_or_service="Papel"),
        )
        row = fake_db.tables["fornecedores"][0]
        assert row["cnpj"] == "99"
        assert row["product_service"] == "Papel"

        suppliers = await remote_store.list_records(EntityKind.SUPPLIERS)
        assert suppliers[0].tax_id == "99"
        assert suppliers[0].product_or_service == "Papel"

    @pytest.mark.asyncio
    async def test_transaction_payload_is_json_ready(self, remote_store, fake_db):
        """Test kind is sent as `type` and date/amount are serializable."""
        created = await remote_store.create_record(
            EntityKind.TRANSACTIONS,
            TransactionCreate(
                kind=TransactionKind.EXPENSE,
                amount=Decimal("89.90"),
                date=date(2024, 5, 2),
                category="Alimentação",
            ),
        )
        row = fake_db.tables["lancamentos"][0]
        assert row["type"] == "expense"
        assert row["date"] == "2024-05-02"
        assert Decimal(str(row["amount"])) == Decimal("89.90")
        assert created.kind == TransactionKind.EXPENSE
        assert created.date == date(2024, 5, 2)

    @pytest.mark.asyncio
    async def test_list_converts_rows(self, remote_store, fake_db):
        """Test rows written by other clients are read as records."""
        fake_db.tables["lancamentos"] = [
            {
                "id": 7,
                "type": "income",
                "amount": 1000,
                "date": "2024-05-01",
                "category": "Vendas",
                "description": "Venda",
                "usuario_id": "user-1",
                "created_at": "2024-05-01T12:00:00+00:00",
            },
        ]
        transactions = await remote_store.list_records(EntityKind.TRANSACTIONS)
        assert len(transactions) == 1
        assert transactions[0].id == "7"
        assert transactions[0].kind == TransactionKind.INCOME
        assert transactions[0].amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_list_skips_malformed_rows(self, remote_store, fake_db):
        """Test that one bad row does not hide the others."""
        fake_db.tables["clientes"] = [
            {"id": 1, "name": "Acme", "cpf_cnpj": "123"},
            {"id": 2, "name": "", "cpf_cnpj": "456"},
            {"name": "No id", "cpf_cnpj": "789"},
        ]
        customers = await remote_store.list_records(EntityKind.CUSTOMERS)
        assert [c.id for c in customers] == ["1"]

    @pytest.mark.asyncio
    async def test_list_failure_raises_storage_error(self, remote_store, fake_db):
        """Test a backend error on select."""
        fake_db.fail("clientes", "select", "JWT expired")
        with pytest.raises(StorageError, match="JWT expired"):
            await remote_store.list_records(EntityKind.CUSTOMERS)

    @pytest.mark.asyncio
    async def test_create_failure_raises_persistence_error(self, remote_store, fake_db):
        """Test a rejected insert carries the backend message."""
        fake_db.fail("clientes", "insert", "new row violates row-level security policy")
        with pytest.raises(PersistenceError, match="row-level security"):
            await remote_store.create_record(
                EntityKind.CUSTOMERS, CustomerCreate(name="Acme", tax_id="123")
            )
        assert fake_db.tables.get("clientes", []) == []

    @pytest.mark.asyncio
    async def test_create_without_returned_row_fails(self, remote_store, fake_db):
        """Test an insert that returns no data is reported as a failure."""
        fake_db.empty_insert = True
        with pytest.raises(PersistenceError):
            await remote_store.create_record(
                EntityKind.CUSTOMERS, CustomerCreate(name="Acme", tax_id="123")
            )

    @pytest.mark.asyncio
    async def test_delete_by_id(self, remote_store, fake_db):
        """Test delete filters on id."""
        created = await remote_store.create_record(
            EntityKind.CUSTOMERS, CustomerCreate(name="Acme", tax_id="123")
        )
        await remote_store.delete_record(EntityKind.CUSTOMERS, created.id)

        assert fake_db.tables["clientes"] == []
        assert fake_db.calls[-1] == ("clientes", "delete", None, [("id", created.id)])

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_not_an_error(self, remote_store, fake_db):
        """Test deleting an absent id succeeds."""
        await remote_store.delete_record(EntityKind.CUSTOMERS, "404")

    @pytest.mark.asyncio
    async def test_delete_failure_raises_persistence_error(self, remote_store, fake_db):
        """Test a rejected delete."""
        fake_db.fail("clientes", "delete")
        with pytest.raises(PersistenceError, match="permission denied"):
            await remote_store.delete_record(EntityKind.CUSTOMERS, "1")

    @pytest.mark.asyncio
    async def test_owner_column_is_configurable(self, remote_client, fake_db):
        """Test a custom owner column is stamped."""
        remote_client._settings = remote_client.settings.model_copy(
            update={"owner_column": "owner"}
        )
        store = SupabaseRecordStore(remote_client, owner_id="user-9")
        created = await store.create_record(
            EntityKind.CUSTOMERS, CustomerCreate(name="Acme", tax_id="123")
        )
        assert fake_db.tables["clientes"][0]["owner"] == "user-9"
        assert created.owner_id == "user-9"


class TestBackendMessage:
    """Tests for backend_message()."""

    def test_prefers_message_attribute(self):
        """Test postgrest-style errors."""
        class APIError(Exception):
            def __init__(self, message):
                super().__init__({"message": message, "code": "23505"})
                self.message = message

        assert backend_message(APIError("duplicate key")) == "duplicate key"

    def test_falls_back_to_str(self):
        """Test plain exceptions."""
        assert backend_message(RuntimeError("boom")) == "boom"


class TestSupabaseClient:
    """Tests for the connection wrapper."""

    @staticmethod
    def flaky_create_client(failures):
        calls = []

        def create_client(url, key):
            calls.append((url, key))
            if len(calls) <= failures:
                raise OSError("temporary failure in name resolution")
            return "client"

        return create_client, calls

    def test_connect_retries_until_success(self, monkeypatch):
        """Test two failed attempts are retried and the third client is kept."""
        create_client, calls = self.flaky_create_client(failures=2)
        monkeypatch.setattr("confia.services.storage.supabase_store.create_client", create_client)
        client = SupabaseClient(SupabaseSettings(url="https://example.supabase.co", anon_key="k"))

        connect = SupabaseClient.connect.retry_with(wait=wait_none())
        assert connect(client) == "client"
        assert len(calls) == 3
        assert calls[0] == ("https://example.supabase.co", "k")

        assert connect(client) == "client"
        assert len(calls) == 3

    def test_connect_gives_up_after_three_attempts(self, monkeypatch):
        """Test the last failure surfaces as a ConnectionError."""
        create_client, calls = self.flaky_create_client(failures=5)
        monkeypatch.setattr("confia.services.storage.supabase_store.create_client", create_client)
        client = SupabaseClient(SupabaseSettings(url="https://example.supabase.co", anon_key="k"))

        with pytest.raises(ConnectionError, match="name resolution"):
            SupabaseClient.connect.retry_with(wait=wait_none())(client)
        assert len(calls) == 3
