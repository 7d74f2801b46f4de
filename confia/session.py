"""
Application Session

Holds the two facts that decide where records live:
- who is signed in (if anyone)
- whether the user chose demo mode

and builds the matching record store. Callers get the store from here
instead of reading global state.

Lifecycle:
1. start()      - read the current session, subscribe to changes
2. sign_in() / enter_offline_mode() / auth callbacks - switch store
3. sign_out()   - drop the session and demo mode
4. teardown()   - cancel the subscription
"""

from typing import Callable, Optional

from confia.audit import AuditLogger
from confia.models.records import StoreMode
from confia.services.auth import Principal, SessionProviderInterface
from confia.services.storage import (
    ConfigurationError,
    LocalRecordStore,
    RecordStoreFacade,
    RecordStoreInterface,
    SupabaseClient,
    SupabaseRecordStore,
)


def select_mode(
    has_session: bool,
    remote_configured: bool,
    offline_mode: bool,
) -> StoreMode:
    """
    Decide which backend serves the collections.

    Signed in with a configured backend -> remote; else demo mode -> local;
    else nothing.
    """
    if has_session and remote_configured:
        return StoreMode.REMOTE
    if offline_mode:
        return StoreMode.LOCAL
    return StoreMode.NONE


class AppSession:
    """
    Explicit session context for one user of the application.

    `generation` increases every time the active store is rebuilt, so
    callers can tell when they must refetch.
    """

    def __init__(
        self,
        session_provider: Optional[SessionProviderInterface] = None,
        remote_client: Optional[SupabaseClient] = None,
        local_store_factory: Callable[[], RecordStoreInterface] = LocalRecordStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._provider = session_provider
        self._remote_client = remote_client
        self._local_store_factory = local_store_factory
        self._audit_logger = audit_logger or AuditLogger()

        self._principal: Optional[Principal] = None
        self._offline_mode = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._store = RecordStoreFacade()
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def offline_mode(self) -> bool:
        return self._offline_mode

    @property
    def remote_configured(self) -> bool:
        return self._provider is not None and self._remote_client is not None

    @property
    def mode(self) -> StoreMode:
        return select_mode(
            has_session=self._principal is not None,
            remote_configured=self.remote_configured,
            offline_mode=self._offline_mode,
        )

    @property
    def store(self) -> RecordStoreFacade:
        return self._store

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def display_email(self) -> str:
        if self._principal and self._principal.email:
            return self._principal.email
        return "usuario@demo.com"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Load the current session and follow its changes."""
        if self._provider is not None:
            self._principal = self._provider.get_session()
            if self._unsubscribe is None:
                self._unsubscribe = self._provider.subscribe(self._on_session_changed)
        self._rebuild_store()

    def teardown(self) -> None:
        """Stop listening to session changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def sign_in(self, email: str, password: str) -> Principal:
        """
        Sign in against the remote backend.

        Raises:
            ConfigurationError: If no remote backend is configured
            AuthError: If the credentials were rejected
        """
        if not self.remote_configured:
            raise ConfigurationError("Remote backend is not configured")
        principal = self._provider.sign_in(email, password)
        self._set_principal(principal)
        self._audit_logger.log_session_started(self.mode.value, principal.id)
        return principal

    def enter_offline_mode(self) -> None:
        """Use the local store (demo mode)."""
        if self._offline_mode:
            return
        self._offline_mode = True
        self._rebuild_store()
        self._audit_logger.log_session_started(self.mode.value)

    def sign_out(self) -> None:
        """End the remote session and leave demo mode."""
        previous = self.mode
        if self._provider is not None and self._principal is not None:
            self._provider.sign_out()
        self._principal = None
        self._offline_mode = False
        self._rebuild_store()
        self._audit_logger.log_session_ended(previous.value)

    def _on_session_changed(self, principal: Optional[Principal]) -> None:
        self._set_principal(principal)

    def _set_principal(self, principal: Optional[Principal]) -> None:
        current_id = self._principal.id if self._principal else None
        new_id = principal.id if principal else None
        self._principal = principal
        if current_id != new_id:
            self._rebuild_store()

    def _rebuild_store(self) -> None:
        previous = self._store.mode
        mode = self.mode

        if mode == StoreMode.REMOTE:
            backend = SupabaseRecordStore(self._remote_client, owner_id=self._principal.id)
        elif mode == StoreMode.LOCAL:
            backend = self._local_store_factory()
        else:
            backend = None

        self._store = RecordStoreFacade(backend)
        self._generation += 1

        if previous != mode:
            self._audit_logger.log_mode_changed(previous.value, mode.value)
