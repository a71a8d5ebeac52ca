"""
Main Orchestrator for GameSwap

Ties the session, the transfer engine, the account store and the audit
log together, and defines the flow of every user action:

    propose → confirm → commit

1. propose_*() validates the action against the current state and
   returns a PendingOperation carrying the question to ask
2. The confirmation prompt answers it (or a UI answers later)
3. commit() re-reads the target item by id, runs the engine on fresh
   state and writes every changed account in ONE store commit

Rejected actions are resolved here: the user is notified (a declined
prompt is silent), the rejection is audited and nothing is committed.
"""

from datetime import datetime
from typing import Callable, Optional, TypeVar
from uuid import UUID, uuid4

from pydantic import ValidationError

from gameswap import engine
from gameswap.audit import AuditLogger, configure_logging, create_correlation_id
from gameswap.config import SessionSettings, get_settings
from gameswap.data import default_accounts
from gameswap.engine.errors import (
    CatalogError,
    DeniedByUserError,
    InvalidSelectionError,
    InvariantViolationError,
    NoActiveSessionError,
    StaleReferenceError,
)
from gameswap.models.account import Account, CollectionStats, Item, ItemCategory
from gameswap.models.session import (
    EngineResult,
    OperationKind,
    PendingOperation,
    SessionContext,
)
from gameswap.queries import collection_stats
from gameswap.services.storage import (
    InMemoryAccountStorage,
    JsonFileAccountStorage,
    StorageError,
)
from gameswap.store import AccountStore


ConfirmPrompt = Callable[[str], bool]
Notifier = Callable[[str], None]
IdGenerator = Callable[[], str]

T = TypeVar("T")

IN_USE_PROMPT = "If you are playing a game, you cannot swap it. Do you continue?"
REMOVAL_PROMPT = "Are you sure that you want to delete this game from your collection?"
TRANSFER_PROMPT = "Are you sure that you want to swap this game with {handle}?"

MAX_ID_ATTEMPTS = 10


def new_item_id() -> str:
    return str(uuid4())


class CatalogService:
    """
    Runs user actions for the single active session.

    The active account is never cached: it is looked up in the store's
    committed list every time it is needed.
    """

    def __init__(
        self,
        store: AccountStore,
        confirm: ConfirmPrompt,
        notify: Notifier,
        audit_logger: Optional[AuditLogger] = None,
        id_generator: Optional[IdGenerator] = None,
        session_settings: Optional[SessionSettings] = None,
    ):
        self._store = store
        self._confirm = confirm
        self._notify = notify
        self._audit_logger = audit_logger or AuditLogger()
        self._new_id = id_generator or new_item_id
        self._session_settings = session_settings or get_settings().session
        self._session = SessionContext()

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def active_account(self) -> Optional[Account]:
        """The logged-in account, freshly read from the store."""
        if not self._session.is_active:
            return None
        return self._store.get(self._session.handle)

    def _require_active(self) -> Account:
        if not self._session.is_active:
            raise NoActiveSessionError()
        return self._store.get(self._session.handle)

    def start_session(self, handle: str, now: Optional[datetime] = None) -> bool:
        """
        Make `handle` the active account.

        Credentials are checked by the auth collaborator before this is
        called; here the handle only has to exist.
        """
        def action(correlation_id: UUID) -> bool:
            self._store.get(handle)
            self._session = SessionContext(handle=handle).touched(now)
            self._audit_logger.log_session_started(handle)
            return True

        return bool(self._attempt("start_session", action))

    def end_session(self) -> None:
        if self._session.is_active:
            self._audit_logger.log_session_ended(self._session.handle)
        self._session = SessionContext()

    def expire_session(self) -> None:
        """Log out after inactivity; drops any open menu and pending selection."""
        if not self._session.is_active:
            return
        self._audit_logger.log_session_ended(self._session.handle, expired=True)
        self._session = SessionContext()
        self._notify(self._session_settings.expiry_message)

    def touch(self, now: Optional[datetime] = None) -> None:
        """Record user activity (any click resets the idle timer)."""
        if self._session.is_active:
            self._session = self._session.touched(now)

    def check_idle(self, now: Optional[datetime] = None) -> bool:
        """Expire the session if it has been idle too long. Returns True if it expired."""
        if self._session.is_active and self._session.is_idle(
            self._session_settings.idle_timeout_seconds, now
        ):
            self.expire_session()
            return True
        return False

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    def is_menu_open(self, item_id: str) -> bool:
        return self._session.is_menu_open(item_id)

    def transfer_options(self) -> list[str]:
        """Handles the open swap menu may offer for the pending item."""
        active = self.active_account
        pending = self._session.pending_item_id
        if active is None or pending is None or active.find_item(pending) is None:
            return []
        return engine.transfer_options(active, self._store.load(), pending)

    def stats(self) -> Optional[CollectionStats]:
        active = self.active_account
        if active is None:
            return None
        return collection_stats(active)

    # -------------------------------------------------------------------------
    # Actions without confirmation
    # -------------------------------------------------------------------------

    def add_item(
        self,
        title: str,
        category: ItemCategory,
        cover_url: str = "",
    ) -> Optional[Item]:
        """Create a new game in the active account's collection."""
        def action(correlation_id: UUID) -> Item:
            active = self._require_active()
            try:
                item = Item(
                    id=self._unique_item_id(),
                    title=title,
                    category=category,
                    cover_url=cover_url,
                )
            except ValidationError as e:
                raise InvalidSelectionError(f"Invalid game details: {e.errors()[0]['msg']}") from e

            result = engine.add_item(self._session, active, item, self._store.taken_ids())
            self._apply(result, correlation_id)
            self._audit_logger.log_item_added(active.handle, item.id, item.title, correlation_id)
            return item

        return self._attempt("add_item", action)

    def toggle_menu(self, item_id: str) -> bool:
        """Open or close the swap menu of an item."""
        def action(correlation_id: UUID) -> bool:
            result = engine.toggle_menu(self._session, self._require_active(), item_id)
            self._apply(result, correlation_id)
            return True

        return bool(self._attempt("toggle_menu", action))

    # -------------------------------------------------------------------------
    # Confirmation protocol
    # -------------------------------------------------------------------------

    def propose_set_in_use(self, item_id: str) -> PendingOperation:
        """
        Propose flipping the in-use flag.

        Only switching it on needs confirmation.

        Raises:
            CatalogError: If the action is not possible right now
        """
        active = self._require_active()
        engine.set_in_use(self._session, active, item_id)
        turning_on = not active.find_item(item_id).in_use
        return PendingOperation(
            kind=OperationKind.SET_IN_USE,
            handle=active.handle,
            item_id=item_id,
            in_use_target=turning_on,
            prompt=IN_USE_PROMPT if turning_on else "",
            requires_confirmation=turning_on,
        )

    def propose_removal(self, item_id: str) -> PendingOperation:
        """
        Raises:
            CatalogError: If the item cannot be removed
        """
        active = self._require_active()
        engine.remove_item(self._session, active, item_id)
        return PendingOperation(
            kind=OperationKind.REMOVE,
            handle=active.handle,
            item_id=item_id,
            prompt=REMOVAL_PROMPT,
        )

    def propose_transfer(self, counterpart: str) -> PendingOperation:
        """
        Propose swapping the pending item with `counterpart`.

        Raises:
            CatalogError: If the selection is invalid
        """
        active = self._require_active()
        engine.transfer(self._session, active, self._store.load(), counterpart)
        return PendingOperation(
            kind=OperationKind.TRANSFER,
            handle=active.handle,
            item_id=self._session.pending_item_id,
            counterpart=counterpart,
            prompt=TRANSFER_PROMPT.format(handle=counterpart),
        )

    def commit(self, pending: PendingOperation, confirmed: bool) -> bool:
        """
        Apply a proposed operation once the user has answered.

        Returns:
            True if the operation was committed
        """
        return bool(self._attempt(
            pending.kind.value,
            lambda correlation_id: self._execute(pending, confirmed, correlation_id),
            item_id=pending.item_id,
        ))

    def toggle_in_use(self, item_id: str) -> bool:
        return self._run_confirmed("set_in_use", lambda: self.propose_set_in_use(item_id), item_id)

    def remove_item(self, item_id: str) -> bool:
        return self._run_confirmed("remove", lambda: self.propose_removal(item_id), item_id)

    def transfer(self, counterpart: str) -> bool:
        return self._run_confirmed(
            "transfer",
            lambda: self.propose_transfer(counterpart),
            self._session.pending_item_id,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _run_confirmed(
        self,
        operation: str,
        propose: Callable[[], PendingOperation],
        item_id: Optional[str],
    ) -> bool:
        def action(correlation_id: UUID) -> bool:
            pending = propose()
            confirmed = self._confirm(pending.prompt) if pending.requires_confirmation else True
            return self._execute(pending, confirmed, correlation_id)

        return bool(self._attempt(operation, action, item_id=item_id))

    def _execute(
        self,
        pending: PendingOperation,
        confirmed: bool,
        correlation_id: UUID,
    ) -> bool:
        if pending.requires_confirmation and not confirmed:
            raise DeniedByUserError(
                f"User declined {pending.kind.value}",
                item_id=pending.item_id,
            )

        active = self._require_active()
        if pending.handle != active.handle:
            raise StaleReferenceError(
                "This action belongs to another session. Please try again.",
                item_id=pending.item_id,
            )
        before = active.find_item(pending.item_id)

        if pending.kind == OperationKind.SET_IN_USE:
            if before is not None and before.in_use == pending.in_use_target:
                raise StaleReferenceError(
                    "The game's status changed. Please try again.",
                    item_id=pending.item_id,
                )
            result = engine.set_in_use(self._session, active, pending.item_id)
        elif pending.kind == OperationKind.REMOVE:
            result = engine.remove_item(self._session, active, pending.item_id)
        else:
            if self._session.pending_item_id != pending.item_id:
                raise StaleReferenceError(
                    "The swap selection changed. Please reopen the menu.",
                    item_id=pending.item_id,
                )
            result = engine.transfer(
                self._session, active, self._store.load(), pending.counterpart
            )

        self._apply(result, correlation_id)
        self._audit_outcome(pending, active.handle, before, correlation_id)
        return True

    def _apply(self, result: EngineResult, correlation_id: UUID) -> None:
        """Commit changed accounts in one write, then move the session on."""
        if result.accounts:
            self._store.replace(*result.accounts)
            self._audit_logger.log_accounts_committed(
                [account.handle for account in result.accounts],
                correlation_id,
            )
        self._session = result.session.touched()

    def _audit_outcome(
        self,
        pending: PendingOperation,
        handle: str,
        before: Item,
        correlation_id: UUID,
    ) -> None:
        if pending.kind == OperationKind.SET_IN_USE:
            self._audit_logger.log_in_use_toggled(
                handle, before.id, not before.in_use, correlation_id
            )
        elif pending.kind == OperationKind.REMOVE:
            self._audit_logger.log_item_removed(
                handle, before.id, before.transferred, correlation_id
            )
        elif before.transferred:
            self._audit_logger.log_item_returned(
                before.id, handle, before.original_owner, correlation_id
            )
        else:
            self._audit_logger.log_item_lent(
                before.id, handle, pending.counterpart, correlation_id
            )

    def _unique_item_id(self) -> str:
        """Draw ids until one was never used, not even by a removed item."""
        taken = self._store.taken_ids()
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self._new_id()
            if candidate not in taken:
                return candidate
        raise InvariantViolationError("Could not generate a unique item id")

    def _attempt(
        self,
        operation: str,
        action: Callable[[UUID], T],
        item_id: Optional[str] = None,
    ) -> Optional[T]:
        """
        Run one user action, resolving catalog errors on the spot.

        Returns the action's result, or None if it was rejected.
        Storage failures are audited and re-raised.
        """
        correlation_id = create_correlation_id()
        handle = self._session.handle
        try:
            return action(correlation_id)
        except DeniedByUserError as e:
            self._audit_logger.log_user_declined(
                operation, handle or "", e.item_id or item_id or "", correlation_id
            )
            return None
        except CatalogError as e:
            self._audit_logger.log_operation_rejected(
                operation=operation,
                error_code=e.code,
                error_message=e.message,
                handle=handle,
                item_id=e.item_id or item_id,
                correlation_id=correlation_id,
            )
            self._notify(e.message)
            return None
        except StorageError as e:
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation},
                correlation_id=correlation_id,
            )
            raise


def create_app_components(
    confirm: ConfirmPrompt,
    notify: Notifier,
    use_file_storage: Optional[bool] = None,
    id_generator: Optional[IdGenerator] = None,
) -> tuple[CatalogService, AccountStore]:
    """
    Factory function to create all application components.

    Args:
        confirm: Confirmation prompt collaborator
        notify: Notification collaborator
        use_file_storage: Force the JSON file backend on or off.
                    Defaults to the configured backend.
        id_generator: Item id generator (uuid4 strings by default)

    Returns:
        (catalog_service, account_store)
    """
    settings = get_settings()
    configure_logging(settings.app.debug_mode)
    storage_settings = settings.storage
    if use_file_storage is None:
        use_file_storage = storage_settings.backend == "json"

    if use_file_storage:
        storage = JsonFileAccountStorage(
            storage_settings.path,
            storage_settings.slot_key,
            write_attempts=storage_settings.write_attempts,
        )
    else:
        storage = InMemoryAccountStorage(storage_settings.slot_key)

    id_generator = id_generator or new_item_id
    audit_logger = AuditLogger()
    store = AccountStore(storage, defaults=lambda: default_accounts(id_generator))
    store.load()
    if store.seeded:
        audit_logger.log_store_seeded(len(store.handles()))

    service = CatalogService(
        store=store,
        confirm=confirm,
        notify=notify,
        audit_logger=audit_logger,
        id_generator=id_generator,
        session_settings=settings.session,
    )
    return service, store
