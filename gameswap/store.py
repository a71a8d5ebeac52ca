"""
Account Store

The single source of truth for accounts and their collections.

- load() returns the last committed list, seeding the slot with the
  default accounts on first run
- commit() validates store-wide invariants and replaces the whole list
  with one storage write
- replace() swaps records by handle and commits them in that same write
- an id that disappears from every collection is retired and is never
  handed out again (see taken_ids())

The store never hands out its internal list; callers always get copies.
"""

from typing import Callable, Optional, Sequence, Union

import structlog

from gameswap.engine.errors import AccountNotFoundError
from gameswap.engine.invariants import check_invariants
from gameswap.models.account import Account
from gameswap.services.storage import AccountStorageInterface


logger = structlog.get_logger(__name__)

DefaultAccounts = Union[Sequence[Account], Callable[[], Sequence[Account]]]


def _ids_of(accounts: Sequence[Account]) -> set[str]:
    return {item.id for account in accounts for item in account.items}


class AccountStore:
    """Wholesale-commit store over an account slot."""

    def __init__(
        self,
        storage: AccountStorageInterface,
        defaults: Optional[DefaultAccounts] = None,
    ):
        """
        Initialize the store.

        Args:
            storage: Persistence collaborator holding the account blob
            defaults: Accounts (or a factory for them) seeded on first run
        """
        self._storage = storage
        self._defaults = defaults
        self._accounts: Optional[list[Account]] = None
        self._retired_ids: set[str] = set()
        self.seeded = False

    def _default_accounts(self) -> list[Account]:
        if self._defaults is None:
            return []
        if callable(self._defaults):
            return list(self._defaults())
        return list(self._defaults)

    def load(self) -> list[Account]:
        """Return the committed accounts, seeding the slot if it is empty."""
        if self._accounts is None:
            stored = self._storage.read_all()
            if stored is None:
                stored = self._default_accounts()
                check_invariants(stored)
                self._storage.write_all(stored)
                self.seeded = True
                logger.info("store_seeded", account_count=len(stored))
            self._accounts = list(stored)
        return list(self._accounts)

    def commit(self, accounts: Sequence[Account]) -> bool:
        """
        Replace the durable account list.

        Returns:
            True if a write happened, False if `accounts` equals the
            last committed state

        Raises:
            InvariantViolationError: If the list is inconsistent (nothing is written)
            StorageError: If the write fails (nothing is committed)
        """
        accounts = list(accounts)
        if self._accounts is not None and accounts == self._accounts:
            logger.debug("commit_skipped_unchanged", account_count=len(accounts))
            return False

        check_invariants(accounts)
        self._storage.write_all(accounts)
        if self._accounts is not None:
            self._retired_ids |= _ids_of(self._accounts) - _ids_of(accounts)
        self._accounts = accounts
        logger.debug("accounts_committed", account_count=len(accounts))
        return True

    def replace(self, *updated: Account) -> list[Account]:
        """
        Replace records by handle and commit them in one write.

        Raises:
            AccountNotFoundError: If a handle is not in the store
        """
        current = self.load()
        known = {account.handle for account in current}
        for account in updated:
            if account.handle not in known:
                raise AccountNotFoundError(account.handle)

        by_handle = {account.handle: account for account in updated}
        accounts = [by_handle.get(account.handle, account) for account in current]
        self.commit(accounts)
        return self.load()

    def get(self, handle: Optional[str]) -> Account:
        """
        Raises:
            AccountNotFoundError: If no account has this handle
        """
        for account in self.load():
            if account.handle == handle:
                return account
        raise AccountNotFoundError(handle or "")

    def handles(self) -> list[str]:
        return [account.handle for account in self.load()]

    def item_ids(self) -> set[str]:
        """Every item id currently present in any collection."""
        return _ids_of(self.load())

    def retired_ids(self) -> set[str]:
        """Ids of items destroyed by a committed removal."""
        return set(self._retired_ids)

    def taken_ids(self) -> set[str]:
        """Ids a new item may not use: present ones and retired ones."""
        return self.item_ids() | self._retired_ids
