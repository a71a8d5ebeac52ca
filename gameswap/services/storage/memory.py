"""
In-memory storage.

Keeps the serialized blob per slot key, so everything that goes through
it is validated on the way back exactly like the file backend.
"""

from typing import Optional, Sequence

from gameswap.models.account import Account
from gameswap.services.storage.interface import (
    AccountStorageInterface,
    dump_accounts,
    parse_accounts,
)


class InMemoryAccountStorage(AccountStorageInterface):
    """Account slot held in process memory."""

    def __init__(self, slot_key: str = "userData"):
        self._slot_key = slot_key
        self._slots: dict[str, bytes] = {}
        self.write_count = 0

    def read_all(self) -> Optional[list[Account]]:
        raw = self._slots.get(self._slot_key)
        if raw is None:
            return None
        return parse_accounts(raw)

    def write_all(self, accounts: Sequence[Account]) -> None:
        self._slots[self._slot_key] = dump_accounts(accounts)
        self.write_count += 1

    def raw(self) -> Optional[bytes]:
        """The stored blob, as written."""
        return self._slots.get(self._slot_key)
