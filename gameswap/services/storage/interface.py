"""
Abstract Storage Interface

The account list is persisted as one blob in a key-value slot.
The store reads it wholesale and writes it wholesale; implementations
only need to make a single write atomic.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from gameswap.models.account import Account


_ACCOUNT_LIST = TypeAdapter(list[Account])


class AccountStorageInterface(ABC):
    """
    Abstract interface for the persisted account slot.

    Any storage implementation (JSON file, in-memory, a browser-like
    key-value store) must implement these methods.
    """

    @abstractmethod
    def read_all(self) -> Optional[list[Account]]:
        """
        Read the account list from the slot.

        Returns:
            The stored accounts, or None when the slot is empty

        Raises:
            CorruptDataError: If the slot holds unreadable data
        """
        pass

    @abstractmethod
    def write_all(self, accounts: Sequence[Account]) -> None:
        """
        Replace the slot contents with `accounts` in one write.

        Raises:
            StorageError: If the write fails
        """
        pass


def dump_accounts(accounts: Sequence[Account]) -> bytes:
    """Serialize accounts with the persisted key names."""
    return _ACCOUNT_LIST.dump_json(list(accounts), by_alias=True)


def parse_accounts(raw) -> list[Account]:
    """
    Parse a stored account list from JSON text/bytes or decoded JSON.

    Raises:
        CorruptDataError: If the data does not describe an account list
    """
    try:
        if isinstance(raw, (str, bytes, bytearray)):
            return _ACCOUNT_LIST.validate_json(raw)
        return _ACCOUNT_LIST.validate_python(raw)
    except ValidationError as e:
        raise CorruptDataError(f"Stored account list is invalid: {e}") from e


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """The slot holds data that cannot be read back as accounts."""
    pass
