"""
Storage Services Package

Provides the abstract account-slot interface and its implementations.
The JSON file backend is the default; the in-memory one backs tests
and throwaway sessions.
"""

from gameswap.services.storage.interface import (
    AccountStorageInterface,
    CorruptDataError,
    StorageError,
    dump_accounts,
    parse_accounts,
)
from gameswap.services.storage.json_file import JsonFileAccountStorage
from gameswap.services.storage.memory import InMemoryAccountStorage

__all__ = [
    # Interface
    "AccountStorageInterface",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Serialization helpers
    "dump_accounts",
    "parse_accounts",
    # Implementations
    "InMemoryAccountStorage",
    "JsonFileAccountStorage",
]
