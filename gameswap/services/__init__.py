"""Services package."""

from gameswap.services.storage import (
    AccountStorageInterface,
    CorruptDataError,
    InMemoryAccountStorage,
    JsonFileAccountStorage,
    StorageError,
)

__all__ = [
    "AccountStorageInterface",
    "CorruptDataError",
    "InMemoryAccountStorage",
    "JsonFileAccountStorage",
    "StorageError",
]
