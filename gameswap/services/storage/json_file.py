"""
JSON File Storage Implementation

The account list lives under a fixed key in a small JSON document,
mirroring a browser key-value slot:

    {"userData": [{"username": "...", "password": "...", "games": [...]}]}

Writes go to a temporary file in the same directory which is then
renamed over the document, so a crash leaves either the previous blob
or the new one and never half of each.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gameswap.config import get_settings
from gameswap.models.account import Account
from gameswap.services.storage.interface import (
    AccountStorageInterface,
    CorruptDataError,
    StorageError,
    dump_accounts,
    parse_accounts,
)


logger = structlog.get_logger(__name__)


class JsonFileAccountStorage(AccountStorageInterface):
    """
    File-backed implementation of the account slot.

    Other keys already present in the document are preserved.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        slot_key: Optional[str] = None,
        write_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._path = Path(path or settings.path)
        self._slot_key = slot_key or settings.slot_key
        self._write_attempts = write_attempts or settings.write_attempts

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Storage file {self._path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e
        if not isinstance(document, dict):
            raise CorruptDataError(f"Storage file {self._path} does not hold a key-value document")
        return document

    def read_all(self) -> Optional[list[Account]]:
        raw = self._read_document().get(self._slot_key)
        if raw is None:
            return None
        accounts = parse_accounts(raw)
        logger.debug("accounts_read", path=str(self._path), count=len(accounts))
        return accounts

    def write_all(self, accounts: Sequence[Account]) -> None:
        document = self._read_document()
        document[self._slot_key] = json.loads(dump_accounts(accounts))
        try:
            self._replace_document(json.dumps(document, indent=2))
        except OSError as e:
            logger.error("accounts_write_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Could not write {self._path}: {e}") from e
        logger.debug("accounts_written", path=str(self._path), count=len(accounts))

    def _replace_document(self, payload: str) -> None:
        """Write the document, retrying transient OS errors."""
        retrying = Retrying(
            retry=retry_if_exception_type(OSError),
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                self._write_once(payload)

    def _write_once(self, payload: str) -> None:
        """Write `payload` to a temp file and rename it over the document."""
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
