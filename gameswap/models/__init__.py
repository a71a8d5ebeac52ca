"""
Data Models Package

This package contains all Pydantic models used in GameSwap.
Everything the store persists or the engine returns conforms to these schemas.
"""

from gameswap.models.account import (
    Account,
    CollectionStats,
    Item,
    ItemCategory,
    ItemStatus,
)
from gameswap.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from gameswap.models.session import (
    EngineResult,
    OperationKind,
    PendingOperation,
    SessionContext,
)

__all__ = [
    # Catalog models
    "Account",
    "CollectionStats",
    "Item",
    "ItemCategory",
    "ItemStatus",
    # Session models
    "EngineResult",
    "OperationKind",
    "PendingOperation",
    "SessionContext",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
