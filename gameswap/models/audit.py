"""
Audit Models for GameSwap

Every significant action is described by an AuditEvent and written to
the structured log.

DESIGN DECISION: Audit events go to the local log only.
Transfers keep single-hop provenance on the item itself; there is no
persisted transfer history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    SESSION_EXPIRED = "session_expired"

    # Collection changes
    ITEM_ADDED = "item_added"
    IN_USE_TOGGLED = "in_use_toggled"
    ITEM_REMOVED = "item_removed"

    # Transfers
    ITEM_LENT = "item_lent"
    ITEM_RETURNED = "item_returned"

    # Human confirmation
    USER_DECLINED = "user_declined"
    OPERATION_REJECTED = "operation_rejected"

    # Persistence
    ACCOUNTS_COMMITTED = "accounts_committed"
    STORE_SEEDED = "store_seeded"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    handle: Optional[str] = Field(
        default=None,
        description="Account the event happened in"
    )
    item_id: Optional[str] = Field(
        default=None,
        description="Item the event relates to"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Correlates events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "handle": self.handle,
            "item_id": self.item_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.item_lent(item_id, "alice", "bob", correlation_id)
        event = AuditEventBuilder.user_declined("remove", "alice", item_id, correlation_id)
    """

    @staticmethod
    def session_started(handle: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            handle=handle,
            description=f"Session started for {handle}",
            is_user_action=True,
        )

    @staticmethod
    def session_ended(handle: str, expired: bool = False) -> AuditEvent:
        if expired:
            return AuditEvent(
                event_type=AuditEventType.SESSION_EXPIRED,
                severity=AuditSeverity.WARNING,
                handle=handle,
                description=f"Session for {handle} expired after inactivity",
            )
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            handle=handle,
            description=f"Session ended for {handle}",
            is_user_action=True,
        )

    @staticmethod
    def item_added(
        handle: str,
        item_id: str,
        title: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_ADDED,
            handle=handle,
            item_id=item_id,
            correlation_id=correlation_id,
            description=f"Item added: {title}",
            details={"title": title},
            is_user_action=True,
        )

    @staticmethod
    def in_use_toggled(
        handle: str,
        item_id: str,
        in_use: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IN_USE_TOGGLED,
            handle=handle,
            item_id=item_id,
            correlation_id=correlation_id,
            description=f"Item marked {'in use' if in_use else 'not in use'}",
            details={"in_use": in_use},
            is_user_action=True,
        )

    @staticmethod
    def item_removed(
        handle: str,
        item_id: str,
        was_received: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_REMOVED,
            severity=AuditSeverity.WARNING if was_received else AuditSeverity.INFO,
            handle=handle,
            item_id=item_id,
            correlation_id=correlation_id,
            description="Item removed from collection",
            details={"was_received": was_received},
            is_user_action=True,
        )

    @staticmethod
    def item_lent(
        item_id: str,
        lender: str,
        borrower: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_LENT,
            handle=lender,
            item_id=item_id,
            correlation_id=correlation_id,
            description=f"Item lent by {lender} to {borrower}",
            details={"lender": lender, "borrower": borrower},
            is_user_action=True,
        )

    @staticmethod
    def item_returned(
        item_id: str,
        holder: str,
        original_owner: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_RETURNED,
            handle=holder,
            item_id=item_id,
            correlation_id=correlation_id,
            description=f"Item returned by {holder} to {original_owner}",
            details={"holder": holder, "original_owner": original_owner},
            is_user_action=True,
        )

    @staticmethod
    def user_declined(
        operation: str,
        handle: str,
        item_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DECLINED,
            handle=handle,
            item_id=item_id,
            correlation_id=correlation_id,
            description=f"User declined {operation}",
            details={"operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error_code: str,
        error_message: str,
        handle: Optional[str],
        item_id: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            handle=handle,
            item_id=item_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_code}",
            details={"operation": operation},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def accounts_committed(
        handles: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNTS_COMMITTED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Committed {len(handles)} account record(s)",
            details={"handles": handles},
        )

    @staticmethod
    def store_seeded(account_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SEEDED,
            description=f"Store seeded with {account_count} default accounts",
            details={"account_count": account_count},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
