"""
Audit Logger

Every significant action in the system is logged as a structured event:
session changes, collection edits, lends, returns, declined prompts and
rejected operations.

The audit logger:
- Writes to the local structured log only
- Never raises into the calling flow
- Supports correlation IDs to trace the events of one user action
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from gameswap.config import get_settings
from gameswap.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug_mode: Optional[bool] = None) -> int:
    """
    Set the level of the `gameswap` loggers.

    DEBUG when debug mode is on, INFO otherwise. Defaults to the
    `debug_mode` application setting. Returns the level applied.
    """
    if debug_mode is None:
        debug_mode = get_settings().app.debug_mode
    level = logging.DEBUG if debug_mode else logging.INFO
    logging.getLogger("gameswap").setLevel(level)
    return level


class AuditLogger:
    """
    Central audit logging service.

    Keeps the last events in memory so callers (and tests) can inspect
    what happened during the current process.
    """

    def __init__(
        self,
        history_size: int = 200,
        environment: Optional[str] = None,
        logger: Optional[Any] = None,
    ):
        if environment is None:
            environment = get_settings().app.app_environment
        self._logger = logger or structlog.get_logger("gameswap.audit").bind(
            environment=environment
        )
        self._fallback = logging.getLogger("gameswap.audit")
        self._history_size = history_size
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._events.append(event)
        if len(self._events) > self._history_size:
            del self._events[0]

        try:
            log_dict = event.to_log_dict()
            if event.severity.value == "error":
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            self._fallback.error(
                "audit_log_failed event_id=%s error=%s", event.event_id, e
            )

    def log_session_started(self, handle: str) -> None:
        self.log(AuditEventBuilder.session_started(handle))

    def log_session_ended(self, handle: str, expired: bool = False) -> None:
        self.log(AuditEventBuilder.session_ended(handle, expired=expired))

    def log_item_added(
        self,
        handle: str,
        item_id: str,
        title: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.item_added(handle, item_id, title, correlation_id))

    def log_in_use_toggled(
        self,
        handle: str,
        item_id: str,
        in_use: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.in_use_toggled(handle, item_id, in_use, correlation_id))

    def log_item_removed(
        self,
        handle: str,
        item_id: str,
        was_received: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.item_removed(handle, item_id, was_received, correlation_id))

    def log_item_lent(
        self,
        item_id: str,
        lender: str,
        borrower: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.item_lent(item_id, lender, borrower, correlation_id))

    def log_item_returned(
        self,
        item_id: str,
        holder: str,
        original_owner: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.item_returned(item_id, holder, original_owner, correlation_id))

    def log_user_declined(
        self,
        operation: str,
        handle: str,
        item_id: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.user_declined(operation, handle, item_id, correlation_id))

    def log_operation_rejected(
        self,
        operation: str,
        error_code: str,
        error_message: str,
        handle: Optional[str],
        item_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log an engine rejection (invalid selection, stale reference, ...)."""
        self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            handle=handle,
            item_id=item_id,
            correlation_id=correlation_id,
        ))

    def log_accounts_committed(
        self,
        handles: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.accounts_committed(handles, correlation_id))

    def log_store_seeded(self, account_count: int) -> None:
        self.log(AuditEventBuilder.store_seeded(account_count))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action and pass it through.
    """
    return uuid4()
