"""
Session and result models.

The session context is the explicit, per-session UI state the engine
reads and returns: who is logged in, which swap menu is open and which
item is the pending transfer subject. It is never persisted.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from gameswap.models.account import Account


def _utcnow() -> datetime:
    return datetime.utcnow()


class SessionContext(BaseModel):
    """State of the single active session."""

    handle: Optional[str] = Field(
        default=None,
        description="Handle of the active account, None when logged out"
    )
    open_menu_item_id: Optional[str] = Field(
        default=None,
        description="Item whose swap menu is open (at most one)"
    )
    pending_item_id: Optional[str] = Field(
        default=None,
        description="Item selected as the transfer subject"
    )
    last_activity: datetime = Field(
        default_factory=_utcnow,
        description="Time of the last user interaction (UTC)"
    )

    @property
    def is_active(self) -> bool:
        return self.handle is not None

    def is_menu_open(self, item_id: str) -> bool:
        return self.open_menu_item_id == item_id

    def with_menus_closed(self) -> 'SessionContext':
        """Close any open menu and drop the pending selection."""
        return self.model_copy(update={
            "open_menu_item_id": None,
            "pending_item_id": None,
        })

    def touched(self, now: Optional[datetime] = None) -> 'SessionContext':
        return self.model_copy(update={"last_activity": now or _utcnow()})

    def is_idle(self, timeout_seconds: int, now: Optional[datetime] = None) -> bool:
        """Has the session been idle for at least `timeout_seconds`?"""
        now = now or _utcnow()
        return now - self.last_activity >= timedelta(seconds=timeout_seconds)


class EngineResult(BaseModel):
    """
    Output of one engine operation.

    `accounts` holds only the records that changed and must be
    committed together; `session` is the next session context.
    """

    accounts: list[Account] = Field(default_factory=list)
    session: SessionContext


class OperationKind(str, Enum):
    """Mutations that go through the confirmation protocol."""
    SET_IN_USE = "set_in_use"
    REMOVE = "remove"
    TRANSFER = "transfer"


class PendingOperation(BaseModel):
    """
    A proposed mutation awaiting the user's answer.

    Produced by the service's propose_* methods and consumed by
    commit(). The target item is re-read by id at commit time.
    """

    kind: OperationKind
    handle: str = Field(..., description="Account the operation runs as")
    item_id: str
    counterpart: Optional[str] = Field(
        default=None,
        description="Counterpart handle for transfers"
    )
    in_use_target: Optional[bool] = Field(
        default=None,
        description="In-use value the user agreed to (in-use toggles only)"
    )
    prompt: str = Field(default="", description="Question to ask the user")
    requires_confirmation: bool = True
