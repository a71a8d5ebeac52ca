"""Transfer engine package."""

from gameswap.engine.errors import (
    AccountNotFoundError,
    BlockedActionError,
    CatalogError,
    DeniedByUserError,
    InvalidSelectionError,
    InvariantViolationError,
    NoActiveSessionError,
    StaleReferenceError,
)
from gameswap.engine.invariants import check_invariants, find_violations
from gameswap.engine.state_machine import (
    add_item,
    find_account,
    remove_item,
    set_in_use,
    toggle_menu,
    transfer,
    transfer_options,
)

__all__ = [
    # Errors
    "AccountNotFoundError",
    "BlockedActionError",
    "CatalogError",
    "DeniedByUserError",
    "InvalidSelectionError",
    "InvariantViolationError",
    "NoActiveSessionError",
    "StaleReferenceError",
    # Invariants
    "check_invariants",
    "find_violations",
    # Operations
    "add_item",
    "find_account",
    "remove_item",
    "set_in_use",
    "toggle_menu",
    "transfer",
    "transfer_options",
]
