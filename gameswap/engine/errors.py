"""
Catalog error taxonomy.

Engine operations raise these; the catalog service catches them at the
point of the attempted mutation, so none of them ever escapes with a
partially applied state.
"""

from typing import Optional


class CatalogError(Exception):
    """Base exception for rejected catalog operations."""

    code = "catalog_error"

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.item_id = item_id


class InvalidSelectionError(CatalogError):
    """No pending item, counterpart is self, or a return to the wrong account."""

    code = "invalid_selection"


class StaleReferenceError(CatalogError):
    """The selected item is no longer in the active account."""

    code = "stale_reference"


class DeniedByUserError(CatalogError):
    """The user declined the confirmation prompt."""

    code = "denied_by_user"


class AccountNotFoundError(CatalogError):
    """A handle does not resolve to an account."""

    code = "account_not_found"

    def __init__(self, handle: str):
        super().__init__(f"Account not found: {handle}")
        self.handle = handle


class BlockedActionError(CatalogError):
    """The item's status does not allow this action."""

    code = "blocked_action"


class NoActiveSessionError(CatalogError):
    """An operation needs a logged-in account."""

    code = "no_active_session"

    def __init__(self, message: str = "Please log in first"):
        super().__init__(message)


class InvariantViolationError(CatalogError):
    """A store-wide invariant would be broken by a commit."""

    code = "invariant_violation"
