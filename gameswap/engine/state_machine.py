"""
Transfer Engine

Pure decision/transform logic for the ownership state machine.
Every operation takes the current session context and account record(s)
and returns an EngineResult: the changed account records plus the next
session context. Nothing here reads or writes storage, and inputs are
never mutated.

Transfers:
- Lend (item not transferred): the borrower gains a copy flagged
  transferred with provenance; the lender's record gets the same flags
  in place and becomes the on-loan marker.
- Return (item transferred, held by the borrower): the borrower's record
  is removed and the lender's marker is reset.
"""

from typing import Sequence

from gameswap.engine.errors import (
    AccountNotFoundError,
    BlockedActionError,
    InvalidSelectionError,
    InvariantViolationError,
    StaleReferenceError,
)
from gameswap.models.account import Account, Item, ItemStatus
from gameswap.models.session import EngineResult, SessionContext


# =============================================================================
# LOOKUPS AND GUARDS
# =============================================================================

def find_account(accounts: Sequence[Account], handle: str) -> Account:
    for account in accounts:
        if account.handle == handle:
            return account
    raise AccountNotFoundError(handle)


def _require_item(account: Account, item_id: str) -> Item:
    item = account.find_item(item_id)
    if item is None:
        raise StaleReferenceError(
            "This game is no longer in your collection. Please reopen the menu.",
            item_id=item_id,
        )
    return item


def _require_not_on_loan(account: Account, item: Item, action: str) -> None:
    if item.status_for(account.handle) == ItemStatus.ON_LOAN:
        raise BlockedActionError(
            f"Cannot {action}: this game is swapped with {item.transfer_partner}",
            item_id=item.id,
        )


def _require_swappable(account: Account, item: Item) -> None:
    """Only available and received items can be lent or returned."""
    _require_not_on_loan(account, item, "swap it")
    if item.status_for(account.handle) == ItemStatus.IN_USE:
        raise BlockedActionError(
            "If you are playing a game, you cannot swap it.",
            item_id=item.id,
        )


def _replace_item(items: list[Item], updated: Item) -> list[Item]:
    return [updated if item.id == updated.id else item for item in items]


def _without_item(items: list[Item], item_id: str) -> list[Item]:
    return [item for item in items if item.id != item_id]


# =============================================================================
# SINGLE-ACCOUNT OPERATIONS
# =============================================================================

def set_in_use(
    session: SessionContext,
    account: Account,
    item_id: str,
) -> EngineResult:
    """Flip the in-use flag and close every swap menu in the account."""
    item = _require_item(account, item_id)
    _require_not_on_loan(account, item, "change its status")

    toggled = item.model_copy(update={"in_use": not item.in_use})
    return EngineResult(
        accounts=[account.with_items(_replace_item(account.items, toggled))],
        session=session.with_menus_closed(),
    )


def remove_item(
    session: SessionContext,
    account: Account,
    item_id: str,
) -> EngineResult:
    """
    Drop an item from the collection for good.

    A received item can be removed; it is destroyed, not returned.
    """
    item = _require_item(account, item_id)
    _require_not_on_loan(account, item, "remove it")

    return EngineResult(
        accounts=[account.with_items(_without_item(account.items, item.id))],
        session=session.with_menus_closed(),
    )


def toggle_menu(
    session: SessionContext,
    account: Account,
    item_id: str,
) -> EngineResult:
    """
    Open or close the swap menu of one item.

    Opening closes any other menu and makes the item the pending
    transfer subject; closing clears the selection.
    """
    item = _require_item(account, item_id)

    if session.is_menu_open(item.id):
        return EngineResult(session=session.with_menus_closed())

    _require_swappable(account, item)
    return EngineResult(
        session=session.model_copy(update={
            "open_menu_item_id": item.id,
            "pending_item_id": item.id,
        }),
    )


def add_item(
    session: SessionContext,
    account: Account,
    item: Item,
    taken_ids: set[str],
) -> EngineResult:
    """
    Append a freshly created item to the collection.

    `taken_ids` holds every id present in the store plus every id
    retired by a removal; none of them may be handed out again.
    """
    if item.id in taken_ids or account.find_item(item.id) is not None:
        raise InvariantViolationError(f"Item id already in use: {item.id}", item_id=item.id)
    if item.transferred or item.in_use:
        raise InvalidSelectionError(
            "A new game must start untransferred and not in use",
            item_id=item.id,
        )
    return EngineResult(
        accounts=[account.with_items(account.items + [item])],
        session=session,
    )


# =============================================================================
# TRANSFERS
# =============================================================================

def transfer_options(
    active: Account,
    accounts: Sequence[Account],
    item_id: str,
) -> list[str]:
    """
    Handles a swap menu may offer for this item.

    A received item can only go back to its original owner; an item
    that is in use or already lent out offers nothing.
    """
    item = _require_item(active, item_id)
    status = item.status_for(active.handle)
    if status in (ItemStatus.ON_LOAN, ItemStatus.IN_USE):
        return []
    if status == ItemStatus.RECEIVED:
        return [item.original_owner]
    return [account.handle for account in accounts if account.handle != active.handle]


def _lend(item: Item, lender: Account, borrower: Account) -> tuple[Account, Account]:
    if borrower.find_item(item.id) is not None:
        raise InvariantViolationError(
            f"{borrower.handle} already holds a record of {item.id}",
            item_id=item.id,
        )
    lent = item.model_copy(update={
        "transferred": True,
        "original_owner": lender.handle,
        "transfer_partner": borrower.handle,
    })
    return (
        lender.with_items(_replace_item(lender.items, lent)),
        borrower.with_items(borrower.items + [lent]),
    )


def _return(item: Item, holder: Account, owner: Account) -> tuple[Account, Account]:
    if owner.handle != item.original_owner:
        raise InvalidSelectionError(
            f"This game can only be returned to {item.original_owner}",
            item_id=item.id,
        )
    marker = owner.find_item(item.id)
    if marker is None or marker.status_for(owner.handle) != ItemStatus.ON_LOAN:
        raise InvariantViolationError(
            f"{owner.handle} has no on-loan record of {item.id}",
            item_id=item.id,
        )
    restored = marker.model_copy(update={
        "transferred": False,
        "original_owner": "",
        "transfer_partner": "",
    })
    return (
        holder.with_items(_without_item(holder.items, item.id)),
        owner.with_items(_replace_item(owner.items, restored)),
    )


def transfer(
    session: SessionContext,
    active: Account,
    accounts: Sequence[Account],
    counterpart_handle: str,
) -> EngineResult:
    """
    Lend or return the session's pending item.

    The pending item is re-read by id from `active`; a captured snapshot
    is never trusted. Exactly two accounts are returned, active first,
    and they must be committed together.
    """
    if session.pending_item_id is None:
        raise InvalidSelectionError("Select a game to swap first")
    item = _require_item(active, session.pending_item_id)

    if not counterpart_handle or counterpart_handle == active.handle:
        raise InvalidSelectionError(
            "Choose another account to swap with",
            item_id=item.id,
        )
    counterpart = find_account(accounts, counterpart_handle)

    _require_swappable(active, item)

    if item.status_for(active.handle) == ItemStatus.RECEIVED:
        active_after, counterpart_after = _return(item, active, counterpart)
    else:
        active_after, counterpart_after = _lend(item, active, counterpart)

    return EngineResult(
        accounts=[active_after, counterpart_after],
        session=session.with_menus_closed(),
    )
