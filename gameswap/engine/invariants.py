"""
Store-wide invariants.

Checked by the account store before every write:

1. Handles are unique across the store
2. Item ids are unique within an account
3. Provenance is set exactly when an item is transferred
4. Per item id there is at most one live record. A second record may
   exist only as the lender's on-loan marker, with identical provenance,
   the marker held by the original owner and the live copy held by
   the transfer partner.
"""

from collections import defaultdict
from typing import Sequence

from gameswap.engine.errors import InvariantViolationError
from gameswap.models.account import Account, Item


def _provenance_issue(handle: str, item: Item) -> str:
    if item.transferred:
        if not item.original_owner or not item.transfer_partner:
            return f"{handle}/{item.id}: transferred without provenance"
        if item.original_owner == item.transfer_partner:
            return f"{handle}/{item.id}: owner and partner are the same account"
        if handle not in (item.original_owner, item.transfer_partner):
            return f"{handle}/{item.id}: held by an account outside the transfer"
    elif item.original_owner or item.transfer_partner:
        return f"{handle}/{item.id}: provenance set on an untransferred item"
    return ""


def find_violations(accounts: Sequence[Account]) -> list[str]:
    """Return a description of every broken invariant (empty when consistent)."""
    violations = []
    handles = set()
    holders: dict[str, list[tuple[str, Item]]] = defaultdict(list)

    for account in accounts:
        if account.handle in handles:
            violations.append(f"duplicate handle: {account.handle}")
        handles.add(account.handle)

        seen_ids = set()
        for item in account.items:
            if item.id in seen_ids:
                violations.append(f"{account.handle}: duplicate item id {item.id}")
            seen_ids.add(item.id)

            issue = _provenance_issue(account.handle, item)
            if issue:
                violations.append(issue)
            holders[item.id].append((account.handle, item))

    for item_id, records in holders.items():
        if len(records) == 1:
            handle, item = records[0]
            if item.transferred and handle == item.transfer_partner:
                violations.append(f"{item_id}: borrowed copy without a lender marker")
            continue

        # Same-account duplicates were reported above.
        if len({handle for handle, _ in records}) != len(records):
            continue
        if len(records) > 2:
            violations.append(f"{item_id}: held by {len(records)} accounts")
            continue

        (first_handle, first), (second_handle, second) = records
        if not (first.transferred and second.transferred):
            violations.append(f"{item_id}: shared id outside a loan")
            continue
        if first.provenance() != second.provenance():
            violations.append(f"{item_id}: lender and borrower records disagree")
            continue
        if {first_handle, second_handle} != {first.original_owner, first.transfer_partner}:
            violations.append(f"{item_id}: loan records held by the wrong accounts")

    return violations


def check_invariants(accounts: Sequence[Account]) -> None:
    """
    Raises:
        InvariantViolationError: If any invariant is broken
    """
    violations = find_violations(accounts)
    if violations:
        raise InvariantViolationError("; ".join(violations))
