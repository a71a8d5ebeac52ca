"""
Collection statistics.

Counts are taken from the account's own records:
- sent: on-loan marker copies (lent out by this account)
- received: items borrowed from another account
- own: untransferred items plus on-loan markers
"""

from gameswap.models.account import Account, CollectionStats


def _percent(part: int, total: int) -> int:
    if total == 0:
        return 0
    return round(part / total * 100)


def collection_stats(account: Account) -> CollectionStats:
    """Compute the stats panel numbers for one account."""
    handle = account.handle
    total = len(account.items)
    sent = sum(1 for item in account.items if item.is_on_loan_from(handle))
    received = sum(
        1 for item in account.items
        if item.transferred and item.original_owner != handle
    )
    own = sum(
        1 for item in account.items
        if not item.transferred or item.original_owner == handle
    )

    return CollectionStats(
        handle=handle,
        total=total,
        in_use=sum(1 for item in account.items if item.in_use),
        sent=sent,
        received=received,
        own_percent=_percent(own, total),
        borrowed_percent=_percent(received, total),
    )
