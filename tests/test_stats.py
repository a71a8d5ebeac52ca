"""Tests for collection statistics."""

from gameswap.models.account import Account
from gameswap.queries import collection_stats


class TestCollectionStats:
    """Tests for the stats panel numbers."""

    def test_empty_collection(self):
        stats = collection_stats(Account(handle="carol"))
        assert stats.total == 0
        assert stats.own_percent == 0
        assert stats.borrowed_percent == 0

    def test_plain_collection(self, alice):
        stats = collection_stats(alice)
        assert stats.total == 2
        assert stats.sent == 0
        assert stats.received == 0
        assert stats.own_percent == 100

    def test_mixed_collection(self, make_item):
        account = Account(handle="bob", items=[
            make_item("b1", in_use=True),
            make_item("g1", transferred=True, original_owner="alice", transfer_partner="bob"),
            make_item("b2", transferred=True, original_owner="bob", transfer_partner="carol"),
        ])
        stats = collection_stats(account)
        assert stats.in_use == 1
        assert stats.sent == 1
        assert stats.received == 1
        assert stats.own_percent == 67
        assert stats.borrowed_percent == 33
