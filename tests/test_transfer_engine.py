"""Tests for the transfer engine state machine."""

import pytest

from gameswap.engine import (
    AccountNotFoundError,
    BlockedActionError,
    InvalidSelectionError,
    InvariantViolationError,
    StaleReferenceError,
    add_item,
    find_account,
    find_violations,
    remove_item,
    set_in_use,
    toggle_menu,
    transfer,
    transfer_options,
)
from gameswap.models.account import Account, Item, ItemStatus
from gameswap.models.session import SessionContext


def _commit(accounts, result):
    """Replace the accounts an engine result changed."""
    changed = {account.handle: account for account in result.accounts}
    return [changed.get(account.handle, account) for account in accounts]


def _lend(accounts, item_id, lender, borrower):
    session = SessionContext(handle=lender, open_menu_item_id=item_id, pending_item_id=item_id)
    result = transfer(session, find_account(accounts, lender), accounts, borrower)
    return _commit(accounts, result)


class TestSetInUse:
    """Tests for the in-use toggle."""

    def test_toggle_on(self, alice, alice_session):
        result = set_in_use(alice_session, alice, "g1")
        [updated] = result.accounts
        assert updated.find_item("g1").in_use is True
        assert updated.find_item("g2").in_use is False

    def test_toggle_twice_restores_flag(self, alice, alice_session):
        """Test applying the toggle twice returns the original value."""
        first = set_in_use(alice_session, alice, "g1")
        second = set_in_use(first.session, first.accounts[0], "g1")
        assert second.accounts[0].find_item("g1").in_use is False
        assert second.accounts[0] == alice

    def test_closes_all_menus(self, alice):
        """Test any open swap menu is closed, whatever item it belongs to."""
        session = SessionContext(handle="alice", open_menu_item_id="g2", pending_item_id="g2")
        result = set_in_use(session, alice, "g1")
        assert result.session.open_menu_item_id is None
        assert result.session.pending_item_id is None

    def test_does_not_mutate_input(self, alice, alice_session):
        set_in_use(alice_session, alice, "g1")
        assert alice.find_item("g1").in_use is False

    def test_unknown_item_is_stale(self, alice, alice_session):
        with pytest.raises(StaleReferenceError):
            set_in_use(alice_session, alice, "missing")

    def test_on_loan_marker_is_blocked(self, accounts, alice_session):
        """Test the lender cannot toggle a game that is out on loan."""
        accounts = _lend(accounts, "g1", "alice", "bob")
        with pytest.raises(BlockedActionError, match="swapped with bob"):
            set_in_use(alice_session, find_account(accounts, "alice"), "g1")

    def test_received_item_can_be_toggled(self, accounts):
        """Test the borrower may play a received game."""
        accounts = _lend(accounts, "g1", "alice", "bob")
        bob = find_account(accounts, "bob")
        result = set_in_use(SessionContext(handle="bob"), bob, "g1")
        assert result.accounts[0].find_item("g1").in_use is True


class TestRemoveItem:
    """Tests for removal."""

    def test_removes_item_and_keeps_order(self, make_item, alice_session):
        account = Account(handle="alice", items=[make_item("a"), make_item("b"), make_item("c")])
        result = remove_item(alice_session, account, "b")
        assert [item.id for item in result.accounts[0].items] == ["a", "c"]

    def test_closes_menus(self, alice):
        session = SessionContext(handle="alice", open_menu_item_id="g2", pending_item_id="g2")
        result = remove_item(session, alice, "g1")
        assert result.session.open_menu_item_id is None

    def test_received_item_is_destroyed(self, accounts):
        """Test a borrower can delete a received game; the lender keeps the marker."""
        accounts = _lend(accounts, "g1", "alice", "bob")
        result = remove_item(SessionContext(handle="bob"), find_account(accounts, "bob"), "g1")
        accounts = _commit(accounts, result)

        assert find_account(accounts, "bob").find_item("g1") is None
        marker = find_account(accounts, "alice").find_item("g1")
        assert marker.status_for("alice") == ItemStatus.ON_LOAN
        assert find_violations(accounts) == []

    def test_on_loan_marker_cannot_be_removed(self, accounts, alice_session):
        accounts = _lend(accounts, "g1", "alice", "bob")
        with pytest.raises(BlockedActionError):
            remove_item(alice_session, find_account(accounts, "alice"), "g1")

    def test_removed_item_is_gone(self, alice, alice_session):
        """Test nothing can act on a removed id afterwards."""
        result = remove_item(alice_session, alice, "g1")
        account = result.accounts[0]
        with pytest.raises(StaleReferenceError):
            set_in_use(result.session, account, "g1")
        with pytest.raises(StaleReferenceError):
            toggle_menu(result.session, account, "g1")


class TestToggleMenu:
    """Tests for opening and closing swap menus."""

    def test_open_records_pending_item(self, alice, alice_session):
        result = toggle_menu(alice_session, alice, "g1")
        assert result.accounts == []
        assert result.session.open_menu_item_id == "g1"
        assert result.session.pending_item_id == "g1"

    def test_only_one_menu_open(self, alice, alice_session):
        first = toggle_menu(alice_session, alice, "g1")
        second = toggle_menu(first.session, alice, "g2")
        assert second.session.is_menu_open("g2")
        assert not second.session.is_menu_open("g1")
        assert second.session.pending_item_id == "g2"

    def test_toggle_same_item_closes(self, alice, alice_session):
        opened = toggle_menu(alice_session, alice, "g1")
        closed = toggle_menu(opened.session, alice, "g1")
        assert closed.session.open_menu_item_id is None
        assert closed.session.pending_item_id is None

    def test_in_use_item_is_blocked(self, alice, alice_session):
        in_use = set_in_use(alice_session, alice, "g1").accounts[0]
        with pytest.raises(BlockedActionError, match="cannot swap"):
            toggle_menu(alice_session, in_use, "g1")

    def test_on_loan_marker_is_blocked(self, accounts, alice_session):
        accounts = _lend(accounts, "g1", "alice", "bob")
        with pytest.raises(BlockedActionError):
            toggle_menu(alice_session, find_account(accounts, "alice"), "g1")


class TestTransferLend:
    """Tests for lending an item (forward transfer)."""

    def test_lend_scenario(self, accounts, alice):
        """Test alice lends g1 to bob: both records carry identical provenance."""
        session = toggle_menu(SessionContext(handle="alice"), alice, "g1").session
        result = transfer(session, alice, accounts, "bob")

        alice_after, bob_after = result.accounts
        assert alice_after.handle == "alice"
        assert bob_after.handle == "bob"

        marker = alice_after.find_item("g1")
        assert marker.transferred is True
        assert marker.original_owner == "alice"
        assert marker.transfer_partner == "bob"

        received = bob_after.find_item("g1")
        assert received.provenance() == (True, "alice", "bob")
        assert received.title == marker.title
        assert received.category == marker.category
        assert bob_after.items[-1].id == "g1"

    def test_only_two_accounts_change(self, accounts, alice):
        session = SessionContext(handle="alice", pending_item_id="g1")
        result = transfer(session, alice, accounts, "bob")
        assert {account.handle for account in result.accounts} == {"alice", "bob"}
        assert find_violations(_commit(accounts, result)) == []

    def test_closes_menus(self, accounts, alice):
        session = SessionContext(handle="alice", open_menu_item_id="g1", pending_item_id="g1")
        result = transfer(session, alice, accounts, "bob")
        assert result.session.open_menu_item_id is None
        assert result.session.pending_item_id is None

    def test_inputs_untouched(self, accounts, alice, bob):
        session = SessionContext(handle="alice", pending_item_id="g1")
        transfer(session, alice, accounts, "bob")
        assert alice.find_item("g1").transferred is False
        assert bob.find_item("g1") is None

    def test_counterpart_already_holding_id(self, accounts, alice, make_item):
        clash = Account(handle="bob", items=[make_item("g1")])
        session = SessionContext(handle="alice", pending_item_id="g1")
        with pytest.raises(InvariantViolationError):
            transfer(session, alice, [alice, clash], "bob")


class TestTransferReturn:
    """Tests for returning a received item (reverse transfer)."""

    def test_return_scenario(self, accounts, alice):
        """Test bob returns g1 to alice: bob loses it, alice's copy is reset."""
        original = alice.find_item("g1")
        accounts = _lend(accounts, "g1", "alice", "bob")

        bob = find_account(accounts, "bob")
        session = toggle_menu(SessionContext(handle="bob"), bob, "g1").session
        result = transfer(session, bob, accounts, "alice")
        bob_after, alice_after = result.accounts

        assert bob_after.find_item("g1") is None
        restored = alice_after.find_item("g1")
        assert restored.provenance() == (False, "", "")
        assert restored == original

    def test_round_trip_restores_accounts(self, accounts):
        before = list(accounts)
        accounts = _lend(accounts, "g1", "alice", "bob")
        accounts = _lend(accounts, "g1", "bob", "alice")
        assert accounts == before

    def test_return_to_other_account_is_invalid(self, accounts):
        accounts = _lend(accounts, "g1", "alice", "bob")
        session = SessionContext(handle="bob", pending_item_id="g1")
        with pytest.raises(InvalidSelectionError, match="only be returned to alice"):
            transfer(session, find_account(accounts, "bob"), accounts, "carol")

    def test_return_without_lender_marker(self, accounts, make_item):
        """Test a broken loan (lender lost its marker) is reported, not applied."""
        received = make_item("x1", transferred=True, original_owner="carol", transfer_partner="bob")
        bob = Account(handle="bob", items=[received])
        carol = Account(handle="carol")
        session = SessionContext(handle="bob", pending_item_id="x1")
        with pytest.raises(InvariantViolationError):
            transfer(session, bob, [bob, carol], "carol")


class TestTransferRejections:
    """Tests for selections the engine refuses."""

    def test_received_item_in_use_cannot_be_returned(self, accounts):
        accounts = _lend(accounts, "g1", "alice", "bob")
        bob = find_account(accounts, "bob")
        playing = set_in_use(SessionContext(handle="bob"), bob, "g1").accounts[0]
        session = SessionContext(handle="bob", pending_item_id="g1")
        with pytest.raises(BlockedActionError, match="cannot swap"):
            transfer(session, playing, accounts, "alice")

    def test_no_pending_item(self, accounts, alice, alice_session):
        with pytest.raises(InvalidSelectionError, match="Select a game"):
            transfer(alice_session, alice, accounts, "bob")

    def test_counterpart_is_self(self, accounts, alice):
        session = SessionContext(handle="alice", pending_item_id="g1")
        with pytest.raises(InvalidSelectionError):
            transfer(session, alice, accounts, "alice")

    def test_unknown_counterpart(self, accounts, alice):
        session = SessionContext(handle="alice", pending_item_id="g1")
        with pytest.raises(AccountNotFoundError):
            transfer(session, alice, accounts, "mallory")

    def test_stale_pending_item(self, accounts, alice):
        """Test a pending id that left the collection is stale, not trusted."""
        session = SessionContext(handle="alice", pending_item_id="g1")
        without_g1 = remove_item(session, alice, "g1").accounts[0]
        with pytest.raises(StaleReferenceError, match="reopen the menu"):
            transfer(session, without_g1, accounts, "bob")

    def test_in_use_item(self, accounts, alice):
        session = SessionContext(handle="alice", pending_item_id="g1")
        playing = set_in_use(session, alice, "g1").accounts[0]
        with pytest.raises(BlockedActionError):
            transfer(session, playing, accounts, "bob")

    def test_on_loan_marker_cannot_be_lent_again(self, accounts):
        accounts = _lend(accounts, "g1", "alice", "bob")
        session = SessionContext(handle="alice", pending_item_id="g1")
        with pytest.raises(BlockedActionError):
            transfer(session, find_account(accounts, "alice"), accounts, "carol")


class TestTransferOptions:
    """Tests for the counterpart choices a swap menu offers."""

    def test_lend_offers_every_other_account(self, accounts, alice):
        assert transfer_options(alice, accounts, "g1") == ["bob", "carol"]

    def test_return_offers_original_owner_only(self, accounts):
        accounts = _lend(accounts, "g1", "alice", "bob")
        assert transfer_options(find_account(accounts, "bob"), accounts, "g1") == ["alice"]

    def test_marker_offers_nothing(self, accounts):
        accounts = _lend(accounts, "g1", "alice", "bob")
        assert transfer_options(find_account(accounts, "alice"), accounts, "g1") == []

    def test_in_use_offers_nothing(self, accounts, alice, alice_session):
        playing = set_in_use(alice_session, alice, "g1").accounts[0]
        assert transfer_options(playing, accounts, "g1") == []

    def test_received_item_in_use_offers_nothing(self, accounts):
        """Test a borrowed game being played cannot be returned yet."""
        accounts = _lend(accounts, "g1", "alice", "bob")
        bob = find_account(accounts, "bob")
        playing = set_in_use(SessionContext(handle="bob"), bob, "g1").accounts[0]
        assert transfer_options(playing, accounts, "g1") == []


class TestAddItem:
    """Tests for adding new items."""

    def test_appends_item(self, alice, alice_session, make_item):
        result = add_item(alice_session, alice, make_item("g3", "Halo"), {"g1", "g2", "b1"})
        assert [item.id for item in result.accounts[0].items] == ["g1", "g2", "g3"]

    def test_rejects_existing_id(self, alice, alice_session, make_item):
        with pytest.raises(InvariantViolationError):
            add_item(alice_session, alice, make_item("b1"), {"g1", "g2", "b1"})

    def test_rejects_item_not_fresh(self, alice, alice_session):
        item = Item(id="g3", title="Halo", category="xbox", in_use=True)
        with pytest.raises(InvalidSelectionError):
            add_item(alice_session, alice, item, {"g1", "g2"})


class TestInvariants:
    """Tests for the store-wide invariant checker."""

    def test_consistent_store(self, accounts):
        assert find_violations(accounts) == []

    def test_after_lend(self, accounts):
        assert find_violations(_lend(accounts, "g1", "alice", "bob")) == []

    def test_two_live_copies(self, accounts, alice):
        copy = Account(handle="carol", items=[alice.find_item("g1")])
        violations = find_violations([alice, copy])
        assert any("shared id outside a loan" in v for v in violations)

    def test_borrowed_copy_without_marker(self, make_item):
        bob = Account(handle="bob", items=[
            make_item("g1", transferred=True, original_owner="alice", transfer_partner="bob"),
        ])
        violations = find_violations([Account(handle="alice"), bob])
        assert any("without a lender marker" in v for v in violations)

    def test_duplicate_handles(self, alice):
        violations = find_violations([alice, alice.with_items([])])
        assert any("duplicate handle" in v for v in violations)

    def test_disagreeing_records(self, accounts):
        accounts = _lend(accounts, "g1", "alice", "bob")
        bob = find_account(accounts, "bob")
        tampered = bob.find_item("g1").model_copy(update={"transfer_partner": "carol"})
        accounts = [
            account.with_items([tampered if i.id == "g1" else i for i in account.items])
            if account.handle == "bob" else account
            for account in accounts
        ]
        assert find_violations(accounts) != []
