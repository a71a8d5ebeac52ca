"""Shared fixtures: three small accounts and a session for alice."""

import pytest

from gameswap.models.account import Account, Item, ItemCategory
from gameswap.models.session import SessionContext


@pytest.fixture
def make_item():
    def factory(item_id, title="Game", category=ItemCategory.NINTENDO, **fields):
        return Item(id=item_id, title=title, category=category, **fields)
    return factory


@pytest.fixture
def alice(make_item):
    return Account(
        handle="alice",
        secret="password1",
        items=[
            make_item("g1", "Zelda Breath of the Wild"),
            make_item("g2", "Sea of Thieves", ItemCategory.XBOX),
        ],
    )


@pytest.fixture
def bob(make_item):
    return Account(
        handle="bob",
        secret="password2",
        items=[make_item("b1", "Animal Crossing")],
    )


@pytest.fixture
def carol():
    return Account(handle="carol", secret="password3")


@pytest.fixture
def accounts(alice, bob, carol):
    return [alice, bob, carol]


@pytest.fixture
def alice_session():
    return SessionContext(handle="alice")
