"""
Default accounts seeded into an empty store.

Three demo accounts with small collections. Item ids are generated at
seed time so every fresh store gets its own.
"""

from typing import Callable, Optional
from uuid import uuid4

from gameswap.models.account import Account, Item, ItemCategory


_DEFAULT_COLLECTIONS = [
    ("user1", "password1", [
        (
            "Death Standing",
            ItemCategory.PLAYSTATION,
            "https://cdn2.unrealengine.com/Diesel%2Fproductv2%2Fdeath-stranding%2Fhome%2F"
            "EGS_KojimaProductions_DeathStranding_S1-2560x1440-"
            "d57b8f430c573292ea8450e5be7f75a4b4e3f015.jpg",
        ),
        (
            "Death Standing 2",
            ItemCategory.PLAYSTATION,
            "https://i.ytimg.com/vi/6cs-A1rNvEE/maxresdefault.jpg",
        ),
        (
            "Zelda Breath of the Wild",
            ItemCategory.NINTENDO,
            "https://gaming-cdn.com/images/products/2616/orig/"
            "the-legend-of-zelda-breath-of-the-wild-switch-game-nintendo-eshop-europe-cover.jpg"
            "?v=1730381682",
        ),
        (
            "Sea of Thieves",
            ItemCategory.XBOX,
            "https://cms-assets.xboxservices.com/assets/a0/26/"
            "a0261fcf-e92f-48d6-83a1-9f4424a7c1b6.jpg"
            "?n=467176942_GLP-Page-Hero-1084_1920x1080_03.jpg",
        ),
    ]),
    ("user2", "password2", [
        (
            "Animal Crossing",
            ItemCategory.NINTENDO,
            "https://ac-pocketcamp.com/official_fb_share_en-US.jpg?20241128",
        ),
    ]),
    ("user3", "password3", [
        (
            "Animal Crossing",
            ItemCategory.NINTENDO,
            "https://ac-pocketcamp.com/official_fb_share_en-US.jpg?20241128",
        ),
    ]),
]


def default_accounts(new_id: Optional[Callable[[], str]] = None) -> list[Account]:
    """Build the demo accounts with fresh item ids."""
    new_id = new_id or (lambda: str(uuid4()))
    return [
        Account(
            handle=handle,
            secret=secret,
            items=[
                Item(id=new_id(), title=title, category=category, cover_url=cover_url)
                for title, category, cover_url in games
            ],
        )
        for handle, secret, games in _DEFAULT_COLLECTIONS
    ]
