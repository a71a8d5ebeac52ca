"""
Core Data Models for GameSwap

These models define the schemas of the persisted account blob:
1. Accounts own an ordered collection of items
2. Items carry single-hop provenance while they are on loan
3. Field aliases keep the stored JSON keys of the legacy app
   (username, games, gameType, swapped, swappedWith, ...)

DESIGN DECISION: The swap menu flag is NOT part of the item.
It is per-session UI state and lives in SessionContext.
Legacy blobs that still carry `openSwap` load fine; the key is ignored.
"""

from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ItemCategory(str, Enum):
    """Platform an item belongs to."""
    PLAYSTATION = "playstation"
    NINTENDO = "nintendo"
    XBOX = "xbox"


class ItemStatus(str, Enum):
    """
    Status of an item as seen by the account that holds the record.

    ON_LOAN is the lender's marker copy: it stays in the lender's
    collection while the live copy sits with the borrower, and only
    the borrower's return can clear it.
    """
    AVAILABLE = "available"
    IN_USE = "in_use"
    ON_LOAN = "on_loan"
    RECEIVED = "received"


# =============================================================================
# ITEM
# =============================================================================

class Item(BaseModel):
    """
    A single game in a collection.

    The id is assigned once at creation and survives every transfer;
    a transfer only changes which collections hold the record and the
    provenance fields.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Globally unique item identifier"
    )
    title: str = Field(
        ...,
        alias="name",
        min_length=1,
        max_length=200,
        description="Game title"
    )
    cover_url: str = Field(
        default="",
        alias="picture",
        description="Cover image URL (may be empty)"
    )
    category: ItemCategory = Field(
        ...,
        alias="gameType",
        description="Platform tag"
    )
    in_use: bool = Field(
        default=False,
        alias="playing",
        description="An item in use cannot be transferred"
    )
    transferred: bool = Field(
        default=False,
        alias="swapped",
        description="True while the item is part of an active loan"
    )
    original_owner: str = Field(
        default="",
        alias="originalOwner",
        description="Handle of the lender, empty when not transferred"
    )
    transfer_partner: str = Field(
        default="",
        alias="swappedWith",
        description="Handle of the borrower, empty when not transferred"
    )

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode='after')
    def validate_provenance(self) -> 'Item':
        """Provenance is set exactly when the item is transferred."""
        if self.transferred:
            if not self.original_owner or not self.transfer_partner:
                raise ValueError(
                    "Transferred item must record original owner and partner"
                )
            if self.original_owner == self.transfer_partner:
                raise ValueError(
                    "Original owner and transfer partner must differ"
                )
        elif self.original_owner or self.transfer_partner:
            raise ValueError(
                "Provenance must be empty when the item is not transferred"
            )
        return self

    def is_on_loan_from(self, handle: str) -> bool:
        """Is this the lender's marker copy in `handle`'s collection?"""
        return self.transferred and self.original_owner == handle

    def status_for(self, handle: str) -> ItemStatus:
        """Resolve the item's status for the account holding this record."""
        if self.is_on_loan_from(handle):
            return ItemStatus.ON_LOAN
        if self.in_use:
            return ItemStatus.IN_USE
        if self.transferred:
            return ItemStatus.RECEIVED
        return ItemStatus.AVAILABLE

    def provenance(self) -> tuple[bool, str, str]:
        return self.transferred, self.original_owner, self.transfer_partner


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    An account and its collection.

    The handle is the store key and never changes.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    handle: str = Field(
        ...,
        alias="username",
        min_length=1,
        max_length=100,
        description="Unique account handle"
    )
    secret: str = Field(
        default="",
        alias="password",
        repr=False,
        description="Opaque credential for the auth collaborator"
    )
    items: list[Item] = Field(
        default_factory=list,
        alias="games",
        description="Collection in insertion order"
    )

    @model_validator(mode='after')
    def validate_unique_item_ids(self) -> 'Account':
        seen = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(
                    f"Duplicate item id {item.id} in account {self.handle}"
                )
            seen.add(item.id)
        return self

    def find_item(self, item_id: Optional[str]) -> Optional[Item]:
        """Return the record with this id, or None."""
        if item_id is None:
            return None
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def with_items(self, items: list[Item]) -> 'Account':
        """Copy of this account holding `items`."""
        return self.model_copy(update={"items": list(items)})

    def to_storage_dict(self) -> dict:
        """Serialize with the persisted key names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class CollectionStats(BaseModel):
    """Summary counters for one account's collection."""

    handle: str
    total: int = Field(default=0, ge=0)
    in_use: int = Field(default=0, ge=0)
    sent: int = Field(default=0, ge=0, description="On-loan marker copies")
    received: int = Field(default=0, ge=0, description="Borrowed items")
    own_percent: int = Field(default=0, ge=0, le=100)
    borrowed_percent: int = Field(default=0, ge=0, le=100)
