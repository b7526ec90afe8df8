"""
Typed records produced by the output normalizer.

Pydantic models so the cache can round-trip them through JSON
(``model_dump(mode="json")`` / ``model_validate``). All records are frozen:
a refresh replaces them wholesale instead of mutating them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class VaultRole(StrEnum):
    OWNER = "owner"
    MANAGER = "manager"
    EDITOR = "editor"
    VIEWER = "viewer"


class ItemType(StrEnum):
    LOGIN = "login"
    NOTE = "note"
    CREDIT_CARD = "credit_card"
    IDENTITY = "identity"
    ALIAS = "alias"
    SSH_KEY = "ssh_key"
    WIFI = "wifi"


class PasswordType(StrEnum):
    RANDOM = "random"
    PASSPHRASE = "passphrase"


class CustomFieldType(StrEnum):
    TEXT = "text"
    HIDDEN = "hidden"


class Vault(BaseModel):
    """A named collection of items and the current user's role in it."""

    model_config = ConfigDict(frozen=True)

    share_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    item_count: int = 0
    role: VaultRole = VaultRole.VIEWER


class Item(BaseModel):
    """List-view projection of a vault item."""

    model_config = ConfigDict(frozen=True)

    share_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    type: ItemType = ItemType.NOTE
    vault_name: str = Field(min_length=1)
    username: str | None = None
    email: str | None = None
    has_totp: bool = False

    @property
    def key(self) -> tuple[str, str]:
        """Composite identity of the item."""
        return (self.share_id, self.item_id)


class CustomField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: str
    type: CustomFieldType = CustomFieldType.TEXT


class ItemDetail(Item):
    """Full item view. Empty collections are stored as None, never []."""

    password: str | None = None
    urls: list[str] | None = None
    note: str | None = None
    custom_fields: list[CustomField] | None = None


class PasswordScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    numeric_score: float = 0.0
    password_score: str = "Unknown"
    penalties: list[str] | None = None


class PasswordOptions(BaseModel):
    """Generator options. Fields left as None defer to pass-cli's own defaults."""

    model_config = ConfigDict(frozen=True)

    type: PasswordType = PasswordType.RANDOM

    # random
    length: int | None = Field(default=None, gt=0)
    include_uppercase: bool | None = None
    include_symbols: bool | None = None

    # passphrase
    words: int | None = Field(default=None, gt=0)
    separator: str | None = None
    capitalize: bool | None = None

    # both
    include_numbers: bool | None = None
