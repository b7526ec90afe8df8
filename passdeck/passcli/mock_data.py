"""Synthetic vault data for the development-only mock mode."""

from __future__ import annotations

from passdeck.passcli.models import (
    CustomField,
    CustomFieldType,
    Item,
    ItemDetail,
    ItemType,
    Vault,
    VaultRole,
)

MOCK_VAULTS: list[Vault] = [
    Vault(share_id="mock-share-personal", name="Personal", item_count=4, role=VaultRole.OWNER),
    Vault(share_id="mock-share-work", name="Work", item_count=2, role=VaultRole.EDITOR),
]

MOCK_ITEMS: list[Item] = [
    Item(
        share_id="mock-share-personal",
        item_id="mock-item-github",
        title="GitHub",
        type=ItemType.LOGIN,
        vault_name="Personal",
        username="octocat",
        email="octocat@example.com",
        has_totp=True,
    ),
    Item(
        share_id="mock-share-personal",
        item_id="mock-item-bank",
        title="Bank Card",
        type=ItemType.CREDIT_CARD,
        vault_name="Personal",
    ),
    Item(
        share_id="mock-share-personal",
        item_id="mock-item-wifi",
        title="Home Wi-Fi",
        type=ItemType.WIFI,
        vault_name="Personal",
    ),
    Item(
        share_id="mock-share-personal",
        item_id="mock-item-recovery",
        title="Recovery Codes",
        type=ItemType.NOTE,
        vault_name="Personal",
    ),
    Item(
        share_id="mock-share-work",
        item_id="mock-item-jira",
        title="Jira",
        type=ItemType.LOGIN,
        vault_name="Work",
        username="jdoe",
        has_totp=True,
    ),
    Item(
        share_id="mock-share-work",
        item_id="mock-item-deploy-key",
        title="Deploy Key",
        type=ItemType.SSH_KEY,
        vault_name="Work",
    ),
]

MOCK_ITEM_DETAILS: dict[str, ItemDetail] = {
    "mock-item-github": ItemDetail(
        **MOCK_ITEMS[0].model_dump(),
        password="correct-horse-battery-staple",
        urls=["https://github.com"],
        note="Personal account",
        custom_fields=[
            CustomField(name="Recovery email", value="backup@example.com"),
            CustomField(name="PIN", value="4242", type=CustomFieldType.HIDDEN),
        ],
    ),
    "mock-item-jira": ItemDetail(
        **MOCK_ITEMS[4].model_dump(),
        password="mock-password-123",
        urls=["https://example.atlassian.net"],
    ),
}

MOCK_TOTP_CODES: dict[str, str] = {
    "mock-item-github": "123456",
    "mock-item-jira": "654321",
}

MOCK_PASSWORD = "mock-password-123"
