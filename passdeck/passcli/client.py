"""
pass-cli domain operations.

``PassCliClient`` is the public API the launcher commands call. It builds
pass-cli argument lists, runs them through ``ProcessRunner`` and hands the
raw text to the normalizer. Errors are passed through untouched, with one
exception: ``check_authenticated`` turns NOT_AUTHENTICATED into ``False``.

Usage:
    client = PassCliClient.from_config(get_config())
    if await client.check_authenticated():
        vaults = await client.list_vaults()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from passdeck.passcli import normalize
from passdeck.passcli.errors import PassCliError, PassCliErrorType
from passdeck.passcli.mock_data import (
    MOCK_ITEM_DETAILS,
    MOCK_ITEMS,
    MOCK_PASSWORD,
    MOCK_TOTP_CODES,
    MOCK_VAULTS,
)
from passdeck.passcli.models import (
    Item,
    ItemDetail,
    PasswordOptions,
    PasswordScore,
    PasswordType,
    Vault,
)
from passdeck.passcli.runner import ProcessRunner

if TYPE_CHECKING:
    from passdeck.cache import ListCache
    from passdeck.config import PassConfig

logger = logging.getLogger(__name__)

DEFAULT_PASSPHRASE_WORDS = 4
JSON_OUTPUT = ("--output", "json")


def _flag(value: bool) -> str:
    return "true" if value else "false"


def password_generate_args(options: PasswordOptions) -> list[str]:
    """Argument list for ``password generate``; unset options are omitted."""
    if options.type is PasswordType.RANDOM:
        args = ["password", "generate", "random"]
        if options.length is not None:
            args += ["--length", str(options.length)]
        if options.include_numbers is not None:
            args += ["--numbers", _flag(options.include_numbers)]
        if options.include_uppercase is not None:
            args += ["--uppercase", _flag(options.include_uppercase)]
        if options.include_symbols is not None:
            args += ["--symbols", _flag(options.include_symbols)]
        return args

    args = ["password", "generate", "memorable"]
    if options.words is not None:
        args += ["--words", str(options.words)]
    if options.separator is not None:
        args += ["--separator", options.separator]
    if options.capitalize is not None:
        args += ["--capitalize", _flag(options.capitalize)]
    if options.include_numbers is not None:
        args += ["--numbers", _flag(options.include_numbers)]
    return args


def default_password_options(
    config: PassConfig,
    password_type: PasswordType | str | None = None,
) -> PasswordOptions:
    """Generator options from configuration (length for random, 4 words for passphrases)."""
    kind = PasswordType(password_type or config.default_password_type)
    if kind is PasswordType.RANDOM:
        return PasswordOptions(type=kind, length=config.default_password_length)
    return PasswordOptions(type=kind, words=DEFAULT_PASSPHRASE_WORDS)


class PassCliClient:
    """Session object for one launcher command."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        *,
        cache: ListCache | None = None,
        mock_data: bool = False,
    ) -> None:
        self.runner = runner or ProcessRunner()
        self.cache = cache
        self.mock_data = mock_data
        self._mock_cache_cleared = False

    @classmethod
    def from_config(cls, config: PassConfig, cache: ListCache | None = None) -> PassCliClient:
        runner = ProcessRunner(config.cli_path, timeout=config.cli_timeout)
        return cls(runner, cache=cache, mock_data=config.mock_data)

    def _use_mock_data(self) -> bool:
        """True in mock mode; clears real cached lists the first time."""
        if not self.mock_data:
            return False
        if not self._mock_cache_cleared:
            self._mock_cache_cleared = True
            if self.cache is not None:
                logger.info("Mock data enabled, clearing cached vault data")
                self.cache.clear()
        return True

    def ensure_mock_cache_cleared(self) -> None:
        """Run the one-time mock-mode cache clear; call before reading the cache."""
        self._use_mock_data()

    # ── Auth ────────────────────────────────────────────────────────

    async def check_authenticated(self) -> bool:
        if self._use_mock_data():
            return True

        try:
            await self.runner.run(["test"])
        except PassCliError as e:
            if e.error_type is PassCliErrorType.NOT_AUTHENTICATED:
                return False
            raise
        return True

    # ── Vaults & items ─────────────────────────────────────────────

    async def list_vaults(self) -> list[Vault]:
        if self._use_mock_data():
            return list(MOCK_VAULTS)

        output = await self.runner.run(["vault", "list", *JSON_OUTPUT])
        data = normalize.parse_json(output, "vault list")
        return normalize.normalize_vault_list(data)

    async def _list_vault_items(self, share_id: str, vault_name: str) -> list[Item]:
        output = await self.runner.run(["item", "list", "--share-id", share_id, *JSON_OUTPUT])
        data = normalize.parse_json(output, "item list")
        return normalize.normalize_item_list(data, vault_name)

    async def list_items(self, share_id: str | None = None) -> list[Item]:
        """Items of one vault, or of every vault when ``share_id`` is None.

        In the all-vaults case a vault whose listing fails is logged and skipped.
        """
        if self._use_mock_data():
            if share_id:
                return [i for i in MOCK_ITEMS if i.share_id == share_id]
            return list(MOCK_ITEMS)

        vaults = await self.list_vaults()

        if share_id:
            vault = next((v for v in vaults if v.share_id == share_id), None)
            name = vault.name if vault else normalize.UNKNOWN_VAULT_NAME
            return await self._list_vault_items(share_id, name)

        items: list[Item] = []
        for vault in vaults:
            try:
                items.extend(await self._list_vault_items(vault.share_id, vault.name))
            except PassCliError as e:
                logger.warning(
                    "Failed to list items from vault %s (%s): %s",
                    vault.name,
                    e.error_type,
                    e.message,
                )
        return items

    def _item_view_args(self, share_id: str, item_id: str) -> list[str]:
        return ["item", "view", "--share-id", share_id, "--item-id", item_id, *JSON_OUTPUT]

    async def get_item_detail(self, share_id: str, item_id: str) -> ItemDetail:
        if self._use_mock_data():
            detail = MOCK_ITEM_DETAILS.get(item_id)
            if detail is not None:
                return detail
            item = next(
                (i for i in MOCK_ITEMS if i.key == (share_id, item_id)),
                None,
            )
            if item is None:
                raise PassCliError("Item not found", PassCliErrorType.INVALID_OUTPUT)
            return ItemDetail(**item.model_dump(), password=MOCK_PASSWORD)

        output = await self.runner.run(self._item_view_args(share_id, item_id))
        data = normalize.parse_json(output, "item view")
        return normalize.normalize_item_detail(normalize.unwrap_envelope(data))

    async def get_item_raw(self, share_id: str, item_id: str) -> str:
        """Untouched ``item view`` JSON, for diagnostics."""
        return await self.runner.run(self._item_view_args(share_id, item_id))

    # ── TOTP ───────────────────────────────────────────────────────

    async def get_totp_codes(self, share_id: str, item_id: str) -> dict[str, str]:
        if self._use_mock_data():
            code = MOCK_TOTP_CODES.get(item_id)
            return {"totp": code} if code else {}

        output = await self.runner.run(
            ["item", "totp", "--share-id", share_id, "--item-id", item_id, *JSON_OUTPUT]
        )
        data = normalize.parse_json(output, "item totp")
        return normalize.normalize_totp_codes(data)

    async def get_totp_code(self, share_id: str, item_id: str) -> str:
        """Current code for an item.

        Raises INVALID_OUTPUT when the item has no TOTP, whatever its
        ``has_totp`` flag says.
        """
        codes = await self.get_totp_codes(share_id, item_id)
        return normalize.select_totp_code(codes)

    # ── Passwords ──────────────────────────────────────────────────

    async def generate_password(self, options: PasswordOptions) -> str:
        output = await self.runner.run(password_generate_args(options))
        return output.strip()

    async def score_password(self, password: str) -> PasswordScore:
        # pass-cli only takes the password as an argument, so it is visible
        # in process listings while the score runs.
        output = await self.runner.run(["password", "score", password, *JSON_OUTPUT])
        data = normalize.parse_json(output, "password score")
        return normalize.normalize_password_score(data)
