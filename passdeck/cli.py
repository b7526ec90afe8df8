"""
passdeck CLI — thin command-line front-end over the pass-cli core.

Usage:
    passdeck status                  # Is pass-cli logged in?
    passdeck vaults                  # List vaults (cached first, then fresh)
    passdeck items [--vault ID]      # List items
    passdeck item SHARE ITEM         # Show one item (secrets masked)
    passdeck totp SHARE ITEM         # Current TOTP code
    passdeck totp-watch              # Live TOTP codes for every item with TOTP
    passdeck generate                # Generate (and score) a password
    passdeck score                   # Score a password read from the prompt
    passdeck cache clear             # Drop cached vault/item lists
    passdeck version                 # Show version
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from collections.abc import Awaitable, Callable

from passdeck.cache import ListCache, LocalStorage
from passdeck.config import PassConfig, get_config
from passdeck.loader import load_latest, stream_items, stream_vaults
from passdeck.passcli.client import PassCliClient, default_password_options
from passdeck.passcli.errors import PassCliError, error_guide
from passdeck.passcli.models import ItemDetail, PasswordOptions, PasswordType
from passdeck.totp import TotpEntry, TotpRefreshCycle, format_totp_code
from passdeck.utils import format_item_subtitle, mask_password, password_strength_level

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="passdeck",
        description="passdeck — browse and use Proton Pass items through pass-cli.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("status", help="Check pass-cli authentication")

    vaults_parser = subparsers.add_parser("vaults", help="List vaults")
    vaults_parser.add_argument("--json", action="store_true", help="Print JSON")

    items_parser = subparsers.add_parser("items", help="List items")
    items_parser.add_argument("--vault", metavar="SHARE_ID", help="Only this vault")
    items_parser.add_argument("--json", action="store_true", help="Print JSON")

    item_parser = subparsers.add_parser("item", help="Show one item")
    item_parser.add_argument("share_id")
    item_parser.add_argument("item_id")
    item_parser.add_argument("--raw", action="store_true", help="Print pass-cli's JSON as-is")
    item_parser.add_argument(
        "--show-secrets", action="store_true", help="Do not mask password or hidden fields"
    )

    totp_parser = subparsers.add_parser("totp", help="Show the current TOTP code")
    totp_parser.add_argument("share_id")
    totp_parser.add_argument("item_id")
    totp_parser.add_argument("--all", action="store_true", help="Show every named code")

    watch_parser = subparsers.add_parser("totp-watch", help="Live TOTP codes")
    watch_parser.add_argument(
        "--windows", type=int, default=0, help="Stop after N code sets (default: run forever)"
    )

    gen_parser = subparsers.add_parser("generate", help="Generate a password")
    gen_parser.add_argument("--type", choices=[t.value for t in PasswordType])
    gen_parser.add_argument("--length", type=int)
    gen_parser.add_argument("--words", type=int)
    gen_parser.add_argument("--separator")
    gen_parser.add_argument("--numbers", action=argparse.BooleanOptionalAction, default=None)
    gen_parser.add_argument("--uppercase", action=argparse.BooleanOptionalAction, default=None)
    gen_parser.add_argument("--symbols", action=argparse.BooleanOptionalAction, default=None)
    gen_parser.add_argument("--capitalize", action=argparse.BooleanOptionalAction, default=None)
    gen_parser.add_argument("--no-score", action="store_true", help="Skip strength scoring")

    subparsers.add_parser("score", help="Score a password (read from prompt)")

    cache_parser = subparsers.add_parser("cache", help="Manage the local list cache")
    cache_sub = cache_parser.add_subparsers(dest="cache_command")
    cache_sub.add_parser("clear", help="Remove cached vaults and items")

    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.version or args.command == "version":
        from passdeck import __version__

        print(f"passdeck {__version__}")
        return 0

    handlers: dict[str, Callable[[argparse.Namespace, PassCliClient, ListCache], Awaitable[int]]] = {
        "status": _cmd_status,
        "vaults": _cmd_vaults,
        "items": _cmd_items,
        "item": _cmd_item,
        "totp": _cmd_totp,
        "totp-watch": _cmd_totp_watch,
        "generate": _cmd_generate,
        "score": _cmd_score,
    }

    if args.command == "cache":
        return _cmd_cache(args, get_config())

    handler = handlers.get(args.command or "")
    if handler is None:
        parser.print_help()
        return 0

    cfg = get_config()
    cache = ListCache(LocalStorage(cfg.cache_dir))
    client = PassCliClient.from_config(cfg, cache=cache)
    try:
        return asyncio.run(handler(args, client, cache))
    except PassCliError as e:
        _print_error(e, args.command)
        return 1
    except KeyboardInterrupt:
        return 130


def _print_error(error: PassCliError, command: str) -> None:
    guide = error_guide(error.error_type, context_title=command)
    print(f"Error: {guide.title}", file=sys.stderr)
    print(f"  {guide.description}", file=sys.stderr)
    if error.message and error.message != guide.description:
        print(f"  {error.message}", file=sys.stderr)
    if guide.show_docs_link:
        print(f"  Docs: {guide.docs_url}", file=sys.stderr)


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def _cmd_status(args: argparse.Namespace, client: PassCliClient, cache: ListCache) -> int:
    if await client.check_authenticated():
        print("Authenticated.")
        return 0
    print("Not logged in. Run 'pass-cli login' in a terminal.")
    return 1


async def _cmd_vaults(args: argparse.Namespace, client: PassCliClient, cache: ListCache) -> int:
    vaults = await load_latest(stream_vaults(client, cache))
    if args.json:
        _print_json([v.model_dump(mode="json") for v in vaults])
        return 0
    for v in vaults:
        print(f"{v.share_id}  {v.name}  ({v.item_count} items, {v.role})")
    return 0


async def _cmd_items(args: argparse.Namespace, client: PassCliClient, cache: ListCache) -> int:
    if args.vault:
        items = await client.list_items(args.vault)
    else:
        items = await load_latest(stream_items(client, cache))

    if args.json:
        _print_json([i.model_dump(mode="json") for i in items])
        return 0
    for i in items:
        totp = " [totp]" if i.has_totp else ""
        print(f"{i.share_id} {i.item_id}  {i.title} ({i.type}){totp}  {format_item_subtitle(i)}")
    return 0


def _masked(detail: ItemDetail) -> dict:
    data = detail.model_dump(mode="json")
    if detail.password:
        data["password"] = mask_password(detail.password)
    for field in data.get("custom_fields") or []:
        if field["type"] == "hidden":
            field["value"] = mask_password(field["value"])
    return data


async def _cmd_item(args: argparse.Namespace, client: PassCliClient, cache: ListCache) -> int:
    if args.raw:
        print(await client.get_item_raw(args.share_id, args.item_id))
        return 0
    detail = await client.get_item_detail(args.share_id, args.item_id)
    _print_json(detail.model_dump(mode="json") if args.show_secrets else _masked(detail))
    return 0


async def _cmd_totp(args: argparse.Namespace, client: PassCliClient, cache: ListCache) -> int:
    if args.all:
        codes = await client.get_totp_codes(args.share_id, args.item_id)
        for name in sorted(codes):
            print(f"{name}: {format_totp_code(codes[name])}")
        return 0
    print(format_totp_code(await client.get_totp_code(args.share_id, args.item_id)))
    return 0


async def _cmd_totp_watch(
    args: argparse.Namespace, client: PassCliClient, cache: ListCache
) -> int:
    items = await load_latest(stream_items(client, cache))
    done = asyncio.Event()
    shown = 0

    def on_refresh(entries: list[TotpEntry]) -> None:
        nonlocal shown
        shown += 1
        print(f"-- codes ({cycle.remaining_seconds}s left) --")
        for entry in entries:
            code = format_totp_code(entry.code) if entry.code else "---"
            print(f"{code}  {entry.item.title}  ({entry.item.vault_name})")
        if args.windows and shown >= args.windows:
            done.set()

    cycle = TotpRefreshCycle(client, on_refresh=on_refresh)
    if not any(i.has_totp for i in items):
        print("None of your items have TOTP configured.")
        return 0

    async with cycle:
        await cycle.load(items)
        await done.wait()
    return 0


def _password_options(args: argparse.Namespace, cfg: PassConfig) -> PasswordOptions:
    base = default_password_options(cfg, args.type)
    overrides = {
        "length": args.length,
        "words": args.words,
        "separator": args.separator,
        "include_numbers": args.numbers,
        "include_uppercase": args.uppercase,
        "include_symbols": args.symbols,
        "capitalize": args.capitalize,
    }
    return base.model_copy(update={k: v for k, v in overrides.items() if v is not None})


async def _cmd_generate(
    args: argparse.Namespace, client: PassCliClient, cache: ListCache
) -> int:
    options = _password_options(args, get_config())
    password = await client.generate_password(options)
    print(password)
    if not args.no_score:
        await _print_score(client, password)
    return 0


async def _cmd_score(args: argparse.Namespace, client: PassCliClient, cache: ListCache) -> int:
    password = getpass.getpass("Password: ")
    if not password:
        print("No password given.", file=sys.stderr)
        return 1
    await _print_score(client, password)
    return 0


async def _print_score(client: PassCliClient, password: str) -> None:
    score = await client.score_password(password)
    level = password_strength_level(score.password_score)
    print(f"Strength: {score.password_score} ({level}, {round(score.numeric_score)})")
    for penalty in score.penalties or []:
        print(f"  - {penalty}")


def _cmd_cache(args: argparse.Namespace, cfg: PassConfig) -> int:
    if getattr(args, "cache_command", None) == "clear":
        ListCache(LocalStorage(cfg.cache_dir)).clear()
        print("Cache cleared.")
        return 0
    print("Usage: passdeck cache {clear}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
