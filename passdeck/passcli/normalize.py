"""
Output normalizer — loosely structured pass-cli JSON → typed records.

pass-cli has renamed fields and wrapped payloads differently across releases.
Every tolerated spelling lives in one of the candidate tables below and is
tried in the listed order, so adding a new spelling is a one-line change.

A candidate is ``(source, key)`` where ``source`` is ``"root"`` (the raw
record) or ``"content"`` (its ``content`` object, or the record itself when
there is none). A value counts as present when it is not None, even if it is
blank; blank strings are rejected afterwards by ``_text``.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from passdeck.passcli.errors import PassCliError, PassCliErrorType
from passdeck.passcli.models import (
    CustomField,
    CustomFieldType,
    Item,
    ItemDetail,
    ItemType,
    PasswordScore,
    Vault,
    VaultRole,
)

logger = logging.getLogger(__name__)

Candidates = tuple[tuple[str, str], ...]

UNKNOWN_VAULT_NAME = "Unknown Vault"
TRASHED_STATE = "Trashed"
ENVELOPE_KEYS = ("item", "data", "result", "response", "payload")
MAX_ENVELOPE_DEPTH = 2
PREFERRED_TOTP_KEY = "totp"

# ── Candidate tables ─────────────────────────────────────────────────

VAULT_SHARE_ID: Candidates = (
    ("root", "share_id"),
    ("root", "shareId"),
    ("root", "shareID"),
    ("root", "id"),
)
VAULT_NAME: Candidates = (("root", "name"),)
VAULT_ITEM_COUNT: Candidates = (
    ("root", "itemCount"),
    ("root", "item_count"),
    ("root", "items_count"),
    ("root", "itemsCount"),
)
VAULT_ROLE: Candidates = (("root", "role"),)

ITEM_SHARE_ID: Candidates = (
    ("root", "share_id"),
    ("root", "shareId"),
    ("root", "shareID"),
    ("root", "vaultShareId"),
    ("root", "vault_share_id"),
)
ITEM_ID: Candidates = (
    ("root", "id"),
    ("root", "itemId"),
    ("root", "item_id"),
    ("root", "itemID"),
)
ITEM_TITLE: Candidates = (
    ("content", "title"),
    ("root", "title"),
    ("root", "name"),
)
ITEM_VAULT_NAME: Candidates = (
    ("root", "vaultName"),
    ("root", "vault_name"),
)
ITEM_NOTE: Candidates = (
    ("content", "note"),
    ("root", "note"),
)
ITEM_STATE: Candidates = (("root", "state"),)

# Each source is normalized separately; the first non-empty result wins.
ITEM_EXTRA_FIELDS: Candidates = (
    ("content", "extra_fields"),
    ("content", "extraFields"),
    ("root", "extra_fields"),
    ("root", "extraFields"),
)

LOGIN_TOTP_URI = ("totp_uri", "totpUri")
CUSTOM_FIELD_NAME = ("name", "key")

SCORE_NUMERIC: Candidates = (
    ("root", "numericScore"),
    ("root", "numeric_score"),
)
SCORE_LABEL: Candidates = (
    ("root", "passwordScore"),
    ("root", "password_score"),
)

# Discriminator key inside content.content → item type. First match wins.
ITEM_TYPE_KEYS: tuple[tuple[str, ItemType], ...] = (
    ("Login", ItemType.LOGIN),
    ("Note", ItemType.NOTE),
    ("CreditCard", ItemType.CREDIT_CARD),
    ("credit_card", ItemType.CREDIT_CARD),
    ("Identity", ItemType.IDENTITY),
    ("Alias", ItemType.ALIAS),
    ("SshKey", ItemType.SSH_KEY),
    ("ssh_key", ItemType.SSH_KEY),
    ("Wifi", ItemType.WIFI),
)
# Note payloads are often null or a bare string; presence alone decides.
PRESENCE_ONLY_TYPE_KEYS = frozenset({"Note"})


# ── Helpers ──────────────────────────────────────────────────────────


def _invalid(message: str) -> PassCliError:
    return PassCliError(message, PassCliErrorType.INVALID_OUTPUT)


def _text(value: Any) -> str | None:
    """Trimmed string, or None for non-strings and blank strings."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _to_number(value: Any) -> float:
    """Lenient numeric coercion; anything unusable or non-finite becomes 0."""
    if isinstance(value, (bool, int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        try:
            number = float(stripped) if stripped else 0.0
        except ValueError:
            number = 0.0
    else:
        number = 0.0
    return number if math.isfinite(number) else 0.0


def _content_of(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    content = raw.get("content")
    return content if isinstance(content, Mapping) else raw


def _sources(raw: Mapping[str, Any]) -> dict[str, Mapping[str, Any]]:
    return {"root": raw, "content": _content_of(raw)}


def lookup(sources: Mapping[str, Mapping[str, Any]], candidates: Candidates) -> Any:
    """Return the first present (non-None) candidate value, else None."""
    for source, key in candidates:
        value = sources[source].get(key)
        if value is not None:
            return value
    return None


def _first_key(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def parse_json(text: str, context: str) -> Any:
    """Parse CLI output; any parse failure is INVALID_OUTPUT."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        raise _invalid(
            f"Unexpected {context} output from pass-cli. Please update pass-cli and try again."
        ) from None


def unwrap_envelope(data: Any, max_depth: int = MAX_ENVELOPE_DEPTH) -> Any:
    """Strip up to ``max_depth`` generic wrapper objects (``data``, ``result``…)."""
    current = data
    for _ in range(max_depth):
        if not isinstance(current, Mapping):
            break
        inner = next(
            (current[k] for k in ENVELOPE_KEYS if isinstance(current.get(k), Mapping)),
            None,
        )
        if inner is None:
            break
        current = inner
    return current


def unwrap_list(data: Any, key: str, context: str) -> list[Any]:
    """Accept a bare list or ``{key: [...]}``."""
    records = data.get(key) if isinstance(data, Mapping) else data
    if not isinstance(records, list):
        raise _invalid(f"Unexpected {context} output from pass-cli.")
    return records


# ── Vaults ───────────────────────────────────────────────────────────


def normalize_vault_role(value: Any) -> VaultRole:
    raw = _text(value)
    try:
        return VaultRole(raw.lower()) if raw else VaultRole.VIEWER
    except ValueError:
        return VaultRole.VIEWER


def normalize_vault(raw: Any) -> Vault:
    if not isinstance(raw, Mapping):
        raise _invalid("Unexpected vault data from pass-cli.")

    sources = _sources(raw)
    share_id = _text(lookup(sources, VAULT_SHARE_ID))
    name = _text(lookup(sources, VAULT_NAME))
    if not share_id or not name:
        raise _invalid("Unexpected vault data from pass-cli.")

    return Vault(
        share_id=share_id,
        name=name,
        item_count=int(_to_number(lookup(sources, VAULT_ITEM_COUNT))),
        role=normalize_vault_role(lookup(sources, VAULT_ROLE)),
    )


def normalize_vault_list(data: Any) -> list[Vault]:
    return [normalize_vault(v) for v in unwrap_list(data, "vaults", "vault list")]


# ── Items ────────────────────────────────────────────────────────────


def _inner_content(raw: Mapping[str, Any]) -> Mapping[str, Any] | None:
    inner = _content_of(raw).get("content")
    return inner if isinstance(inner, Mapping) else None


def detect_item_type(
    inner_content: Any,
) -> tuple[ItemType, Mapping[str, Any] | None]:
    """Return (type, type-specific payload). Unknown shapes default to a note."""
    if not isinstance(inner_content, Mapping):
        return ItemType.NOTE, None

    for key, item_type in ITEM_TYPE_KEYS:
        if key not in inner_content:
            continue
        payload = inner_content[key]
        if isinstance(payload, Mapping):
            return item_type, payload
        if key in PRESENCE_ONLY_TYPE_KEYS:
            return item_type, None

    return ItemType.NOTE, None


def normalize_item(raw: Any, vault_name: str | None = None) -> Item:
    """Normalize one item-list record.

    ``vault_name`` overrides whatever vault name the record carries.
    """
    if not isinstance(raw, Mapping):
        raise _invalid("Unexpected item data from pass-cli.")

    sources = _sources(raw)
    share_id = _text(lookup(sources, ITEM_SHARE_ID))
    item_id = _text(lookup(sources, ITEM_ID))
    title = _text(lookup(sources, ITEM_TITLE))

    item_type, payload = detect_item_type(_inner_content(raw))
    login = payload if item_type is ItemType.LOGIN else None

    if login is not None:
        username = _text(login.get("username"))
        email = _text(login.get("email"))
        has_totp = _text(_first_key(login, LOGIN_TOTP_URI)) is not None
    else:
        username = _text(raw.get("username"))
        email = _text(raw.get("email"))
        has_totp = False

    if vault_name is not None:
        resolved_vault = vault_name.strip()
    else:
        resolved_vault = _text(lookup(sources, ITEM_VAULT_NAME)) or UNKNOWN_VAULT_NAME

    if not share_id or not item_id or not title or not resolved_vault:
        raise _invalid("Unexpected item data from pass-cli.")

    return Item(
        share_id=share_id,
        item_id=item_id,
        title=title,
        type=item_type,
        vault_name=resolved_vault,
        username=username,
        email=email,
        has_totp=has_totp,
    )


def is_trashed(raw: Any) -> bool:
    return isinstance(raw, Mapping) and _text(lookup(_sources(raw), ITEM_STATE)) == TRASHED_STATE


def normalize_item_list(data: Any, vault_name: str | None = None) -> list[Item]:
    """Normalize an ``item list`` payload, dropping trashed and non-object entries."""
    records = unwrap_list(data, "items", "item list")
    active = [r for r in records if isinstance(r, Mapping) and not is_trashed(r)]
    return [normalize_item(r, vault_name) for r in active]


def normalize_custom_fields(raw: Any) -> list[CustomField] | None:
    """Keep well-formed entries; an empty result is None."""
    if not isinstance(raw, list):
        return None

    fields: list[CustomField] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        name = _text(_first_key(entry, CUSTOM_FIELD_NAME))
        value = _text(entry.get("value"))
        if not name or value is None:
            continue
        field_type = (
            CustomFieldType.HIDDEN
            if (_text(entry.get("type")) or "").lower() == CustomFieldType.HIDDEN
            else CustomFieldType.TEXT
        )
        fields.append(CustomField(name=name, value=value, type=field_type))

    return fields or None


def normalize_string_list(raw: Any) -> list[str] | None:
    if not isinstance(raw, list):
        return None
    values = [v for v in (_text(x) for x in raw) if v]
    return values or None


def normalize_item_detail(raw: Any) -> ItemDetail:
    if not isinstance(raw, Mapping):
        raise _invalid("Unexpected item details from pass-cli.")

    base = normalize_item(raw)
    sources = _sources(raw)
    _, payload = detect_item_type(_inner_content(raw))

    custom_fields = None
    for candidate in ITEM_EXTRA_FIELDS:
        custom_fields = normalize_custom_fields(lookup(sources, (candidate,)))
        if custom_fields is not None:
            break

    return ItemDetail(
        **base.model_dump(),
        password=_text(payload.get("password")) if payload is not None else None,
        urls=normalize_string_list(payload.get("urls")) if payload is not None else None,
        note=_text(lookup(sources, ITEM_NOTE)),
        custom_fields=custom_fields,
    )


# ── TOTP ─────────────────────────────────────────────────────────────


def normalize_totp_codes(data: Any) -> dict[str, str]:
    """Named TOTP codes of one item (``{"totps": {...}}`` or a bare mapping)."""
    if isinstance(data, Mapping) and isinstance(data.get("totps"), Mapping):
        data = data["totps"]
    if not isinstance(data, Mapping):
        raise _invalid("Unexpected TOTP output from pass-cli.")

    codes: dict[str, str] = {}
    for name, value in data.items():
        code = _text(value)
        if code:
            codes[str(name)] = code
    return codes


def select_totp_code(codes: Mapping[str, str]) -> str:
    """Prefer the ``totp`` entry, else the lexicographically first key."""
    preferred = codes.get(PREFERRED_TOTP_KEY)
    if preferred:
        return preferred
    for name in sorted(codes):
        if codes[name]:
            return codes[name]
    raise _invalid("No TOTP fields found for this item.")


# ── Password score ───────────────────────────────────────────────────


def normalize_password_score(data: Any) -> PasswordScore:
    if not isinstance(data, Mapping):
        raise _invalid("Unexpected password score output from pass-cli.")

    sources = _sources(data)
    penalties = data.get("penalties")
    return PasswordScore(
        numeric_score=_to_number(lookup(sources, SCORE_NUMERIC)),
        password_score=_text(lookup(sources, SCORE_LABEL)) or "Unknown",
        penalties=[str(p) for p in penalties] if isinstance(penalties, list) else None,
    )
