"""Small formatting helpers shared by launcher commands."""

from __future__ import annotations

from enum import StrEnum

from passdeck.passcli.models import Item


class StrengthLevel(StrEnum):
    STRONG = "strong"
    FAIR = "fair"
    WEAK = "weak"
    UNKNOWN = "unknown"


_STRENGTH_LABELS: dict[str, StrengthLevel] = {
    "strong": StrengthLevel.STRONG,
    "secure": StrengthLevel.STRONG,
    "good": StrengthLevel.STRONG,
    "fair": StrengthLevel.FAIR,
    "average": StrengthLevel.FAIR,
    "moderate": StrengthLevel.FAIR,
    "weak": StrengthLevel.WEAK,
    "too weak": StrengthLevel.WEAK,
    "vulnerable": StrengthLevel.WEAK,
}


def format_item_subtitle(item: Item) -> str:
    """``username • in Vault`` (email when there is no username)."""
    parts: list[str] = []
    if item.username:
        parts.append(item.username)
    elif item.email:
        parts.append(item.email)
    if item.vault_name:
        parts.append(f"in {item.vault_name}")
    return " • ".join(parts)


def mask_password(password: str) -> str:
    return "•" * len(password)


def password_strength_level(password_score: str) -> StrengthLevel:
    """Bucket pass-cli's free-text strength label."""
    return _STRENGTH_LABELS.get(password_score.strip().lower(), StrengthLevel.UNKNOWN)
