"""
Value cleaning and dedup-key construction shared by intake and moderation.

Stored values keep the reporter's casing; only comparison keys are folded.
"""

from typing import Optional

KEY_SEPARATOR = "|"


def clean_value(value: Optional[str]) -> Optional[str]:
    """Trim and collapse internal whitespace. Blank input becomes None."""
    if value is None:
        return None
    cleaned = " ".join(str(value).split())
    return cleaned or None


def normalize_component(value: Optional[str]) -> str:
    cleaned = clean_value(value)
    return cleaned.casefold() if cleaned else ""


def build_dedup_key(
    value: Optional[str],
    region: Optional[str] = None,
    sub_region: Optional[str] = None,
) -> str:
    """Case-insensitive key for (value, region, sub_region)."""
    return KEY_SEPARATOR.join(
        normalize_component(part) for part in (value, region, sub_region)
    )
