"""Validation and normalisation helpers"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the way it is stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_hex_color(color: str) -> bool:
    """Validate #RRGGBB colour strings"""
    return bool(HEX_COLOR_PATTERN.match(color))


def normalize_tags(tags: Optional[Union[str, Iterable[str]]]) -> List[str]:
    """
    Accept tags either as a list or as a comma separated string.
    Blank entries are dropped and surrounding whitespace trimmed.

    Raises:
        ValueError: anything other than a string or a list of strings
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    elif not isinstance(tags, (list, tuple)):
        raise ValueError("Tags must be a list or a comma separated string")
    if any(not isinstance(tag, str) for tag in tags):
        raise ValueError("Every tag must be a string")
    return [tag.strip() for tag in tags if tag.strip()]
