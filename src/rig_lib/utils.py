"""
Utility functions for string manipulation and numeric parsing.

This module handles the low-level formatting logic, including:
- Length normalization ("12.5m", "41ft", "33'" -> meters).
- Quantity coercion (anything -> non-negative int).
- Natural sorting ("8mm" before "10mm").
- Filename sanitizing and identifier/timestamp generation.
"""

import datetime
import math
import re
import uuid
from typing import Any

from src.rig_lib import constants as C

# Leading number: optional sign, digits with optional fraction (or a bare fraction), optional exponent.
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_length_meters(raw: str | None) -> float:
    """
    Converts a free-form length string to meters.

    Only the leading number is read. If the string mentions feet ("ft",
    or an apostrophe/prime) the value is converted from feet; otherwise it
    is taken to be meters already ("12", "12m", "12.5 m").

    Args:
        raw: The length string as recorded (e.g., "41ft").

    Returns:
        The length in meters, or 0.0 if the input is missing or has no
        leading number.
    """
    if not raw or not isinstance(raw, str):
        return 0.0

    match = _LEADING_NUMBER.match(raw)
    if not match:
        return 0.0

    try:
        value = float(match.group(1))
    except ValueError:
        return 0.0

    if not math.isfinite(value):
        return 0.0

    lowered = raw.lower()
    if any(marker in lowered for marker in C.FEET_MARKERS):
        return value * C.FEET_TO_METERS

    return value


def coerce_quantity(value: Any) -> int:
    """
    Reads a component quantity leniently.

    Missing, non-numeric and negative values all count as 0 so aggregation
    never raises on a half-filled record.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        qty = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, qty)


def natural_sort_key(text: str) -> list[Any]:
    """
    Generates a sort key for natural alphanumeric sorting.

    Splits strings into text and numeric chunks so that '10mm' comes
    after '8mm', rather than before it.

    Args:
        text: The string to sort (e.g., "10mm").

    Returns:
        A list of (kind, number, text) tuples; numeric chunks sort before text.
    """
    return [
        (0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk.upper())
        for chunk in re.split(r"(\d+)", text)
    ]


def safe_file_stem(name: str | None, fallback: str = "vessel") -> str:
    """
    Reduces a display name to a filename-safe stem.

    Every run of non-alphanumeric characters becomes a single '-', and
    dashes are trimmed from the ends: "S/V Sea Breeze!" -> "S-V-Sea-Breeze".
    """
    stem = re.sub(r"[^a-zA-Z0-9]+", "-", name or "").strip("-")
    return stem or fallback


def new_id() -> str:
    """Short random identifier for projects, components and checklist items."""
    return uuid.uuid4().hex[:9]


def utc_now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()
