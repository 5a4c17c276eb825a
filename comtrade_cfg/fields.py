"""
Strict field parsing for CFG records.

CFG numbers must consume the whole token: ``"12x"`` is not 12, it is a
malformed record. Python's own ``int()``/``float()`` accept more than the
CFG grammar does (``"1_000"``, ``"inf"``, ``"nan"``), so tokens are
checked against an explicit pattern first.

Only the fields listed in ``EMPTY_DEFAULTS`` may be empty; every other
empty numeric token is rejected.

All helpers raise ``ValueError``; the parser attaches the line number and
content and re-raises as ``MalformedRecordError``.
"""

from __future__ import annotations

import re

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_DIGITS_PATTERN = re.compile(r"[0-9]+")
_FLOAT_PATTERN = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")

# field name -> token substituted when the field is empty
EMPTY_DEFAULTS: dict[str, str] = {
    "total_channels": "0",
    "analog_channel_count": "0A",
    "status_channel_count": "0D",
    "time_multiplier": "1.0",
}


def split_fields(line: str) -> tuple[str, ...]:
    """Split a raw CFG line on commas, stripping each token."""
    return tuple(cell.strip() for cell in line.strip().split(","))


def apply_default(field_name: str, token: str) -> str:
    """Return the declared default for an empty token, else the token."""
    if token == "" and field_name in EMPTY_DEFAULTS:
        return EMPTY_DEFAULTS[field_name]
    return token


def parse_int(token: str, field_name: str) -> int:
    """Parse a token that must be a whole integer."""
    token = apply_default(field_name, token)
    if not _INT_PATTERN.fullmatch(token):
        raise ValueError(f"{field_name}: expected an integer, got {token!r}")
    return int(token)


def parse_float(token: str, field_name: str) -> float:
    """Parse a token that must be a whole decimal number."""
    token = apply_default(field_name, token)
    if not _FLOAT_PATTERN.fullmatch(token):
        raise ValueError(f"{field_name}: expected a number, got {token!r}")
    return float(token)


def parse_count(token: str, suffix: str, field_name: str) -> int:
    """Parse a channel count such as ``"4A"`` whose suffix must match exactly."""
    token = apply_default(field_name, token)
    if not token.endswith(suffix):
        raise ValueError(f"{field_name}: expected a count ending in {suffix!r}, got {token!r}")
    digits = token[: -len(suffix)]
    if not _DIGITS_PATTERN.fullmatch(digits):
        raise ValueError(f"{field_name}: expected a count ending in {suffix!r}, got {token!r}")
    return int(digits)
