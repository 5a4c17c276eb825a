"""
Date/time parsing for the two CFG timestamp lines.

Accepted tokens:
- date: ``D{1,2}/D{1,2}/D{2,4}``. Revision 1991 orders it month/day/year;
  1999, 2001 and 2013 order it day/month/year.
- time: ``D{1,2}:D{2}:D{1,2}`` with an optional ``.D{1,12}`` fraction.

The number of fraction digits sets its unit: ``.123`` is 123 ms,
``.123456`` is 123456 us, ``.123456789`` is 123456789 ns. The fraction
is scaled to nanoseconds; digits past the ninth are truncated.

Validation is done character by character rather than with a regular
expression so each rejection can name the offending group.
"""

from __future__ import annotations

import logging
from datetime import datetime

from comtrade_cfg.exceptions import InvalidDateTimeError
from comtrade_cfg.models import REV_1991, REVISIONS, CfgTimestamp

logger = logging.getLogger(__name__)

_MAX_FRACTION_DIGITS = 12
_NANOS_DIGITS = 9


def _is_digits(text: str, min_len: int, max_len: int) -> bool:
    """True if *text* is between min_len and max_len ASCII digits."""
    if not min_len <= len(text) <= max_len:
        return False
    return all("0" <= c <= "9" for c in text)


def parse_date(date_str: str, standard: str) -> tuple[int, int, int]:
    """Validate a CFG date token and return ``(year, month, day)``."""
    if standard not in REVISIONS:
        raise InvalidDateTimeError(f"Unknown revision {standard!r} for date {date_str!r}")

    groups = date_str.split("/")
    if len(groups) != 3 or not (
        _is_digits(groups[0], 1, 2)
        and _is_digits(groups[1], 1, 2)
        and _is_digits(groups[2], 2, 4)
    ):
        raise InvalidDateTimeError(
            f"Date {date_str!r} does not match dd/mm/yyyy or mm/dd/yyyy"
        )

    first, second, year = (int(g) for g in groups)
    if standard == REV_1991:
        month, day = first, second
    else:
        day, month = first, second
    return year, month, day


def parse_fraction(fraction: str) -> int:
    """Scale a fractional-second digit string to nanoseconds."""
    digits = len(fraction)
    value = int(fraction)
    if digits <= _NANOS_DIGITS:
        return value * 10 ** (_NANOS_DIGITS - digits)
    logger.warning(
        "Fraction of second %r has %d digits; truncating to nanoseconds",
        fraction, digits,
    )
    return value // 10 ** (digits - _NANOS_DIGITS)


def parse_time(time_str: str) -> tuple[int, int, int, int, int]:
    """Validate a CFG time token.

    Returns:
        ``(hour, minute, second, nanosecond, fraction_digits)``.
    """
    groups = time_str.split(":")
    if len(groups) != 3:
        raise InvalidDateTimeError(f"Time {time_str!r} does not match hh:mm:ss[.fraction]")

    hours, minutes, rest = groups
    seconds, dot, fraction = rest.partition(".")
    if not (
        _is_digits(hours, 1, 2)
        and _is_digits(minutes, 2, 2)
        and _is_digits(seconds, 1, 2)
    ):
        raise InvalidDateTimeError(f"Time {time_str!r} does not match hh:mm:ss[.fraction]")
    if dot and not _is_digits(fraction, 1, _MAX_FRACTION_DIGITS):
        raise InvalidDateTimeError(
            f"Fraction of second in {time_str!r} must be 1 to "
            f"{_MAX_FRACTION_DIGITS} digits"
        )

    nanosecond = parse_fraction(fraction) if dot else 0
    return int(hours), int(minutes), int(seconds), nanosecond, len(fraction)


def parse_timestamp(date_str: str, time_str: str, standard: str) -> CfgTimestamp:
    """Parse a ``(date, time)`` pair into a ``CfgTimestamp``.

    Raises:
        InvalidDateTimeError: If either token fails validation or the
            values are out of calendar range (e.g., month 0).
    """
    year, month, day = parse_date(date_str, standard)
    hour, minute, second, nanosecond, fraction_digits = parse_time(time_str)
    try:
        value = datetime(year, month, day, hour, minute, second, nanosecond // 1000)
    except ValueError as exc:
        raise InvalidDateTimeError(
            f"Invalid timestamp {date_str},{time_str}: {exc}"
        ) from exc
    return CfgTimestamp(
        value=value,
        nanosecond=nanosecond,
        fraction_digits=fraction_digits,
    )
